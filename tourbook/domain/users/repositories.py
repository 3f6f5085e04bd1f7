# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any, Protocol

from .entities import User


class UserRepository(Protocol):
    def find_by_id(self, user_id: str, *, with_password: bool = False) -> User | None: ...
    def find_by_email(self, email: str, *, with_password: bool = False) -> User | None: ...
    def find_by_reset_token(self, token_hash: str, now: datetime) -> User | None: ...
    def add(self, user: User) -> User: ...
    def save_credentials(self, user: User) -> User: ...
    def save_reset_state(self, user: User) -> None: ...
    def update_profile(self, user_id: str, changes: Mapping[str, Any]) -> User | None: ...
    def deactivate(self, user_id: str) -> None: ...


class PasswordHasher(Protocol):
    def hash(self, password: str) -> str: ...
    def verify(self, password: str, hashed: str) -> bool: ...
