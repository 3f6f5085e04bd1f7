# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from .exceptions import PasswordMismatchError, PasswordTooShortError

MIN_PASSWORD_LENGTH = 8


class Role(str, Enum):
    USER = "user"
    GUIDE = "guide"
    LEAD_GUIDE = "lead-guide"
    ADMIN = "admin"


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


@dataclass(slots=True, frozen=True)
class User:

    id: str
    name: str
    email: str
    role: Role = Role.USER
    password_hash: str | None = None
    photo: str = "default.jpg"
    password_changed_at: datetime | None = None
    password_reset_token: str | None = None
    password_reset_expires: datetime | None = None
    active: bool = True

    @staticmethod
    def validate_password(password: str, confirm: str) -> None:
        if len(password) < MIN_PASSWORD_LENGTH:
            raise PasswordTooShortError(MIN_PASSWORD_LENGTH)
        if password != confirm:
            raise PasswordMismatchError()

    def changed_password_after(self, issued_at: int) -> bool:
        """True when the password changed after a token with ``iat=issued_at`` was signed."""
        if self.password_changed_at is None:
            return False
        return int(as_utc(self.password_changed_at).timestamp()) > issued_at

    def has_pending_reset(self, now: datetime) -> bool:
        if not self.password_reset_token or self.password_reset_expires is None:
            return False
        return as_utc(self.password_reset_expires) > now

    def with_password(self, password_hash: str, *, changed_at: datetime) -> User:
        return replace(
            self,
            password_hash=password_hash,
            password_changed_at=changed_at,
            password_reset_token=None,
            password_reset_expires=None,
        )

    def with_reset_token(self, token_hash: str | None, expires: datetime | None) -> User:
        return replace(self, password_reset_token=token_hash, password_reset_expires=expires)

    def to_public_dict(self) -> dict[str, Any]:
        return {
            "_id": self.id,
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "photo": self.photo,
            "role": self.role.value,
        }
