# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .users import PasswordHasher, Role, User, UserRepository

__all__ = ["PasswordHasher", "Role", "User", "UserRepository"]
