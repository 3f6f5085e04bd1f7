# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import hashlib
import secrets
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import jwt

from tourbook.application.interfaces import EmailDeliveryError, EmailSender
from tourbook.domain.users.entities import User
from tourbook.domain.users.exceptions import (
    DeliveryFailedError,
    InvalidCredentialsError,
    InvalidOrExpiredTokenError,
    InvalidTokenError,
    NoSuchUserError,
    StalePasswordError,
    TokenExpiredError,
    UnauthenticatedError,
    UserAlreadyExistsError,
    UserNotFoundError,
    WrongPasswordError,
)
from tourbook.domain.users.repositories import PasswordHasher, UserRepository
from tourbook.shared.config import AuthConfig
from tourbook.shared.errors import AppError
from tourbook.shared.logging import logger

Clock = Callable[[], datetime]

# Shifted back so a token signed in the same second is not considered stale.
PASSWORD_CHANGE_SKEW = timedelta(seconds=1)


def utcnow() -> datetime:
    return datetime.now(UTC)


def hash_reset_token(raw_token: str) -> str:
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


class CredentialService:
    """Session tokens, password checks and the password-reset flow."""

    def __init__(
        self,
        *,
        users: UserRepository,
        password_hasher: PasswordHasher,
        email: EmailSender,
        config: AuthConfig,
        clock: Clock = utcnow,
    ) -> None:
        self._users = users
        self._password_hasher = password_hasher
        self._email = email
        self._config = config
        self._clock = clock

    def issue_token(self, user_id: str) -> str:
        now = self._clock()
        expires = now + timedelta(days=self._config.jwt_expires_in_days)
        payload = {
            "id": str(user_id),
            "iat": int(now.timestamp()),
            "exp": int(expires.timestamp()),
        }
        return jwt.encode(payload, self._config.jwt_secret, algorithm=self._config.jwt_algorithm)

    def register(
        self,
        *,
        name: str,
        email: str,
        password: str,
        password_confirm: str,
        account_url: str,
    ) -> User:
        User.validate_password(password, password_confirm)
        normalized = email.strip().lower()
        if self._users.find_by_email(normalized) is not None:
            raise UserAlreadyExistsError()

        user = User(
            id="",
            name=name.strip(),
            email=normalized,
            password_hash=self._password_hasher.hash(password),
        )
        persisted = self._users.add(user)
        logger.info(f"auth.register: created user_id={persisted.id}")

        try:
            self._email.send_welcome(persisted, account_url)
        except EmailDeliveryError as exc:
            logger.warning(f"auth.register: welcome email failed user_id={persisted.id}: {exc.message}")
        return persisted

    def verify_credentials(self, email: str, password: str) -> User:
        user = self._users.find_by_email(email.strip().lower(), with_password=True)
        if user is None or not user.password_hash:
            raise InvalidCredentialsError()
        if not self._password_hasher.verify(password, user.password_hash):
            raise InvalidCredentialsError()
        return user

    def authenticate_request(self, token: str | None) -> User:
        if not token:
            raise UnauthenticatedError()

        try:
            claims = jwt.decode(
                token,
                self._config.jwt_secret,
                algorithms=[self._config.jwt_algorithm],
                options={"require": ["id", "iat", "exp"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpiredError() from exc
        except jwt.InvalidTokenError as exc:
            raise InvalidTokenError() from exc

        user = self._users.find_by_id(str(claims["id"]))
        if user is None:
            raise UserNotFoundError()
        if user.changed_password_after(int(claims["iat"])):
            raise StalePasswordError()
        return user

    def optional_authenticate(self, token: str | None) -> User | None:
        if not token:
            return None
        try:
            return self.authenticate_request(token)
        except AppError as exc:
            logger.debug(f"auth.optional: anonymous ({exc.code})")
            return None

    def request_password_reset(self, email: str, build_reset_url: Callable[[str], str]) -> None:
        user = self._users.find_by_email(email.strip().lower())
        if user is None:
            raise NoSuchUserError()

        raw_token = secrets.token_hex(32)
        expires = self._clock() + timedelta(minutes=self._config.password_reset_ttl_minutes)
        pending = user.with_reset_token(hash_reset_token(raw_token), expires)
        self._users.save_reset_state(pending)

        try:
            self._email.send_password_reset(pending, build_reset_url(raw_token))
        except EmailDeliveryError as exc:
            self._users.save_reset_state(pending.with_reset_token(None, None))
            logger.error(f"auth.forgot_password: delivery failed user_id={user.id}: {exc.message}")
            raise DeliveryFailedError() from exc

        logger.info(f"auth.forgot_password: token sent user_id={user.id}")

    def reset_password(self, raw_token: str, password: str, password_confirm: str) -> tuple[User, str]:
        now = self._clock()
        user = self._users.find_by_reset_token(hash_reset_token(raw_token), now)
        if user is None:
            raise InvalidOrExpiredTokenError()

        User.validate_password(password, password_confirm)
        updated = self._users.save_credentials(
            user.with_password(
                self._password_hasher.hash(password),
                changed_at=now - PASSWORD_CHANGE_SKEW,
            )
        )
        logger.info(f"auth.reset_password: ok user_id={updated.id}")
        return updated, self.issue_token(updated.id)

    def change_password(
        self,
        user: User,
        current_password: str,
        new_password: str,
        password_confirm: str,
    ) -> tuple[User, str]:
        stored = self._users.find_by_id(user.id, with_password=True)
        if stored is None:
            raise UserNotFoundError()
        if not stored.password_hash or not self._password_hasher.verify(
            current_password, stored.password_hash
        ):
            raise WrongPasswordError()

        User.validate_password(new_password, password_confirm)
        updated = self._users.save_credentials(
            stored.with_password(
                self._password_hasher.hash(new_password),
                changed_at=self._clock() - PASSWORD_CHANGE_SKEW,
            )
        )
        logger.info(f"auth.update_password: ok user_id={updated.id}")
        return updated, self.issue_token(updated.id)


__all__ = ["CredentialService", "hash_reset_token", "utcnow"]
