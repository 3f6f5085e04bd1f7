# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from http import HTTPStatus

from tourbook.shared.errors.base import DomainError, ValidationError


class UserAlreadyExistsError(DomainError):
    code = "user_already_exists"
    status = HTTPStatus.CONFLICT
    message = "An account with that email already exists."


class InvalidCredentialsError(DomainError):
    code = "invalid_credentials"
    status = HTTPStatus.UNAUTHORIZED
    message = "Incorrect email or password."


class UnauthenticatedError(DomainError):
    code = "unauthenticated"
    status = HTTPStatus.UNAUTHORIZED
    message = "You are not logged in! Please log in to get access."


class InvalidTokenError(DomainError):
    code = "invalid_token"
    status = HTTPStatus.UNAUTHORIZED
    message = "Invalid token. Please log in again."


class TokenExpiredError(DomainError):
    code = "token_expired"
    status = HTTPStatus.UNAUTHORIZED
    message = "Your token has expired. Please log in again."


class UserNotFoundError(DomainError):
    code = "user_not_found"
    status = HTTPStatus.UNAUTHORIZED
    message = "The user belonging to this token no longer exists."


class StalePasswordError(DomainError):
    code = "stale_password"
    status = HTTPStatus.UNAUTHORIZED
    message = "User recently changed password. Please log in again."


class WrongPasswordError(DomainError):
    code = "wrong_password"
    status = HTTPStatus.UNAUTHORIZED
    message = "Your current password is wrong."


class ForbiddenError(DomainError):
    code = "forbidden"
    status = HTTPStatus.FORBIDDEN
    message = "You do not have permission to perform this action."


class NoSuchUserError(DomainError):
    code = "no_such_user"
    status = HTTPStatus.NOT_FOUND
    message = "There is no user with that email address."


class InvalidOrExpiredTokenError(DomainError):
    code = "invalid_or_expired_token"
    status = HTTPStatus.BAD_REQUEST
    message = "Token is invalid or has expired."


class DeliveryFailedError(DomainError):
    code = "delivery_failed"
    status = HTTPStatus.INTERNAL_SERVER_ERROR
    message = "There was an error sending the email. Try again later!"


class PasswordMismatchError(ValidationError):
    def __init__(self) -> None:
        super().__init__(
            code="password_mismatch",
            message="Passwords are not the same!",
            context={"fields": ["passwordConfirm"]},
        )


class PasswordTooShortError(ValidationError):
    def __init__(self, min_length: int) -> None:
        super().__init__(
            code="password_too_short",
            message=f"Password must be at least {min_length} characters long.",
            context={"fields": ["password"], "min_length": min_length},
        )


class PasswordUpdateNotAllowedError(DomainError):
    code = "password_update_not_allowed"
    status = HTTPStatus.BAD_REQUEST
    message = "This route is not for password updates. Please use /updateMyPassword."
