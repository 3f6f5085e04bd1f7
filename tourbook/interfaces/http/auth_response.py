# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from flask import Response, jsonify

from tourbook.domain.users.entities import User
from tourbook.shared.config import AppConfig

SESSION_COOKIE = "jwt"
LOGGED_OUT = "loggedout"
LOGGED_OUT_SECONDS = 10


def _set_session_cookie(response: Response, value: str, max_age: int, config: AppConfig) -> None:
    response.set_cookie(
        SESSION_COOKIE,
        value,
        max_age=max_age,
        expires=datetime.now(UTC) + timedelta(seconds=max_age),
        httponly=True,
        secure=config.secure_cookies(),
        samesite=config.security.cookie_samesite,
    )


def send_authenticated_response(
    user: User, token: str, status: int, config: AppConfig
) -> tuple[Response, int]:
    response = jsonify(
        {"status": "success", "token": token, "data": {"user": user.to_public_dict()}}
    )
    max_age = config.auth.jwt_cookie_expires_in_days * 24 * 60 * 60
    _set_session_cookie(response, token, max_age, config)
    return response, status


def clear_session_cookie(response: Response, config: AppConfig) -> Response:
    _set_session_cookie(response, LOGGED_OUT, LOGGED_OUT_SECONDS, config)
    return response


__all__ = [
    "LOGGED_OUT",
    "SESSION_COOKIE",
    "clear_session_cookie",
    "send_authenticated_response",
]
