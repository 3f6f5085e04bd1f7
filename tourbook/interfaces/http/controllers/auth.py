# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, Response, jsonify, request

from tourbook.application.services.credentials import CredentialService
from tourbook.interfaces.http.access_control import AccessControl, AuthContext
from tourbook.interfaces.http.auth_response import (
    clear_session_cookie,
    send_authenticated_response,
)
from tourbook.interfaces.http.dto.auth import (
    ForgotPasswordRequestDTO,
    LoginRequestDTO,
    ResetPasswordRequestDTO,
    SignupRequestDTO,
    UpdatePasswordRequestDTO,
)
from tourbook.interfaces.http.dto.base import parse_body
from tourbook.shared.config import AppConfig
from tourbook.shared.logging import logger
from tourbook.shared.middleware.rate_limit import rate_limit

USERS_PREFIX = "/api/v1/users"


class AuthController:
    def __init__(
        self,
        *,
        credentials: CredentialService,
        access: AccessControl,
        config: AppConfig,
    ) -> None:
        self._credentials = credentials
        self._access = access
        self._config = config

    def signup(self) -> tuple[Response, int]:
        dto = parse_body(SignupRequestDTO)
        user = self._credentials.register(
            name=dto.name,
            email=dto.email,
            password=dto.password,
            password_confirm=dto.password_confirm,
            account_url=f"{request.host_url}me",
        )
        token = self._credentials.issue_token(user.id)
        return send_authenticated_response(user, token, HTTPStatus.CREATED, self._config)

    def login(self) -> tuple[Response, int]:
        dto = parse_body(LoginRequestDTO)
        user = self._credentials.verify_credentials(dto.email, dto.password)
        token = self._credentials.issue_token(user.id)
        logger.info(f"auth.login: ok user_id={user.id}")
        return send_authenticated_response(user, token, HTTPStatus.OK, self._config)

    def logout(self) -> tuple[Response, int]:
        response = jsonify({"status": "success"})
        clear_session_cookie(response, self._config)
        return response, HTTPStatus.OK

    def forgot_password(self) -> tuple[Response, int]:
        dto = parse_body(ForgotPasswordRequestDTO)
        self._credentials.request_password_reset(
            dto.email,
            lambda raw: f"{request.host_url}{USERS_PREFIX.lstrip('/')}/resetPassword/{raw}",
        )
        return jsonify({"status": "success", "message": "Token sent to email!"}), HTTPStatus.OK

    def reset_password(self, token: str) -> tuple[Response, int]:
        dto = parse_body(ResetPasswordRequestDTO)
        user, session_token = self._credentials.reset_password(
            token, dto.password, dto.password_confirm
        )
        return send_authenticated_response(user, session_token, HTTPStatus.OK, self._config)

    def update_password(self, *, auth: AuthContext) -> tuple[Response, int]:
        dto = parse_body(UpdatePasswordRequestDTO)
        user, token = self._credentials.change_password(
            auth.user, dto.password_current, dto.password, dto.password_confirm
        )
        return send_authenticated_response(user, token, HTTPStatus.OK, self._config)

    def as_blueprint(self) -> Blueprint:
        limited = rate_limit(
            limit=10, window_seconds=60.0, enabled=self._config.security.enable_rate_limit
        )
        bp = Blueprint("auth", __name__, url_prefix=USERS_PREFIX)
        bp.add_url_rule("/signup", view_func=self.signup, methods=["POST"])
        bp.add_url_rule("/login", view_func=limited(self.login), methods=["POST"])
        bp.add_url_rule("/logout", view_func=self.logout, methods=["GET"])
        bp.add_url_rule(
            "/forgotPassword", view_func=limited(self.forgot_password), methods=["POST"]
        )
        bp.add_url_rule(
            "/resetPassword/<token>", view_func=self.reset_password, methods=["PATCH"]
        )
        bp.add_url_rule(
            "/updateMyPassword",
            view_func=self._access.protect(self.update_password),
            methods=["PATCH"],
        )
        return bp


__all__ = ["AuthController"]
