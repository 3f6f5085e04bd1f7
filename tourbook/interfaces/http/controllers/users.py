# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, Response, request

from tourbook.domain.users.entities import Role
from tourbook.domain.users.exceptions import PasswordUpdateNotAllowedError
from tourbook.domain.users.repositories import UserRepository
from tourbook.interfaces.http.access_control import AccessControl, AuthContext
from tourbook.interfaces.http.controllers.resource import ResourceHandlers, no_content, success
from tourbook.interfaces.http.dto.auth import UpdateMeRequestDTO
from tourbook.interfaces.http.dto.base import parse_body
from tourbook.shared.errors import DomainError, NotFoundError
from tourbook.shared.logging import logger


class UseSignupError(DomainError):
    code = "use_signup"
    message = "This route is not defined! Please use /signup instead."


class UsersController:
    def __init__(
        self,
        *,
        users: UserRepository,
        handlers: ResourceHandlers,
        access: AccessControl,
    ) -> None:
        self._users = users
        self._handlers = handlers
        self._access = access

    def get_me(self, *, auth: AuthContext) -> tuple[Response, int]:
        return self._handlers.get_one(auth.user.id)

    def update_me(self, *, auth: AuthContext) -> tuple[Response, int]:
        raw = request.get_json(silent=True) or {}
        if isinstance(raw, dict) and ("password" in raw or "passwordConfirm" in raw):
            raise PasswordUpdateNotAllowedError()
        dto = parse_body(UpdateMeRequestDTO)
        updated = self._users.update_profile(auth.user.id, dto.to_document(partial=True))
        if updated is None:
            raise NotFoundError("user", auth.user.id)
        logger.info(f"users.update_me: ok user_id={updated.id}")
        return success(updated.to_public_dict())

    def delete_me(self, *, auth: AuthContext) -> tuple[Response, int]:
        self._users.deactivate(auth.user.id)
        logger.info(f"users.delete_me: deactivated user_id={auth.user.id}")
        return no_content()

    def list_users(self, *, auth: AuthContext) -> tuple[Response, int]:
        return self._handlers.get_all()

    def create_user(self, *, auth: AuthContext) -> tuple[Response, int]:
        raise UseSignupError()

    def get_user(self, user_id: str, *, auth: AuthContext) -> tuple[Response, int]:
        return self._handlers.get_one(user_id)

    def update_user(self, user_id: str, *, auth: AuthContext) -> tuple[Response, int]:
        return self._handlers.update(user_id)

    def delete_user(self, user_id: str, *, auth: AuthContext) -> tuple[Response, int]:
        return self._handlers.delete(user_id)

    def as_blueprint(self) -> Blueprint:
        guard = self._access.guard
        bp = Blueprint("users", __name__, url_prefix="/api/v1/users")
        bp.add_url_rule("/me", view_func=guard(self.get_me), methods=["GET"])
        bp.add_url_rule("/updateMe", view_func=guard(self.update_me), methods=["PATCH"])
        bp.add_url_rule("/deleteMe", view_func=guard(self.delete_me), methods=["DELETE"])
        bp.add_url_rule("", view_func=guard(self.list_users, Role.ADMIN), methods=["GET"])
        bp.add_url_rule("", view_func=guard(self.create_user, Role.ADMIN), methods=["POST"])
        bp.add_url_rule("/<user_id>", view_func=guard(self.get_user, Role.ADMIN), methods=["GET"])
        bp.add_url_rule(
            "/<user_id>", view_func=guard(self.update_user, Role.ADMIN), methods=["PATCH"]
        )
        bp.add_url_rule(
            "/<user_id>", view_func=guard(self.delete_user, Role.ADMIN), methods=["DELETE"]
        )
        return bp


__all__ = ["UseSignupError", "UsersController"]
