# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, Response

from tourbook.application.services.reviews import ReviewService
from tourbook.domain.users.entities import Role
from tourbook.infrastructure.db.serialization import parse_object_id
from tourbook.interfaces.http.access_control import AccessControl, AuthContext
from tourbook.interfaces.http.controllers.resource import ResourceHandlers, no_content, success
from tourbook.interfaces.http.dto.base import parse_body
from tourbook.interfaces.http.dto.reviews import ReviewCreateDTO, ReviewUpdateDTO


class ReviewsController:
    def __init__(
        self,
        *,
        service: ReviewService,
        handlers: ResourceHandlers,
        access: AccessControl,
    ) -> None:
        self._service = service
        self._handlers = handlers
        self._access = access

    def list_reviews(self, tour_id: str | None = None, *, auth: AuthContext) -> tuple[Response, int]:
        extra = {"tour": parse_object_id(tour_id) or tour_id} if tour_id else None
        return self._handlers.get_all(extra_filter=extra)

    def create_review(self, tour_id: str | None = None, *, auth: AuthContext) -> tuple[Response, int]:
        dto = parse_body(ReviewCreateDTO)
        review = self._service.create(dto.to_document(), user=auth.user, tour_id=tour_id)
        return success(review, HTTPStatus.CREATED)

    def get_review(self, review_id: str, *, auth: AuthContext) -> tuple[Response, int]:
        return self._handlers.get_one(review_id)

    def update_review(self, review_id: str, *, auth: AuthContext) -> tuple[Response, int]:
        dto = parse_body(ReviewUpdateDTO)
        return success(self._service.update(review_id, dto.to_document(partial=True), user=auth.user))

    def delete_review(self, review_id: str, *, auth: AuthContext) -> tuple[Response, int]:
        self._service.delete(review_id, user=auth.user)
        return no_content()

    def register_nested(self, bp: Blueprint, rule: str) -> None:
        """Mount list/create under a parent resource, e.g. ``/<tour_id>/reviews``."""
        guard = self._access.guard
        bp.add_url_rule(
            rule, endpoint="list_reviews", view_func=guard(self.list_reviews), methods=["GET"]
        )
        bp.add_url_rule(
            rule,
            endpoint="create_review",
            view_func=guard(self.create_review, Role.USER),
            methods=["POST"],
        )

    def as_blueprint(self) -> Blueprint:
        guard = self._access.guard
        bp = Blueprint("reviews", __name__, url_prefix="/api/v1/reviews")
        self.register_nested(bp, "")
        bp.add_url_rule("/<review_id>", view_func=guard(self.get_review), methods=["GET"])
        bp.add_url_rule(
            "/<review_id>",
            view_func=guard(self.update_review, Role.USER, Role.ADMIN),
            methods=["PATCH"],
        )
        bp.add_url_rule(
            "/<review_id>",
            view_func=guard(self.delete_review, Role.USER, Role.ADMIN),
            methods=["DELETE"],
        )
        return bp


__all__ = ["ReviewsController"]
