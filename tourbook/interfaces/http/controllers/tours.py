# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from http import HTTPStatus
from typing import Any

from flask import Blueprint, Response, jsonify, request

from tourbook.application.services.tours import TourService
from tourbook.domain.users.entities import Role
from tourbook.interfaces.http.access_control import AccessControl, AuthContext
from tourbook.interfaces.http.controllers.resource import ResourceHandlers, success, success_list
from tourbook.interfaces.http.controllers.reviews import ReviewsController
from tourbook.interfaces.http.query_args import parse_query_args

TOP_CHEAP_PARAMS = {
    "limit": "5",
    "sort": "-ratingsAverage,price",
    "fields": "name,price,ratingsAverage,summary,difficulty",
}

EDITORS = (Role.ADMIN, Role.LEAD_GUIDE)


class ToursController:
    def __init__(
        self,
        *,
        service: TourService,
        handlers: ResourceHandlers,
        reviews: ReviewsController,
        access: AccessControl,
    ) -> None:
        self._service = service
        self._handlers = handlers
        self._reviews = reviews
        self._access = access

    def list_tours(self) -> tuple[Response, int]:
        return self._handlers.get_all()

    def top_cheap(self) -> tuple[Response, int]:
        params = parse_query_args(request.args)
        params.update(TOP_CHEAP_PARAMS)
        return self._handlers.get_all(params=params)

    def get_tour(self, tour_id: str) -> tuple[Response, int]:
        return self._handlers.get_one(tour_id)

    def create_tour(self, *, auth: AuthContext) -> tuple[Response, int]:
        return self._handlers.create()

    def update_tour(self, tour_id: str, *, auth: AuthContext) -> tuple[Response, int]:
        return self._handlers.update(tour_id)

    def delete_tour(self, tour_id: str, *, auth: AuthContext) -> tuple[Response, int]:
        return self._handlers.delete(tour_id)

    def tour_stats(self) -> tuple[Response, int]:
        return success_list_of("stats", self._service.stats())

    def monthly_plan(self, year: int, *, auth: AuthContext) -> tuple[Response, int]:
        return success_list_of("plan", self._service.monthly_plan(year))

    def tours_within(self, distance: float, latlng: str, unit: str) -> tuple[Response, int]:
        return success_list(self._service.within(distance, latlng, unit))

    def distances(self, latlng: str, unit: str) -> tuple[Response, int]:
        return success(self._service.distances(latlng, unit))

    def as_blueprint(self) -> Blueprint:
        guard = self._access.guard
        bp = Blueprint("tours", __name__, url_prefix="/api/v1/tours")
        bp.add_url_rule("/top-5-cheap", view_func=self.top_cheap, methods=["GET"])
        bp.add_url_rule("/tour-stats", view_func=self.tour_stats, methods=["GET"])
        bp.add_url_rule(
            "/monthly-plan/<int:year>",
            view_func=guard(self.monthly_plan, Role.ADMIN, Role.LEAD_GUIDE, Role.GUIDE),
            methods=["GET"],
        )
        bp.add_url_rule(
            "/tours-within/<float:distance>/center/<latlng>/unit/<unit>",
            view_func=self.tours_within,
            methods=["GET"],
        )
        bp.add_url_rule(
            "/tours-within/<int:distance>/center/<latlng>/unit/<unit>",
            endpoint="tours_within_int",
            view_func=self.tours_within,
            methods=["GET"],
        )
        bp.add_url_rule("/distances/<latlng>/unit/<unit>", view_func=self.distances, methods=["GET"])
        bp.add_url_rule("", view_func=self.list_tours, methods=["GET"])
        bp.add_url_rule("", view_func=guard(self.create_tour, *EDITORS), methods=["POST"])
        bp.add_url_rule("/<tour_id>", view_func=self.get_tour, methods=["GET"])
        bp.add_url_rule(
            "/<tour_id>", view_func=guard(self.update_tour, *EDITORS), methods=["PATCH"]
        )
        bp.add_url_rule(
            "/<tour_id>", view_func=guard(self.delete_tour, *EDITORS), methods=["DELETE"]
        )
        self._reviews.register_nested(bp, "/<tour_id>/reviews")
        return bp


def success_list_of(key: str, items: list[Any]) -> tuple[Response, int]:
    return (
        jsonify({"status": "success", "results": len(items), "data": {key: items}}),
        HTTPStatus.OK,
    )


__all__ = ["ToursController"]
