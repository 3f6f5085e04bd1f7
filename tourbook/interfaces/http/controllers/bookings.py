# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, Response, jsonify, request

from tourbook.application.services.bookings import BookingService
from tourbook.domain.users.entities import Role
from tourbook.interfaces.http.access_control import AccessControl, AuthContext
from tourbook.interfaces.http.controllers.resource import ResourceHandlers

MANAGERS = (Role.ADMIN, Role.LEAD_GUIDE)


class BookingsController:
    def __init__(
        self,
        *,
        service: BookingService,
        handlers: ResourceHandlers,
        access: AccessControl,
    ) -> None:
        self._service = service
        self._handlers = handlers
        self._access = access

    def checkout_session(self, tour_id: str, *, auth: AuthContext) -> tuple[Response, int]:
        host = request.host_url.rstrip("/")
        session = self._service.create_checkout_session(
            tour_id,
            auth.user,
            success_url=f"{host}/my-tours?alert=booking",
            cancel_url=f"{host}/",
            image_base_url=host,
        )
        return jsonify({"status": "success", "session": dict(session.raw)}), HTTPStatus.OK

    def webhook(self) -> tuple[Response, int]:
        self._service.handle_webhook(
            request.get_data(cache=True), request.headers.get("Stripe-Signature")
        )
        return jsonify({"received": True}), HTTPStatus.OK

    def list_bookings(self, *, auth: AuthContext) -> tuple[Response, int]:
        return self._handlers.get_all()

    def create_booking(self, *, auth: AuthContext) -> tuple[Response, int]:
        return self._handlers.create()

    def get_booking(self, booking_id: str, *, auth: AuthContext) -> tuple[Response, int]:
        return self._handlers.get_one(booking_id)

    def update_booking(self, booking_id: str, *, auth: AuthContext) -> tuple[Response, int]:
        return self._handlers.update(booking_id)

    def delete_booking(self, booking_id: str, *, auth: AuthContext) -> tuple[Response, int]:
        return self._handlers.delete(booking_id)

    def as_blueprint(self) -> Blueprint:
        guard = self._access.guard
        bp = Blueprint("bookings", __name__, url_prefix="/api/v1/bookings")
        bp.add_url_rule(
            "/checkout-session/<tour_id>",
            view_func=guard(self.checkout_session),
            methods=["GET"],
        )
        bp.add_url_rule("/webhook-checkout", view_func=self.webhook, methods=["POST"])
        bp.add_url_rule("", view_func=guard(self.list_bookings, *MANAGERS), methods=["GET"])
        bp.add_url_rule("", view_func=guard(self.create_booking, *MANAGERS), methods=["POST"])
        bp.add_url_rule(
            "/<booking_id>", view_func=guard(self.get_booking, *MANAGERS), methods=["GET"]
        )
        bp.add_url_rule(
            "/<booking_id>", view_func=guard(self.update_booking, *MANAGERS), methods=["PATCH"]
        )
        bp.add_url_rule(
            "/<booking_id>", view_func=guard(self.delete_booking, *MANAGERS), methods=["DELETE"]
        )
        return bp


__all__ = ["BookingsController"]
