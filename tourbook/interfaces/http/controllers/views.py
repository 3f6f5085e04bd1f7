# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from flask import Blueprint, render_template, request

from tourbook.application.services.bookings import BookingService
from tourbook.application.services.tours import TourService
from tourbook.interfaces.http.access_control import AccessControl, AuthContext

ALERTS = {
    "booking": (
        "Your booking was successful! Please check your email for a confirmation. "
        "If your booking doesn't show up here immediately, please come back later."
    ),
}


def _render(template: str, auth: AuthContext | None, **context) -> str:
    return render_template(
        template,
        user=auth.user if auth else None,
        alert=ALERTS.get(request.args.get("alert", "")),
        **context,
    )


class ViewsController:
    def __init__(
        self,
        *,
        tours: TourService,
        bookings: BookingService,
        access: AccessControl,
    ) -> None:
        self._tours = tours
        self._bookings = bookings
        self._access = access

    def overview(self, *, auth: AuthContext | None) -> str:
        return _render("overview.html", auth, title="All Tours", tours=self._tours.overview())

    def tour(self, slug: str, *, auth: AuthContext | None) -> str:
        tour = self._tours.by_slug(slug)
        return _render("tour.html", auth, title=f"{tour.get('name', '')} Tour", tour=tour)

    def login(self, *, auth: AuthContext | None) -> str:
        return _render("login.html", auth, title="Log into your account")

    def account(self, *, auth: AuthContext) -> str:
        return _render("account.html", auth, title="Your account")

    def my_tours(self, *, auth: AuthContext) -> str:
        tours = self._bookings.tours_booked_by(auth.user)
        return _render("overview.html", auth, title="My Tours", tours=tours)

    def as_blueprint(self) -> Blueprint:
        optional = self._access.optional
        protect = self._access.protect
        bp = Blueprint("views", __name__)
        bp.add_url_rule("/", view_func=optional(self.overview), methods=["GET"])
        bp.add_url_rule("/tour/<slug>", view_func=optional(self.tour), methods=["GET"])
        bp.add_url_rule("/login", view_func=optional(self.login), methods=["GET"])
        bp.add_url_rule("/me", view_func=protect(self.account), methods=["GET"])
        bp.add_url_rule("/my-tours", view_func=protect(self.my_tours), methods=["GET"])
        return bp


__all__ = ["ViewsController"]
