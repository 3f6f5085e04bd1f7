# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from typing import Any

from tourbook.application.interfaces import (
    BookingRepository,
    CheckoutRequest,
    CheckoutSession,
    PaymentProvider,
    TourRepository,
)
from tourbook.domain.users.entities import User
from tourbook.domain.users.repositories import UserRepository
from tourbook.shared.errors import NotFoundError
from tourbook.shared.logging import logger

CHECKOUT_COMPLETED = "checkout.session.completed"


class BookingService:
    def __init__(
        self,
        *,
        tours: TourRepository,
        bookings: BookingRepository,
        users: UserRepository,
        payments: PaymentProvider,
    ) -> None:
        self._tours = tours
        self._bookings = bookings
        self._users = users
        self._payments = payments

    def create_checkout_session(
        self,
        tour_id: str,
        user: User,
        *,
        success_url: str,
        cancel_url: str,
        image_base_url: str,
    ) -> CheckoutSession:
        tour = self._tours.find_one(tour_id)
        if tour is None:
            raise NotFoundError("tour", tour_id)

        image = tour.get("imageCover") or ""
        request = CheckoutRequest(
            tour_id=str(tour["_id"]),
            tour_name=str(tour.get("name", "")),
            tour_summary=str(tour.get("summary", "")),
            tour_image=f"{image_base_url.rstrip('/')}/img/tours/{image}" if image else "",
            price=float(tour.get("price", 0)),
            customer_email=user.email,
            success_url=success_url,
            cancel_url=cancel_url,
        )
        return self._payments.create_checkout_session(request)

    def handle_webhook(self, payload: bytes, signature: str | None) -> dict[str, Any] | None:
        event = self._payments.parse_webhook(payload, signature)
        if event.type != CHECKOUT_COMPLETED:
            logger.debug(f"bookings.webhook: ignored event type={event.type}")
            return None

        session = event.data
        tour_id = str(session.get("client_reference_id") or "")
        email = str(session.get("customer_email") or "")
        user = self._users.find_by_email(email) if email else None
        if user is None or not tour_id:
            logger.warning(f"bookings.webhook: unmatched session tour={tour_id or '-'}")
            return None

        amount = session.get("amount_total") or 0
        booking = self._bookings.create(
            {"tour": tour_id, "user": user.id, "price": float(amount) / 100, "paid": True}
        )
        logger.info(f"bookings.webhook: booking created id={booking.get('_id')}")
        return booking

    def tours_booked_by(self, user: User) -> list[dict[str, Any]]:
        return self._tours.find_by_ids(self._bookings.tour_ids_for_user(user.id))


__all__ = ["CHECKOUT_COMPLETED", "BookingService"]
