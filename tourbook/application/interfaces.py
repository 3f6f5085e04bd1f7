# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from tourbook.domain.users.entities import User
from tourbook.shared.errors.base import InfrastructureError


class EmailDeliveryError(InfrastructureError):
    def __init__(self, message: str | None = None) -> None:
        super().__init__("email_delivery_failed", message=message)


class PaymentProviderError(InfrastructureError):
    def __init__(self, message: str | None = None) -> None:
        super().__init__("payment_provider_error", message=message)


class EmailSender(Protocol):
    def send_welcome(self, user: User, url: str) -> None: ...

    def send_password_reset(self, user: User, url: str) -> None: ...


@dataclass(slots=True, frozen=True)
class CheckoutRequest:
    tour_id: str
    tour_name: str
    tour_summary: str
    tour_image: str
    price: float
    customer_email: str
    success_url: str
    cancel_url: str


@dataclass(slots=True, frozen=True)
class CheckoutSession:
    id: str
    url: str | None
    raw: Mapping[str, Any]


@dataclass(slots=True, frozen=True)
class PaymentEvent:
    type: str
    data: Mapping[str, Any]


class PaymentProvider(Protocol):
    def create_checkout_session(self, request: CheckoutRequest) -> CheckoutSession: ...

    def parse_webhook(self, payload: bytes, signature: str | None) -> PaymentEvent: ...


class DocumentRepository(Protocol):
    """Generic CRUD over one collection, used by the resource controllers."""

    def find_many(
        self,
        params: Mapping[str, Any],
        *,
        extra_filter: Mapping[str, Any] | None = None,
    ) -> list[dict[str, Any]]: ...

    def find_one(self, document_id: str) -> dict[str, Any] | None: ...

    def create(self, document: Mapping[str, Any]) -> dict[str, Any]: ...

    def update(self, document_id: str, changes: Mapping[str, Any]) -> dict[str, Any] | None: ...

    def delete(self, document_id: str) -> bool: ...


class TourRepository(DocumentRepository, Protocol):
    def find_by_slug(self, slug: str) -> dict[str, Any] | None: ...

    def find_by_ids(self, tour_ids: list[Any]) -> list[dict[str, Any]]: ...

    def stats(self) -> list[dict[str, Any]]: ...

    def monthly_plan(self, year: int) -> list[dict[str, Any]]: ...

    def within(self, distance: float, lat: float, lng: float, unit: str) -> list[dict[str, Any]]: ...

    def distances(self, lat: float, lng: float, unit: str) -> list[dict[str, Any]]: ...


class BookingRepository(DocumentRepository, Protocol):
    def tour_ids_for_user(self, user_id: str) -> list[Any]: ...


__all__: Sequence[str] = [
    "BookingRepository",
    "CheckoutRequest",
    "CheckoutSession",
    "DocumentRepository",
    "EmailDeliveryError",
    "EmailSender",
    "PaymentEvent",
    "PaymentProvider",
    "PaymentProviderError",
    "TourRepository",
]
