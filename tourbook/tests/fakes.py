from __future__ import annotations

import itertools
from collections.abc import Callable, Mapping
from dataclasses import replace
from datetime import datetime
from typing import Any

from tourbook.application.interfaces import (
    CheckoutRequest,
    CheckoutSession,
    EmailDeliveryError,
    PaymentEvent,
)
from tourbook.domain.users.entities import Role, User
from tourbook.domain.users.repositories import PasswordHasher, UserRepository
from tourbook.shared.config import AppConfig, AuthConfig, SecurityConfig

TEST_SECRET = "test-secret-that-is-long-enough-for-hs256-signing"

_ids = itertools.count(1)


def new_id() -> str:
    return f"{next(_ids):024x}"


def fixed_clock(moment: datetime) -> Callable[[], datetime]:
    return lambda: moment


def make_config(**overrides: Any) -> AppConfig:
    values: dict[str, Any] = {
        "app_env": "test",
        "log_to_file": False,
        "auth": AuthConfig(jwt_secret=TEST_SECRET),
        "security": SecurityConfig(enable_rate_limit=False),
    }
    values.update(overrides)
    return AppConfig(**values)


class DeterministicHasher(PasswordHasher):
    def hash(self, password: str) -> str:
        return f"hashed:{password}"

    def verify(self, password: str, hashed: str) -> bool:
        return hashed == f"hashed:{password}"


class InMemoryUserRepository(UserRepository):
    def __init__(self) -> None:
        self.users: dict[str, User] = {}
        self.reset_writes: list[tuple[str | None, datetime | None]] = []

    def _visible(self, user: User | None, with_password: bool) -> User | None:
        if user is None or not user.active:
            return None
        return user if with_password else replace(user, password_hash=None)

    def find_by_id(self, user_id: str, *, with_password: bool = False) -> User | None:
        return self._visible(self.users.get(user_id), with_password)

    def find_by_email(self, email: str, *, with_password: bool = False) -> User | None:
        match = next((u for u in self.users.values() if u.email == email.lower()), None)
        return self._visible(match, with_password)

    def find_by_reset_token(self, token_hash: str, now: datetime) -> User | None:
        for user in self.users.values():
            if user.password_reset_token == token_hash and user.has_pending_reset(now):
                return self._visible(user, False)
        return None

    def add(self, user: User) -> User:
        stored = replace(user, id=new_id())
        self.users[stored.id] = stored
        return stored

    def save_credentials(self, user: User) -> User:
        self.users[user.id] = replace(
            self.users[user.id],
            password_hash=user.password_hash,
            password_changed_at=user.password_changed_at,
            password_reset_token=None,
            password_reset_expires=None,
        )
        return user

    def save_reset_state(self, user: User) -> None:
        self.reset_writes.append((user.password_reset_token, user.password_reset_expires))
        self.users[user.id] = self.users[user.id].with_reset_token(
            user.password_reset_token, user.password_reset_expires
        )

    def update_profile(self, user_id: str, changes: Mapping[str, Any]) -> User | None:
        current = self.users.get(user_id)
        if current is None:
            return None
        allowed = {k: v for k, v in changes.items() if k in {"name", "email", "photo"}}
        self.users[user_id] = replace(current, **allowed)
        return self.users[user_id]

    def deactivate(self, user_id: str) -> None:
        self.users[user_id] = replace(self.users[user_id], active=False)

    # document-style access used by the admin routes

    def find_many(self, params, *, extra_filter=None):
        return [u.to_public_dict() for u in self.users.values() if u.active]

    def find_one(self, document_id: str):
        user = self.find_by_id(document_id)
        return user.to_public_dict() if user else None

    def create(self, document):
        raise AssertionError("users are created through signup")

    def update(self, document_id, changes):
        current = self.users.get(document_id)
        if current is None:
            return None
        self.users[document_id] = replace(current, **{k: v for k, v in changes.items() if k in {"name", "email", "photo", "role"}})
        return self.users[document_id].to_public_dict()

    def delete(self, document_id):
        return self.users.pop(document_id, None) is not None

    def seed(
        self,
        *,
        email: str = "alice@example.com",
        password: str = "pass1234",
        role: Role = Role.USER,
        name: str = "Alice Doe",
        changed_at: datetime | None = None,
    ) -> User:
        return self.add(
            User(
                id="",
                name=name,
                email=email,
                role=role,
                password_hash=f"hashed:{password}",
                password_changed_at=changed_at,
            )
        )


class InMemoryDocumentRepository:
    def __init__(self) -> None:
        self.documents: dict[str, dict[str, Any]] = {}
        self.last_params: Mapping[str, Any] | None = None
        self.last_extra_filter: Mapping[str, Any] | None = None

    def find_many(self, params, *, extra_filter=None):
        self.last_params = params
        self.last_extra_filter = extra_filter
        docs = list(self.documents.values())
        for key, value in (extra_filter or {}).items():
            docs = [d for d in docs if str(d.get(key)) == str(value)]
        return docs

    def find_one(self, document_id):
        return self.documents.get(document_id)

    def create(self, document):
        doc_id = new_id()
        stored = {**document, "_id": doc_id, "id": doc_id}
        self.documents[doc_id] = stored
        return stored

    def update(self, document_id, changes):
        if document_id not in self.documents:
            return None
        self.documents[document_id].update(changes)
        return self.documents[document_id]

    def delete(self, document_id):
        return self.documents.pop(document_id, None) is not None


class InMemoryTourRepository(InMemoryDocumentRepository):
    def __init__(self) -> None:
        super().__init__()
        self.last_geo: tuple[Any, ...] | None = None

    def find_by_slug(self, slug):
        return next((d for d in self.documents.values() if d.get("slug") == slug), None)

    def find_by_ids(self, tour_ids):
        wanted = {str(t) for t in tour_ids}
        return [d for d in self.documents.values() if d["_id"] in wanted]

    def stats(self):
        return [{"_id": "EASY", "numTours": len(self.documents)}]

    def monthly_plan(self, year):
        return [{"month": 1, "numTourStarts": 1, "tours": [str(year)]}]

    def within(self, distance, lat, lng, unit):
        self.last_geo = (distance, lat, lng, unit)
        return list(self.documents.values())

    def distances(self, lat, lng, unit):
        self.last_geo = (lat, lng, unit)
        return [{"name": d.get("name"), "distance": 1.0} for d in self.documents.values()]


class InMemoryBookingRepository(InMemoryDocumentRepository):
    def tour_ids_for_user(self, user_id):
        return [d["tour"] for d in self.documents.values() if d.get("user") == user_id]


class RecordingEmailSender:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list[tuple[str, str, str]] = []

    def send_welcome(self, user: User, url: str) -> None:
        self._send(user, "welcome", url)

    def send_password_reset(self, user: User, url: str) -> None:
        self._send(user, "password_reset", url)

    def _send(self, user: User, kind: str, url: str) -> None:
        if self.fail:
            raise EmailDeliveryError("smtp down")
        self.sent.append((user.email, kind, url))


class StubPaymentProvider:
    def __init__(self) -> None:
        self.requests: list[CheckoutRequest] = []
        self.event = PaymentEvent(type="ping", data={})

    def create_checkout_session(self, request: CheckoutRequest) -> CheckoutSession:
        self.requests.append(request)
        return CheckoutSession(
            id="cs_test_1", url="https://pay.example/cs_test_1", raw={"id": "cs_test_1"}
        )

    def parse_webhook(self, payload: bytes, signature: str | None) -> PaymentEvent:
        return self.event


class StubDatabase:
    def __init__(self, healthy: bool = True) -> None:
        self.healthy = healthy

    def ping(self) -> bool:
        return self.healthy


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def fake_components(**overrides: Any) -> dict[str, Any]:
    """Container overrides replacing every outside dependency with an in-memory fake."""
    components: dict[str, Any] = {
        "database": StubDatabase(),
        "user_repository": InMemoryUserRepository(),
        "tour_repository": InMemoryTourRepository(),
        "review_repository": InMemoryDocumentRepository(),
        "booking_repository": InMemoryBookingRepository(),
        "password_hasher": DeterministicHasher(),
        "email_sender": RecordingEmailSender(),
        "payment_provider": StubPaymentProvider(),
    }
    components.update(overrides)
    return components
