# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Mapping
from functools import cached_property
from typing import Any

from tourbook.application.interfaces import EmailSender, PaymentProvider
from tourbook.application.services.bookings import BookingService
from tourbook.application.services.credentials import CredentialService
from tourbook.application.services.password_hashing import WerkzeugPasswordHasher
from tourbook.application.services.reviews import ReviewService
from tourbook.application.services.tours import TourService
from tourbook.infrastructure.db.client import BOOKINGS, REVIEWS, TOURS, USERS, MongoDatabase
from tourbook.infrastructure.mailer import build_email_sender
from tourbook.infrastructure.payments import StripeCheckoutProvider
from tourbook.infrastructure.repositories.bookings import MongoBookingRepository
from tourbook.infrastructure.repositories.reviews import MongoReviewRepository
from tourbook.infrastructure.repositories.tours import MongoTourRepository
from tourbook.infrastructure.repositories.users import MongoUserRepository
from tourbook.interfaces.http.access_control import AccessControl
from tourbook.interfaces.http.controllers.auth import AuthController
from tourbook.interfaces.http.controllers.bookings import BookingsController
from tourbook.interfaces.http.controllers.health import HealthController
from tourbook.interfaces.http.controllers.resource import ResourceHandlers
from tourbook.interfaces.http.controllers.reviews import ReviewsController
from tourbook.interfaces.http.controllers.tours import ToursController
from tourbook.interfaces.http.controllers.users import UsersController
from tourbook.interfaces.http.controllers.views import ViewsController
from tourbook.interfaces.http.dto.bookings import BookingCreateDTO, BookingUpdateDTO
from tourbook.interfaces.http.dto.reviews import ReviewCreateDTO, ReviewUpdateDTO
from tourbook.interfaces.http.dto.tours import TourCreateDTO, TourUpdateDTO
from tourbook.interfaces.http.dto.users import UserUpdateDTO
from tourbook.shared.config import AppConfig
from tourbook.shared.logging import logger


class Container:
    """Application object graph, built once per app and closed on shutdown.

    ``overrides`` pre-populates any attribute below (repositories,
    collaborators, services) before it is first built.
    """

    def __init__(self, config: AppConfig, *, overrides: Mapping[str, Any] | None = None) -> None:
        self.config = config
        for name, value in (overrides or {}).items():
            if not isinstance(getattr(type(self), name, None), cached_property):
                raise AttributeError(f"Container has no component named {name!r}")
            self.__dict__[name] = value

    # Persistence

    @cached_property
    def database(self) -> MongoDatabase:
        return MongoDatabase(self.config.database)

    @cached_property
    def user_repository(self) -> MongoUserRepository:
        return MongoUserRepository(
            self.database.collection(USERS), max_limit=self.config.query.max_limit
        )

    @cached_property
    def tour_repository(self) -> MongoTourRepository:
        return MongoTourRepository(
            self.database.collection(TOURS),
            users=self.database.collection(USERS),
            reviews=self.database.collection(REVIEWS),
            max_limit=self.config.query.max_limit,
        )

    @cached_property
    def review_repository(self) -> MongoReviewRepository:
        return MongoReviewRepository(
            self.database.collection(REVIEWS),
            tours=self.tour_repository,
            users=self.database.collection(USERS),
            max_limit=self.config.query.max_limit,
        )

    @cached_property
    def booking_repository(self) -> MongoBookingRepository:
        return MongoBookingRepository(
            self.database.collection(BOOKINGS),
            users=self.database.collection(USERS),
            tours=self.database.collection(TOURS),
            max_limit=self.config.query.max_limit,
        )

    # Collaborators

    @cached_property
    def password_hasher(self) -> WerkzeugPasswordHasher:
        return WerkzeugPasswordHasher()

    @cached_property
    def email_sender(self) -> EmailSender:
        return build_email_sender(self.config.email)

    @cached_property
    def payment_provider(self) -> PaymentProvider:
        return StripeCheckoutProvider(self.config.payments)

    # Services

    @cached_property
    def credential_service(self) -> CredentialService:
        return CredentialService(
            users=self.user_repository,
            password_hasher=self.password_hasher,
            email=self.email_sender,
            config=self.config.auth,
        )

    @cached_property
    def access_control(self) -> AccessControl:
        return AccessControl(self.credential_service)

    @cached_property
    def tour_service(self) -> TourService:
        return TourService(tours=self.tour_repository)

    @cached_property
    def review_service(self) -> ReviewService:
        return ReviewService(reviews=self.review_repository, tours=self.tour_repository)

    @cached_property
    def booking_service(self) -> BookingService:
        return BookingService(
            tours=self.tour_repository,
            bookings=self.booking_repository,
            users=self.user_repository,
            payments=self.payment_provider,
        )

    # Controllers

    @cached_property
    def auth_controller(self) -> AuthController:
        return AuthController(
            credentials=self.credential_service,
            access=self.access_control,
            config=self.config,
        )

    @cached_property
    def users_controller(self) -> UsersController:
        return UsersController(
            users=self.user_repository,
            handlers=ResourceHandlers(
                repository=self.user_repository,
                resource="user",
                create_model=UserUpdateDTO,
                update_model=UserUpdateDTO,
            ),
            access=self.access_control,
        )

    @cached_property
    def reviews_controller(self) -> ReviewsController:
        return ReviewsController(
            service=self.review_service,
            handlers=ResourceHandlers(
                repository=self.review_repository,
                resource="review",
                create_model=ReviewCreateDTO,
                update_model=ReviewUpdateDTO,
            ),
            access=self.access_control,
        )

    @cached_property
    def tours_controller(self) -> ToursController:
        return ToursController(
            service=self.tour_service,
            handlers=ResourceHandlers(
                repository=self.tour_repository,
                resource="tour",
                create_model=TourCreateDTO,
                update_model=TourUpdateDTO,
            ),
            reviews=self.reviews_controller,
            access=self.access_control,
        )

    @cached_property
    def bookings_controller(self) -> BookingsController:
        return BookingsController(
            service=self.booking_service,
            handlers=ResourceHandlers(
                repository=self.booking_repository,
                resource="booking",
                create_model=BookingCreateDTO,
                update_model=BookingUpdateDTO,
            ),
            access=self.access_control,
        )

    @cached_property
    def views_controller(self) -> ViewsController:
        return ViewsController(
            tours=self.tour_service,
            bookings=self.booking_service,
            access=self.access_control,
        )

    @cached_property
    def health_controller(self) -> HealthController:
        return HealthController(ping=self.database.ping)

    def close(self) -> None:
        provider = self.__dict__.get("payment_provider")
        close_provider = getattr(provider, "close", None)
        if callable(close_provider):
            close_provider()
        database = self.__dict__.get("database")
        if isinstance(database, MongoDatabase):
            database.close()
        logger.info("container: closed")


__all__ = ["Container"]
