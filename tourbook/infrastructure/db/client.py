# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from pymongo import ASCENDING, DESCENDING, GEOSPHERE, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import PyMongoError

from tourbook.shared.config import DatabaseConfig
from tourbook.shared.logging import logger

USERS = "users"
TOURS = "tours"
REVIEWS = "reviews"
BOOKINGS = "bookings"


class MongoDatabase:
    """Owns the ``MongoClient`` for the lifetime of the application."""

    def __init__(self, config: DatabaseConfig, *, client: MongoClient | None = None) -> None:
        self._config = config
        self._client: MongoClient = client or MongoClient(
            config.url,
            serverSelectionTimeoutMS=config.timeout_ms,
            tz_aware=True,
            connect=False,
        )
        self._db: Database = self._client[config.name]

    @property
    def database(self) -> Database:
        return self._db

    def collection(self, name: str) -> Collection:
        return self._db[name]

    def ping(self) -> bool:
        try:
            self._client.admin.command("ping")
        except PyMongoError as exc:
            logger.warning(f"db.ping: failed: {exc}")
            return False
        return True

    def ensure_indexes(self) -> None:
        self.collection(USERS).create_index([("email", ASCENDING)], unique=True)
        self.collection(USERS).create_index([("passwordResetToken", ASCENDING)], sparse=True)
        tours = self.collection(TOURS)
        tours.create_index([("name", ASCENDING)], unique=True)
        tours.create_index([("slug", ASCENDING)])
        tours.create_index([("price", ASCENDING), ("ratingsAverage", DESCENDING)])
        tours.create_index([("startLocation", GEOSPHERE)])
        self.collection(REVIEWS).create_index(
            [("tour", ASCENDING), ("user", ASCENDING)], unique=True
        )
        self.collection(BOOKINGS).create_index([("user", ASCENDING)])
        logger.info(f"db.indexes: ensured on database={self._config.name}")

    def close(self) -> None:
        self._client.close()
        logger.info("db.client: closed")


__all__ = ["BOOKINGS", "REVIEWS", "TOURS", "USERS", "MongoDatabase"]
