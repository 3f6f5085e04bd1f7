# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pymongo.collection import Collection

from tourbook.infrastructure.db.query import number
from tourbook.infrastructure.db.serialization import object_id_caster, parse_object_id
from tourbook.infrastructure.repositories.documents import MongoDocumentRepository
from tourbook.infrastructure.repositories.tours import REVIEW_AUTHOR_FIELDS, MongoTourRepository
from tourbook.shared.logging import logger

DEFAULT_RATINGS_AVERAGE = 4.5


class MongoReviewRepository(MongoDocumentRepository):
    """Reviews keep their tour's ``ratingsQuantity``/``ratingsAverage`` current."""

    casts = {"rating": number, "tour": object_id_caster, "user": object_id_caster}

    def __init__(
        self,
        collection: Collection,
        *,
        tours: MongoTourRepository,
        users: Collection,
        max_limit: int | None = None,
    ) -> None:
        super().__init__(collection, max_limit=max_limit)
        self._tours = tours
        self._users = users

    def recalculate_ratings(self, tour_id: Any) -> None:
        oid = parse_object_id(tour_id)
        if oid is None:
            return
        pipeline = [
            {"$match": {"tour": oid}},
            {"$group": {"_id": "$tour", "nRating": {"$sum": 1}, "avgRating": {"$avg": "$rating"}}},
        ]
        stats = list(self._collection.aggregate(pipeline))
        if stats:
            quantity = int(stats[0]["nRating"])
            average = round(float(stats[0]["avgRating"]), 1)
        else:
            quantity, average = 0, DEFAULT_RATINGS_AVERAGE
        self._tours.set_ratings(oid, quantity, average)
        logger.debug(f"reviews.ratings: tour={oid} quantity={quantity} average={average}")

    def _prepare_new(self, document: dict[str, Any]) -> dict[str, Any]:
        for key in ("tour", "user"):
            if key in document:
                document[key] = parse_object_id(document[key]) or document[key]
        return document

    def _prepare_changes(self, changes: dict[str, Any]) -> dict[str, Any]:
        # The author and the reviewed tour are fixed once written.
        changes.pop("tour", None)
        changes.pop("user", None)
        return changes

    def _after_write(self, document: Mapping[str, Any]) -> None:
        if document.get("tour") is not None:
            self.recalculate_ratings(document["tour"])

    def _populate(self, documents: list[dict[str, Any]]) -> list[dict[str, Any]]:
        author_ids = list({doc["user"] for doc in documents if doc.get("user") is not None})
        if not author_ids:
            return documents
        authors = {
            doc["_id"]: doc
            for doc in self._users.find({"_id": {"$in": author_ids}}, REVIEW_AUTHOR_FIELDS)
        }
        for doc in documents:
            author = authors.get(doc.get("user"))
            if author is not None:
                doc["user"] = author
        return documents


__all__ = ["DEFAULT_RATINGS_AVERAGE", "MongoReviewRepository"]
