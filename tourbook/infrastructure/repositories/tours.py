# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import re
import unicodedata
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from pymongo import DESCENDING
from pymongo.collection import Collection

from tourbook.infrastructure.db.query import number
from tourbook.infrastructure.db.serialization import object_id_caster, parse_object_id
from tourbook.infrastructure.repositories.documents import MongoDocumentRepository, object_ids

PUBLIC_TOURS = {"secretTour": {"$ne": True}}
GUIDE_FIELDS = {"name": 1, "email": 1, "photo": 1, "role": 1}
REVIEW_AUTHOR_FIELDS = {"name": 1, "photo": 1}

EARTH_RADIUS = {"mi": 3963.2, "km": 6378.1}
METERS_TO_UNIT = {"mi": 0.000621371, "km": 0.001}

_SLUG_STRIP = re.compile(r"[^\w\s-]")
_SLUG_DASH = re.compile(r"[-\s]+")


def slugify(value: str) -> str:
    normalized = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    cleaned = _SLUG_STRIP.sub("", normalized).strip().lower()
    return _SLUG_DASH.sub("-", cleaned)


def _with_duration_weeks(document: dict[str, Any]) -> dict[str, Any]:
    duration = document.get("duration")
    if isinstance(duration, (int, float)) and not isinstance(duration, bool):
        document["durationWeeks"] = duration / 7
    return document


class MongoTourRepository(MongoDocumentRepository):
    """Tour documents; secret tours never leave this repository."""

    casts = {
        "duration": number,
        "maxGroupSize": number,
        "ratingsAverage": number,
        "ratingsQuantity": number,
        "price": number,
        "priceDiscount": number,
        "guides": object_id_caster,
    }

    def __init__(
        self,
        collection: Collection,
        *,
        users: Collection,
        reviews: Collection,
        max_limit: int | None = None,
    ) -> None:
        super().__init__(collection, base_filter=PUBLIC_TOURS, max_limit=max_limit)
        self._users = users
        self._reviews = reviews

    def find_one(self, document_id: str) -> dict[str, Any] | None:
        tour = super().find_one(document_id)
        if tour is not None:
            tour["reviews"] = self._reviews_for(tour["_id"])
        return tour

    def find_by_slug(self, slug: str) -> dict[str, Any] | None:
        document = self._collection.find_one({"slug": slug, **PUBLIC_TOURS})
        if document is None:
            return None
        tour = self._present(self._populate([document])[0])
        tour["reviews"] = self._reviews_for(tour["_id"])
        return tour

    def find_by_ids(self, tour_ids: list[Any]) -> list[dict[str, Any]]:
        ids = object_ids(tour_ids)
        if not ids:
            return []
        cursor = self._collection.find({"_id": {"$in": ids}, **PUBLIC_TOURS})
        return [self._present(doc) for doc in self._populate(list(cursor))]

    def stats(self) -> list[dict[str, Any]]:
        pipeline: list[dict[str, Any]] = [
            {"$match": {**PUBLIC_TOURS, "ratingsAverage": {"$gte": 4.5}}},
            {
                "$group": {
                    "_id": {"$toUpper": "$difficulty"},
                    "numTours": {"$sum": 1},
                    "numRatings": {"$sum": "$ratingsQuantity"},
                    "avgRating": {"$avg": "$ratingsAverage"},
                    "avgPrice": {"$avg": "$price"},
                    "minPrice": {"$min": "$price"},
                    "maxPrice": {"$max": "$price"},
                }
            },
            {"$sort": {"avgPrice": 1}},
        ]
        return [self._present(doc) for doc in self._collection.aggregate(pipeline)]

    def monthly_plan(self, year: int) -> list[dict[str, Any]]:
        pipeline: list[dict[str, Any]] = [
            {"$match": PUBLIC_TOURS},
            {"$unwind": "$startDates"},
            {
                "$match": {
                    "startDates": {
                        "$gte": datetime(year, 1, 1, tzinfo=UTC),
                        "$lt": datetime(year + 1, 1, 1, tzinfo=UTC),
                    }
                }
            },
            {
                "$group": {
                    "_id": {"$month": "$startDates"},
                    "numTourStarts": {"$sum": 1},
                    "tours": {"$push": "$name"},
                }
            },
            {"$addFields": {"month": "$_id"}},
            {"$project": {"_id": 0}},
            {"$sort": {"numTourStarts": DESCENDING}},
            {"$limit": 12},
        ]
        return [self._present(doc) for doc in self._collection.aggregate(pipeline)]

    def within(self, distance: float, lat: float, lng: float, unit: str) -> list[dict[str, Any]]:
        radius = distance / EARTH_RADIUS[unit]
        criteria = {
            **PUBLIC_TOURS,
            "startLocation": {"$geoWithin": {"$centerSphere": [[lng, lat], radius]}},
        }
        cursor = self._collection.find(criteria, {"__v": 0})
        return [self._present(doc) for doc in self._populate(list(cursor))]

    def distances(self, lat: float, lng: float, unit: str) -> list[dict[str, Any]]:
        pipeline: list[dict[str, Any]] = [
            {
                "$geoNear": {
                    "near": {"type": "Point", "coordinates": [lng, lat]},
                    "distanceField": "distance",
                    "distanceMultiplier": METERS_TO_UNIT[unit],
                    "query": PUBLIC_TOURS,
                }
            },
            {"$project": {"distance": 1, "name": 1}},
        ]
        return [self._present(doc) for doc in self._collection.aggregate(pipeline)]

    def set_ratings(self, tour_id: Any, quantity: int, average: float) -> None:
        self._collection.update_one(
            {"_id": tour_id},
            {"$set": {"ratingsQuantity": quantity, "ratingsAverage": average}},
        )

    def _prepare_new(self, document: dict[str, Any]) -> dict[str, Any]:
        document = self._prepare_changes(document)
        document.setdefault("ratingsAverage", 4.5)
        document.setdefault("ratingsQuantity", 0)
        document.setdefault("secretTour", False)
        return document

    def _prepare_changes(self, changes: dict[str, Any]) -> dict[str, Any]:
        if "name" in changes:
            changes["slug"] = slugify(str(changes["name"]))
        if "guides" in changes:
            changes["guides"] = object_ids(changes["guides"])
        if "ratingsAverage" in changes and changes["ratingsAverage"] is not None:
            changes["ratingsAverage"] = round(float(changes["ratingsAverage"]), 1)
        return changes

    def _populate(self, documents: list[dict[str, Any]]) -> list[dict[str, Any]]:
        guide_ids = {gid for doc in documents for gid in doc.get("guides", []) or []}
        if not guide_ids:
            return documents
        cursor = self._users.find(
            {"_id": {"$in": list(guide_ids)}, "active": {"$ne": False}}, GUIDE_FIELDS
        )
        guides = {doc["_id"]: doc for doc in cursor}
        for doc in documents:
            doc["guides"] = [guides[gid] for gid in doc.get("guides", []) or [] if gid in guides]
        return documents

    def _present(self, document: Mapping[str, Any]) -> dict[str, Any]:
        return _with_duration_weeks(super()._present(document))

    def _reviews_for(self, tour_id: str) -> list[dict[str, Any]]:
        oid = parse_object_id(tour_id)
        reviews = list(self._reviews.find({"tour": oid}, {"__v": 0}))
        author_ids = list({review.get("user") for review in reviews if review.get("user")})
        authors = {
            doc["_id"]: doc
            for doc in self._users.find({"_id": {"$in": author_ids}}, REVIEW_AUTHOR_FIELDS)
        } if author_ids else {}
        for review in reviews:
            author = authors.get(review.get("user"))
            if author is not None:
                review["user"] = author
        return [super(MongoTourRepository, self)._present(review) for review in reviews]


__all__ = ["MongoTourRepository", "slugify"]
