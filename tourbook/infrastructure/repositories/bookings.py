# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from typing import Any

from pymongo.collection import Collection

from tourbook.infrastructure.db.query import number
from tourbook.infrastructure.db.serialization import object_id_caster, parse_object_id
from tourbook.infrastructure.repositories.documents import MongoDocumentRepository


class MongoBookingRepository(MongoDocumentRepository):
    casts = {"price": number, "tour": object_id_caster, "user": object_id_caster}

    def __init__(
        self,
        collection: Collection,
        *,
        users: Collection,
        tours: Collection,
        max_limit: int | None = None,
    ) -> None:
        super().__init__(collection, max_limit=max_limit)
        self._users = users
        self._tours = tours

    def tour_ids_for_user(self, user_id: str) -> list[Any]:
        oid = parse_object_id(user_id)
        if oid is None:
            return []
        return [doc["tour"] for doc in self._collection.find({"user": oid}, {"tour": 1})]

    def _prepare_new(self, document: dict[str, Any]) -> dict[str, Any]:
        document = self._prepare_changes(document)
        document.setdefault("paid", True)
        return document

    def _prepare_changes(self, changes: dict[str, Any]) -> dict[str, Any]:
        for key in ("tour", "user"):
            if key in changes:
                changes[key] = parse_object_id(changes[key]) or changes[key]
        return changes

    def _populate(self, documents: list[dict[str, Any]]) -> list[dict[str, Any]]:
        user_ids = list({doc["user"] for doc in documents if doc.get("user") is not None})
        tour_ids = list({doc["tour"] for doc in documents if doc.get("tour") is not None})
        users = {
            doc["_id"]: doc
            for doc in self._users.find({"_id": {"$in": user_ids}}, {"name": 1, "email": 1, "photo": 1})
        } if user_ids else {}
        tours = {
            doc["_id"]: doc for doc in self._tours.find({"_id": {"$in": tour_ids}}, {"name": 1})
        } if tour_ids else {}
        for doc in documents:
            doc["user"] = users.get(doc.get("user"), doc.get("user"))
            doc["tour"] = tours.get(doc.get("tour"), doc.get("tour"))
        return documents


__all__ = ["MongoBookingRepository"]
