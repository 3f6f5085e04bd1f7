# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError

from tourbook.application.interfaces import DocumentRepository
from tourbook.infrastructure.db.query import Caster, DocumentQuery, QueryShaper
from tourbook.infrastructure.db.serialization import parse_object_id, to_jsonable
from tourbook.shared.errors import DuplicateValueError
from tourbook.shared.logging import logger

VERSION_FIELD = "__v"


def duplicate_fields(exc: DuplicateKeyError) -> dict[str, Any]:
    details = exc.details or {}
    key_value = details.get("keyValue")
    if isinstance(key_value, Mapping):
        return to_jsonable(dict(key_value))
    return {}


class MongoDocumentRepository(DocumentRepository):
    """CRUD over one collection with overridable write and read hooks."""

    casts: Mapping[str, Caster] = {}

    def __init__(
        self,
        collection: Collection,
        *,
        base_filter: Mapping[str, Any] | None = None,
        projection: Mapping[str, int] | None = None,
        max_limit: int | None = None,
    ) -> None:
        self._collection = collection
        self._base_filter = dict(base_filter or {})
        self._projection = dict(projection) if projection else None
        self._max_limit = max_limit

    @property
    def collection(self) -> Collection:
        return self._collection

    def find_many(
        self,
        params: Mapping[str, Any],
        *,
        extra_filter: Mapping[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        base = dict(self._base_filter)
        base.update(extra_filter or {})
        query = QueryShaper(
            DocumentQuery(base_filter=base),
            params,
            casts=self.casts,
            max_limit=self._max_limit,
        ).apply()
        query.projection = self._secure_projection(query.projection)
        documents = query.execute(self._collection)
        return [self._present(doc) for doc in self._populate(documents)]

    def find_one(self, document_id: str) -> dict[str, Any] | None:
        oid = parse_object_id(document_id)
        if oid is None:
            return None
        document = self._collection.find_one({"_id": oid, **self._base_filter}, self._projection)
        if document is None:
            return None
        return self._present(self._populate([document])[0])

    def create(self, document: Mapping[str, Any]) -> dict[str, Any]:
        prepared = self._prepare_new(dict(document))
        prepared.setdefault("createdAt", datetime.now(UTC))
        prepared[VERSION_FIELD] = 0
        try:
            result = self._collection.insert_one(prepared)
        except DuplicateKeyError as exc:
            raise DuplicateValueError(duplicate_fields(exc)) from exc
        prepared["_id"] = result.inserted_id
        self._after_write(prepared)
        logger.info(f"db.{self._collection.name}: created id={result.inserted_id}")
        return self._present(self._hide(prepared))

    def update(self, document_id: str, changes: Mapping[str, Any]) -> dict[str, Any] | None:
        oid = parse_object_id(document_id)
        if oid is None:
            return None
        prepared = self._prepare_changes(dict(changes))
        update: dict[str, Any] = {"$inc": {VERSION_FIELD: 1}}
        if prepared:
            update["$set"] = prepared
        try:
            document = self._collection.find_one_and_update(
                {"_id": oid, **self._base_filter},
                update,
                projection=self._projection,
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as exc:
            raise DuplicateValueError(duplicate_fields(exc)) from exc
        if document is None:
            return None
        self._after_write(document)
        return self._present(document)

    def delete(self, document_id: str) -> bool:
        oid = parse_object_id(document_id)
        if oid is None:
            return False
        document = self._collection.find_one_and_delete({"_id": oid, **self._base_filter})
        if document is None:
            return False
        self._after_write(document)
        logger.info(f"db.{self._collection.name}: deleted id={oid}")
        return True

    def _prepare_new(self, document: dict[str, Any]) -> dict[str, Any]:
        return document

    def _prepare_changes(self, changes: dict[str, Any]) -> dict[str, Any]:
        return changes

    def _after_write(self, document: Mapping[str, Any]) -> None:
        return None

    def _populate(self, documents: list[dict[str, Any]]) -> list[dict[str, Any]]:
        return documents

    def _secure_projection(self, requested: dict[str, int] | None) -> dict[str, int] | None:
        if not self._projection:
            return requested
        hidden = {key for key, flag in self._projection.items() if not flag}
        if requested and any(requested.values()):
            kept = {key: flag for key, flag in requested.items() if key not in hidden}
            if any(kept.values()):
                return kept
        return {**(requested or {}), **self._projection}

    def _hide(self, document: dict[str, Any]) -> dict[str, Any]:
        if not self._projection:
            return document
        hidden = {key for key, flag in self._projection.items() if not flag}
        return {key: value for key, value in document.items() if key not in hidden}

    def _present(self, document: Mapping[str, Any]) -> dict[str, Any]:
        payload = to_jsonable(dict(document))
        if "_id" in payload:
            payload["id"] = payload["_id"]
        return payload


def object_ids(values: Any) -> list[ObjectId]:
    if not isinstance(values, (list, tuple)):
        return []
    return [oid for oid in (parse_object_id(v) for v in values) if oid is not None]


__all__ = ["MongoDocumentRepository", "duplicate_fields", "object_ids"]
