# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pymongo import ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError

from tourbook.domain.users.entities import Role, User
from tourbook.domain.users.exceptions import UserAlreadyExistsError
from tourbook.domain.users.repositories import UserRepository
from tourbook.infrastructure.db.serialization import parse_object_id
from tourbook.infrastructure.repositories.documents import VERSION_FIELD, MongoDocumentRepository
from tourbook.shared.errors import DuplicateValueError

ACTIVE_ONLY = {"active": {"$ne": False}}
PRIVATE_FIELDS = {
    "password": 0,
    "passwordResetToken": 0,
    "passwordResetExpires": 0,
    "active": 0,
}
PROFILE_FIELDS = frozenset({"name", "email", "photo"})


def _to_entity(document: Mapping[str, Any]) -> User:
    return User(
        id=str(document["_id"]),
        name=document.get("name", ""),
        email=document.get("email", ""),
        role=Role(document.get("role", Role.USER.value)),
        password_hash=document.get("password"),
        photo=document.get("photo") or "default.jpg",
        password_changed_at=document.get("passwordChangedAt"),
        password_reset_token=document.get("passwordResetToken"),
        password_reset_expires=document.get("passwordResetExpires"),
        active=document.get("active", True),
    )


class MongoUserRepository(MongoDocumentRepository, UserRepository):
    """Account documents; inactive accounts are invisible to every read."""

    def __init__(self, collection: Collection, *, max_limit: int | None = None) -> None:
        super().__init__(
            collection,
            base_filter=ACTIVE_ONLY,
            projection=PRIVATE_FIELDS,
            max_limit=max_limit,
        )

    def find_by_id(self, user_id: str, *, with_password: bool = False) -> User | None:
        oid = parse_object_id(user_id)
        if oid is None:
            return None
        return self._find_entity({"_id": oid}, with_password=with_password)

    def find_by_email(self, email: str, *, with_password: bool = False) -> User | None:
        return self._find_entity({"email": email.lower()}, with_password=with_password)

    def find_by_reset_token(self, token_hash: str, now: datetime) -> User | None:
        return self._find_entity(
            {"passwordResetToken": token_hash, "passwordResetExpires": {"$gt": now}},
            with_password=False,
        )

    def add(self, user: User) -> User:
        document: dict[str, Any] = {
            "name": user.name,
            "email": user.email,
            "photo": user.photo,
            "role": user.role.value,
            "password": user.password_hash,
            "active": True,
        }
        try:
            created = self.create(document)
        except DuplicateValueError as exc:
            raise UserAlreadyExistsError() from exc
        return _to_entity({**document, "_id": created["_id"]})

    def save_credentials(self, user: User) -> User:
        self._collection.update_one(
            {"_id": parse_object_id(user.id)},
            {
                "$set": {
                    "password": user.password_hash,
                    "passwordChangedAt": user.password_changed_at,
                },
                "$unset": {"passwordResetToken": "", "passwordResetExpires": ""},
                "$inc": {VERSION_FIELD: 1},
            },
        )
        return user

    def save_reset_state(self, user: User) -> None:
        if user.password_reset_token is None:
            update: dict[str, Any] = {
                "$unset": {"passwordResetToken": "", "passwordResetExpires": ""}
            }
        else:
            update = {
                "$set": {
                    "passwordResetToken": user.password_reset_token,
                    "passwordResetExpires": user.password_reset_expires,
                }
            }
        self._collection.update_one({"_id": parse_object_id(user.id)}, update)

    def update_profile(self, user_id: str, changes: Mapping[str, Any]) -> User | None:
        allowed = {key: value for key, value in changes.items() if key in PROFILE_FIELDS}
        if "email" in allowed:
            allowed["email"] = str(allowed["email"]).lower()
        oid = parse_object_id(user_id)
        if oid is None:
            return None
        try:
            document = self._collection.find_one_and_update(
                {"_id": oid, **ACTIVE_ONLY},
                {"$set": allowed, "$inc": {VERSION_FIELD: 1}},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as exc:
            raise UserAlreadyExistsError() from exc
        return _to_entity(document) if document else None

    def deactivate(self, user_id: str) -> None:
        self._collection.update_one(
            {"_id": parse_object_id(user_id)},
            {"$set": {"active": False}, "$inc": {VERSION_FIELD: 1}},
        )

    def find_by_ids(self, user_ids: list[Any], fields: Mapping[str, int]) -> dict[str, dict[str, Any]]:
        if not user_ids:
            return {}
        cursor = self._collection.find({"_id": {"$in": user_ids}, **ACTIVE_ONLY}, dict(fields))
        return {str(doc["_id"]): self._present(doc) for doc in cursor}

    def _find_entity(self, criteria: Mapping[str, Any], *, with_password: bool) -> User | None:
        projection = None if with_password else {"password": 0}
        document = self._collection.find_one({**criteria, **ACTIVE_ONLY}, projection)
        return _to_entity(document) if document else None

    def _prepare_changes(self, changes: dict[str, Any]) -> dict[str, Any]:
        if "role" in changes and isinstance(changes["role"], Role):
            changes["role"] = changes["role"].value
        if "email" in changes:
            changes["email"] = str(changes["email"]).lower()
        return changes


__all__ = ["MongoUserRepository"]
