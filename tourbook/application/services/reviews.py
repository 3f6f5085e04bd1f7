# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from tourbook.application.interfaces import DocumentRepository
from tourbook.domain.users.entities import Role, User
from tourbook.domain.users.exceptions import ForbiddenError
from tourbook.shared.errors import NotFoundError


def _author_id(review: Mapping[str, Any]) -> str | None:
    author = review.get("user")
    if isinstance(author, Mapping):
        author = author.get("_id")
    return str(author) if author is not None else None


class ReviewService:
    """Review writes; tour and author default from the URL and the session."""

    def __init__(self, *, reviews: DocumentRepository, tours: DocumentRepository) -> None:
        self._reviews = reviews
        self._tours = tours

    def create(
        self, payload: Mapping[str, Any], *, user: User, tour_id: str | None = None
    ) -> dict[str, Any]:
        document = dict(payload)
        document["tour"] = tour_id or document.get("tour")
        if user.role is Role.ADMIN:
            document["user"] = document.get("user") or user.id
        else:
            document["user"] = user.id
        if not document["tour"] or self._tours.find_one(str(document["tour"])) is None:
            raise NotFoundError("tour", str(document["tour"]) if document["tour"] else None)
        return self._reviews.create(document)

    def update(self, review_id: str, changes: Mapping[str, Any], *, user: User) -> dict[str, Any]:
        self._ensure_can_modify(review_id, user)
        updated = self._reviews.update(review_id, changes)
        if updated is None:
            raise NotFoundError("review", review_id)
        return updated

    def delete(self, review_id: str, *, user: User) -> None:
        self._ensure_can_modify(review_id, user)
        if not self._reviews.delete(review_id):
            raise NotFoundError("review", review_id)

    def _ensure_can_modify(self, review_id: str, user: User) -> None:
        review = self._reviews.find_one(review_id)
        if review is None:
            raise NotFoundError("review", review_id)
        if user.role is not Role.ADMIN and _author_id(review) != user.id:
            raise ForbiddenError(message="You can only change your own reviews.")


__all__ = ["ReviewService"]
