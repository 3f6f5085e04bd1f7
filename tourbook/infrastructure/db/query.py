# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Query-string driven filtering, sorting, projection and paging.

``QueryShaper`` turns the parsed query string of a list endpoint into a
``DocumentQuery``. Operator selectors (``price[gte]=5``) are rewritten by
walking the parsed mapping, never by editing serialized text, so a client can
neither smuggle raw ``$`` operators nor get a value rewritten twice.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from pymongo import ASCENDING, DESCENDING
from pymongo.collection import Collection

from tourbook.shared.logging import logger

RESERVED_PARAMS = frozenset({"page", "sort", "limit", "fields"})
COMPARISON_OPERATORS = frozenset({"gte", "gt", "lte", "lt"})

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 100
# skip is sent to MongoDB as a signed 64-bit integer
MAX_SKIP = 2**63 - 1
DEFAULT_SORT: list[tuple[str, int]] = [("createdAt", DESCENDING)]
DEFAULT_PROJECTION: dict[str, int] = {"__v": 0}

Caster = Callable[[Any], Any]


@dataclass(slots=True)
class DocumentQuery:
    base_filter: dict[str, Any] = field(default_factory=dict)
    filter: dict[str, Any] = field(default_factory=dict)
    sort: list[tuple[str, int]] = field(default_factory=list)
    projection: dict[str, int] | None = None
    skip: int = 0
    limit: int | None = None

    def criteria(self) -> dict[str, Any]:
        parts = [dict(part) for part in (self.base_filter, self.filter) if part]
        if not parts:
            return {}
        if len(parts) == 1:
            return parts[0]
        return {"$and": parts}

    def execute(self, collection: Collection) -> list[dict[str, Any]]:
        cursor = collection.find(self.criteria(), self.projection)
        if self.sort:
            cursor = cursor.sort(self.sort)
        if self.skip:
            cursor = cursor.skip(self.skip)
        if self.limit:
            cursor = cursor.limit(self.limit)
        return list(cursor)


def _positive_int(value: Any, default: int) -> int:
    if isinstance(value, list):
        value = value[-1] if value else None
    if isinstance(value, bool) or value is None:
        return default
    try:
        parsed = int(str(value).strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _text_param(value: Any) -> str | None:
    if isinstance(value, list):
        value = value[-1] if value else None
    if isinstance(value, str) and value.strip():
        return value
    return None


def _split_csv(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


class QueryShaper:
    """Chainable stages shaping ``query`` from client ``params``.

    ``casts`` maps a field name to a callable converting the raw query-string
    value; a caster raising ``ValueError`` or ``TypeError`` leaves the raw value.
    """

    def __init__(
        self,
        query: DocumentQuery,
        params: Mapping[str, Any],
        *,
        casts: Mapping[str, Caster] | None = None,
        max_limit: int | None = None,
    ) -> None:
        self.query = query
        self._params = params
        self._casts = dict(casts or {})
        self._max_limit = max_limit

    def filter(self) -> QueryShaper:
        predicate: dict[str, Any] = {}
        for key, value in self._params.items():
            if key in RESERVED_PARAMS or not isinstance(key, str) or key.startswith("$"):
                continue
            predicate[key] = self._rewrite(key, value)
        self.query.filter = predicate
        return self

    def sort(self) -> QueryShaper:
        raw = _text_param(self._params.get("sort"))
        if raw is None:
            self.query.sort = list(DEFAULT_SORT)
            return self

        order: list[tuple[str, int]] = []
        for part in _split_csv(raw):
            if part.startswith("-") and len(part) > 1:
                order.append((part[1:], DESCENDING))
            elif not part.startswith("-"):
                order.append((part, ASCENDING))
        self.query.sort = order or list(DEFAULT_SORT)
        return self

    def limit_fields(self) -> QueryShaper:
        raw = _text_param(self._params.get("fields"))
        if raw is None:
            self.query.projection = dict(DEFAULT_PROJECTION)
            return self

        projection: dict[str, int] = {}
        for part in _split_csv(raw):
            if part.startswith("-") and len(part) > 1:
                projection[part[1:]] = 0
            elif not part.startswith("-"):
                projection[part] = 1
        self.query.projection = projection or dict(DEFAULT_PROJECTION)
        return self

    def paginate(self) -> QueryShaper:
        page = _positive_int(self._params.get("page"), DEFAULT_PAGE)
        limit = _positive_int(self._params.get("limit"), DEFAULT_LIMIT)
        if self._max_limit is not None and limit > self._max_limit:
            logger.info(f"query.paginate: limit={limit} capped to {self._max_limit}")
            limit = self._max_limit
        limit = min(limit, MAX_SKIP)
        last_page = MAX_SKIP // limit + 1
        if page > last_page:
            logger.info(f"query.paginate: page={page} clamped to {last_page}")
            page = last_page
        self.query.skip = (page - 1) * limit
        self.query.limit = limit
        return self

    def apply(self) -> DocumentQuery:
        return self.filter().sort().limit_fields().paginate().query

    def _rewrite(self, field_name: str, value: Any) -> Any:
        if isinstance(value, Mapping):
            rewritten: dict[str, Any] = {}
            for key, inner in value.items():
                if not isinstance(key, str) or key.startswith("$"):
                    continue
                if key in COMPARISON_OPERATORS:
                    if isinstance(inner, list):
                        inner = inner[-1] if inner else None
                    rewritten[f"${key}"] = self._cast(field_name, inner)
                else:
                    rewritten[key] = self._rewrite(f"{field_name}.{key}", inner)
            return rewritten
        if isinstance(value, list):
            return {"$in": [self._cast(field_name, item) for item in value]}
        return self._cast(field_name, value)

    def _cast(self, field_name: str, value: Any) -> Any:
        caster = self._casts.get(field_name)
        if caster is None or value is None or isinstance(value, Mapping):
            return value
        try:
            return caster(value)
        except (TypeError, ValueError):
            return value


def number(value: Any) -> int | float:
    text = str(value).strip()
    try:
        return int(text)
    except ValueError:
        return float(text)


__all__ = [
    "COMPARISON_OPERATORS",
    "DEFAULT_LIMIT",
    "DEFAULT_PAGE",
    "DocumentQuery",
    "QueryShaper",
    "RESERVED_PARAMS",
    "number",
]
