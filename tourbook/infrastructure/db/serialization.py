# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from datetime import datetime
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId


def to_jsonable(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {k: to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(v) for v in obj]
    if isinstance(obj, ObjectId):
        return str(obj)
    if isinstance(obj, datetime):
        return obj.isoformat()
    return obj


def parse_object_id(value: Any) -> ObjectId | None:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None


def object_id_caster(value: Any) -> ObjectId:
    """Query-string caster; raises ``ValueError`` so the raw value is kept."""
    parsed = parse_object_id(value)
    if parsed is None:
        raise ValueError(f"not an ObjectId: {value!r}")
    return parsed


__all__ = ["object_id_caster", "parse_object_id", "to_jsonable"]
