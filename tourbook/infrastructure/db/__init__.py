# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .client import BOOKINGS, REVIEWS, TOURS, USERS, MongoDatabase
from .query import DocumentQuery, QueryShaper
from .serialization import object_id_caster, parse_object_id, to_jsonable

__all__ = [
    "BOOKINGS",
    "REVIEWS",
    "TOURS",
    "USERS",
    "DocumentQuery",
    "MongoDatabase",
    "QueryShaper",
    "object_id_caster",
    "parse_object_id",
    "to_jsonable",
]
