# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import re
from typing import Any

from werkzeug.datastructures import MultiDict

# Repeating one of these keeps every value instead of the last one.
POLLUTION_WHITELIST = frozenset(
    {"duration", "ratingsQuantity", "ratingsAverage", "maxGroupSize", "difficulty", "price"}
)
MAX_DEPTH = 5

_BRACKET_KEY = re.compile(r"^([^\[\]]+)((?:\[[^\[\]]*\])+)$")
_SEGMENT = re.compile(r"\[([^\[\]]*)\]")


def split_key(raw: str) -> list[str]:
    """``price[gte]`` -> ``["price", "gte"]``; malformed brackets stay literal."""
    match = _BRACKET_KEY.match(raw)
    if match is None:
        return [raw]
    segments = [segment for segment in _SEGMENT.findall(match.group(2)) if segment]
    return [match.group(1), *segments[:MAX_DEPTH]]


def _assign(target: dict[str, Any], path: list[str], value: Any) -> None:
    node = target
    for part in path[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child
    node[path[-1]] = value


def parse_query_args(args: MultiDict[str, str]) -> dict[str, Any]:
    parsed: dict[str, Any] = {}
    for raw_key in args.keys():
        values = args.getlist(raw_key)
        if not values:
            continue
        path = split_key(raw_key)
        if path[0] in POLLUTION_WHITELIST and len(values) > 1:
            value: Any = list(values)
        else:
            value = values[-1]
        _assign(parsed, path, value)
    return parsed


__all__ = ["POLLUTION_WHITELIST", "parse_query_args", "split_key"]
