# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Request body sanitizers against NoSQL operator injection and stored XSS."""

from __future__ import annotations

from typing import Any

from flask import Flask, Request
from markupsafe import escape

from tourbook.shared.logging import logger

_UNSET = object()


def _is_forbidden_key(key: Any) -> bool:
    return isinstance(key, str) and (key.startswith("$") or "." in key)


def strip_operator_keys(value: Any) -> Any:
    """Drop mapping keys that MongoDB would read as operators or dotted paths."""
    if isinstance(value, dict):
        return {
            key: strip_operator_keys(inner)
            for key, inner in value.items()
            if not _is_forbidden_key(key)
        }
    if isinstance(value, list):
        return [strip_operator_keys(item) for item in value]
    return value


def escape_markup(value: Any) -> Any:
    if isinstance(value, str):
        return str(escape(value))
    if isinstance(value, dict):
        return {key: escape_markup(inner) for key, inner in value.items()}
    if isinstance(value, list):
        return [escape_markup(item) for item in value]
    return value


def sanitize_payload(value: Any) -> Any:
    return escape_markup(strip_operator_keys(value))


class SanitizedRequest(Request):
    """Request whose parsed JSON body has already been through ``sanitize_payload``."""

    _sanitized: Any = _UNSET

    def get_json(self, force: bool = False, silent: bool = False, cache: bool = True) -> Any:
        if self._sanitized is not _UNSET:
            return self._sanitized
        payload = super().get_json(force=force, silent=silent, cache=cache)
        if not isinstance(payload, (dict, list)):
            return payload
        cleaned = sanitize_payload(payload)
        if cleaned != payload:
            logger.debug(f"sanitize: rewrote body of {self.method} {self.path}")
        if cache:
            self._sanitized = cleaned
        return cleaned


def configure_sanitizer(app: Flask) -> None:
    app.request_class = SanitizedRequest


__all__ = [
    "SanitizedRequest",
    "configure_sanitizer",
    "escape_markup",
    "sanitize_payload",
    "strip_operator_keys",
]
