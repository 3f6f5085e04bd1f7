# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import re
from typing import Any

_REDACTED = "***REDACTED***"

# Applied in order; the bearer rule runs before the generic Authorization rule
_RULES: list[tuple[re.Pattern[str], str]] = [
    # Stripe credentials
    (re.compile(r"\b((?:sk|rk)_(?:test|live)_)[A-Za-z0-9]{10,}"), rf"\1{_REDACTED}"),
    (re.compile(r"\b(whsec_)[A-Za-z0-9]{10,}"), rf"\1{_REDACTED}"),
    (re.compile(r"(secret[_-]?key\s*[:=]\s*['\"]?)[\w\-]{20,}", re.IGNORECASE), rf"\1{_REDACTED}"),
    # Session tokens
    (re.compile(r"(bearer\s+)[\w\-.]{20,}", re.IGNORECASE), rf"\1{_REDACTED}"),
    (re.compile(r"\b(jwt=)(?!loggedout)[\w\-.]{20,}"), rf"\1{_REDACTED}"),
    (re.compile(r"\beyJ[\w\-]+\.[\w\-]+\.[\w\-]+"), _REDACTED),
    (re.compile(r"(resetPassword/)[a-f0-9]{16,}"), rf"\1{_REDACTED}"),
    (re.compile(r"(token\s*[:=]\s*['\"]?)[\w\-.]{20,}", re.IGNORECASE), rf"\1{_REDACTED}"),
    (re.compile(r"(authorization\s*:\s*['\"]?)[^'\"\s]{10,}", re.IGNORECASE), rf"\1{_REDACTED}"),
    # Passwords and passwordConfirm in key=value or JSON form
    (re.compile(r"(password\w*['\"]?\s*[:=]\s*['\"]?)[^'\",\s}]{6,}", re.IGNORECASE), rf"\1{_REDACTED}"),
    (re.compile(r"(mongodb(?:\+srv)?://[^:/@\s]+:)[^@\s]+@"), rf"\1{_REDACTED}@"),
    # Keep the domain of e-mail addresses for debugging deliveries
    (re.compile(r"[A-Za-z0-9._%+-]+@([A-Za-z0-9.-]+\.[A-Za-z]{2,})"), r"***@\1"),
    (re.compile(r"\b\d{4}[- ]?\d{4}[- ]?\d{4}[- ]?\d{4}\b"), "****-****-****-****"),
]


def sanitize_message(message: str) -> str:
    for pattern, replacement in _RULES:
        message = pattern.sub(replacement, message)
    return message


def sanitize_record(record: dict[str, Any]) -> bool:
    """Loguru filter: redacts the record in place and never drops it."""
    record["message"] = sanitize_message(record["message"])
    return True


__all__ = ["sanitize_message", "sanitize_record"]
