# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from typing import Any, NoReturn

from pydantic import ValidationError as PydanticValidationError

from .base import ValidationError


def _field_path(location: tuple[Any, ...]) -> str:
    return ".".join(str(part) for part in location if part is not None)


def format_pydantic_errors(exc: PydanticValidationError) -> dict[str, Any]:
    """Flatten pydantic errors into ``{"fields": [...], "errors": [...]}``.

    Field paths use the wire (camelCase) names; nested items are joined with
    dots, e.g. ``startLocation.coordinates.0``.
    """
    errors: list[dict[str, Any]] = []
    for error in exc.errors(include_url=False):
        entry: dict[str, Any] = {
            "field": _field_path(error.get("loc", ())) or "body",
            "type": error.get("type", "value_error"),
            "message": error.get("msg", ""),
        }
        if error.get("ctx"):
            entry["ctx"] = {key: str(value) for key, value in error["ctx"].items()}
        errors.append(entry)

    return {
        "fields": sorted({entry["field"] for entry in errors}),
        "errors": errors,
    }


def raise_validation_error(exc: PydanticValidationError) -> NoReturn:
    context = format_pydantic_errors(exc)
    details = ". ".join(f"{entry['field']}: {entry['message']}" for entry in context["errors"])
    raise ValidationError(message=f"Invalid input data. {details}", context=context) from exc


__all__ = [
    "format_pydantic_errors",
    "raise_validation_error",
]
