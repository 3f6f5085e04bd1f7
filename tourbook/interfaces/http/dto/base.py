# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from typing import Any, TypeVar

from flask import request
from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from tourbook.shared.errors.validation import raise_validation_error

ModelT = TypeVar("ModelT", bound=BaseModel)


class CamelModel(BaseModel):
    """Snake-case attributes, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, validate_by_name=True, extra="ignore")

    def to_document(self, *, partial: bool = False) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_unset=partial, exclude_none=not partial)


def parse_body(model: type[ModelT]) -> ModelT:
    try:
        return model.model_validate(request.get_json(silent=True) or {})
    except ValidationError as exc:
        raise_validation_error(exc)


__all__ = ["CamelModel", "parse_body"]
