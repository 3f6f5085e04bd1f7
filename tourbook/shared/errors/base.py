# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from http import HTTPStatus
from typing import Any, cast


@dataclass(slots=True)
class AppError(Exception):
    code: str
    status: HTTPStatus
    message: str | None = None
    context: Mapping[str, Any] | None = None

    def __post_init__(self) -> None:
        Exception.__init__(self, self.code)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "status": "fail" if int(self.status) < 500 else "error",
            "error": self.code,
        }
        if self.message:
            payload["message"] = self.message
        if self.context:
            payload["context"] = dict(self.context)
        return payload


class DomainError(AppError):
    def __init__(
        self,
        *,
        code: str | None = None,
        status: HTTPStatus | None = None,
        message: str | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        resolved_code = code or cast(str, getattr(self, "code", "domain_error"))
        resolved_status = status or cast(
            HTTPStatus, getattr(self, "status", HTTPStatus.BAD_REQUEST)
        )
        resolved_message = message or cast(str | None, getattr(self, "message", None))
        super().__init__(
            code=resolved_code,
            status=resolved_status,
            message=resolved_message,
            context=context,
        )


class InfrastructureError(AppError):
    def __init__(
        self,
        code: str = "infrastructure_error",
        *,
        status: HTTPStatus | None = None,
        message: str | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        resolved_status = status or HTTPStatus.INTERNAL_SERVER_ERROR
        super().__init__(code=code, status=resolved_status, message=message, context=context)


class ValidationError(AppError):
    def __init__(
        self,
        code: str = "validation_error",
        *,
        message: str | None = "Invalid input data.",
        context: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code=code,
            status=HTTPStatus.UNPROCESSABLE_ENTITY,
            message=message,
            context=context,
        )


class NotFoundError(AppError):
    def __init__(self, resource: str, document_id: str | None = None) -> None:
        context = {"resource": resource}
        if document_id is not None:
            context["id"] = document_id
        super().__init__(
            code="not_found",
            status=HTTPStatus.NOT_FOUND,
            message="No document found with that ID.",
            context=context,
        )


class RouteNotFoundError(AppError):
    def __init__(self, path: str) -> None:
        super().__init__(
            code="route_not_found",
            status=HTTPStatus.NOT_FOUND,
            message=f"Can't find {path} on this server!",
        )


class DuplicateValueError(AppError):
    def __init__(self, fields: Mapping[str, Any] | None = None) -> None:
        super().__init__(
            code="duplicate_value",
            status=HTTPStatus.BAD_REQUEST,
            message="Duplicate field value. Please use another value.",
            context={"fields": dict(fields)} if fields else None,
        )


class RateLimitedError(AppError):
    def __init__(self) -> None:
        super().__init__(
            code="rate_limited",
            status=HTTPStatus.TOO_MANY_REQUESTS,
            message="Too many requests from this IP, please try again later.",
        )
