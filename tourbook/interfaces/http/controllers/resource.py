# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Mapping
from http import HTTPStatus
from typing import Any

from flask import Response, jsonify, request

from tourbook.application.interfaces import DocumentRepository
from tourbook.interfaces.http.dto.base import CamelModel, parse_body
from tourbook.interfaces.http.query_args import parse_query_args
from tourbook.shared.errors import NotFoundError


def success(data: Any, status: int = HTTPStatus.OK) -> tuple[Response, int]:
    return jsonify({"status": "success", "data": {"data": data}}), status


def success_list(documents: list[Any]) -> tuple[Response, int]:
    return (
        jsonify({"status": "success", "results": len(documents), "data": {"data": documents}}),
        HTTPStatus.OK,
    )


def no_content() -> tuple[Response, int]:
    return Response(status=HTTPStatus.NO_CONTENT), HTTPStatus.NO_CONTENT


class ResourceHandlers:
    """get-all / get-one / create / update / delete for one collection."""

    def __init__(
        self,
        *,
        repository: DocumentRepository,
        resource: str,
        create_model: type[CamelModel],
        update_model: type[CamelModel],
    ) -> None:
        self._repository = repository
        self._resource = resource
        self._create_model = create_model
        self._update_model = update_model

    def get_all(
        self,
        *,
        params: Mapping[str, Any] | None = None,
        extra_filter: Mapping[str, Any] | None = None,
    ) -> tuple[Response, int]:
        query = parse_query_args(request.args) if params is None else params
        documents = self._repository.find_many(query, extra_filter=extra_filter)
        return success_list(documents)

    def get_one(self, document_id: str) -> tuple[Response, int]:
        document = self._repository.find_one(document_id)
        if document is None:
            raise NotFoundError(self._resource, document_id)
        return success(document)

    def create(self, payload: Mapping[str, Any] | None = None) -> tuple[Response, int]:
        if payload is None:
            payload = parse_body(self._create_model).to_document()
        return success(self._repository.create(payload), HTTPStatus.CREATED)

    def update(self, document_id: str, changes: Mapping[str, Any] | None = None) -> tuple[Response, int]:
        if changes is None:
            changes = parse_body(self._update_model).to_document(partial=True)
        document = self._repository.update(document_id, changes)
        if document is None:
            raise NotFoundError(self._resource, document_id)
        return success(document)

    def delete(self, document_id: str) -> tuple[Response, int]:
        if not self._repository.delete(document_id):
            raise NotFoundError(self._resource, document_id)
        return no_content()


__all__ = ["ResourceHandlers", "no_content", "success", "success_list"]
