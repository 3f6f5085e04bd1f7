# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Callable
from http import HTTPStatus

from flask import Blueprint, Response, jsonify


class HealthController:
    def __init__(self, *, ping: Callable[[], bool]) -> None:
        self._ping = ping

    def health(self) -> tuple[Response, int]:
        database_ok = self._ping()
        status = HTTPStatus.OK if database_ok else HTTPStatus.SERVICE_UNAVAILABLE
        payload = {
            "status": "success" if database_ok else "error",
            "checks": {"database": "ok" if database_ok else "unavailable"},
        }
        return jsonify(payload), status

    def as_blueprint(self) -> Blueprint:
        bp = Blueprint("health", __name__, url_prefix="/api/v1")
        bp.add_url_rule("/health", view_func=self.health, methods=["GET"])
        return bp


__all__ = ["HealthController"]
