# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from http import HTTPStatus

from flask import Flask, Response, jsonify, render_template, request
from werkzeug.exceptions import HTTPException, NotFound

from tourbook.shared.config import AppConfig
from tourbook.shared.logging import logger

from .base import AppError, RouteNotFoundError


def _client_ip() -> str:
    return request.remote_addr or "unknown"


def _wants_html() -> bool:
    return not request.path.startswith("/api")


def handle_app_error(error: AppError) -> tuple[Response | str, HTTPStatus]:
    if _wants_html():
        return (
            render_template(
                "error.html",
                title="Something went wrong!",
                message=error.message or error.code,
            ),
            error.status,
        )
    return jsonify(error.to_dict()), error.status


def register_error_handler(
    app: Flask,
    config: AppConfig,
    *,
    default_status: HTTPStatus = HTTPStatus.INTERNAL_SERVER_ERROR,
) -> None:
    verbose = config.debug_logging and not config.is_production()

    @app.errorhandler(AppError)
    def _handle_app_error(exc: AppError):
        if int(exc.status) >= 500:
            logger.error(f"App error {exc.code} on {request.method} {request.path}")
        else:
            logger.info(f"Handled app error {exc.code} on {request.method} {request.path}")
        return handle_app_error(exc)

    @app.errorhandler(HTTPException)
    def _handle_http(exc: HTTPException):
        if isinstance(exc, NotFound):
            return handle_app_error(RouteNotFoundError(request.path))
        status = HTTPStatus(exc.code or default_status)
        error = AppError(
            code=status.phrase.lower().replace(" ", "_"),
            status=status,
            message=exc.description,
        )
        return handle_app_error(error)

    @app.errorhandler(Exception)
    def _handle_unexpected(exc: Exception):
        from flask import g

        user_id = getattr(g, "user_id", None)

        if verbose:
            logger.exception(
                f"Unhandled exception: {request.method} {request.path} "
                f"from {_client_ip()}, user={user_id}, "
                f"query={dict(request.args)}, body_size={len(request.data)}"
            )
            error = AppError(
                code="internal_error",
                status=default_status,
                message=f"{type(exc).__name__}: {exc}",
            )
        else:
            logger.opt(exception=exc).error(
                f"Error: {type(exc).__name__} on {request.method} {request.path}"
            )
            error = AppError(
                code="internal_error",
                status=default_status,
                message="Something went very wrong!",
            )
        return handle_app_error(error)
