# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import hashlib
import secrets
import time
from collections.abc import Iterable, Mapping

from flask import Flask, Response, g, request

from tourbook.shared.config import AppConfig
from tourbook.shared.logging import clear_correlation_id, logger, set_correlation_id

REQUEST_ID_HEADER = "X-Request-ID"

_SECRET_HEADERS = frozenset({"authorization", "cookie", "stripe-signature"})
_SECRET_ARG_HINTS = ("password", "token", "secret", "key")


def _client_ip() -> str:
    return request.remote_addr or "unknown"


def _fingerprint(value: str) -> str:
    return f"<sha256:{hashlib.sha256(value.encode()).hexdigest()[:8]}>"


def _masked_headers(headers: Iterable[tuple[str, str]]) -> dict[str, str]:
    return {
        name: _fingerprint(value) if name.lower() in _SECRET_HEADERS else value
        for name, value in headers
    }


def _masked_args(args: Mapping[str, str]) -> dict[str, str]:
    return {
        name: "<redacted>" if any(hint in name.lower() for hint in _SECRET_ARG_HINTS) else value
        for name, value in args.items()
    }


def configure_request_logging(app: Flask, config: AppConfig) -> None:
    """Tag each request with a correlation id and log its start and outcome.

    The id comes from ``X-Request-ID`` when the caller sends one and is echoed
    back on the response. With ``DEBUG_LOGGING`` the start line also carries
    masked headers and query arguments.
    """
    verbose = config.debug_logging

    @app.before_request
    def _start() -> None:
        request_id = request.headers.get(REQUEST_ID_HEADER) or secrets.token_urlsafe(8)
        set_correlation_id(request_id)
        g.correlation_id = request_id
        g.request_started = time.perf_counter()

        if verbose:
            logger.info(
                f"request: {request.method} {request.full_path.rstrip('?')} from {_client_ip()} "
                f"args={_masked_args(request.args)} headers={_masked_headers(request.headers.items())} "
                f"body_bytes={request.content_length or 0}"
            )
        else:
            logger.info(f"request: {request.method} {request.path} from {_client_ip()}")

    @app.after_request
    def _finish(response: Response) -> Response:
        elapsed_ms = (time.perf_counter() - g.get("request_started", time.perf_counter())) * 1000
        user_id = g.get("user_id") or "anonymous"
        logger.info(
            f"response: {request.method} {request.path} status={response.status_code} "
            f"user={user_id} in {elapsed_ms:.1f} ms"
        )
        response.headers.setdefault(REQUEST_ID_HEADER, g.get("correlation_id", "-"))
        return response

    @app.teardown_request
    def _teardown(exc: BaseException | None) -> None:
        if exc is not None:
            logger.error(f"request: {type(exc).__name__} escaped {request.method} {request.path}")
        clear_correlation_id()


__all__ = ["REQUEST_ID_HEADER", "configure_request_logging"]
