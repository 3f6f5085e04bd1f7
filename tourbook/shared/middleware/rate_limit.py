# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import threading
import time
from collections import deque
from collections.abc import Callable
from functools import wraps

from flask import Flask, Request, Response, g, request

from tourbook.shared.config import AppConfig
from tourbook.shared.errors import RateLimitedError
from tourbook.shared.logging import logger


class InMemoryRateLimiter:
    """Sliding-window request budget per key, held in process memory.

    Each worker process keeps its own windows. Keys whose window has fully
    expired are pruned, so the table only holds recently active clients.
    """

    def __init__(
        self,
        limit: int,
        window_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.limit = max(1, int(limit))
        self._window = max(0.1, float(window_seconds))
        self._clock = clock
        self._lock = threading.Lock()
        self._hits: dict[str, deque[float]] = {}
        self._last_sweep = clock()

    @property
    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._hits)

    def _expire(self, key: str, now: float) -> deque[float] | None:
        hits = self._hits.get(key)
        if hits is None:
            return None
        while hits and now - hits[0] > self._window:
            hits.popleft()
        if not hits:
            del self._hits[key]
            return None
        return hits

    def _sweep(self, now: float) -> None:
        if now - self._last_sweep < self._window:
            return
        self._last_sweep = now
        for key in list(self._hits):
            self._expire(key, now)

    def allow(self, key: str) -> bool:
        now = self._clock()
        with self._lock:
            self._sweep(now)
            hits = self._expire(key, now)
            if hits is None:
                self._hits[key] = deque([now])
                return True
            if len(hits) >= self.limit:
                return False
            hits.append(now)
            return True

    def remaining(self, key: str) -> int:
        with self._lock:
            hits = self._expire(key, self._clock())
            return self.limit - len(hits) if hits else self.limit


def _client_key(req: Request) -> str:
    # X-Forwarded-For is only honoured through ProxyFix, see create_app
    return req.remote_addr or "unknown"


def _refuse() -> None:
    logger.warning(f"rate_limit: blocked {request.method} {request.path} from {_client_key(request)}")
    raise RateLimitedError()


def rate_limit(limit: int, window_seconds: float, *, enabled: bool = True):
    """Per-route limiter keyed by path and client address."""
    limiter = InMemoryRateLimiter(limit, window_seconds)

    def decorator(view: Callable):
        if not enabled:
            return view

        @wraps(view)
        def wrapper(*args, **kwargs):
            if not limiter.allow(f"{request.path}:{_client_key(request)}"):
                _refuse()
            return view(*args, **kwargs)

        return wrapper

    return decorator


def configure_rate_limit(app: Flask, config: AppConfig, *, prefix: str = "/api") -> None:
    """Apply one shared budget per client to every request under ``prefix``.

    Responses under the prefix report the budget in ``X-RateLimit-Limit`` and
    ``X-RateLimit-Remaining``.
    """
    if not config.security.enable_rate_limit:
        return

    limiter = InMemoryRateLimiter(
        config.security.rate_limit_requests,
        config.security.rate_limit_window,
    )

    @app.before_request
    def _limit_api_requests() -> None:
        if not request.path.startswith(prefix):
            return None
        g.rate_limit_key = _client_key(request)
        if not limiter.allow(g.rate_limit_key):
            _refuse()
        return None

    @app.after_request
    def _report_budget(response: Response) -> Response:
        key = g.get("rate_limit_key")
        if key is not None:
            response.headers["X-RateLimit-Limit"] = str(limiter.limit)
            response.headers["X-RateLimit-Remaining"] = str(limiter.remaining(key))
        return response


__all__ = ["InMemoryRateLimiter", "configure_rate_limit", "rate_limit"]
