# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Process entry point: serve the app and shut down cleanly on signals or crashes."""

from __future__ import annotations

import signal
import sys
import threading
from types import FrameType, TracebackType
from typing import Protocol

from pymongo.errors import PyMongoError
from werkzeug.serving import make_server

from tourbook.app import create_app, get_container
from tourbook.shared.config import load_config
from tourbook.shared.logging import logger


class StoppableServer(Protocol):
    def serve_forever(self) -> None: ...

    def shutdown(self) -> None: ...


class GracefulShutdown:
    """Stops accepting connections once, from a helper thread."""

    def __init__(self, server: StoppableServer) -> None:
        self._server = server
        self._requested = threading.Event()
        self._thread: threading.Thread | None = None
        self.exit_code = 0

    @property
    def requested(self) -> bool:
        return self._requested.is_set()

    def request(self, reason: str, *, exit_code: int = 0) -> None:
        if self._requested.is_set():
            return
        self._requested.set()
        self.exit_code = exit_code
        logger.warning(f"{reason} Shutting down...")
        # serve_forever() blocks the caller of shutdown() when they share a thread
        self._thread = threading.Thread(target=self._server.shutdown, daemon=True)
        self._thread.start()

    def wait(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def install(self) -> None:
        signal.signal(signal.SIGTERM, self._on_signal)
        signal.signal(signal.SIGINT, self._on_signal)
        sys.excepthook = self._on_uncaught
        threading.excepthook = self._on_thread_crash

    def _on_signal(self, signum: int, frame: FrameType | None) -> None:
        self.request(f"{signal.Signals(signum).name} received.")

    def _on_uncaught(
        self,
        exc_type: type[BaseException],
        exc: BaseException,
        tb: TracebackType | None,
    ) -> None:
        logger.opt(exception=(exc_type, exc, tb)).critical(
            f"UNCAUGHT EXCEPTION! {exc_type.__name__}: {exc}"
        )
        self.request("Uncaught exception.", exit_code=1)

    def _on_thread_crash(self, args: threading.ExceptHookArgs) -> None:
        if args.exc_type is SystemExit:
            return
        logger.opt(exception=(args.exc_type, args.exc_value, args.exc_traceback)).critical(
            f"UNHANDLED THREAD EXCEPTION in {getattr(args.thread, 'name', '?')}"
        )
        self.request("Unhandled thread exception.", exit_code=1)


def main() -> None:
    config = load_config()
    app = create_app(config)
    container = get_container(app)

    try:
        container.database.ensure_indexes()
    except PyMongoError as exc:
        logger.critical(f"db.startup: cannot reach MongoDB: {exc}")
        container.close()
        sys.exit(1)

    server = make_server(config.server.host, config.server.port, app, threaded=True)
    shutdown = GracefulShutdown(server)
    shutdown.install()

    logger.info(f"App running on {config.server.host}:{config.server.port}...")
    try:
        server.serve_forever()
    finally:
        shutdown.wait(timeout=10)
        container.close()
        logger.info("Process terminated!")
    sys.exit(shutdown.exit_code)


if __name__ == "__main__":
    main()
