# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from flask import Flask, current_app
from flask_cors import CORS
from werkzeug.middleware.proxy_fix import ProxyFix

from tourbook.infrastructure.container import Container
from tourbook.shared.config import AppConfig, load_config
from tourbook.shared.logging import logger, setup_logging
from tourbook.shared.middleware.error_handler import configure_error_handling
from tourbook.shared.middleware.rate_limit import configure_rate_limit
from tourbook.shared.middleware.request_logger import configure_request_logging
from tourbook.shared.middleware.sanitize import configure_sanitizer

EXTENSION_KEY = "tourbook"


def get_container(app: Flask | None = None) -> Container:
    return (app or current_app).extensions[EXTENSION_KEY]


def _configure_security_headers(app: Flask, config: AppConfig) -> None:
    @app.after_request
    def _add_security_headers(resp):
        resp.headers.setdefault("X-Frame-Options", "DENY")
        resp.headers.setdefault("Referrer-Policy", "no-referrer")
        resp.headers.setdefault("X-Content-Type-Options", "nosniff")
        resp.headers.setdefault("Cross-Origin-Resource-Policy", "same-origin")
        resp.headers.setdefault("Cross-Origin-Opener-Policy", "same-origin")
        resp.headers.setdefault(
            "Permissions-Policy",
            "geolocation=(), microphone=(), camera=(), usb=(), magnetometer=(), gyroscope=()",
        )
        resp.headers.setdefault("X-Permitted-Cross-Domain-Policies", "none")

        if config.security.enable_hsts:
            resp.headers.setdefault(
                "Strict-Transport-Security",
                "max-age=31536000; includeSubDomains; preload",
            )

        return resp


def create_app(config: AppConfig | None = None, *, container: Container | None = None) -> Flask:
    config = config or load_config()
    setup_logging(
        config.effective_log_level(),
        log_file=config.log_file if config.log_to_file else None,
    )
    container = container or Container(config)

    app = Flask(__name__)
    hops = config.security.trusted_proxy_hops
    if hops:
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=hops, x_proto=hops, x_host=hops)  # type: ignore[method-assign]
    app.config.update(
        SECRET_KEY=config.secret_key,
        MAX_CONTENT_LENGTH=config.security.max_body_bytes,
    )
    app.extensions[EXTENSION_KEY] = container

    configure_error_handling(app, config)
    configure_request_logging(app, config)
    configure_rate_limit(app, config)
    configure_sanitizer(app)

    cors_kwargs: dict[str, object] = {
        "resources": {r"/api/*": {"origins": config.security.allowed_origins}}
    }
    if any(o != "*" for o in config.security.allowed_origins):
        cors_kwargs["supports_credentials"] = True
    CORS(app, **cors_kwargs)

    app.register_blueprint(container.health_controller.as_blueprint())
    app.register_blueprint(container.auth_controller.as_blueprint())
    app.register_blueprint(container.users_controller.as_blueprint())
    app.register_blueprint(container.tours_controller.as_blueprint())
    app.register_blueprint(container.reviews_controller.as_blueprint())
    app.register_blueprint(container.bookings_controller.as_blueprint())
    app.register_blueprint(container.views_controller.as_blueprint())

    _configure_security_headers(app, config)

    logger.info(f"Flask app initialized env={config.app_env}")
    return app


__all__ = ["create_app", "get_container"]
