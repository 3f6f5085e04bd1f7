# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""View decorators resolving the session and gating routes by role.

``protect`` and ``optional`` pass an ``AuthContext`` to the view through the
``auth`` keyword argument; ``restrict_to`` must sit inside ``protect``.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from functools import wraps
from typing import Any

from flask import Request, g, request

from tourbook.application.services.credentials import CredentialService
from tourbook.domain.users.entities import Role, User
from tourbook.domain.users.exceptions import ForbiddenError, UnauthenticatedError
from tourbook.interfaces.http.auth_response import SESSION_COOKIE
from tourbook.shared.logging import logger

View = Callable[..., Any]


@dataclass(slots=True, frozen=True)
class AuthContext:
    user: User
    token: str


def extract_token(req: Request) -> str | None:
    header = req.headers.get("Authorization", "")
    if header.startswith("Bearer "):
        token = header[7:].strip()
        if token:
            return token
    return req.cookies.get(SESSION_COOKIE) or None


class AccessControl:
    def __init__(self, credentials: CredentialService) -> None:
        self._credentials = credentials

    def protect(self, view: View) -> View:
        @wraps(view)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            token = extract_token(request)
            user = self._credentials.authenticate_request(token)
            g.user_id = user.id
            g.user = user
            kwargs["auth"] = AuthContext(user=user, token=token or "")
            return view(*args, **kwargs)

        return wrapper

    def restrict_to(self, *roles: Role) -> Callable[[View], View]:
        allowed = frozenset(roles)

        def decorator(view: View) -> View:
            @wraps(view)
            def wrapper(*args: Any, auth: AuthContext | None = None, **kwargs: Any) -> Any:
                if auth is None:
                    raise UnauthenticatedError()
                if auth.user.role not in allowed:
                    logger.info(
                        f"access.restrict: denied user_id={auth.user.id} role={auth.user.role.value}"
                    )
                    raise ForbiddenError()
                return view(*args, auth=auth, **kwargs)

            return wrapper

        return decorator

    def optional(self, view: View) -> View:
        @wraps(view)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            token = extract_token(request)
            user = self._credentials.optional_authenticate(token)
            g.user = user
            if user is not None:
                g.user_id = user.id
            kwargs["auth"] = AuthContext(user=user, token=token or "") if user else None
            return view(*args, **kwargs)

        return wrapper

    def guard(self, view: View, *roles: Role) -> View:
        """``protect`` plus, when roles are given, ``restrict_to(*roles)``."""
        if roles:
            view = self.restrict_to(*roles)(view)
        return self.protect(view)


__all__ = ["AccessControl", "AuthContext", "extract_token"]
