"""Litestar application wiring: sessions, templates and error handlers."""

from __future__ import annotations

import hashlib
import logging
from typing import Any, Sequence

from litestar import Litestar
from litestar.middleware.session.client_side import CookieBackendConfig

from formwork.config import Settings, get_settings
from formwork.lib import observability
from formwork.lib.exceptions import ConfigurationError, configuration_error_handler
from formwork.lib.template import get_template_config

logger = logging.getLogger(__name__)

SESSION_COOKIE = "formwork_session"


def create_session_config(secret_key: str, *, lifetime: int = 3600, secure: bool = False) -> CookieBackendConfig:
    """Encrypted cookie sessions holding the CSRF token.

    Any secret works: it is stretched to the 32 bytes AES-GCM wants.
    """
    return CookieBackendConfig(
        secret=hashlib.sha256(secret_key.encode("utf-8")).digest(),
        key=SESSION_COOKIE,
        max_age=lifetime,
        httponly=True,
        secure=secure,
        samesite="strict",
    )


def create_app(route_handlers: Sequence[Any], settings: Settings | None = None) -> Litestar:
    """Create a Litestar app serving the given form controllers."""
    settings = settings or get_settings()
    observability.configure(settings)

    if settings.secret_key == "change-me" and not settings.debug:
        logger.warning("Using the default secret key; set FORMWORK_SECRET_KEY in production")

    sessions = create_session_config(
        settings.secret_key, lifetime=settings.session_lifetime, secure=not settings.debug
    )

    return Litestar(
        route_handlers=list(route_handlers),
        middleware=[sessions.middleware],
        template_config=get_template_config(),
        exception_handlers={ConfigurationError: configuration_error_handler},
        debug=settings.debug,
    )
