"""Session-backed CSRF tokens for form submissions."""

from __future__ import annotations

import hmac
import secrets

from litestar import Request
from markupsafe import Markup

CSRF_SESSION_KEY = "_csrf_token"
CSRF_FIELD_NAME = "_csrf"


def get_csrf_token(request: Request) -> str:
    """Return the session token, creating one if needed."""
    if CSRF_SESSION_KEY not in request.session:
        request.session[CSRF_SESSION_KEY] = secrets.token_urlsafe(32)
    return request.session[CSRF_SESSION_KEY]


async def verify_csrf(request: Request) -> bool:
    """Check the submitted token against the session; rotate it on success (single use)."""
    form_data = await request.form()
    submitted_token = form_data.get(CSRF_FIELD_NAME, "")
    stored_token = request.session.get(CSRF_SESSION_KEY, "")

    if not stored_token or not hmac.compare_digest(str(submitted_token), str(stored_token)):
        return False

    request.session[CSRF_SESSION_KEY] = secrets.token_urlsafe(32)
    return True


def csrf_field(token: str) -> Markup:
    return Markup('<input type="hidden" name="%s" value="%s">') % (CSRF_FIELD_NAME, token)
