"""Error taxonomy for forms, plus the Litestar handler for configuration faults."""

from __future__ import annotations

from typing import Any

from litestar import Request, Response
from litestar.status_codes import HTTP_500_INTERNAL_SERVER_ERROR
from markupsafe import Markup, escape


class FormworkError(Exception):
    """Framework error carrying structured context.

    Extra keyword arguments are kept in ``info`` and rendered by
    ``get_html()`` so the browser can show what went wrong.
    """

    def __init__(self, message: str, **info: Any):
        super().__init__(message)
        self.message = message
        self.info: dict[str, Any] = dict(info)

    def add_more_info(self, key: str, value: Any) -> FormworkError:
        self.info[key] = value
        return self

    def get_html(self) -> Markup:
        html = f'<div class="ui negative message"><p>{escape(self.message)}</p>'
        if self.info:
            html += '<table class="ui very compact small table"><tbody>'
            for key, value in self.info.items():
                html += f"<tr><td><b>{escape(key)}</b></td><td>{escape(repr(value))}</td></tr>"
            html += "</tbody></table>"
        html += "</div>"
        return Markup(html)


class ConfigurationError(FormworkError):
    """Invalid form setup (bad layout seed, bad factory argument, unknown rule)."""


class FieldValueError(FormworkError):
    """A posted value could not be cast to its field's type."""


class ValidationError(FormworkError):
    """One or more fields were rejected; ``errors`` maps field name to message."""

    def __init__(self, errors: dict[str, str], message: str = "Validation failed"):
        super().__init__(message, errors=errors)
        self.errors = dict(errors)


def configuration_error_handler(request: Request, exc: ConfigurationError) -> Response:
    """Answer configuration faults with JSON so a broken form never renders half-built."""
    return Response(
        content={
            "status_code": HTTP_500_INTERNAL_SERVER_ERROR,
            "detail": exc.message,
        },
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        media_type="application/json",
    )
