"""Request context, outcomes and wire responses for AJAX form submission."""

from __future__ import annotations

import dataclasses
import enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Mapping, Union

from markupsafe import Markup, escape

from formwork.lib.exceptions import FormworkError
from formwork.lib.js import JsExpression, render_statements

if TYPE_CHECKING:
    from litestar import Request


class ErrorKind(str, enum.Enum):
    """Why a submission did not end in a plain success."""

    VALIDATION = "validation"
    FRAMEWORK = "framework"
    GENERIC = "generic"
    DIRECT_OUTPUT = "direct_output"


class SubmitState(str, enum.Enum):
    IDLE = "idle"
    SUBMITTED = "submitted"
    VALIDATED = "validated"
    REJECTED = "rejected"


@dataclasses.dataclass
class SubmitContext:
    """Everything a submission needs, passed explicitly instead of read globally."""

    data: Mapping[str, Any]
    request: Request | None = None
    form_name: str | None = None
    state: dict[str, Any] = dataclasses.field(default_factory=dict)

    @classmethod
    async def from_request(cls, request: Request, form_name: str | None = None) -> SubmitContext:
        form_data = await request.form()
        data = {
            key: value
            for key, value in form_data.items()
            if isinstance(value, str)
        }
        return cls(data=data, request=request, form_name=form_name)

    def get(self, name: str, default: Any = None) -> Any:
        return self.data.get(name, default)


@dataclasses.dataclass
class SubmitResponse:
    """What the client receives.

    ``payload`` is a hook-supplied dict sent as-is; otherwise ``to_dict()``
    builds ``{success, message?, useWindow?, js?, errors?}``.
    """

    success: bool
    message: str | None = None
    use_window: bool = False
    js: str | None = None
    errors: dict[str, str] | None = None
    kind: ErrorKind | None = None
    payload: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        if self.payload is not None:
            return self.payload
        body: dict[str, Any] = {"success": self.success}
        if self.message is not None:
            body["message"] = str(self.message)
        if not self.success:
            body["useWindow"] = self.use_window
        if self.js:
            body["js"] = self.js
        if self.errors:
            body["errors"] = self.errors
        return body

    @classmethod
    def from_actions(cls, actions: list[JsExpression | str], **kwargs: Any) -> SubmitResponse:
        return cls(success=kwargs.pop("success", True), js=render_statements(actions), **kwargs)


SubmitResult = Union[SubmitResponse, JsExpression, list, dict, str, None]
SubmitHandler = Callable[[SubmitContext], Union[SubmitResult, Awaitable[SubmitResult]]]


def error_block(exc: BaseException) -> Markup:
    """Displayable error: rich detail for framework errors, escaped message otherwise."""
    if isinstance(exc, FormworkError):
        content = exc.get_html()
    else:
        content = Markup("<br>\n").join(escape(str(exc)).splitlines())
    return Markup('<div class="header"> %s </div> <div class="content"> %s </div>') % (
        type(exc).__name__,
        content,
    )
