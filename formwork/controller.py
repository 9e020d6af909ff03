"""Litestar controllers that serve a form page and its AJAX submit endpoint."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Union

from litestar import Controller, Request, get, post
from litestar.response import Response, Template as TemplateResponse

from formwork.csrf import CSRF_FIELD_NAME, get_csrf_token, verify_csrf
from formwork.form import Form
from formwork.lib.js import JsExpression
from formwork.submission import SubmitContext, SubmitResponse

logger = logging.getLogger(__name__)

FormBuilder = Callable[[Request], Union[Form, Awaitable[Form]]]

SESSION_EXPIRED_MESSAGE = "Form session expired. Please try again."


async def _build(build_form: FormBuilder, request: Request) -> Form:
    form = build_form(request)
    if asyncio.iscoroutine(form):
        form = await form
    return form


def create_form_controller(
    path: str,
    build_form: FormBuilder,
    *,
    title: str = "",
    page_template: str = "form-page.html",
) -> type[Controller]:
    """Create a Controller for one form.

    ``GET {path}`` renders the page, ``POST {path}/submit`` answers the
    client with the submission outcome as JSON. ``build_form`` is called
    for every request so each submission gets a fresh form and model.
    """
    base_path = "/" + path.strip("/")
    submit_url = f"{base_path.rstrip('/')}/submit"

    class _FormController(Controller):
        path = base_path

        @get("/")
        async def show(self, request: Request) -> TemplateResponse:
            form = await _build(build_form, request)
            form.update_config(submit_url=submit_url)
            form.csrf_token = get_csrf_token(request)
            return TemplateResponse(page_template, context={"form": form, "title": title})

        @post("/submit", status_code=200)
        async def submit(self, request: Request) -> Response:
            if not await verify_csrf(request):
                logger.info("Rejected submission to %s: CSRF token mismatch", submit_url)
                response = SubmitResponse(success=False, message=SESSION_EXPIRED_MESSAGE)
                return Response(content=response.to_dict(), status_code=403)

            form = await _build(build_form, request)
            form.update_config(submit_url=submit_url)
            ctx = await SubmitContext.from_request(request, form_name=form.name)
            response = await form.handle_submit(ctx)
            return Response(content=_with_token(response, request))

    _FormController.__name__ = f"FormController_{path.strip('/').replace('/', '_') or 'root'}"
    return _FormController


def _with_token(response: SubmitResponse, request: Request) -> dict[str, Any]:
    """Hand the rotated CSRF token back so the page can submit again.

    Hook-supplied payloads are sent untouched.
    """
    body = response.to_dict()
    if response.payload is None:
        token = get_csrf_token(request)
        refresh = JsExpression("$([]).val([])", [f"input[name={CSRF_FIELD_NAME}]", token]).render()
        body["csrfToken"] = token
        body["js"] = f"{body['js']}\n{refresh};" if body.get("js") else f"{refresh};"
    return body
