"""The Form view: layout, field decorators and the AJAX submit pipeline.

    form = Form(name="contact")
    form.add_field("email", field={"type": "string", "required": True})
    form.add_field("age", field={"type": "integer"})

    @form.on_submit
    def handle(ctx):
        return form.success("Thanks!")

Rendering produces the form markup plus an inline script that wires the
client API call, validation prompts and conditional display. A submission
is handled by ``handle_submit()``, which always answers with a
``SubmitResponse`` rather than raising.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any, Iterator

from markupsafe import Markup
from pydantic import BaseModel, ConfigDict

from formwork.conditional import ConditionalDisplay, Rules, check_rules, normalize_rules
from formwork.config import get_settings
from formwork.csrf import csrf_field
from formwork.data.model import Field, Model, ProxyModel
from formwork.factory import Seed, decorators, layouts, merge_seeds
from formwork.fields import FieldDecorator
from formwork.layout import GenericLayout
from formwork.lib import observability
from formwork.lib.exceptions import ConfigurationError, FormworkError, ValidationError
from formwork.lib.hooks import FORM_LOAD_POST, FORM_SAVED, FORM_SUBMITTED, hooks
from formwork.lib.js import JsChain, JsExpression, JsFunction
from formwork.lib.output import capture_output
from formwork.lib.template import Template, get_template_environment
from formwork.persistence import ui_persistence
from formwork.submission import (
    ErrorKind,
    SubmitContext,
    SubmitHandler,
    SubmitResponse,
    SubmitState,
    error_block,
)
from formwork.view import Button, Message, View

logger = logging.getLogger(__name__)


class FormConfig(BaseModel):
    """Per-form settings; replaced wholesale via ``Form.update_config()``."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    layout: Any = "Generic"
    api_config: dict[str, Any] = {}
    form_config: dict[str, Any] = {}
    field_display_selector: str = ".field"
    success_template: str = "form-success.html"
    css_class: str | None = None
    submit_url: str = ""

    @classmethod
    def from_settings(cls, **overrides: Any) -> FormConfig:
        forms = get_settings().forms
        values: dict[str, Any] = {
            "field_display_selector": forms.field_display_selector,
            "success_template": forms.success_template,
            "api_config": dict(forms.api_defaults),
            "form_config": dict(forms.form_defaults),
        }
        values.update(overrides)
        return cls(**values)


class FieldRegistry(Mapping):
    """Decorators of a form keyed by field name, in the order they were added."""

    def __init__(self) -> None:
        self._decorators: dict[str, FieldDecorator] = {}

    def register(self, name: str, decorator: FieldDecorator) -> FieldDecorator:
        if name in self._decorators:
            raise ConfigurationError("Form already has a field with this name", field=name)
        self._decorators[name] = decorator
        return decorator

    def __getitem__(self, name: str) -> FieldDecorator:
        try:
            return self._decorators[name]
        except KeyError:
            available = ", ".join(self._decorators) or "(none)"
            raise KeyError(f"Form has no field '{name}'. Fields: {available}")

    def __iter__(self) -> Iterator[str]:
        return iter(self._decorators)

    def __len__(self) -> int:
        return len(self._decorators)


async def _call_handler(handler: SubmitHandler, ctx: SubmitContext) -> Any:
    result = handler(ctx)
    if asyncio.iscoroutine(result):
        return await result
    return result


class Form(View):
    element = "form"
    ui = "form"

    type_to_decorator: dict[str, Any] = {
        "boolean": "CheckBox",
        "text": "TextArea",
        "string": "Line",
        "password": "Password",
        "datetime": "Calendar",
        "date": ["Calendar", {"type": "date"}],
        "time": ["Calendar", {"type": "time", "ampm": False}],
        "money": "Money",
    }

    def __init__(
        self,
        config: FormConfig | None = None,
        *,
        name: str = "form",
        model: Model | None = None,
        template_engine: Any = None,
        csrf_token: str | None = None,
        **overrides: Any,
    ):
        super().__init__()
        config = config or FormConfig.from_settings()
        self.config = config.model_copy(update=overrides) if overrides else config
        self.short_name = name
        self.name = name
        self.fields = FieldRegistry()
        self.model: Model | None = None
        self.layout: GenericLayout | None = None
        self.button_save: View | None = None
        self.display_rules: Rules = {}
        self.state = SubmitState.IDLE
        self.csrf_token = csrf_token
        self._submit_handlers: list[SubmitHandler] = []
        self._template_engine = template_engine

        if self.config.css_class:
            self.add_class(*self.config.css_class.split())

        self._init_layout()
        if model is not None:
            self.set_model(model)

    # -- Setup --

    def _init_layout(self) -> None:
        seed = self.config.layout
        if isinstance(seed, View):
            layout = seed
            layout.form = self
        elif seed is None or isinstance(seed, (Seed, str, type, list, tuple, dict)):
            layout = layouts.create(seed, {"form": self}, default_tag="Generic")
        else:
            raise ConfigurationError(
                "Unsupported form layout seed. Use a tag, class, list, dict, Seed or View",
                layout=seed,
            )
        if not hasattr(layout, "add_field"):
            raise ConfigurationError("Form layout must be able to add fields", layout=layout)

        self.layout = self.add(layout, short_name="layout")

        self.button_save = self.layout.add_button(Button("Save", classes=["primary"]))
        self.button_save.set_attr("tabindex", 0)
        self.button_save.on("click", self.js().form("submit"))
        self.button_save.on(
            "keypress",
            JsExpression("if (event.keyCode === 13){[]}", [JsChain(self).form("submit")]),
        )

    def update_config(self, **changes: Any) -> Form:
        self.config = self.config.model_copy(update=changes)
        return self

    def set_api_config(self, config: dict[str, Any]) -> Form:
        """Merge options into the client API call made on submit."""
        return self.update_config(api_config={**self.config.api_config, **config})

    def set_form_config(self, config: dict[str, Any]) -> Form:
        """Merge options into the client form plugin setup."""
        return self.update_config(form_config={**self.config.form_config, **config})

    def ensure_model(self) -> Model:
        if self.model is None:
            self.model = ProxyModel()
        return self.model

    def set_model(self, model: Model, fields: list[str] | None = None) -> Model:
        """Bind a model and add decorators for its editable fields (or just ``fields``)."""
        self.model = model
        try:
            self.layout.set_model(model, fields)
        except FormworkError as e:
            raise e.add_more_info("model", model)
        return model

    def on_submit(self, handler: SubmitHandler) -> SubmitHandler:
        """Subscribe a handler to submissions; usable as a decorator."""
        self._submit_handlers.append(handler)
        return handler

    # -- Fields --

    def add_field(self, name: str, decorator: Any = None, field: Field | dict | None = None) -> FieldDecorator:
        self.ensure_model()
        return self.layout.add_field(name, decorator, field)

    def add_header(self, title: str | None = None) -> View:
        return self.layout.add_header(title)

    def add_group(self, title: str | dict | None = None) -> View:
        return self.layout.add_group(title)

    def add_layout_view(self, view: Any, has_divider: bool = True) -> View:
        """Put an arbitrary view into the layout, followed by a hidden divider."""
        if self.layout is None:
            raise ConfigurationError("Layout needs to be initialized prior to adding a view")
        added = self.layout.add(view)
        if has_divider:
            self.layout.add(View(ui="hidden divider"), short_name="divider")
        return added

    def enable_add_field(self, view: View, layout: Any = "Generic") -> View:
        """Give a non-layout view its own layout so fields can be added inside it."""
        return view.add(layouts.create(layout, {"form": self}, default_tag="Generic"))

    def get_field(self, name: str) -> FieldDecorator:
        return self.fields[name]

    def decorator_factory(self, field: Field, seed: Any = None) -> FieldDecorator:
        """Build the decorator for a model field.

        The first seed to name a widget wins: the explicit ``seed``, then the
        field's ``ui["form"]``, then ``type_to_decorator``, then a fallback
        that picks a dropdown for enum, values or reference fields.
        """
        if not isinstance(field, Field):
            raise ConfigurationError("Argument 1 for decorator_factory must be a Field", field=field)

        fallback: Any = "Line"
        if field.type != "boolean":
            if field.enum:
                fallback = ["DropDown", {"values": {value: value for value in field.enum}}]
            elif field.values:
                fallback = ["DropDown", {"values": field.values}]
            elif field.reference is not None:
                fallback = ["DropDown", {"model": field.reference.ref_model()}]

        merged = merge_seeds(
            seed,
            field.ui.get("form"),
            self.type_to_decorator.get(field.type) if field.type else None,
            fallback,
        )

        defaults: dict[str, Any] = {
            "form": self,
            "field": field,
            "short_name": field.short_name,
            "readonly": field.read_only,
        }
        for key in ("hint", "placeholder"):
            if field.ui.get(key):
                defaults[key] = field.ui[key]

        return decorators.create(merged, defaults, default_tag="Line")

    # -- JavaScript --

    def error(self, field: str, message: str) -> JsChain:
        """Client action that attaches a validation prompt to a field."""
        return self.js().form("add prompt", field, message)

    def success(self, message: str = "Success", sub_header: str | None = None) -> JsChain:
        """Client action that replaces the form with a success message."""
        template_type = self.config.success_template.removesuffix(".html")
        html = Template(template_type, self.name).try_render(
            self.template_engine, header=message, message=sub_header
        )
        if html is None:
            raise ConfigurationError("Success template not found", template=self.config.success_template)
        return self.js().html(html)

    def js_input(self, name: str) -> JsChain:
        return self.fields[name].js().find("input")

    def js_field(self, name: str) -> JsChain:
        return self.fields[name].js()

    def set_fields_display_rules(self, rules: dict[str, Any] | None = None) -> Form:
        """Show each target field only while its rules hold."""
        self.display_rules = normalize_rules(rules or {})
        return self

    def set_group_display_rules(self, rules: dict[str, Any] | None = None, selector: str | None = None) -> Form:
        """Like ``set_fields_display_rules`` but hides the enclosing group."""
        self.set_fields_display_rules(rules)
        return self.update_config(
            field_display_selector=selector or get_settings().forms.group_display_selector
        )

    def js_actions(self) -> list[JsExpression]:
        actions = super().js_actions()
        api = {"url": self.config.submit_url, "method": "POST", "serializeForm": True, **self.config.api_config}
        setup = {"inline": True, "on": "blur", **self.config.form_config}
        actions.append(JsChain(self).api(api).form(setup))
        actions.append(
            JsChain(self).on(
                "change",
                "input",
                JsFunction([JsChain(self).form("remove prompt", JsExpression('$(this).attr("name")'))]),
            )
        )
        if self.display_rules:
            actions.append(
                ConditionalDisplay(self, self.display_rules, self.config.field_display_selector).js()
            )
        return actions

    # -- Rendering --

    @property
    def template_engine(self) -> Any:
        return self._template_engine or get_template_environment()

    def render_content(self) -> Markup:
        html = super().render_content()
        html += Markup('<input name="%s_submit" value="submit" style="display:none">') % self.name
        if self.csrf_token:
            html += csrf_field(self.csrf_token)
        return html

    def render_element(self) -> Markup:
        return super().render()

    def render_script(self) -> Markup:
        body = self.render_js()
        return Markup(f"<script>\n$(function () {{\n{body}\n}});\n</script>")

    def render(self) -> Markup:
        """Form markup plus its on-ready script.

        A ``form-<name>.html`` or ``form.html`` template, when present, takes
        over the layout; it receives the form as ``form``.
        """
        if self.display_rules:
            check_rules(self.display_rules, self.fields)
        rendered = Template("form", self.name).try_render(self.template_engine, form=self)
        if rendered is not None:
            return Markup(rendered)
        return self.render_element() + self.render_script()

    # -- Submission --

    async def load_post(self, ctx: SubmitContext) -> None:
        """Cast posted values onto the model; all or nothing.

        Read-only and disabled decorators are skipped. Every failing field is
        reported at once through ``ValidationError.errors``.
        """
        model = self.ensure_model()
        post = await hooks.apply_filters(FORM_LOAD_POST, dict(ctx.data), self)

        values: dict[str, Any] = {}
        errors: dict[str, str] = {}
        for name, decorator in self.fields.items():
            if decorator.readonly or decorator.disabled:
                continue
            field = decorator.field or model.get_field(name)
            if field.read_only:
                errors[name] = "Attempting to change read-only field"
                continue
            try:
                values[name] = ui_persistence.typecast_load_field(field, post.get(name))
            except FormworkError as e:
                errors[name] = e.message

        if errors:
            raise ValidationError(errors)

        for name, value in values.items():
            model.set(name, value)

    async def _process(self, ctx: SubmitContext) -> SubmitResponse:
        await self.load_post(ctx)
        self.state = SubmitState.VALIDATED
        await hooks.do_action(FORM_SUBMITTED, self, ctx)

        results = []
        with capture_output() as output:
            for handler in self._submit_handlers:
                results.append(await _call_handler(handler, ctx))

        if output.getvalue():
            logger.warning("Form %s: submit handler wrote directly to output", self.name)
            message = Message("Direct Output Detected", text=output.getvalue(), classes=["error"])
            return SubmitResponse(success=False, message=message.render(), kind=ErrorKind.DIRECT_OUTPUT)

        results = [result for result in results if result is not None]
        if results:
            return self._to_response(results[0] if len(results) == 1 else results)

        model = self.ensure_model()
        if isinstance(model, ProxyModel):
            return SubmitResponse.from_actions(
                [JsExpression("console.log([])", ["Form submission is not handled"])]
            )

        await model.save()
        await hooks.do_action(FORM_SAVED, self, model)
        return SubmitResponse.from_actions([self.success("Form data has been saved")])

    def _to_response(self, result: Any) -> SubmitResponse:
        if isinstance(result, SubmitResponse):
            return result
        if isinstance(result, dict):
            return SubmitResponse(success=bool(result.get("success", True)), payload=result)
        if isinstance(result, (JsExpression, str)):
            return SubmitResponse.from_actions([result])
        if isinstance(result, View):
            return SubmitResponse.from_actions([self.js().html(result.render()), *result.collect_js()])
        if isinstance(result, (list, tuple)):
            actions = []
            for item in result:
                if isinstance(item, View):
                    actions.append(self.js().html(item.render()))
                    actions.extend(item.collect_js())
                elif isinstance(item, (JsExpression, str)):
                    actions.append(item)
                else:
                    raise FormworkError("Unsupported submit handler result", result=item)
            return SubmitResponse.from_actions(actions)
        raise FormworkError("Unsupported submit handler result", result=result)

    async def handle_submit(self, ctx: SubmitContext) -> SubmitResponse:
        """Run the whole submission and describe the outcome for the client."""
        self.state = SubmitState.SUBMITTED
        with observability.span("form.submit", form=self.name):
            try:
                return await self._process(ctx)
            except ValidationError as e:
                self.state = SubmitState.REJECTED
                logger.debug("Form %s rejected: %s", self.name, e.errors)
                observability.record_rejection(self.name, e.errors)
                return SubmitResponse.from_actions(
                    [self.error(name, message) for name, message in e.errors.items()],
                    success=False,
                    errors=e.errors,
                    kind=ErrorKind.VALIDATION,
                )
            except FormworkError as e:
                self.state = SubmitState.REJECTED
                logger.exception("Form %s submission failed", self.name)
                observability.record_failure(self.name, ErrorKind.FRAMEWORK.value)
                return SubmitResponse(
                    success=False, message=error_block(e), use_window=True, kind=ErrorKind.FRAMEWORK
                )
            except Exception as e:
                self.state = SubmitState.REJECTED
                logger.exception("Form %s submission raised", self.name)
                observability.record_failure(self.name, ErrorKind.GENERIC.value)
                return SubmitResponse(
                    success=False, message=error_block(e), use_window=False, kind=ErrorKind.GENERIC
                )
