"""Field decorators: the widget a form renders for one model field.

Each decorator renders its own ``.field`` container (label, input, hint) so
the conditional display plugin can show or hide it as a unit.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from markupsafe import Markup, escape

from formwork.data.model import Field, Model
from formwork.factory import decorators
from formwork.lib.js import JsExpression
from formwork.persistence import ui_persistence
from formwork.view import View, render_attrs

if TYPE_CHECKING:
    from formwork.form import Form


class FieldDecorator(View):
    """Base widget bound to a form and a model field.

        {{ decorator }}                - full group (label + input + hint)
        {{ decorator.render_input() }} - just the input element
    """

    form: Form | None = None
    field: Field | None = None
    caption: str | None = None
    hint: str | None = None
    placeholder: str | None = None
    readonly: bool = False
    disabled: bool = False
    input_type = "text"

    # -- Properties --

    @property
    def input_id(self) -> str:
        return f"{self.id}_input"

    @property
    def label(self) -> str:
        if self.caption:
            return self.caption
        if self.field is not None:
            return self.field.label
        return (self.short_name or "").replace("_", " ").title()

    @property
    def required(self) -> bool:
        return bool(self.field is not None and self.field.required)

    @property
    def raw_value(self) -> Any:
        if self.form is None or self.form.model is None:
            return None
        return self.form.model.get(self.short_name)

    @property
    def value(self) -> str:
        """Current model value as the string an HTML input expects."""
        if self.field is None:
            return "" if self.raw_value is None else str(self.raw_value)
        return ui_persistence.typecast_save_field(self.field, self.raw_value)

    def input_attrs(self, **extra: Any) -> dict[str, Any]:
        return {
            "id": self.input_id,
            "name": self.short_name,
            "placeholder": self.placeholder,
            "readonly": self.readonly,
            "disabled": self.disabled,
            **self.attrs,
            **extra,
        }

    # -- Rendering --

    def label_tag(self) -> Markup:
        return Markup('<label for="%s">%s</label>') % (self.input_id, self.label)

    def render_input(self) -> Markup:
        attrs = self.input_attrs(type=self.input_type, value=self.value)
        return Markup(f"<input{render_attrs(attrs)}>")

    def render_hint(self) -> Markup:
        if not self.hint:
            return Markup("")
        return Markup('<div class="ui pointing label">%s</div>') % self.hint

    def container_classes(self) -> list[str]:
        classes = ["field"]
        if self.required:
            classes.append("required")
        if self.disabled:
            classes.append("disabled")
        return classes + self.classes

    def render(self) -> Markup:
        html = Markup('<div id="%s" class="%s">') % (self.id, " ".join(self.container_classes()))
        html += self.label_tag() + self.render_input() + self.render_hint()
        return html + Markup("</div>")

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.short_name!r}, value={self.value!r})"


decorators.base = FieldDecorator


@decorators.register("Line")
class Line(FieldDecorator):
    pass


@decorators.register("Password")
class Password(FieldDecorator):
    input_type = "password"

    @property
    def value(self) -> str:
        return ""


@decorators.register("Hidden")
class Hidden(FieldDecorator):
    input_type = "hidden"

    def render(self) -> Markup:
        return self.render_input()


@decorators.register("Money")
class Money(FieldDecorator):
    currency = "€"

    def render_input(self) -> Markup:
        attrs = self.input_attrs(type="text", value=self.value)
        return Markup(
            '<div class="ui labeled input"><div class="ui label">%s</div>%s</div>'
        ) % (self.currency, Markup(f"<input{render_attrs(attrs)}>"))


@decorators.register("TextArea")
class TextArea(FieldDecorator):
    rows = 2

    def render_input(self) -> Markup:
        attrs = self.input_attrs(rows=self.rows)
        return Markup(f"<textarea{render_attrs(attrs)}>{escape(self.value)}</textarea>")


@decorators.register("CheckBox")
class CheckBox(FieldDecorator):
    """Checkbox; an unchecked box posts nothing, which loads as False."""

    def render(self) -> Markup:
        attrs = self.input_attrs(type="checkbox", value="1", checked=bool(self.raw_value))
        html = Markup('<div id="%s" class="%s">') % (self.id, " ".join(self.container_classes()))
        html += Markup('<div class="ui checkbox">')
        html += Markup(f"<input{render_attrs(attrs)}>") + self.label_tag()
        html += Markup("</div>") + self.render_hint()
        return html + Markup("</div>")

    def js_actions(self) -> list[JsExpression]:
        return [*super().js_actions(), JsExpression("$([]).find([]).checkbox()", [f"#{self.id}", ".ui.checkbox"])]


@decorators.register("DropDown")
class DropDown(FieldDecorator):
    """Select box fed by ``values`` ({key: title}) or a related ``model``."""

    values: dict | None = None
    model: Model | None = None
    empty: str | None = "..."

    def choices(self) -> list[tuple[Any, str]]:
        if self.values is not None:
            return [(key, str(title)) for key, title in self.values.items()]
        if self.model is not None:
            return self.model.choices()
        return []

    def render_input(self) -> Markup:
        attrs = self.input_attrs(class_="ui dropdown")
        html = Markup(f"<select{render_attrs(attrs)}>")
        if self.empty is not None:
            html += Markup('<option value="">%s</option>') % self.empty
        current = self.value
        for key, title in self.choices():
            selected = Markup(" selected") if str(key) == current else Markup("")
            html += Markup('<option value="%s"%s>%s</option>') % (str(key), selected, title)
        return html + Markup("</select>")


@decorators.register("Calendar")
class Calendar(FieldDecorator):
    """Date, time or datetime picker backed by the client calendar plugin."""

    type = "datetime"
    ampm = True

    input_types = {"date": "date", "time": "time", "datetime": "text"}

    def render_input(self) -> Markup:
        attrs = self.input_attrs(type=self.input_types.get(self.type, "text"), value=self.value)
        return Markup('<div class="ui calendar"><div class="ui input left icon">'
                      '<i class="calendar icon"></i>%s</div></div>') % Markup(f"<input{render_attrs(attrs)}>")

    def js_actions(self) -> list[JsExpression]:
        setup = JsExpression(
            "$([]).find([]).calendar([])",
            [f"#{self.id}", ".ui.calendar", {"type": self.type, "ampm": self.ampm}],
        )
        return [*super().js_actions(), setup]
