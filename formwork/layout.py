"""Form layouts: where fields, headers, groups and buttons go."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable

from markupsafe import Markup

from formwork.data.model import Field, Model
from formwork.factory import layouts, views
from formwork.fields import FieldDecorator
from formwork.lib.exceptions import ConfigurationError
from formwork.view import Header, View

if TYPE_CHECKING:
    from formwork.form import Form


@layouts.register("Generic")
class GenericLayout(View):
    """Stacks fields in the order they are added.

    Buttons always render after the fields. A layout created by
    ``add_group()`` renders as a titled ``atk-form-group`` whose fields sit
    side by side.
    """

    form: Form | None = None
    label: str | None = None
    group: bool = False

    def __init__(self, content: Any = None, **options: Any):
        super().__init__(content, **options)
        self.buttons: list[View] = []

    def _require_form(self) -> Form:
        if self.form is None:
            raise ConfigurationError("Layout is not attached to a form", layout=self.name)
        return self.form

    def add_field(
        self,
        name: str,
        decorator: Any = None,
        field: Field | dict | None = None,
    ) -> FieldDecorator:
        """Add a field decorator, creating the model field when the model lacks it."""
        form = self._require_form()
        model = form.ensure_model()

        if model.has_field(name):
            model_field = model.get_field(name)
        elif isinstance(field, Field):
            model_field = model.register_field(field)
        else:
            model_field = model.add_field(name, **(field or {}))

        instance = form.decorator_factory(model_field, decorator)
        form.fields.register(name, instance)
        self.add(instance, short_name=name)
        return instance

    def add_header(self, title: str | None = None) -> View:
        return self.add(Header(title))

    def add_group(self, title: str | dict | None = None) -> GenericLayout:
        options = dict(title) if isinstance(title, dict) else {"label": title}
        options.setdefault("form", self.form)
        return self.add(GenericLayout(group=True, **options), short_name="group")

    def add_button(self, seed: Any) -> View:
        button = seed if isinstance(seed, View) else views.create(seed, default_tag="Button")
        self.add(button, short_name="button")
        self.buttons.append(button)
        return button

    def set_model(self, model: Model, fields: Iterable[str] | None = None) -> Model:
        """Add a decorator for each named field, or for every editable one."""
        names = model.get_editable_fields() if fields is None else list(fields)
        for name in names:
            self.add_field(name)
        return model

    def render_content(self) -> Markup:
        html = Markup("")
        for child in self.children:
            if child not in self.buttons:
                html += child.render()
        for button in self.buttons:
            html += button.render()
        return html

    def render(self) -> Markup:
        if not self.group:
            return super().render()
        html = Markup('<div id="%s" class="atk-form-group">') % self.id
        if self.label:
            html += Markup("<label>%s</label>") % self.label
        html += Markup('<div class="fields">') + self.render_content() + Markup("</div>")
        return html + Markup("</div>")
