"""Tests for the generic layout and layout-related Form helpers."""

import pytest

from formwork.data.model import Field, Model, ProxyModel
from formwork.fields import Line
from formwork.form import Form
from formwork.layout import GenericLayout
from formwork.lib.exceptions import ConfigurationError
from formwork.view import View


@pytest.fixture
def form():
    return Form(name="f")


class TestAddField:
    def test_without_model_creates_proxy_field(self, form):
        decorator = form.add_field("email", field={"type": "string", "required": True})
        assert isinstance(form.model, ProxyModel)
        assert form.model.get_field("email").required
        assert form.fields["email"] is decorator
        assert decorator.name == "f_layout_email"

    def test_uses_existing_model_field(self, form):
        model = Model([Field("age", type="integer")])
        form.model = model
        form.add_field("age")
        assert form.fields["age"].field is model.get_field("age")

    def test_accepts_field_object(self, form):
        field = Field("note", type="text")
        decorator = form.add_field("note", field=field)
        assert decorator.field is field

    def test_duplicate_name_fails(self, form):
        form.add_field("email")
        with pytest.raises(ConfigurationError):
            form.add_field("email")


class TestSetModel:
    def test_adds_every_editable_field(self, form):
        model = Model([Field("id", system=True), Field("name"), Field("stamp", read_only=True)])
        form.set_model(model)
        assert list(form.fields) == ["name"]

    def test_restricts_to_listed_fields(self, form):
        model = Model([Field("a"), Field("b"), Field("c")])
        form.set_model(model, ["c", "a"])
        assert list(form.fields) == ["c", "a"]

    def test_errors_carry_the_model(self, form):
        model = Model([Field("a")])
        with pytest.raises(ConfigurationError) as exc_info:
            form.set_model(model, ["a", "a"])
        assert exc_info.value.info["model"] is model


class TestRendering:
    def test_buttons_render_after_fields(self, form):
        form.add_field("name")
        html = str(form.layout.render())
        assert html.index('name="name"') < html.index(">Save</button>")

    def test_group_renders_title_and_fields(self, form):
        group = form.add_group("Address")
        group.add_field("city")
        group.add_field("zip")
        html = str(group.render())
        assert html.startswith(f'<div id="{group.id}" class="atk-form-group"><label>Address</label>')
        assert '<div class="fields">' in html
        assert isinstance(form.fields["city"], Line)

    def test_group_accepts_options_dict(self, form):
        group = form.add_group({"label": "Contact", "classes": ["two"]})
        assert group.label == "Contact"
        assert group.group

    def test_header(self, form):
        header = form.add_header("Details")
        assert "Details" in header.render()


class TestLayoutViews:
    def test_add_layout_view_adds_divider(self, form):
        view = form.add_layout_view(View("Note"))
        names = [child.short_name for child in form.layout.children]
        assert names.index(view.short_name) + 1 == names.index("divider")
        assert "ui hidden divider" in form.layout.get_element("divider").render()

    def test_add_layout_view_without_divider(self, form):
        form.add_layout_view(View("Note"), has_divider=False)
        assert all(child.short_name != "divider" for child in form.layout.children)

    def test_enable_add_field_on_plain_view(self, form):
        column = form.add_layout_view(View(ui="segment"), has_divider=False)
        layout = form.enable_add_field(column)
        assert isinstance(layout, GenericLayout)
        layout.add_field("inside")
        assert "inside" in form.fields


class TestLayoutSeeds:
    def test_layout_instance_is_adopted(self):
        layout = GenericLayout()
        form = Form(name="f", layout=layout)
        assert form.layout is layout
        assert layout.form is form

    def test_layout_seed_with_options(self):
        form = Form(name="f", layout=["Generic", {"classes": ["compact"]}])
        assert "compact" in form.layout.classes

    def test_unsupported_layout_seed_fails(self):
        with pytest.raises(ConfigurationError):
            Form(name="f", layout=42)

    def test_save_button_is_wired(self):
        form = Form(name="f")
        assert form.button_save.attrs["tabindex"] == 0
        code = [action.render() for action in form.button_save.js_actions()]
        assert code[0] == '$("#f_layout_button").on("click", function(event) { $("#f").form("submit"); })'
        assert "event.keyCode === 13" in code[1]
