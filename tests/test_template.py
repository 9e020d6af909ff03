"""Tests for template resolution and the template environment."""

import jinja2

from formwork.lib.template import (
    PACKAGE_TEMPLATE_DIR,
    Template,
    get_template_config,
    get_template_directories,
    get_template_environment,
)


def engine(templates):
    return jinja2.Environment(loader=jinja2.DictLoader(templates))


class TestNames:
    def test_without_slugs(self):
        assert Template("form").names == ["form.html"]

    def test_slugs_narrow_then_widen(self):
        assert Template("form-success", "shop", "checkout").names == [
            "form-success-shop-checkout.html",
            "form-success-shop.html",
            "form-success.html",
        ]


class TestTryRender:
    def test_most_specific_template_wins(self):
        templates = engine({"form-contact.html": "contact", "form.html": "generic"})
        assert Template("form", "contact").try_render(templates) == "contact"

    def test_falls_back_to_generic(self):
        templates = engine({"form.html": "generic {{ name }}"})
        assert Template("form", "contact").try_render(templates, name="x") == "generic x"

    def test_none_when_nothing_matches(self):
        assert Template("form", "contact").try_render(engine({})) is None

    def test_call_context_overrides_stored_context(self):
        templates = engine({"form.html": "{{ a }}{{ b }}"})
        template = Template("form", context={"a": 1, "b": 2})
        assert template.try_render(templates, b=3) == "13"


class TestEnvironment:
    def test_package_directory_is_searched_last(self):
        directories = get_template_directories()
        assert directories[-1] == PACKAGE_TEMPLATE_DIR
        assert (PACKAGE_TEMPLATE_DIR / "form-success.html").exists()

    def test_configured_directories_come_first(self, temp_app_yaml, tmp_path):
        temp_app_yaml({"forms": {"template_dirs": [str(tmp_path / "themes")]}})
        assert get_template_directories()[0] == tmp_path / "themes"

    def test_environment_renders_package_templates(self):
        html = get_template_environment().get_template("form-success.html").render(header="<Done>")
        assert "&lt;Done&gt;" in html
        assert "<p>" not in html

    def test_litestar_template_config(self):
        config = get_template_config()
        assert list(config.directory)[-1] == PACKAGE_TEMPLATE_DIR
