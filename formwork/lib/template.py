from functools import lru_cache
from pathlib import Path
from typing import Any

import jinja2
from litestar.plugins.jinja import JinjaTemplateEngine
from litestar.template import TemplateConfig

PACKAGE_TEMPLATE_DIR = Path(__file__).parent.parent / "templates"


class Template:
    """A named template with per-slug overrides.

    ``Template("form-success", "contact")`` renders ``form-success-contact.html``
    when it exists and ``form-success.html`` otherwise. With several slugs the
    longest joined name is tried first.

    Lookup order across directories: ``forms.template_dirs`` from app.yaml,
    then ``./templates``, then the templates shipped with formwork.
    """

    def __init__(self, template_type: str, *slugs: str, context: dict[str, Any] | None = None):
        self.template_type = template_type
        self.slugs = slugs
        self.context = context or {}

    @property
    def names(self) -> list[str]:
        specific = [
            f"{self.template_type}-{'-'.join(self.slugs[:depth])}.html"
            for depth in range(len(self.slugs), 0, -1)
        ]
        return [*specific, f"{self.template_type}.html"]

    def try_render(self, template_engine: jinja2.Environment, **context) -> str | None:
        """Render the most specific template available, or None when none exists."""
        try:
            template = template_engine.select_template(self.names)
        except jinja2.TemplatesNotFound:
            return None
        return template.render(**{**self.context, **context})

    def __repr__(self) -> str:
        return f"Template({', '.join(map(repr, (self.template_type, *self.slugs)))})"


def get_template_directories() -> list[Path]:
    from formwork.config import get_settings

    configured = [Path(d) for d in get_settings().forms.template_dirs]
    return [*configured, Path.cwd() / "templates", PACKAGE_TEMPLATE_DIR]


@lru_cache
def get_template_environment() -> jinja2.Environment:
    """Jinja environment used by forms rendered outside a Litestar request."""
    return jinja2.Environment(
        loader=jinja2.FileSystemLoader([str(d) for d in get_template_directories()]),
        autoescape=jinja2.select_autoescape(["html"]),
    )


def get_template_config() -> TemplateConfig:
    return TemplateConfig(
        directory=get_template_directories(),
        engine=JinjaTemplateEngine,
    )
