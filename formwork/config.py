"""Process settings: ``FORMWORK_*`` environment variables plus an optional app.yaml.

app.yaml holds the per-section defaults, for example:

    forms:
      success_template: thanks.html
      api_defaults:
        stateContext: body
    logfire:
      enabled: true
      environment: $DEPLOY_ENV
"""

import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv(Path.cwd() / ".env")

ENV_REFERENCE = re.compile(r"\$([A-Z_][A-Z0-9_]*)")


def _lookup_env(match: re.Match) -> str:
    name = match.group(1)
    if name not in os.environ:
        raise ValueError(f"app.yaml references ${name}, which is not set")
    return os.environ[name]


def interpolate_env_vars(value: Any) -> Any:
    """Substitute ``$NAME`` references in every string of a parsed YAML tree."""
    if isinstance(value, str):
        return ENV_REFERENCE.sub(_lookup_env, value)
    if isinstance(value, list):
        return [interpolate_env_vars(item) for item in value]
    if isinstance(value, dict):
        return {key: interpolate_env_vars(item) for key, item in value.items()}
    return value


def get_config_path() -> Path:
    configured = os.environ.get("FORMWORK_CONFIG")
    return Path(configured) if configured else Path.cwd() / "app.yaml"


def load_app_config() -> dict:
    path = get_config_path()
    if not path.is_file():
        raise FileNotFoundError(f"No app.yaml at {path}")
    return interpolate_env_vars(yaml.safe_load(path.read_text()) or {})


class FormsConfig(BaseModel):
    """Defaults applied to every form unless the form overrides them."""

    template_dirs: list[str] = []
    success_template: str = "form-success.html"
    field_display_selector: str = ".field"
    group_display_selector: str = ".atk-form-group"
    api_defaults: dict = {}
    form_defaults: dict = {}


class LogfireConfig(BaseModel):
    enabled: bool = False
    service_name: str = "formwork"
    environment: str = ""
    console: bool = False


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="FORMWORK_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    debug: bool = False
    secret_key: str = "change-me"
    session_lifetime: int = 3600

    forms: FormsConfig = FormsConfig()
    logfire: LogfireConfig = LogfireConfig()


# app.yaml sections and the models that validate them
SECTIONS: dict[str, type[BaseModel]] = {
    "forms": FormsConfig,
    "logfire": LogfireConfig,
}


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    try:
        app_config = load_app_config()
    except FileNotFoundError:
        return settings

    overrides = {
        section: model.model_validate(app_config[section])
        for section, model in SECTIONS.items()
        if section in app_config
    }
    return settings.model_copy(update=overrides) if overrides else settings
