"""Shared pytest fixtures."""

from unittest.mock import MagicMock

import pytest
import yaml

from formwork.config import get_settings
from formwork.lib.hooks import hooks
from formwork.lib.template import get_template_environment


@pytest.fixture
def temp_app_yaml(tmp_path, monkeypatch):
    """Write an app.yaml and point FORMWORK_CONFIG at it."""
    config_path = tmp_path / "app.yaml"

    def _create_config(config: dict):
        with open(config_path, "w") as f:
            yaml.safe_dump(config, f)
        monkeypatch.setenv("FORMWORK_CONFIG", str(config_path))
        get_settings.cache_clear()
        return config_path

    yield _create_config
    get_settings.cache_clear()
    get_template_environment.cache_clear()


@pytest.fixture
def clean_hooks():
    """Save and restore hooks state around a test."""
    saved = hooks.snapshot()
    yield
    hooks.restore(saved)


@pytest.fixture
def mock_request_factory():
    """Factory fixture that returns mock requests with a session dict."""
    def _make(session=None, form_data=None):
        request = MagicMock()
        request.session = session if session is not None else {}
        if form_data is not None:
            async def _form():
                return form_data
            request.form = _form
        return request
    return _make
