"""Tests for the form page and submit endpoints served through Litestar."""

import re

import pytest
from litestar.testing import TestClient

from formwork.app_factory import create_app, create_session_config
from formwork.config import Settings
from formwork.controller import SESSION_EXPIRED_MESSAGE, create_form_controller
from formwork.data.model import Field, Model
from formwork.form import Form
from formwork.lib.exceptions import ConfigurationError

TOKEN_PATTERN = re.compile(r'name="_csrf" value="([^"]+)"')


@pytest.fixture
def saved():
    return []


@pytest.fixture
def client(saved):
    def build_form(request):
        form = Form(name="person")
        form.set_model(
            Model(
                [Field("name", type="string", required=True), Field("age", type="integer")],
                persister=lambda m: saved.append(dict(m.data)),
            )
        )
        return form

    async def build_broken_form(request):
        raise ConfigurationError("Form is misconfigured")

    app = create_app(
        [
            create_form_controller("/person", build_form, title="Person"),
            create_form_controller("/broken", build_broken_form),
        ],
        settings=Settings(debug=True, secret_key="test-secret"),
    )
    with TestClient(app=app) as client:
        yield client


def get_token(client, path="/person"):
    page = client.get(path)
    return TOKEN_PATTERN.search(page.text).group(1)


class TestPage:
    def test_page_renders_form_and_script(self, client):
        response = client.get("/person")
        assert response.status_code == 200
        assert '<form id="person" class="ui form">' in response.text
        assert '"url": "/person/submit"' in response.text
        assert "<title>Person</title>" in response.text
        assert TOKEN_PATTERN.search(response.text)

    def test_configuration_error_is_reported_as_json(self, client):
        response = client.get("/broken")
        assert response.status_code == 500
        assert response.json()["detail"] == "Form is misconfigured"


class TestSubmit:
    def test_valid_submission_saves(self, client, saved):
        token = get_token(client)
        response = client.post("/person/submit", data={"_csrf": token, "name": "Ann", "age": "41"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert "Form data has been saved" in body["js"]
        assert body["csrfToken"] != token
        assert saved == [{"name": "Ann", "age": 41}]

    def test_invalid_submission_returns_errors(self, client, saved):
        token = get_token(client)
        response = client.post("/person/submit", data={"_csrf": token, "name": "Ann", "age": "abc"})

        body = response.json()
        assert body["success"] is False
        assert body["errors"] == {"age": "Must be an integer"}
        assert body["useWindow"] is False
        assert saved == []

    def test_missing_token_is_rejected(self, client, saved):
        client.get("/person")
        response = client.post("/person/submit", data={"name": "Ann"})

        assert response.status_code == 403
        assert response.json() == {
            "success": False,
            "message": SESSION_EXPIRED_MESSAGE,
            "useWindow": False,
        }
        assert saved == []

    def test_token_is_single_use(self, client):
        token = get_token(client)
        client.post("/person/submit", data={"_csrf": token, "name": "Ann"})
        response = client.post("/person/submit", data={"_csrf": token, "name": "Ann"})
        assert response.status_code == 403


def test_session_config_derives_fixed_length_secret():
    config = create_session_config("short")
    assert len(config.secret) == 32
    assert config.httponly is True
