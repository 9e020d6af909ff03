"""Tests for the bundled contact form demo."""

from unittest.mock import MagicMock

import pytest

from formwork.demo import ContactMessage, build_contact_form
from formwork.fields import CheckBox, DropDown, TextArea
from formwork.submission import SubmitContext


def test_contact_form_fields():
    form = build_contact_form(MagicMock())
    assert list(form.fields) == list(ContactMessage.model_fields)
    assert type(form.fields["topic"]) is DropDown
    assert type(form.fields["wants_callback"]) is CheckBox
    assert type(form.fields["message"]) is TextArea


def test_contact_form_script_has_display_rules():
    script = str(build_contact_form(MagicMock()).render())
    assert '"order_number": [{"topic": ["isExactly[support]"]}]' in script
    assert '"phone": [{"wants_callback": ["checked"]}]' in script


@pytest.mark.asyncio
async def test_contact_submission_succeeds():
    form = build_contact_form(MagicMock())
    response = await form.handle_submit(
        SubmitContext({"name": "Ann", "email": "ann@example.com", "topic": "support", "message": "Hi"})
    )
    assert response.success
    assert form.model.instance.topic == "support"
