"""Demo application: a contact form with conditional fields.

Run with ``formwork serve`` and open http://127.0.0.1:8080/contact.
"""

from __future__ import annotations

import logging
from typing import Literal

from litestar import Request
from pydantic import BaseModel, Field

from formwork.app_factory import create_app
from formwork.controller import create_form_controller
from formwork.data import Model, SchemaModel
from formwork.form import Form

logger = logging.getLogger(__name__)


class ContactMessage(BaseModel):
    name: str = Field(json_schema_extra={"placeholder": "Jane Doe"})
    email: str = Field(json_schema_extra={"hint": "We only use it to reply"})
    topic: Literal["general", "support", "sales"] = "general"
    order_number: str | None = Field(default=None, json_schema_extra={"label": "Order number"})
    wants_callback: bool = False
    phone: str | None = None
    message: str = Field(json_schema_extra={"widget": "textarea"})


def log_message(model: Model) -> None:
    logger.info("Contact message from %s <%s>", model["name"], model["email"])


def build_contact_form(request: Request) -> Form:
    form = Form(name="contact")
    form.set_model(SchemaModel(ContactMessage, persister=log_message))
    form.set_fields_display_rules(
        {
            "order_number": {"topic": "isExactly[support]"},
            "phone": {"wants_callback": "checked"},
        }
    )
    return form


ContactController = create_form_controller("/contact", build_contact_form, title="Contact us")

app = create_app([ContactController])
