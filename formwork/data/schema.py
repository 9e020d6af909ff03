"""Records backed by a Pydantic model class.

UI hints come from ``json_schema_extra``:

    class ContactForm(BaseModel):
        name: str = Field(json_schema_extra={"placeholder": "Jane Doe"})
        message: str = Field(json_schema_extra={"widget": "textarea"})
        topic: str = Field(json_schema_extra={"choices": [("a", "Sales"), ("b", "Support")]})
"""

from __future__ import annotations

import enum
import types
import typing
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Callable

from pydantic import BaseModel, SecretStr, ValidationError as PydanticValidationError
from pydantic.fields import FieldInfo

from formwork.data.model import Field, Model
from formwork.lib.exceptions import ValidationError

# Checked in order; datetime must precede date since it subclasses it
_ANNOTATION_TYPES: list[tuple[type, str]] = [
    (bool, "boolean"),
    (int, "integer"),
    (float, "number"),
    (Decimal, "money"),
    (datetime, "datetime"),
    (date, "date"),
    (time, "time"),
    (SecretStr, "password"),
]

_WIDGET_SEEDS = {
    "textarea": "TextArea",
    "select": "DropDown",
    "checkbox": "CheckBox",
    "password": "Password",
    "hidden": "Hidden",
}


def _unwrap_optional(annotation: Any) -> Any:
    origin = typing.get_origin(annotation)
    if origin in (typing.Union, types.UnionType):
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def field_from_info(name: str, info: FieldInfo) -> Field:
    """Translate a Pydantic field into form field metadata."""
    extra = info.json_schema_extra if isinstance(info.json_schema_extra, dict) else {}
    annotation = _unwrap_optional(info.annotation)

    field_type = None
    enum_values = None
    if typing.get_origin(annotation) is typing.Literal:
        enum_values = list(typing.get_args(annotation))
    elif isinstance(annotation, type) and issubclass(annotation, enum.Enum):
        enum_values = [member.value for member in annotation]
    elif isinstance(annotation, type):
        for py_type, candidate in _ANNOTATION_TYPES:
            if issubclass(annotation, py_type):
                field_type = candidate
                break

    ui: dict[str, Any] = {}
    widget = extra.get("widget")
    if widget == "textarea" and field_type is None:
        field_type = "text"
    elif widget in _WIDGET_SEEDS:
        ui["form"] = _WIDGET_SEEDS[widget]
    elif "form" in extra:
        ui["form"] = extra["form"]
    if extra.get("help_text") or extra.get("hint"):
        ui["hint"] = extra.get("hint") or extra.get("help_text")
    if extra.get("placeholder"):
        ui["placeholder"] = extra["placeholder"]

    choices = extra.get("choices")
    required = info.is_required()
    return Field(
        name,
        type=field_type,
        caption=extra.get("label") or info.title,
        enum=enum_values,
        values=dict(choices) if choices else None,
        ui=ui,
        required=required and field_type != "boolean",
        read_only=bool(extra.get("read_only", False)),
        default=None if required else info.get_default(call_default_factory=True),
    )


class SchemaModel(Model):
    """Model whose fields and validation come from a Pydantic model.

    ``save()`` builds a schema instance from the current values; Pydantic
    errors become a ``ValidationError`` keyed by field name, keeping only
    the first error per field.
    """

    def __init__(
        self,
        schema: type[BaseModel],
        instance: BaseModel | None = None,
        *,
        persister: Callable[[Model], Any] | None = None,
    ):
        fields = [field_from_info(name, info) for name, info in schema.model_fields.items()]
        data = instance.model_dump() if instance is not None else {}
        super().__init__(fields, data, persister=persister)
        self.schema = schema
        self.instance = instance

    async def save(self) -> Model:
        try:
            values = {
                name: value
                for name, value in self.data.items()
                if value is not None or (name in self.fields and self.fields[name].required)
            }
            self.instance = self.schema(**values)
        except PydanticValidationError as e:
            errors: dict[str, str] = {}
            for err in e.errors():
                field_name = str(err["loc"][0]) if err["loc"] else "__form__"
                if field_name not in errors:
                    errors[field_name] = err["msg"]
            raise ValidationError(errors)
        return await super().save()
