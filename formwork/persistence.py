"""Conversion between posted strings and typed field values."""

from __future__ import annotations

import enum
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from formwork.data.model import Field
from formwork.lib.exceptions import FieldValueError

TRUE_STRINGS = ("1", "true", "t", "yes", "y", "on")
FALSE_STRINGS = ("0", "false", "f", "no", "n", "off", "")


class UIPersistence:
    date_format = "%Y-%m-%d"
    time_format = "%H:%M"
    datetime_format = "%Y-%m-%d %H:%M:%S"

    datetime_formats = [
        "%Y-%m-%d %H:%M:%S",
        "%Y-%m-%d %H:%M",
        "%Y-%m-%dT%H:%M:%S",
        "%Y-%m-%dT%H:%M",
    ]
    time_formats = ["%H:%M:%S", "%H:%M"]

    def typecast_load_field(self, field: Field, value: Any) -> Any:
        """Convert a posted value into the field's Python type.

        Raises FieldValueError with a message suitable for an inline prompt.
        """
        if field.type == "boolean":
            return self._parse_bool(value)

        if isinstance(value, str) and field.type not in (None, "string", "text", "password"):
            value = value.strip()

        if value is None or value == "":
            if field.required:
                raise FieldValueError("Must not be empty", field=field.name)
            return None

        parsed = self._parse(field, value)

        if field.enum is not None and not _in_keys(parsed, field.enum):
            raise FieldValueError("Value is not one of the allowed options", field=field.name, value=value)
        if field.values is not None and not _in_keys(parsed, field.values):
            raise FieldValueError("Value is not one of the allowed options", field=field.name, value=value)
        return parsed

    def typecast_save_field(self, field: Field, value: Any) -> str:
        """Render a typed value back into the string an HTML input expects."""
        if isinstance(value, enum.Enum):
            value = value.value
        if value is None:
            return ""
        if field.type == "boolean":
            return "1" if value else ""
        if isinstance(value, datetime):
            return value.strftime(self.datetime_format)
        if isinstance(value, date):
            return value.strftime(self.date_format)
        if isinstance(value, time):
            return value.strftime(self.time_format)
        if field.type == "money" and isinstance(value, (int, float, Decimal)):
            return f"{Decimal(str(value)):.2f}"
        return str(value)

    def _parse(self, field: Field, value: Any) -> Any:
        if field.type in (None, "string", "text", "password"):
            return str(value)
        if field.type == "integer":
            try:
                return int(value)
            except (TypeError, ValueError):
                raise FieldValueError("Must be an integer", field=field.name, value=value)
        if field.type == "number":
            try:
                return float(value)
            except (TypeError, ValueError):
                raise FieldValueError("Must be numeric", field=field.name, value=value)
        if field.type == "money":
            try:
                return Decimal(str(value).replace(",", "")).quantize(Decimal("0.01"))
            except InvalidOperation:
                raise FieldValueError("Must be a monetary amount", field=field.name, value=value)
        if field.type == "date":
            try:
                return datetime.strptime(value, self.date_format).date()
            except ValueError:
                raise FieldValueError(f"Must be a date ({self.date_format})", field=field.name, value=value)
        if field.type == "datetime":
            return self._parse_formats(field, value, self.datetime_formats, "a date and time")
        if field.type == "time":
            return self._parse_formats(field, value, self.time_formats, "a time").time()
        return value

    def _parse_formats(self, field: Field, value: str, formats: list[str], what: str) -> datetime:
        for fmt in formats:
            try:
                return datetime.strptime(value, fmt)
            except ValueError:
                pass
        raise FieldValueError(f"Must be {what}", field=field.name, value=value)

    @staticmethod
    def _parse_bool(value: Any) -> bool:
        if value is None:
            return False
        if isinstance(value, bool):
            return value
        s = str(value).strip().lower()
        if s in TRUE_STRINGS:
            return True
        if s in FALSE_STRINGS:
            return False
        raise FieldValueError(f"{value} is not a valid boolean value", value=value)


def _in_keys(value: Any, values: Iterable) -> bool:
    """Posted keys arrive as strings; compare loosely against typed keys."""
    return value in values or str(value) in {str(k) for k in values}


ui_persistence = UIPersistence()
