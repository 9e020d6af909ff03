"""Records backed by a SQLAlchemy mapped class and an async session."""

from __future__ import annotations

import logging
import uuid
from typing import Any

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum,
    Float,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    Uuid,
    inspect,
    select,
)
from sqlalchemy.ext.asyncio import AsyncSession

from formwork.data.model import Field, Model, Reference
from formwork.lib.exceptions import FormworkError

logger = logging.getLogger(__name__)

# Checked in order: Enum and Text subclass String, Float subclasses Numeric
_COLUMN_TYPES: list[tuple[type, str | None]] = [
    (Boolean, "boolean"),
    (Enum, None),
    (Text, "text"),
    (String, "string"),
    (DateTime, "datetime"),
    (Date, "date"),
    (Time, "time"),
    (Float, "number"),
    (Numeric, "money"),
    (Integer, "integer"),
]


def field_from_column(key: str, column) -> Field:
    """Translate a mapped column into form field metadata.

    Column ``info`` may carry ``caption`` and ``ui`` entries.
    """
    field_type = None
    for sa_type, candidate in _COLUMN_TYPES:
        if isinstance(column.type, sa_type):
            field_type = candidate
            break
    # untyped, so decorator_factory falls through to the reference dropdown
    if column.foreign_keys and field_type in ("string", "text"):
        field_type = None

    enum_values = list(column.type.enums) if isinstance(column.type, Enum) else None

    reference = None
    if column.foreign_keys:
        reference = Reference(Model())

    has_default = column.default is not None or column.server_default is not None
    return Field(
        key,
        type=field_type,
        caption=column.info.get("caption"),
        enum=enum_values,
        reference=reference,
        ui=dict(column.info.get("ui", {})),
        required=not column.nullable and not has_default and not column.primary_key,
        system=bool(column.primary_key),
    )


class ORMModel(Model):
    """Model over one SQLAlchemy row.

    Call ``load_choices()`` before rendering when the table has foreign keys
    so reference dropdowns have options.
    """

    def __init__(
        self,
        mapped_class: type,
        instance: Any = None,
        *,
        session: AsyncSession | None = None,
        title_fields: dict[str, str] | None = None,
    ):
        self.mapper = inspect(mapped_class)
        fields = [field_from_column(key, column) for key, column in self.mapper.columns.items()]
        data = {}
        if instance is not None:
            data = {key: getattr(instance, key) for key in self.mapper.columns.keys()}
        super().__init__(fields, data)
        self.mapped_class = mapped_class
        self.instance = instance
        self.session = session
        self.title_fields = title_fields or {}
        self.id_field = self.mapper.primary_key[0].key

    async def load_choices(self, session: AsyncSession | None = None) -> None:
        """Fill each reference field's related model with rows from its table."""
        session = session or self.session
        for key, column in self.mapper.columns.items():
            if not column.foreign_keys:
                continue
            target = next(iter(column.foreign_keys)).column
            result = await session.execute(select(target.table))
            related = self.fields[key].reference.ref_model()
            related.id_field = target.name
            related.title_field = self.title_fields.get(key) or _guess_title(target.table, target.name)
            related.rows = [dict(row) for row in result.mappings().all()]
            logger.debug("Loaded %d choices for %s", len(related.rows), key)

    async def save(self) -> Model:
        if self.session is None:
            raise FormworkError("ORMModel needs a session to save", model=self.mapped_class.__name__)
        if self.instance is None:
            self.instance = self.mapped_class()
        for key, value in self.dirty.items():
            setattr(self.instance, key, _to_column_value(self.mapper.columns[key], value))
        try:
            self.session.add(self.instance)
            await self.session.commit()
            await self.session.refresh(self.instance)
        except Exception:
            await self.session.rollback()
            raise
        self.data = {key: getattr(self.instance, key) for key in self.mapper.columns.keys()}
        return await super().save()


def _guess_title(table, id_column: str) -> str:
    """First string column of the related table, or its key column."""
    for column in table.columns:
        if isinstance(column.type, String) and column.name != id_column:
            return column.name
    return id_column


def _to_column_value(column, value: Any) -> Any:
    """Posted UUID keys arrive as strings."""
    if isinstance(value, str) and isinstance(column.type, Uuid) and column.type.as_uuid:
        try:
            return uuid.UUID(value)
        except ValueError:
            raise FormworkError("Value is not a valid UUID", field=column.key, value=value)
    return value
