"""Records that forms bind to: typed fields, values, and a persistence hook."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import Any, Callable, Iterable

from formwork.lib.exceptions import ConfigurationError, FormworkError

logger = logging.getLogger(__name__)

FIELD_TYPES = frozenset(
    {
        "string",
        "text",
        "password",
        "integer",
        "number",
        "money",
        "boolean",
        "date",
        "datetime",
        "time",
    }
)


@dataclasses.dataclass
class Reference:
    """Link from a field to a related model whose rows feed a dropdown."""

    model: Any

    def ref_model(self) -> Model:
        if isinstance(self.model, Model):
            return self.model
        return self.model()


@dataclasses.dataclass
class Field:
    """Metadata for one value on a model.

    ``type`` may be left as ``None`` for untyped values, which behave like
    strings. ``ui`` holds presentation hints: ``form`` (a decorator seed),
    ``hint`` and ``placeholder``.
    """

    name: str
    type: str | None = None
    caption: str | None = None
    enum: list | None = None
    values: dict | None = None
    reference: Reference | None = None
    ui: dict = dataclasses.field(default_factory=dict)
    required: bool = False
    read_only: bool = False
    system: bool = False
    default: Any = None

    def __post_init__(self) -> None:
        if self.type is not None and self.type not in FIELD_TYPES:
            raise ConfigurationError("Unsupported field type", field=self.name, type=self.type)

    @property
    def short_name(self) -> str:
        return self.name

    @property
    def editable(self) -> bool:
        return not self.read_only and not self.system

    @property
    def label(self) -> str:
        return self.caption or self.name.replace("_", " ").title()


Persister = Callable[["Model"], Any]


class Model:
    """A record of typed fields.

    Values are kept in ``data``; writes are tracked in ``dirty`` until
    ``save()`` hands the record to the persister. ``rows`` lets a model act
    as the option source for a reference dropdown.
    """

    id_field = "id"
    title_field = "name"

    def __init__(
        self,
        fields: Iterable[Field] = (),
        data: dict[str, Any] | None = None,
        *,
        persister: Persister | None = None,
        rows: Iterable[dict[str, Any]] | None = None,
    ):
        self.fields: dict[str, Field] = {}
        for f in fields:
            self.register_field(f)
        self.data: dict[str, Any] = dict(data or {})
        self.dirty: dict[str, Any] = {}
        self.rows: list[dict[str, Any]] = list(rows or [])
        self._persister = persister

    def register_field(self, field: Field) -> Field:
        if field.name in self.fields:
            raise ConfigurationError("Field with this name is already defined", field=field.name)
        self.fields[field.name] = field
        return field

    def add_field(self, name: str, **kwargs: Any) -> Field:
        return self.register_field(Field(name, **kwargs))

    def has_field(self, name: str) -> bool:
        return name in self.fields

    def get_field(self, name: str) -> Field:
        try:
            return self.fields[name]
        except KeyError:
            available = ", ".join(self.fields) or "(none)"
            raise KeyError(f"No field named '{name}'. Defined: {available}")

    def get(self, name: str, default: Any = None) -> Any:
        if name in self.data:
            return self.data[name]
        field = self.fields.get(name)
        if field is not None and field.default is not None:
            return field.default
        return default

    def set(self, name: str, value: Any) -> None:
        field = self.get_field(name)
        if field.read_only:
            raise FormworkError("Attempting to change read-only field", field=name)
        self.data[name] = value
        self.dirty[name] = value

    def __getitem__(self, name: str) -> Any:
        self.get_field(name)
        return self.get(name)

    def __setitem__(self, name: str, value: Any) -> None:
        self.set(name, value)

    def __contains__(self, name: str) -> bool:
        return name in self.fields

    @property
    def loaded(self) -> bool:
        return self.data.get(self.id_field) is not None

    def get_editable_fields(self) -> list[str]:
        return [name for name, f in self.fields.items() if f.editable]

    def choices(self) -> list[tuple[Any, str]]:
        """(key, title) pairs for every row, in row order."""
        return [
            (row[self.id_field], str(row.get(self.title_field, row[self.id_field])))
            for row in self.rows
        ]

    async def save(self) -> Model:
        if self._persister is not None:
            result = self._persister(self)
            if asyncio.iscoroutine(result):
                await result
        logger.debug("Saved %s with %d changed field(s)", type(self).__name__, len(self.dirty))
        self.dirty.clear()
        return self

    def __repr__(self) -> str:
        return f"{type(self).__name__}(fields={list(self.fields)!r})"


class ProxyModel(Model):
    """Placeholder record for forms built without a real model.

    Fields added to the form land here so decorators always have a backing
    field; it is never persisted.
    """

    async def save(self) -> Model:
        raise FormworkError("ProxyModel cannot be saved; bind a real model with set_model()")
