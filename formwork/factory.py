"""Seeds and the registries that turn them into objects.

A seed names what to build and how to configure it:

    Seed("DropDown", {"values": {"a": "A"}})
    "Line"                         # just a tag
    ["Calendar", {"type": "date"}] # tag plus options
    {"caption": "Name"}            # options only, tag decided elsewhere
    Line(caption="Name")           # a ready-made instance

Registries map tags to constructors explicitly; nothing is looked up by
module path.
"""

from __future__ import annotations

import dataclasses
from typing import Any, Callable, Mapping

from formwork.lib.exceptions import ConfigurationError


@dataclasses.dataclass(frozen=True)
class Seed:
    tag: str | type | None = None
    options: Mapping[str, Any] = dataclasses.field(default_factory=dict)
    instance: Any = None

    @classmethod
    def coerce(cls, value: Any) -> Seed | None:
        if value is None:
            return None
        if isinstance(value, Seed):
            return value
        if isinstance(value, (str, type)):
            return cls(tag=value)
        if isinstance(value, (list, tuple)):
            items = list(value)
            tag = items.pop(0) if items and isinstance(items[0], (str, type)) else None
            options: dict[str, Any] = {}
            for item in items:
                if isinstance(item, dict):
                    options.update(item)
                elif isinstance(item, tuple) and len(item) == 2 and isinstance(item[0], str):
                    options[item[0]] = item[1]
                else:
                    raise ConfigurationError("Seed lists may only hold a tag, option dicts and (key, value) pairs", seed=value)
            return cls(tag=tag, options=options)
        if isinstance(value, dict):
            options = dict(value)
            return cls(tag=options.pop("tag", None), options=options)
        if hasattr(value, "__dict__") and not callable(value):
            return cls(instance=value)
        raise ConfigurationError("Seed must be a string, list, dict, class or object", seed=value)


def merge_seeds(*seeds: Any) -> Seed:
    """Merge seeds in priority order; the first one to name a tag decides the tag.

    Options from later seeds only fill gaps, and only when that seed names
    the same tag or none at all. An instance wins outright and receives the
    options of the seeds before it.
    """
    coerced = [s for s in (Seed.coerce(raw) for raw in seeds) if s is not None]

    for i, seed in enumerate(coerced):
        if seed.instance is not None:
            options: dict[str, Any] = {}
            for earlier in coerced[:i]:
                for key, value in earlier.options.items():
                    options.setdefault(key, value)
            return Seed(tag=None, options=options, instance=seed.instance)

    tag = next((s.tag for s in coerced if s.tag is not None), None)
    options = {}
    for seed in coerced:
        if seed.tag is not None and seed.tag != tag:
            continue
        for key, value in seed.options.items():
            options.setdefault(key, value)
    return Seed(tag=tag, options=options)


def configure(obj: Any, options: Mapping[str, Any], *, passively: bool = False) -> Any:
    """Set attributes the object's class declares.

    Unknown names are rejected. With ``passively`` only attributes still at
    ``None`` are filled.
    """
    for key, value in options.items():
        if not hasattr(type(obj), key):
            raise ConfigurationError(
                f"{type(obj).__name__} has no option '{key}'", option=key, value=value
            )
        if passively and getattr(obj, key, None) is not None:
            continue
        setattr(obj, key, value)
    return obj


class Registry:
    """Explicit tag → constructor mapping for one kind of object."""

    def __init__(self, namespace: str, base: type | None = None):
        self.namespace = namespace
        self.base = base
        self._constructors: dict[str, Callable[..., Any]] = {}

    def register(self, tag: str | None = None, constructor: Callable[..., Any] | None = None):
        """Register a constructor; usable as ``@registry.register("Tag")``."""

        def decorator(cls):
            self._constructors[tag or cls.__name__] = cls
            return cls

        if constructor is not None:
            return decorator(constructor)
        return decorator

    def resolve(self, tag: str | type) -> Callable[..., Any]:
        if isinstance(tag, type):
            if self.base is not None and not issubclass(tag, self.base):
                raise ConfigurationError(
                    f"{tag.__name__} is not a {self.namespace}", tag=tag
                )
            return tag
        try:
            return self._constructors[tag]
        except KeyError:
            available = ", ".join(sorted(self._constructors)) or "(none)"
            raise ConfigurationError(
                f"No {self.namespace} named '{tag}'. Registered: {available}", tag=tag
            )

    def create(self, seed: Any, defaults: Mapping[str, Any] | None = None, default_tag: str | None = None):
        """Build an object from a seed, with ``defaults`` under the seed's options."""
        seed = seed if isinstance(seed, Seed) else merge_seeds(seed)
        defaults = dict(defaults or {})

        if seed.instance is not None:
            obj = seed.instance
            if self.base is not None and not isinstance(obj, self.base):
                raise ConfigurationError(f"Object is not a {self.namespace}", object=obj)
            configure(obj, seed.options)
            return configure(obj, defaults, passively=True)

        tag = seed.tag if seed.tag is not None else default_tag
        if tag is None:
            raise ConfigurationError(f"Seed does not name a {self.namespace}", seed=seed)
        constructor = self.resolve(tag)
        return constructor(**{**defaults, **seed.options})

    def __contains__(self, tag: str) -> bool:
        return tag in self._constructors


views = Registry("view")
layouts = Registry("layout")
decorators = Registry("field decorator")
