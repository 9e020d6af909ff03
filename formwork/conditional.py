"""Conditional display rules: show a field only while other fields match.

A rule tree maps a target field to alternatives (OR); each alternative maps
source fields to condition names that must all hold (AND):

    {"contact": {"method": "notEmpty"}}
    {"target": [{"a": ["notEmpty", "number"]}, {"b": "isExactly[5]"}]}

The browser plugin evaluates rules on every change of a source field.
``evaluate()`` applies the same semantics on the server, which keeps the
rule vocabulary checkable and testable.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Iterable, Mapping

from formwork.lib.exceptions import ConfigurationError
from formwork.lib.js import JsChain

Branch = dict[str, list[str]]
Rules = dict[str, list[Branch]]

_CONDITION = re.compile(r"^(?P<name>[A-Za-z]+)(?:\[(?P<arg>.*)\])?$")
_NUMBER = re.compile(r"-?\d+(\.\d+)?")
_INTEGER = re.compile(r"[-+]?\d+")
_DECIMAL = re.compile(r"[-+]?(\d*\.)?\d+")
_EMAIL = re.compile(r"[^@\s]+@[^@\s]+\.[^@\s]+")
_URL = re.compile(r"(https?|ftp)://[^\s/$.?#].[^\s]*", re.IGNORECASE)

_TRUTHY = ("1", "on", "true", "yes")


def _text(value: Any) -> str:
    if value is None or value is False:
        return ""
    if value is True:
        return "1"
    return str(value)


def _is_empty(value: Any, arg: str | None) -> bool:
    return _text(value).strip() == ""


def _is_checked(value: Any, arg: str | None) -> bool:
    return _text(value).strip().lower() in _TRUTHY


def _length(value: Any, arg: str | None) -> tuple[int, int]:
    return len(_text(value)), int(arg or 0)


PREDICATES: dict[str, Callable[[Any, str | None], bool]] = {
    "empty": _is_empty,
    "notEmpty": lambda v, a: not _is_empty(v, a),
    "checked": _is_checked,
    "unchecked": lambda v, a: not _is_checked(v, a),
    "number": lambda v, a: bool(_NUMBER.fullmatch(_text(v))),
    "integer": lambda v, a: bool(_INTEGER.fullmatch(_text(v))),
    "decimal": lambda v, a: bool(_DECIMAL.fullmatch(_text(v))),
    "email": lambda v, a: bool(_EMAIL.fullmatch(_text(v))),
    "url": lambda v, a: bool(_URL.fullmatch(_text(v))),
    "is": lambda v, a: _text(v).lower() == (a or "").lower(),
    "isExactly": lambda v, a: _text(v) == (a or ""),
    "not": lambda v, a: _text(v).lower() != (a or "").lower(),
    "isNot": lambda v, a: _text(v) != (a or ""),
    "contains": lambda v, a: (a or "").lower() in _text(v).lower(),
    "doesntContain": lambda v, a: (a or "").lower() not in _text(v).lower(),
    "minLength": lambda v, a: _length(v, a)[0] >= _length(v, a)[1],
    "maxLength": lambda v, a: _length(v, a)[0] <= _length(v, a)[1],
    "exactLength": lambda v, a: _length(v, a)[0] == _length(v, a)[1],
}


def parse_condition(condition: str) -> tuple[str, str | None]:
    """Split ``"isExactly[5]"`` into ``("isExactly", "5")``."""
    match = _CONDITION.match(condition.strip())
    if match is None or match.group("name") not in PREDICATES:
        raise ConfigurationError("Unknown display condition", condition=condition)
    return match.group("name"), match.group("arg")


def normalize_rules(rules: Mapping[str, Any]) -> Rules:
    """Bring every accepted shorthand to ``{target: [{source: [conditions]}]}``."""
    normalized: Rules = {}
    for target, branches in rules.items():
        if isinstance(branches, Mapping):
            branches = [branches]
        if not isinstance(branches, (list, tuple)):
            raise ConfigurationError("Display rule must be a dict or a list of dicts", target=target)
        normalized[target] = []
        for branch in branches:
            if not isinstance(branch, Mapping):
                raise ConfigurationError("Display rule branch must be a dict", target=target, branch=branch)
            normalized[target].append(
                {
                    source: [conditions] if isinstance(conditions, str) else list(conditions)
                    for source, conditions in branch.items()
                }
            )
    return normalized


def check_rules(rules: Rules, field_names: Iterable[str]) -> None:
    """Fail when a rule names a field the form lacks or an unknown condition."""
    known = set(field_names)
    for target, branches in rules.items():
        if target not in known:
            raise ConfigurationError("Display rule targets an unknown field", field=target)
        for branch in branches:
            for source, conditions in branch.items():
                if source not in known:
                    raise ConfigurationError(
                        "Display rule depends on an unknown field", field=source, target=target
                    )
                for condition in conditions:
                    parse_condition(condition)


def check_condition(condition: str, value: Any) -> bool:
    name, arg = parse_condition(condition)
    return PREDICATES[name](value, arg)


def is_visible(branches: list[Branch], values: Mapping[str, Any]) -> bool:
    """True when any branch has every source/condition pair satisfied."""
    return any(
        all(
            check_condition(condition, values.get(source))
            for source, conditions in branch.items()
            for condition in conditions
        )
        for branch in branches
    )


def evaluate(rules: Mapping[str, Any], values: Mapping[str, Any]) -> dict[str, bool]:
    """Visibility of every target field for the given field values."""
    return {target: is_visible(branches, values) for target, branches in normalize_rules(rules).items()}


class ConditionalDisplay:
    """Client plugin call that wires the rules to a rendered form."""

    plugin = "atkConditionalForm"

    def __init__(self, form: Any, rules: Rules, selector: str = ".field"):
        self.form = form
        self.rules = rules
        self.selector = selector

    def js(self) -> JsChain:
        chain = JsChain(self.form)
        return getattr(chain, self.plugin)({"fieldRules": self.rules, "selector": self.selector})
