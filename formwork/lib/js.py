"""Builders for the JavaScript sent to the browser.

Nothing here executes JavaScript; expressions are rendered to strings that
the client runtime evaluates. Every server value passes through
``js_encode`` so user data can never break out of a string literal.
"""

from __future__ import annotations

import json
import re
from typing import Any, Iterable

_PLACEHOLDER = re.compile(r"\[([A-Za-z_][A-Za-z0-9_]*)?\]")


def js_encode(value: Any) -> str:
    """Encode a Python value as a JavaScript literal, inlining expressions raw."""
    if isinstance(value, JsExpression):
        return value.render()
    if isinstance(value, dict):
        items = ", ".join(f"{json.dumps(str(k))}: {js_encode(v)}" for k, v in value.items())
        return "{" + items + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(js_encode(v) for v in value) + "]"
    if isinstance(value, str):
        # Escape "</" so a string can never close the surrounding <script> tag
        return json.dumps(str(value)).replace("</", "<\\/")
    return json.dumps(value, default=str)


class JsExpression:
    """A JavaScript snippet with ``[]`` (positional) and ``[name]`` placeholders.

        JsExpression("alert([])", ["hi"])            -> alert("hi")
        JsExpression("$([sel]).hide()", {"sel": "#a"}) -> $("#a").hide()

    Named placeholders that are not in ``args`` are left alone, so array
    indexing such as ``list[i]`` survives.
    """

    def __init__(self, template: str = "", args: list | tuple | dict | None = None):
        self.template = template
        self.args = args if args is not None else []

    def render(self) -> str:
        positional = iter(self.args) if isinstance(self.args, (list, tuple)) else iter(())
        named = self.args if isinstance(self.args, dict) else {}

        def replace(match: re.Match) -> str:
            key = match.group(1)
            if key is None:
                try:
                    return js_encode(next(positional))
                except StopIteration:
                    raise ValueError(f"Not enough arguments for expression {self.template!r}")
            if key in named:
                return js_encode(named[key])
            return match.group(0)

        return _PLACEHOLDER.sub(replace, self.template)

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.render()!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, JsExpression) and self.render() == other.render()

    __hash__ = object.__hash__


class JsChain(JsExpression):
    """jQuery-style call chain: ``JsChain("#f").form("submit")`` -> ``$("#f").form("submit")``."""

    library = "$"

    def __init__(self, selector: Any = None):
        self._selector = selector
        self._calls: list[tuple[str, tuple]] = []

    def __getattr__(self, name: str):
        if name.startswith("_"):
            raise AttributeError(name)

        def call(*args: Any) -> JsChain:
            self._calls.append((name, args))
            return self

        return call

    def render(self) -> str:
        selector = self._selector
        # Views are resolved at render time so renamed views keep working
        if hasattr(selector, "__html__") and hasattr(selector, "id"):
            selector = f"#{selector.id}"
        if selector is None:
            js = self.library
        else:
            js = f"{self.library}({js_encode(selector)})"
        for method, args in self._calls:
            js += f".{method}({', '.join(js_encode(a) for a in args)})"
        return js


class JsFunction(JsExpression):
    """An anonymous function wrapping one or more statements."""

    def __init__(self, statements: Iterable[JsExpression | str], params: tuple[str, ...] = ("event",)):
        self.statements = list(statements)
        self.params = params

    def render(self) -> str:
        body = " ".join(
            (s.render() if isinstance(s, JsExpression) else s).rstrip(";") + ";"
            for s in self.statements
        )
        return f"function({', '.join(self.params)}) {{ {body} }}"


def render_statements(actions: Iterable[JsExpression | str]) -> str:
    """Join actions into a script body, one statement per line."""
    lines = []
    for action in actions:
        code = action.render() if isinstance(action, JsExpression) else str(action)
        lines.append(code.rstrip(";") + ";")
    return "\n".join(lines)
