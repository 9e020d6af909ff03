"""Tracing of form submissions through Pydantic Logfire.

Logfire is an optional extra. Until ``configure`` succeeds with it enabled,
``span`` yields ``None`` and the record helpers do nothing.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Iterator

if TYPE_CHECKING:
    from formwork.config import Settings

_tracer = None


def configure(settings: Settings) -> bool:
    """Start Logfire from the ``logfire`` settings block; returns whether tracing is on."""
    global _tracer

    options = settings.logfire
    if not options.enabled:
        _tracer = None
        return False

    try:
        import logfire
    except ImportError:
        return False

    setup: dict[str, Any] = {
        "service_name": options.service_name,
        "send_to_logfire": "if-token-present",
    }
    if options.environment:
        setup["environment"] = options.environment
    if options.console:
        setup["console"] = logfire.ConsoleOptions()

    logfire.configure(**setup)
    _tracer = logfire
    return True


def enabled() -> bool:
    return _tracer is not None


@contextmanager
def span(name: str, **attrs: Any) -> Iterator[Any]:
    if _tracer is None:
        yield None
        return
    with _tracer.span(name, **attrs) as current:
        yield current


def record_rejection(form: str, errors: dict[str, str]) -> None:
    if _tracer is not None:
        _tracer.info("Form {form} rejected", form=form, fields=sorted(errors))


def record_failure(form: str, kind: str) -> None:
    """Attach the active exception to the trace."""
    if _tracer is not None:
        _tracer.exception("Form {form} failed", form=form, kind=kind)
