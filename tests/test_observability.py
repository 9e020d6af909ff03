"""Tests for the optional Logfire tracing facade."""

from formwork.config import LogfireConfig, Settings
from formwork.lib import observability


def test_disabled_tracing_is_a_no_op():
    settings = Settings(_env_file=None, logfire=LogfireConfig(enabled=False))
    assert observability.configure(settings) is False
    assert not observability.enabled()

    with observability.span("form.submit", form="f") as current:
        assert current is None
    observability.record_rejection("f", {"age": "Must be an integer"})
    observability.record_failure("f", "generic")
