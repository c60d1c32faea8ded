"""
Unit tests for the none and local backends.
"""

import pytest

from error_insight.backends import LocalBackend, NoneBackend, create_backend
from error_insight.config import BackendKind
from error_insight.schemas import FailureRecord


def failure(kind: str, message: str) -> FailureRecord:
    return FailureRecord(message=message, kind=kind, source_file="/app/x.py", source_line=3)


@pytest.mark.asyncio
async def test_none_backend_returns_empty_narrative(make_config, sample_failure):
    result = await NoneBackend().explain(sample_failure, None, make_config())

    assert result.narrative == ""
    assert result.error is None
    assert result.ok


class TestLocalBackend:

    @pytest.mark.asyncio
    async def test_known_kind_gets_specific_guidance(self, make_config, sample_failure):
        result = await LocalBackend().explain(sample_failure, None, make_config(backend="local"))

        assert result.ok
        assert "divided by zero" in result.narrative
        assert "/app/src/billing.py:42" in result.narrative

    @pytest.mark.parametrize("kind,message,key", [
        ("KeyError", "'user_id'", "key_missing"),
        ("AttributeError", "'NoneType' object has no attribute 'name'", "none_attribute"),
        ("AttributeError", "'Order' object has no attribute 'totl'", "attribute_missing"),
        ("ModuleNotFoundError", "No module named 'yaml'", "module_missing"),
        ("TypeError", "unsupported operand type(s) for +: 'int' and 'str'", "operand_types"),
        ("ValueError", "invalid literal for int() with base 10: 'abc'", "int_literal"),
        ("ConnectionRefusedError", "[Errno 111] Connection refused", "connection"),
        ("SomethingOdd", "whatever", "generic"),
    ])
    def test_rule_selection(self, kind, message, key):
        matched, _, _ = LocalBackend().match(failure(kind, message))
        assert matched == key

    def test_captured_fields_fill_the_text(self):
        text = LocalBackend().guidance(
            failure("AttributeError", "'NoneType' object has no attribute 'email'"), "en"
        )
        assert "'email'" in text

    def test_causes_are_consulted(self):
        record = FailureRecord(
            message="settings are incomplete",
            kind="RuntimeError",
            causes=(failure("KeyError", "'missing'"),),
        )
        key, matched, _ = LocalBackend().match(record)

        assert key == "key_missing"
        assert matched.kind == "KeyError"

    def test_italian_guidance(self, sample_failure):
        text = LocalBackend().guidance(sample_failure, "it_IT")
        assert "diviso per zero" in text

    def test_unknown_language_falls_back_to_english(self, sample_failure):
        assert LocalBackend().guidance(sample_failure, "fr") == LocalBackend().guidance(sample_failure, "en")

    def test_generic_text_mentions_the_failure(self):
        text = LocalBackend().guidance(failure("SomethingOdd", "flux capacitor"), "en")
        assert "SomethingOdd" in text
        assert "flux capacitor" in text


class TestFactory:

    def test_none_by_default(self, make_config):
        assert isinstance(create_backend(make_config()), NoneBackend)

    def test_local(self, make_config):
        backend = create_backend(make_config(backend="local"))
        assert isinstance(backend, LocalBackend)
        assert backend.kind == BackendKind.LOCAL

    def test_unknown_backend_degrades_to_none(self, make_config, caplog):
        backend = create_backend(make_config(backend="watson", model="x"))

        assert isinstance(backend, NoneBackend)
        assert "unknown backend 'watson'" in caplog.text

    def test_misconfigured_backend_degrades_to_none(self, make_config, caplog):
        backend = create_backend(make_config(backend="openai"))

        assert isinstance(backend, NoneBackend)
        assert "requires a model" in caplog.text
