"""
Unit tests for StateDumper and redaction.
"""

import logging

import pytest

from error_insight.capture import REDACTED_PLACEHOLDER, StateDumper, is_sensitive_name, scrub
from error_insight.schemas import Frame, RedactedValue

from tests.conftest import catch


def recurse(depth: int) -> None:
    level = depth
    if depth == 0:
        raise ValueError("bottom")
    recurse(depth - 1)


def many_locals() -> None:
    a1 = a2 = a3 = a4 = a5 = a6 = a7 = a8 = a9 = a10 = 1
    raise ValueError("crowded")


class Unrepresentable:
    def __repr__(self):
        raise RuntimeError("no repr for you")


def raise_with_bad_repr() -> None:
    thing = Unrepresentable()
    raise ValueError("bad repr")


@pytest.fixture
def dumper():
    return StateDumper()


class TestSensitivity:

    @pytest.mark.parametrize("name", ["password", "DB_PASSWORD", "api_token", "clientSecret", "key", "apiKey"])
    def test_sensitive_names(self, name):
        assert is_sensitive_name(name) is True

    @pytest.mark.parametrize("name", ["user", "count", "items"])
    def test_plain_names(self, name):
        assert is_sensitive_name(name) is False

    def test_scrub_replaces_nested_sensitive_keys(self):
        value = {"user": "ann", "auth": {"token": "abc", "scope": "read"}}
        assert scrub(value) == {"user": "ann", "auth": {"token": REDACTED_PLACEHOLDER, "scope": "read"}}

    def test_scrub_does_not_mutate_input(self):
        value = {"password": "hunter2"}
        scrub(value)
        assert value == {"password": "hunter2"}


class TestCollectFromTraceback:

    def test_innermost_frame_first(self, dumper, division_error):
        frames = dumper.collect(division_error.__traceback__, 10, 20, 200)

        assert frames[0].function == "raise_division"
        assert frames[-1].function == "catch"

    def test_sensitive_bindings_are_redacted(self, dumper, division_error):
        frame = dumper.collect(division_error.__traceback__, 10, 20, 200)[0]

        for name in ("password", "api_token"):
            value = frame.local_bindings[name]
            assert value.redacted is True
            assert value.rendered_text == REDACTED_PLACEHOLDER
        assert "hunter2" not in str(frame)
        assert frame.local_bindings["divisor"] == RedactedValue(rendered_text="0")

    def test_values_are_truncated(self, dumper, division_error):
        frame = dumper.collect(division_error.__traceback__, 10, 20, 8)[0]
        items = frame.local_bindings["items"]

        assert items.truncated is True
        assert len(items.rendered_text) == 8

    @pytest.mark.parametrize("max_frames", [0, 1, 3, 50])
    def test_frame_cap(self, dumper, max_frames):
        exc = catch(recurse, 10)
        frames = dumper.collect(exc.__traceback__, max_frames, 20, 200)
        assert len(frames) <= max_frames

    @pytest.mark.parametrize("max_bindings", [0, 1, 4])
    def test_binding_cap(self, dumper, max_bindings):
        exc = catch(many_locals)
        frames = dumper.collect(exc.__traceback__, 10, max_bindings, 200)
        assert all(len(f.local_bindings) <= max_bindings for f in frames)

    def test_deterministic(self, dumper, division_error):
        first = dumper.collect(division_error.__traceback__, 10, 20, 50)
        second = dumper.collect(division_error.__traceback__, 10, 20, 50)
        assert first == second

    def test_broken_repr_does_not_raise(self, dumper):
        exc = catch(raise_with_bad_repr)
        frame = dumper.collect(exc.__traceback__, 10, 20, 200)[0]
        assert "Unrepresentable" in frame.local_bindings["thing"].rendered_text

    def test_unreadable_locals_emit_empty_frame(self, dumper, division_error, monkeypatch, caplog):
        def explode(*args, **kwargs):
            raise RuntimeError("locals unavailable")

        monkeypatch.setattr(dumper, "_bindings", explode)
        with caplog.at_level(logging.WARNING, logger="insight.capture"):
            frames = dumper.collect(division_error.__traceback__, 10, 20, 200)

        assert frames
        assert all(f.local_bindings == {} for f in frames)
        assert "state capture failed" in caplog.text


class TestCollectFromFrames:

    def test_none_stack(self, dumper):
        assert dumper.collect(None, 10, 20, 200) == []

    def test_extracted_frames_are_capped_and_redacted(self, dumper):
        frames = [
            Frame(
                file=f"/app/f{i}.py",
                line=i,
                function=f"f{i}",
                local_bindings={"secret": RedactedValue("s3cr3t"), "n": RedactedValue("1")},
            )
            for i in range(5)
        ]
        collected = dumper.collect(frames, 2, 20, 200)

        assert [f.function for f in collected] == ["f0", "f1"]
        assert collected[0].local_bindings["secret"].redacted is True
        assert collected[0].local_bindings["n"].rendered_text == "1"

    def test_extracted_values_are_truncated(self, dumper):
        frames = [
            Frame(
                file="/app/blob.py",
                line=3,
                function="load",
                local_bindings={
                    "blob": RedactedValue("x" * 500),
                    "short": RedactedValue("ok"),
                    "password": RedactedValue("[REDACTED]", redacted=True),
                },
            )
        ]
        bindings = dumper.collect(frames, 10, 20, 50)[0].local_bindings

        assert len(bindings["blob"].rendered_text) == 50
        assert bindings["blob"].truncated is True
        assert bindings["short"].rendered_text == "ok"
        assert bindings["short"].truncated is False
        assert bindings["password"].rendered_text == "[REDACTED]"
        assert bindings["password"].truncated is False
