"""
Unit tests for failure records.
"""

from error_insight.schemas import MAX_CAUSE_DEPTH, FailureRecord, Frame

from tests.conftest import catch


def raise_cycle() -> None:
    first = ValueError("first")
    second = KeyError("second")
    first.__context__ = second
    second.__context__ = first
    raise first


def raise_deep() -> None:
    exc = None
    for i in range(MAX_CAUSE_DEPTH + 3):
        try:
            raise ValueError(f"level {i}") from exc
        except ValueError as e:
            exc = e
    raise exc


def raise_suppressed() -> None:
    try:
        {}["x"]
    except KeyError:
        raise ValueError("clean") from None


class TestFailureRecordFromException:

    def test_location_is_the_crash_site(self, division_error):
        record = FailureRecord.from_exception(division_error)

        assert record.kind == "ZeroDivisionError"
        assert record.message == "division by zero"
        assert record.source_file.endswith("conftest.py")
        assert record.frames[0].function == "raise_division"
        assert record.location == f"{record.source_file}:{record.source_line}"
        assert record.traceback is division_error.__traceback__

    def test_explicit_cause(self, chained_error):
        record = FailureRecord.from_exception(chained_error)

        assert record.kind == "RuntimeError"
        assert [c.kind for c in record.causes] == ["KeyError"]
        assert record.causes[0].message == "'missing'"

    def test_cause_cycle_terminates(self):
        record = FailureRecord.from_exception(catch(raise_cycle))
        assert [c.kind for c in record.causes] == ["KeyError"]

    def test_cause_depth_is_capped(self):
        record = FailureRecord.from_exception(catch(raise_deep))
        assert len(record.causes) == MAX_CAUSE_DEPTH

    def test_suppressed_context_is_not_a_cause(self):
        record = FailureRecord.from_exception(catch(raise_suppressed))
        assert record.causes == ()

    def test_to_dict_has_no_bindings(self, sample_failure):
        data = sample_failure.to_dict()

        assert data["message"] == "division by zero"
        assert data["trace"][0] == {"file": "/app/src/billing.py", "line": 42, "function": "split_invoice"}
        assert "localBindings" not in str(data)

    def test_empty_record_has_no_location(self):
        assert FailureRecord().location == ""
        assert Frame().to_dict(include_bindings=True)["localBindings"] == {}
