"""
error_insight test configuration and fixtures
"""

import pytest
from typing import Any, Callable

from error_insight.config import InsightConfig, resolve
from error_insight.schemas import FailureRecord, Frame


def raise_division(numerator: int = 10) -> float:
    """Raise ZeroDivisionError with a few locals in the frame."""
    password = "hunter2"
    api_token = "tok-123"
    divisor = 0
    items = list(range(50))
    return numerator / divisor


def raise_chained() -> None:
    """Raise a RuntimeError caused by a KeyError."""
    settings = {"region": "eu"}
    try:
        settings["missing"]
    except KeyError as e:
        raise RuntimeError("settings are incomplete") from e


def catch(fn: Callable[..., Any], *args: Any) -> BaseException:
    try:
        fn(*args)
    except Exception as e:
        return e
    raise AssertionError(f"{fn.__name__} did not raise")


@pytest.fixture
def make_config() -> Callable[..., InsightConfig]:
    """Config built from an empty environment plus overrides."""

    def _make(**overrides: Any) -> InsightConfig:
        overrides.setdefault("project_root", "/app")
        return resolve({}, overrides)

    return _make


@pytest.fixture
def division_error() -> BaseException:
    return catch(raise_division)


@pytest.fixture
def chained_error() -> BaseException:
    return catch(raise_chained)


@pytest.fixture
def sample_failure() -> FailureRecord:
    """Hand-built failure record, no live traceback."""
    return FailureRecord(
        message="division by zero",
        source_file="/app/src/billing.py",
        source_line=42,
        frames=(
            Frame(file="/app/src/billing.py", line=42, function="split_invoice"),
            Frame(file="/app/src/api.py", line=17, function="create_invoice"),
        ),
        kind="ZeroDivisionError",
    )
