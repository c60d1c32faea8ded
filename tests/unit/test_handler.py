"""
Unit tests for DiagnosticHandler.
"""

import json
from unittest.mock import Mock

import pytest

from error_insight.gate import CallerContext
from error_insight.handler import DiagnosticHandler
from tests.conftest import catch


BROWSER = CallerContext(accepts_html=True)
API_CLIENT = CallerContext(accepts_json=True, accepts_html=True)


@pytest.mark.asyncio
async def test_html_response(make_config, division_error):
    response = await DiagnosticHandler(make_config()).respond(division_error, BROWSER, debug=True)

    assert response.status == 500
    assert response.content_type == "text/html; charset=utf-8"
    assert "division by zero" in response.body


@pytest.mark.asyncio
async def test_json_response(make_config, division_error):
    response = await DiagnosticHandler(make_config()).respond(division_error, API_CLIENT, debug=True)

    assert response.content_type == "application/json"
    assert json.loads(response.body)["message"] == "division by zero"


@pytest.mark.asyncio
async def test_not_intercepted_without_debug(make_config, division_error):
    assert await DiagnosticHandler(make_config()).respond(division_error, BROWSER, debug=False) is None


@pytest.mark.asyncio
async def test_not_intercepted_when_disabled(make_config, division_error):
    handler = DiagnosticHandler(make_config(enabled=False))
    assert await handler.respond(division_error, BROWSER, debug=True) is None


@pytest.mark.asyncio
async def test_render_fault_still_reports_the_failure(make_config, division_error):
    renderer = Mock()
    renderer.render.side_effect = RuntimeError("template engine on fire")
    handler = DiagnosticHandler(make_config(), renderer=renderer)

    response = await handler.respond(division_error, BROWSER, debug=True)

    assert response.status == 500
    assert response.content_type == "text/plain; charset=utf-8"
    assert response.body.startswith("ZeroDivisionError: division by zero")


def test_respond_sync_for_console(make_config, division_error):
    handler = DiagnosticHandler(make_config(backend="local"))
    response = handler.respond_sync(division_error, CallerContext.for_console(), debug=True, context="console")

    assert response.content_type == "text/plain; charset=utf-8"
    assert "divided by zero" in response.body
    assert "[console]" in response.body


@pytest.mark.asyncio
@pytest.mark.parametrize("caller", [BROWSER, API_CLIENT, CallerContext.for_console()])
async def test_surrogate_in_message_still_encodes(make_config, caller):
    name = b"report-\xff.csv".decode("utf-8", "surrogateescape")
    exc = catch(_open_missing, name)

    response = await DiagnosticHandler(make_config()).respond(exc, caller, debug=True)
    body = response.body_bytes.decode("utf-8")

    assert "FileNotFoundError" in body
    assert "report-\\udcff.csv" in body


def _open_missing(name: str) -> None:
    raise FileNotFoundError(f"missing {name}")
