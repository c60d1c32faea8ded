"""
Integration tests: FastAPI app with the diagnostic middleware installed.
"""

import json

import httpx
import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient

from error_insight.config import resolve
from error_insight.explainer import Explainer
from error_insight.handler import DiagnosticHandler
from error_insight.integrations.asgi import InsightMiddleware, install


HTML = {"accept": "text/html,application/xhtml+xml,*/*;q=0.8"}
JSON_ONLY = {"accept": "application/json"}


def build_app(debug: bool = True) -> FastAPI:
    app = FastAPI(debug=debug)

    @app.get("/invoice")
    def invoice():
        password = "hunter2"
        lines = []
        return {"average": 100 / len(lines)}

    @app.get("/markup")
    def markup():
        raise ValueError("<script>alert(1)</script>")

    @app.get("/undecodable")
    def undecodable():
        name = b"report-\xff.csv".decode("utf-8", "surrogateescape")
        raise FileNotFoundError(f"missing {name}")

    @app.get("/missing")
    def missing():
        raise HTTPException(status_code=404, detail="no such invoice")

    @app.get("/ok")
    def ok():
        return {"status": "ok"}

    return app


def client_for(debug: bool = True, middleware_debug=None, **overrides) -> TestClient:
    app = build_app(debug=debug)
    overrides.setdefault("project_root", "/app")
    install(app, resolve({}, overrides), debug=middleware_debug)
    return TestClient(app, raise_server_exceptions=False)


class TestInterception:

    def test_html_caller_gets_diagnostic_page(self):
        response = client_for(backend="none").get("/invoice", headers=HTML)

        assert response.status_code == 500
        assert response.headers["content-type"].startswith("text/html")
        assert "division by zero" in response.text
        assert "ZeroDivisionError" in response.text

    def test_json_caller_gets_json(self):
        response = client_for(backend="none").get("/invoice", headers=JSON_ONLY)

        assert response.status_code == 500
        assert response.headers["content-type"] == "application/json"
        data = json.loads(response.text)
        assert data["message"] == "division by zero"
        assert data["context"] == "GET /invoice"
        assert "localBindings" not in response.text

    def test_json_wins_when_both_accepted(self):
        headers = {"accept": "text/html, application/json"}
        response = client_for().get("/invoice", headers=headers)
        assert response.headers["content-type"] == "application/json"

    def test_verbose_json_redacts_secrets(self):
        response = client_for(verbose=True).get("/invoice", headers=JSON_ONLY)

        assert "localBindings" in response.text
        assert "hunter2" not in response.text
        innermost = json.loads(response.text)["state"][0]
        assert innermost["function"] == "invoice"
        assert innermost["localBindings"]["password"]["redacted"] is True

    def test_markup_is_escaped(self):
        response = client_for().get("/markup", headers=HTML)

        assert "<script>alert(1)</script>" not in response.text
        assert "&lt;script&gt;" in response.text

    def test_local_backend_narrative(self):
        response = client_for(backend="local").get("/invoice", headers=JSON_ONLY)

        data = json.loads(response.text)
        assert data["backend"] == "local"
        assert "divided by zero" in data["narrative"]

    def test_unreachable_backend_still_renders(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused")

        config = resolve({}, {
            "project_root": "/app",
            "backend": "api",
            "model": "llama3",
            "api_url": "http://backend.invalid/api",
        })
        handler = DiagnosticHandler(config, Explainer(transport=httpx.MockTransport(refuse)))
        app = build_app()
        app.add_middleware(InsightMiddleware, handler=handler)
        client = TestClient(app, raise_server_exceptions=False)

        response = client.get("/invoice", headers=JSON_ONLY)

        data = json.loads(response.text)
        assert response.status_code == 500
        assert data["message"] == "division by zero"
        assert data["narrative"] == ""
        assert "ConnectError" in data["backendError"]

    @pytest.mark.parametrize("accept, content_type", [
        ("text/html", "text/html"),
        ("application/json", "application/json"),
        ("text/plain", "text/plain"),
    ])
    def test_undecodable_filename_in_message(self, accept, content_type):
        response = client_for(backend="none").get(
            "/undecodable", headers={"accept": accept}
        )

        assert response.status_code == 500
        assert response.headers["content-type"].startswith(content_type)
        assert "FileNotFoundError" in response.text
        assert "report-" in response.text
        assert "\\udcff" in response.text


class TestPassThrough:

    def test_disabled_returns_native_output_verbatim(self):
        native = TestClient(build_app(debug=False), raise_server_exceptions=False)
        wrapped = client_for(debug=False, middleware_debug=True, enabled=False)

        expected = native.get("/invoice", headers=HTML)
        actual = wrapped.get("/invoice", headers=HTML)

        assert actual.status_code == expected.status_code == 500
        assert actual.headers["content-type"] == expected.headers["content-type"]
        assert actual.content == expected.content

    def test_production_mode_is_not_intercepted(self):
        response = client_for(debug=False).get("/invoice", headers=HTML)

        assert response.status_code == 500
        assert response.text == "Internal Server Error"

    def test_handled_http_errors_are_untouched(self):
        response = client_for().get("/missing", headers=JSON_ONLY)

        assert response.status_code == 404
        assert response.json() == {"detail": "no such invoice"}

    def test_successful_requests_are_untouched(self):
        response = client_for().get("/ok")
        assert response.json() == {"status": "ok"}


def test_middleware_can_be_added_directly():
    app = build_app()
    app.add_middleware(InsightMiddleware, config=resolve({}, {"output": "text"}))
    client = TestClient(app, raise_server_exceptions=False)

    response = client.get("/invoice", headers=HTML)

    assert response.headers["content-type"].startswith("text/plain")
    assert response.text.startswith("Unhandled error: ZeroDivisionError")
