"""
error_insight - Diagnostics for unhandled errors

Intercepts unhandled exceptions in web requests and scripts and renders an
explanation (HTML, text or JSON) with a bounded, redacted snapshot of local
state. The narrative comes from a pluggable backend: none, offline rules,
or an AI provider.

Usage:
    from fastapi import FastAPI
    from error_insight import load_config
    from error_insight.integrations import asgi

    app = FastAPI(debug=True)
    asgi.install(app, load_config({"backend": "local"}))
"""

from .config import BackendKind, InsightConfig, OutputMode, load_config, resolve
from .exceptions import (
    BackendError,
    BackendTimeoutError,
    CaptureFault,
    ConfigError,
    InsightError,
    TransientBackendError,
)
from .schemas import Explanation, FailureRecord, Frame, RedactedValue
from .gate import CallerContext, GateDecision, InterceptionGate
from .capture import StateDumper
from .backends import BackendResult, create_backend
from .explainer import Explainer
from .render import Renderer
from .handler import DiagnosticHandler, InsightResponse

__version__ = "0.1.0"

__all__ = [
    # Config
    "BackendKind",
    "InsightConfig",
    "OutputMode",
    "load_config",
    "resolve",
    # Errors
    "InsightError",
    "ConfigError",
    "BackendError",
    "TransientBackendError",
    "BackendTimeoutError",
    "CaptureFault",
    # Records
    "Explanation",
    "FailureRecord",
    "Frame",
    "RedactedValue",
    # Pipeline
    "CallerContext",
    "GateDecision",
    "InterceptionGate",
    "StateDumper",
    "BackendResult",
    "create_backend",
    "Explainer",
    "Renderer",
    "DiagnosticHandler",
    "InsightResponse",
]
