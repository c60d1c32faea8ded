"""
error_insight/integrations/asgi.py - ASGI host adapter (Starlette / FastAPI)

Pure ASGI middleware. Starlette's ServerErrorMiddleware bypasses installed
exception handlers in debug mode, so exceptions are caught here, on their
way out of the app, instead.

On interception the diagnostic response is sent and the exception is
re-raised so the server still logs it; the outer error middleware sees
that a response has started and stays silent. When not intercepting, the
exception is re-raised untouched and the host's own handler answers.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from starlette.requests import Request
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..config import InsightConfig, load_config
from ..gate import CallerContext
from ..handler import DiagnosticHandler, InsightResponse

logger = logging.getLogger("insight.asgi")


class InsightMiddleware:
    """
    Replace unhandled-exception responses with diagnostics.

    Args:
        app: Wrapped ASGI app
        config: Configuration snapshot (default: resolved from environment)
        debug: Debug flag; when None, read from the host app's `debug`
        handler: Pre-built DiagnosticHandler (overrides config)
    """

    def __init__(
        self,
        app: ASGIApp,
        config: Optional[InsightConfig] = None,
        debug: Optional[bool] = None,
        handler: Optional[DiagnosticHandler] = None,
    ):
        self.app = app
        self.handler = handler or DiagnosticHandler(config or load_config())
        self.debug = debug

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def _send(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, _send)
        except Exception as exc:
            if response_started:
                raise

            request = Request(scope, receive)
            caller = CallerContext.from_headers(
                request.headers.get("accept"),
                request.headers.get("x-requested-with"),
            )
            debug = self.debug if self.debug is not None else _host_debug(scope)

            try:
                response = await self.handler.respond(
                    exc,
                    caller,
                    debug,
                    context=f"{scope.get('method', 'GET')} {scope.get('path', '')}",
                    cancel_probe=request.is_disconnected,
                )
                if response is not None:
                    await self._send_response(response, send)
                    logger.info(
                        f"Intercepted {type(exc).__name__} on {scope.get('path', '')} "
                        f"({response.mode.value})"
                    )
            except Exception as e:
                logger.error(f"Diagnostic pipeline failed: {type(e).__name__}: {e}")

            raise

    @staticmethod
    async def _send_response(response: InsightResponse, send: Send) -> None:
        body = response.body_bytes
        await send({
            "type": "http.response.start",
            "status": response.status,
            "headers": [
                [b"content-type", response.content_type.encode("latin-1")],
                [b"content-length", str(len(body)).encode("latin-1")],
            ],
        })
        await send({"type": "http.response.body", "body": body})


def _host_debug(scope: Scope) -> bool:
    host: Any = scope.get("app")
    return bool(getattr(host, "debug", False))


def install(
    app: Any,
    config: Optional[InsightConfig] = None,
    debug: Optional[bool] = None,
) -> None:
    """
    Register InsightMiddleware on a Starlette or FastAPI app.

    Args:
        app: Host application (must not have started yet)
        config: Configuration snapshot (default: resolved from environment)
        debug: Debug flag override; default follows app.debug
    """
    app.add_middleware(InsightMiddleware, config=config or load_config(), debug=debug)
