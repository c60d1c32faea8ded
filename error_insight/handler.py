"""
error_insight/handler.py - Diagnostic handler

Host-agnostic composition of gate, explainer and renderer. Host adapters
call respond() with a normalized CallerContext; None means "not
intercepted, hand the failure back to the native handler".
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from .config import InsightConfig, OutputMode
from .explainer import CancelProbe, Explainer
from .gate import CallerContext, InterceptionGate
from .render import Renderer
from .schemas import Explanation, FailureRecord

logger = logging.getLogger("insight.handler")


@dataclass(frozen=True)
class InsightResponse:
    """Diagnostic response handed back to the host."""

    content_type: str
    body: str
    status: int = 500
    mode: OutputMode = OutputMode.TEXT

    @property
    def body_bytes(self) -> bytes:
        # Lone surrogates (surrogateescape-decoded paths) become \udcXX
        return self.body.encode("utf-8", errors="backslashreplace")


class DiagnosticHandler:
    """
    Produces the diagnostic response for an unhandled exception.

    Args:
        config: Resolved configuration snapshot
        explainer: Explainer to use (default: one built from config)
        renderer: Renderer to use
    """

    def __init__(
        self,
        config: InsightConfig,
        explainer: Optional[Explainer] = None,
        renderer: Optional[Renderer] = None,
    ):
        self.config = config
        self.gate = InterceptionGate(config)
        self.explainer = explainer or Explainer()
        self.renderer = renderer or Renderer()

    async def respond(
        self,
        exc: BaseException,
        caller: CallerContext,
        debug: bool,
        context: str = "exception",
        cancel_probe: Optional[CancelProbe] = None,
    ) -> Optional[InsightResponse]:
        """
        Explain and render an exception if the gate allows it.

        Args:
            exc: The unhandled exception
            caller: Normalized caller negotiation
            debug: Host debug flag
            context: Origin label shown in the output
            cancel_probe: Async callable returning True once the caller is gone

        Returns:
            InsightResponse, or None when not intercepting
        """
        decision = self.gate.evaluate(caller, debug)
        if not decision.intercept:
            return None

        try:
            explanation = await self.explainer.explain_exception(
                exc, self.config, context=context, cancel_probe=cancel_probe
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Explainer failed: {type(e).__name__}: {e}")
            explanation = Explanation(failure=_bare_record(exc), context=context)

        return self._render(explanation, decision.mode, context)

    def respond_sync(
        self,
        exc: BaseException,
        caller: CallerContext,
        debug: bool,
        context: str = "exception",
    ) -> Optional[InsightResponse]:
        """Blocking variant of respond() for console hosts."""
        decision = self.gate.evaluate(caller, debug)
        if not decision.intercept:
            return None
        return asyncio.run(self.respond(exc, caller, debug, context))

    def _render(self, explanation: Explanation, mode: OutputMode, context: str) -> InsightResponse:
        try:
            body = self.renderer.render(explanation, self.config, context, mode)
            return InsightResponse(content_type=mode.content_type, body=body, mode=mode)
        except Exception as e:
            logger.error(f"Rendering {mode.value} failed: {type(e).__name__}: {e}")
            failure = explanation.failure
            body = f"{failure.kind or 'Error'}: {failure.message}\n"
            if failure.location:
                body += f"{failure.location}\n"
            return InsightResponse(
                content_type=OutputMode.TEXT.content_type,
                body=body,
                mode=OutputMode.TEXT,
            )


def _bare_record(exc: BaseException) -> FailureRecord:
    try:
        return FailureRecord.from_exception(exc)
    except Exception:
        return FailureRecord(message=repr(exc), kind=type(exc).__name__)
