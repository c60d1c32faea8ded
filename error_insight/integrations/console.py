"""
error_insight/integrations/console.py - Command-line host adapter

Wraps sys.excepthook. The previous hook stays responsible for
KeyboardInterrupt and for every failure the gate does not intercept.
"""

from __future__ import annotations

import logging
import sys
from types import TracebackType
from typing import Callable, Optional, TextIO, Type

from ..config import InsightConfig, load_config
from ..gate import CallerContext
from ..handler import DiagnosticHandler

logger = logging.getLogger("insight.console")

ExceptHook = Callable[[Type[BaseException], BaseException, Optional[TracebackType]], None]


class ConsoleHook:
    """sys.excepthook replacement that prints diagnostics."""

    def __init__(
        self,
        handler: DiagnosticHandler,
        previous: ExceptHook,
        debug: bool = True,
        stream: Optional[TextIO] = None,
    ):
        self.handler = handler
        self.previous = previous
        self.debug = debug
        self.stream = stream

    def __call__(
        self,
        exc_type: Type[BaseException],
        exc: BaseException,
        tb: Optional[TracebackType],
    ) -> None:
        if exc is None or issubclass(exc_type, KeyboardInterrupt):
            self.previous(exc_type, exc, tb)
            return

        if exc.__traceback__ is None and tb is not None:
            exc = exc.with_traceback(tb)

        try:
            response = self.handler.respond_sync(
                exc, CallerContext.for_console(), self.debug, context="console"
            )
        except Exception as e:
            logger.error(f"Diagnostic pipeline failed: {type(e).__name__}: {e}")
            response = None

        if response is None:
            self.previous(exc_type, exc, tb)
            return

        stream = self.stream or sys.stderr
        stream.write(response.body)
        stream.flush()


_installed: Optional[ConsoleHook] = None


def install(
    config: Optional[InsightConfig] = None,
    debug: bool = True,
    stream: Optional[TextIO] = None,
) -> ConsoleHook:
    """
    Install the diagnostic excepthook; re-installing replaces the previous one.

    Args:
        config: Configuration snapshot (default: resolved from environment)
        debug: Whether diagnostics may be shown
        stream: Output stream (default: sys.stderr at failure time)

    Returns:
        The installed hook
    """
    global _installed
    uninstall()

    hook = ConsoleHook(
        DiagnosticHandler(config or load_config()),
        previous=sys.excepthook,
        debug=debug,
        stream=stream,
    )
    sys.excepthook = hook
    _installed = hook
    logger.debug("Console excepthook installed")
    return hook


def uninstall() -> None:
    """Restore the excepthook that was active before install()."""
    global _installed
    if _installed is None:
        return
    if sys.excepthook is _installed:
        sys.excepthook = _installed.previous
    _installed = None
