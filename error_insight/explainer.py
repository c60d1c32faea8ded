"""
error_insight/explainer.py - Explanation assembly

Builds the FailureRecord, captures state when asked for, runs the selected
backend and merges everything into an Explanation. Backend faults and
caller cancellation only reduce richness; explain() always completes.
"""

from __future__ import annotations

import asyncio
import logging
import time
from types import TracebackType
from typing import Awaitable, Callable, Optional, Sequence, Tuple, Union

import httpx

from .backends.factory import create_backend
from .backends.protocol import BackendProtocol, BackendResult
from .capture.state_dumper import StateDumper
from .config import InsightConfig
from .schemas import Explanation, FailureRecord, Frame, frames_from_traceback

logger = logging.getLogger("insight.explainer")

CancelProbe = Callable[[], Awaitable[bool]]
StackInput = Union[TracebackType, Sequence[Frame], None]

CANCELLED_NOTE = "cancelled: caller disconnected before the backend answered"
PROBE_INTERVAL_SECONDS = 0.05


class Explainer:
    """
    Orchestrates state capture and the backend strategy for one failure.

    Args:
        backend: Fixed backend; when None, one is created per call from
            the configuration
        dumper: State collector
        transport: httpx transport handed to HTTP backends
        probe_interval: Seconds between cancel_probe polls
    """

    def __init__(
        self,
        backend: Optional[BackendProtocol] = None,
        dumper: Optional[StateDumper] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        probe_interval: float = PROBE_INTERVAL_SECONDS,
    ):
        self.backend = backend
        self.dumper = dumper or StateDumper()
        self.transport = transport
        self.probe_interval = probe_interval

    async def explain(
        self,
        context: str,
        message: str,
        file: str,
        line: int,
        stack: StackInput,
        causes: Optional[Sequence[FailureRecord]],
        config: InsightConfig,
        *,
        kind: str = "",
        cancel_probe: Optional[CancelProbe] = None,
    ) -> Explanation:
        """
        Produce the Explanation for a failure.

        Args:
            context: Label of the failure origin ("exception", "request", ...)
            message: Failure message
            file: Source file of the failure
            line: Source line of the failure
            stack: Traceback, or frames already extracted (innermost first)
            causes: Chained failures, outermost cause last
            config: Active configuration
            kind: Exception class name
            cancel_probe: Async callable returning True once the caller went away

        Returns:
            Explanation, with backend_error set if the backend failed
        """
        started = time.monotonic()

        if isinstance(stack, TracebackType):
            frames = frames_from_traceback(stack)
            tb: Optional[TracebackType] = stack
        else:
            frames = tuple(stack or ())
            tb = None

        failure = FailureRecord(
            message=message or "",
            source_file=file or "",
            source_line=line or 0,
            frames=frames,
            kind=kind,
            causes=tuple(causes or ()),
            traceback=tb,
        )

        backend = self.backend or create_backend(config, self.transport)

        state: Tuple[Frame, ...] = ()
        if config.verbose or backend.wants_state:
            state = tuple(
                self.dumper.collect(
                    tb if tb is not None else frames,
                    config.max_frames,
                    config.max_bindings,
                    config.max_value_length,
                )
            )

        try:
            result = await self._call_backend(backend, failure, state or None, config, cancel_probe)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Backend {backend.kind.value} raised {type(e).__name__}: {e}")
            result = BackendResult.failed(f"{backend.kind.value}: {type(e).__name__}: {e}")

        if result.error:
            logger.info(f"Explanation built without narrative: {result.error}")

        logger.debug(
            f"Explained {failure.kind or 'failure'} via {backend.kind.value} "
            f"in {(time.monotonic() - started) * 1000:.0f}ms"
        )

        return Explanation(
            failure=failure,
            narrative=result.narrative if result.ok else "",
            state=state,
            backend_used=backend.kind,
            backend_error=result.error,
            context=context,
        )

    async def explain_exception(
        self,
        exc: BaseException,
        config: InsightConfig,
        context: str = "exception",
        cancel_probe: Optional[CancelProbe] = None,
    ) -> Explanation:
        """Explain a caught exception, including its cause chain."""
        record = FailureRecord.from_exception(exc)
        return await self.explain(
            context,
            record.message,
            record.source_file,
            record.source_line,
            exc.__traceback__,
            record.causes,
            config,
            kind=record.kind,
            cancel_probe=cancel_probe,
        )

    def explain_sync(
        self,
        exc: BaseException,
        config: InsightConfig,
        context: str = "exception",
    ) -> Explanation:
        """
        Blocking variant of explain_exception for console callers.

        Must not be called from a thread with a running event loop.
        """
        return asyncio.run(self.explain_exception(exc, config, context))

    # -------------------------------------------------------------------------
    # Backend call with cancellation
    # -------------------------------------------------------------------------

    async def _call_backend(
        self,
        backend: BackendProtocol,
        failure: FailureRecord,
        state: Optional[Tuple[Frame, ...]],
        config: InsightConfig,
        cancel_probe: Optional[CancelProbe],
    ) -> BackendResult:
        if cancel_probe is None:
            return await backend.explain(failure, state, config)

        task = asyncio.ensure_future(backend.explain(failure, state, config))
        watcher = asyncio.ensure_future(self._watch(cancel_probe))

        try:
            done, _ = await asyncio.wait({task, watcher}, return_when=asyncio.FIRST_COMPLETED)
            if task not in done and not watcher.result():
                return await task
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            watcher.cancel()

        if task in done:
            return task.result()

        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        logger.info(f"Backend {backend.kind.value} call abandoned: caller disconnected")
        return BackendResult.failed(CANCELLED_NOTE)

    async def _watch(self, cancel_probe: CancelProbe) -> bool:
        """Poll the probe; True once the caller is gone, False if the probe breaks."""
        while True:
            try:
                if await cancel_probe():
                    return True
            except Exception as e:
                logger.warning(f"Cancel probe failed, ignoring it: {e}")
                return False
            await asyncio.sleep(self.probe_interval)
