"""
error_insight/capture/state_dumper.py - Bounded local state capture

Runs inside the error path of the host application, so every fault is
swallowed and logged as a CaptureFault. Unavailable frames come out with
empty bindings.
"""

from __future__ import annotations

from types import FrameType, ModuleType, TracebackType
from typing import Any, Dict, Iterable, List, Sequence, Tuple, Union
import logging
import reprlib
import traceback

from ..exceptions import CaptureFault
from ..schemas import Frame, RedactedValue
from .redaction import REDACTED_PLACEHOLDER, is_sensitive_name, scrub

logger = logging.getLogger("insight.capture")

StackInput = Union[TracebackType, Sequence[Frame], None]


class StateDumper:
    """
    Extracts a redacted, size-bounded snapshot of local bindings.

    Output is deterministic for identical stack input and limits.
    """

    def __init__(self, container_items: int = 10, nesting: int = 3):
        self.container_items = container_items
        self.nesting = nesting

    def collect(
        self,
        stack: StackInput,
        max_frames: int,
        max_bindings: int,
        max_value_length: int,
    ) -> List[Frame]:
        """
        Collect frames innermost-to-outermost.

        Args:
            stack: Traceback object, or frames already extracted (innermost first)
            max_frames: Maximum number of frames returned
            max_bindings: Maximum bindings kept per frame
            max_value_length: Maximum length of each rendered value

        Returns:
            List of Frame with local_bindings populated where available
        """
        max_frames = max(0, max_frames)
        max_bindings = max(0, max_bindings)
        max_value_length = max(0, max_value_length)

        collected: List[Frame] = []
        if stack is None or max_frames == 0:
            return collected

        try:
            if isinstance(stack, TracebackType):
                for live, lineno in self._walk_innermost_first(stack, max_frames):
                    collected.append(
                        self._capture_live(live, lineno, max_bindings, max_value_length)
                    )
            else:
                for frame in list(stack)[:max_frames]:
                    collected.append(self._cap_extracted(frame, max_bindings, max_value_length))
        except Exception as e:
            logger.warning(str(CaptureFault(str(e), original_error=e)))

        return collected

    # -------------------------------------------------------------------------
    # Live frames
    # -------------------------------------------------------------------------

    def _walk_innermost_first(
        self,
        tb: TracebackType,
        max_frames: int,
    ) -> List[Tuple[FrameType, int]]:
        walked = list(traceback.walk_tb(tb))
        walked.reverse()
        return walked[:max_frames]

    def _capture_live(
        self,
        live: FrameType,
        lineno: int,
        max_bindings: int,
        max_value_length: int,
    ) -> Frame:
        code = live.f_code
        frame = Frame(file=code.co_filename, line=lineno or 0, function=code.co_name)

        try:
            bindings = self._bindings(live.f_locals.items(), max_bindings, max_value_length)
        except Exception as e:
            fault = CaptureFault(str(e), frame=f"{code.co_name} ({code.co_filename}:{lineno})", original_error=e)
            logger.warning(str(fault))
            return frame

        return frame.with_bindings(bindings)

    def _bindings(
        self,
        items: Iterable[Tuple[str, Any]],
        max_bindings: int,
        max_value_length: int,
    ) -> Dict[str, RedactedValue]:
        bindings: Dict[str, RedactedValue] = {}
        if max_bindings == 0:
            return bindings

        for name, value in items:
            if len(bindings) >= max_bindings:
                break
            if name.startswith("__") or isinstance(value, ModuleType):
                continue
            bindings[name] = self.render_value(name, value, max_value_length)

        return bindings

    def render_value(self, name: str, value: Any, max_value_length: int) -> RedactedValue:
        """Render one binding, applying redaction and truncation."""
        if is_sensitive_name(name):
            return RedactedValue(rendered_text=REDACTED_PLACEHOLDER, redacted=True)

        try:
            text = self._repr(max_value_length).repr(scrub(value))
        except Exception as e:
            logger.debug(f"repr failed for {name}: {e}")
            text = f"<unrepresentable {type(value).__name__}>"

        if len(text) > max_value_length:
            return RedactedValue(rendered_text=text[:max_value_length], truncated=True)
        return RedactedValue(rendered_text=text)

    def _repr(self, max_value_length: int) -> reprlib.Repr:
        r = reprlib.Repr()
        # reprlib limits sit above max_value_length; the cut in render_value sets the flag
        limit = max_value_length * 2 + 2
        r.maxstring = limit
        r.maxother = limit
        r.maxlong = limit
        r.maxlevel = self.nesting
        r.maxdict = self.container_items
        r.maxlist = self.container_items
        r.maxtuple = self.container_items
        r.maxset = self.container_items
        r.maxfrozenset = self.container_items
        r.maxdeque = self.container_items
        r.maxarray = self.container_items
        return r

    # -------------------------------------------------------------------------
    # Frames already extracted
    # -------------------------------------------------------------------------

    def _cap_extracted(self, frame: Frame, max_bindings: int, max_value_length: int) -> Frame:
        bindings: Dict[str, RedactedValue] = {}
        for name, value in list(frame.local_bindings.items())[:max_bindings]:
            if is_sensitive_name(name) and not value.redacted:
                value = RedactedValue(rendered_text=REDACTED_PLACEHOLDER, redacted=True)
            elif not value.redacted and len(value.rendered_text) > max_value_length:
                value = RedactedValue(
                    rendered_text=value.rendered_text[:max_value_length],
                    truncated=True,
                )
            bindings[name] = value
        return frame.with_bindings(bindings)
