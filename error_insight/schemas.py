"""
error_insight/schemas.py - Failure and explanation records

All records are request-scoped and immutable once built.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from types import TracebackType
from typing import Any, Dict, List, Optional, Set, Tuple
import traceback

from .config import BackendKind


MAX_CAUSE_DEPTH = 5


@dataclass(frozen=True)
class RedactedValue:
    """Rendered value of one local binding."""

    rendered_text: str = ""
    truncated: bool = False
    redacted: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "value": self.rendered_text,
            "truncated": self.truncated,
            "redacted": self.redacted,
        }


@dataclass(frozen=True)
class Frame:
    """One stack frame. Bindings stay empty until state capture runs."""

    file: str = ""
    line: int = 0
    function: str = ""
    local_bindings: Dict[str, RedactedValue] = field(default_factory=dict)

    def with_bindings(self, bindings: Dict[str, RedactedValue]) -> "Frame":
        return replace(self, local_bindings=dict(bindings))

    def to_dict(self, include_bindings: bool = False) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "file": self.file,
            "line": self.line,
            "function": self.function,
        }
        if include_bindings:
            data["localBindings"] = {
                name: value.to_dict() for name, value in self.local_bindings.items()
            }
        return data


@dataclass(frozen=True)
class FailureRecord:
    """Snapshot of the failure being diagnosed."""

    message: str = ""
    source_file: str = ""
    source_line: int = 0
    frames: Tuple[Frame, ...] = ()  # innermost first
    kind: str = ""
    causes: Tuple["FailureRecord", ...] = ()

    # Live traceback kept for state capture; not part of the record's value
    traceback: Optional[TracebackType] = field(default=None, compare=False, repr=False)

    @property
    def location(self) -> str:
        if not self.source_file:
            return ""
        return f"{self.source_file}:{self.source_line}"

    @classmethod
    def from_exception(cls, exc: BaseException) -> "FailureRecord":
        """Build a record, including its cause chain, from an exception."""
        return _record_from_exception(exc)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "message": self.message,
            "file": self.source_file,
            "line": self.source_line,
            "trace": [f.to_dict() for f in self.frames],
            "causes": [c.to_dict() for c in self.causes],
        }


@dataclass(frozen=True)
class Explanation:
    """Complete diagnostic for one failure."""

    failure: FailureRecord = field(default_factory=FailureRecord)
    narrative: str = ""
    state: Tuple[Frame, ...] = ()
    backend_used: BackendKind = BackendKind.NONE
    backend_error: Optional[str] = None
    context: str = "exception"


# =============================================================================
# Construction helpers
# =============================================================================

def frames_from_traceback(tb: Optional[TracebackType]) -> Tuple[Frame, ...]:
    """Convert a traceback to frames, innermost first."""
    if tb is None:
        return ()
    summaries = traceback.extract_tb(tb)
    frames = [
        Frame(file=s.filename or "", line=s.lineno or 0, function=s.name or "")
        for s in summaries
    ]
    frames.reverse()
    return tuple(frames)


def _chained(exc: BaseException) -> Optional[BaseException]:
    if exc.__cause__ is not None:
        return exc.__cause__
    if exc.__context__ is not None and not exc.__suppress_context__:
        return exc.__context__
    return None


def _single_record(
    exc: BaseException,
    causes: Tuple[FailureRecord, ...] = (),
) -> FailureRecord:
    tb = exc.__traceback__
    frames = frames_from_traceback(tb)
    top = frames[0] if frames else Frame()
    return FailureRecord(
        message=_message_of(exc),
        source_file=top.file,
        source_line=top.line,
        frames=frames,
        kind=type(exc).__name__,
        causes=causes,
        traceback=tb,
    )


def _record_from_exception(exc: BaseException) -> FailureRecord:
    seen: Set[int] = {id(exc)}
    causes: List[FailureRecord] = []

    current = _chained(exc)
    while current is not None and id(current) not in seen and len(causes) < MAX_CAUSE_DEPTH:
        seen.add(id(current))
        causes.append(_single_record(current))
        current = _chained(current)

    return _single_record(exc, tuple(causes))


def _message_of(exc: BaseException) -> str:
    try:
        return str(exc)
    except Exception:
        return f"<unprintable {type(exc).__name__}>"
