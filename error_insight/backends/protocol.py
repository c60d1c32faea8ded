"""
error_insight/backends/protocol.py - Backend strategy protocol

Every backend, from the no-op default to network-calling AI providers,
answers the same explain() contract and never raises.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Sequence, runtime_checkable

from ..config import BackendKind, InsightConfig
from ..schemas import FailureRecord, Frame


@dataclass(frozen=True)
class BackendResult:
    """Narrative produced by a backend, or the reason it could not be."""

    narrative: str = ""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failed(cls, error: str) -> "BackendResult":
        return cls(narrative="", error=error or "backend failed")


@runtime_checkable
class BackendProtocol(Protocol):
    """
    Protocol for backend strategies.

    Implementations must return a BackendResult for every input; network and
    parsing problems are reported through BackendResult.error.
    """

    kind: BackendKind
    wants_state: bool

    async def explain(
        self,
        failure: FailureRecord,
        state: Optional[Sequence[Frame]],
        config: InsightConfig,
    ) -> BackendResult:
        """
        Produce a narrative for a failure.

        Args:
            failure: The failure being diagnosed
            state: Captured frames, when state capture ran
            config: Active configuration

        Returns:
            BackendResult with narrative or error note
        """
        ...
