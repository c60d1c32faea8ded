"""
error_insight/backends/none.py - Default backend without a narrative
"""

from __future__ import annotations

from typing import Optional, Sequence

from ..config import BackendKind, InsightConfig
from ..schemas import FailureRecord, Frame
from .protocol import BackendResult


class NoneBackend:
    """Zero-cost default: no narrative."""

    kind = BackendKind.NONE
    wants_state = False

    async def explain(
        self,
        failure: FailureRecord,
        state: Optional[Sequence[Frame]],
        config: InsightConfig,
    ) -> BackendResult:
        return BackendResult()
