"""
error_insight/gate.py - Interception gate

Decides per failure whether to intercept and which output format to use.
Machine callers win: a caller accepting JSON never gets an HTML page, even
when it also accepts HTML.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from .config import InsightConfig, OutputMode

JSON_TYPES = ("application/json",)
HTML_TYPES = ("text/html", "application/xhtml+xml")
WILDCARD_TYPES = ("*/*",)


@dataclass(frozen=True)
class CallerContext:
    """Normalized content negotiation of the failing caller."""

    accepts_json: bool = False
    accepts_html: bool = False
    console: bool = False
    is_disconnected: bool = False

    @classmethod
    def from_headers(
        cls,
        accept: Optional[str],
        requested_with: Optional[str] = None,
    ) -> "CallerContext":
        """
        Build a request caller context from HTTP headers.

        Args:
            accept: Value of the Accept header (None when absent)
            requested_with: Value of the X-Requested-With header

        Returns:
            CallerContext with console=False
        """
        media_types = _media_types(accept)
        wants_html = any(t in HTML_TYPES for t in media_types)
        ajax = (requested_with or "").strip().lower() == "xmlhttprequest"

        accepts_json = any(t in JSON_TYPES or t.endswith("+json") for t in media_types)
        if ajax and not wants_html:
            accepts_json = True

        browser_default = not media_types or any(t in WILDCARD_TYPES for t in media_types)
        accepts_html = wants_html or (browser_default and not ajax)

        return cls(accepts_json=accepts_json, accepts_html=accepts_html)

    @classmethod
    def for_console(cls) -> "CallerContext":
        return cls(console=True)


@dataclass(frozen=True)
class GateDecision:
    intercept: bool
    mode: OutputMode = OutputMode.TEXT


def _media_types(accept: Optional[str]) -> List[str]:
    if not accept:
        return []
    types = []
    for part in accept.split(","):
        media, _, params = part.strip().partition(";")
        media = media.strip().lower()
        if not media:
            continue
        # q=0 means "not acceptable"
        q = [p.strip() for p in params.split(";") if p.strip().startswith("q=")]
        if q and _quality(q[0][2:]) <= 0:
            continue
        types.append(media)
    return types


def _quality(raw: str) -> float:
    try:
        return float(raw)
    except ValueError:
        return 1.0


class InterceptionGate:
    """Eligibility check followed by format negotiation. No side effects."""

    def __init__(self, config: InsightConfig):
        self.config = config

    def evaluate(self, caller: CallerContext, debug: bool) -> GateDecision:
        if not (self.config.enabled and debug):
            return GateDecision(intercept=False)
        return GateDecision(intercept=True, mode=self.negotiate(caller))

    def negotiate(self, caller: CallerContext) -> OutputMode:
        forced = self.config.output_mode
        if forced != OutputMode.AUTO:
            return forced
        if caller.accepts_json:
            return OutputMode.JSON
        if caller.accepts_html and not caller.console:
            return OutputMode.HTML
        return OutputMode.TEXT
