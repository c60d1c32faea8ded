"""
error_insight/render/renderer.py - Output format dispatch
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Union

from ..config import InsightConfig, OutputMode
from ..schemas import Explanation
from .html_page import render_html
from .json_payload import render_json
from .plain_text import render_text

logger = logging.getLogger("insight.render")

RenderFn = Callable[[Explanation, InsightConfig, str], str]

_RENDERERS: Dict[OutputMode, RenderFn] = {
    OutputMode.HTML: render_html,
    OutputMode.TEXT: render_text,
    OutputMode.JSON: render_json,
}


class Renderer:
    """Serializes an Explanation as HTML, text or JSON."""

    def render(
        self,
        explanation: Explanation,
        config: InsightConfig,
        context_label: str = "",
        mode: Union[OutputMode, str] = OutputMode.TEXT,
    ) -> str:
        """
        Render an explanation.

        Args:
            explanation: Explanation to serialize
            config: Active configuration (language, verbose, template, editor links)
            context_label: Origin label; defaults to explanation.context
            mode: Output mode; AUTO and unknown values render as text

        Returns:
            Rendered document
        """
        resolved = _resolve_mode(mode)
        label = context_label or explanation.context or ""
        logger.debug(f"Rendering {resolved.value} for context '{label}'")
        return _RENDERERS[resolved](explanation, config, label)


def _resolve_mode(mode: Union[OutputMode, str]) -> OutputMode:
    if isinstance(mode, OutputMode):
        value = mode
    else:
        value = next((m for m in OutputMode if m.value == str(mode).lower()), OutputMode.AUTO)
    return OutputMode.TEXT if value == OutputMode.AUTO else value
