"""
error_insight/render/plain_text.py - Plain text rendering for consoles and logs
"""

from __future__ import annotations

from typing import Dict, List

from ..config import InsightConfig
from ..i18n import labels_for
from ..schemas import Explanation, Frame, RedactedValue

INDENT = "  "


def _value_suffix(value: RedactedValue, labels: Dict[str, str]) -> str:
    if value.redacted:
        return f" ({labels['redacted']})"
    if value.truncated:
        return f" ({labels['truncated']})"
    return ""


def _frame_line(index: int, frame: Frame) -> str:
    return f"{INDENT}#{index} {frame.function or '?'} at {frame.file or '?'}:{frame.line}"


def render_text(explanation: Explanation, config: InsightConfig, context_label: str) -> str:
    labels = labels_for(config.language)
    failure = explanation.failure

    header = f"{labels['title']}: {failure.kind}" if failure.kind else labels["title"]
    lines: List[str] = [
        header,
        failure.message,
        f"{labels['location']}: {failure.location or '-'}",
    ]
    if context_label:
        lines.append(f"[{context_label}]")

    lines.append("")
    lines.append(f"{labels['explanation']}:")
    lines.append(explanation.narrative or labels["no_narrative"])

    if explanation.backend_error:
        lines.append(f"{labels['backend_error']}: {explanation.backend_error}")

    if failure.frames:
        lines.append("")
        lines.append(f"{labels['trace']}:")
        lines.extend(_frame_line(i, frame) for i, frame in enumerate(failure.frames))

    if failure.causes:
        lines.append("")
        lines.append(f"{labels['causes']}:")
        for cause in failure.causes:
            where = f" ({cause.location})" if cause.location else ""
            lines.append(f"{INDENT}- {cause.kind}: {cause.message}{where}")

    if config.verbose and explanation.state:
        lines.append("")
        lines.append(f"{labels['state']}:")
        for i, frame in enumerate(explanation.state):
            lines.append(_frame_line(i, frame))
            for name, value in frame.local_bindings.items():
                lines.append(
                    f"{INDENT * 3}{name} = {value.rendered_text}{_value_suffix(value, labels)}"
                )

    return "\n".join(lines) + "\n"
