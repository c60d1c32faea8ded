"""
error_insight/render/html_page.py - HTML rendering

Placeholders use string.Template syntax ($name). Plain-text placeholders
are escaped; $trace, $state, $causes, $location_link and $backend_error
are HTML fragments built here from escaped parts.
"""

from __future__ import annotations

import html
import logging
from pathlib import Path
from string import Template
from typing import Dict, List, Optional

from ..config import InsightConfig
from ..i18n import labels_for, normalize_language
from ..schemas import Explanation, Frame
from .links import editor_link

logger = logging.getLogger("insight.render.html")

DEFAULT_TEMPLATE_PATH = Path(__file__).parent / "templates" / "default.html"


def _e(value: object) -> str:
    if value is None:
        return ""
    return html.escape(str(value), quote=True)


def load_template(path: Optional[str]) -> Template:
    """
    Load a custom template, falling back to the built-in one.

    Args:
        path: Custom template path, or None

    Returns:
        string.Template ready for safe_substitute
    """
    if path:
        try:
            return Template(Path(path).read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Cannot read template {path}: {e}; using built-in template")
    return Template(DEFAULT_TEMPLATE_PATH.read_text(encoding="utf-8"))


def _link(file: str, line: int, config: InsightConfig, label: str) -> str:
    url = editor_link(file, line, config)
    if not url:
        return ""
    return f'<a class="editor-link" href="{_e(url)}">{_e(label)}</a>'


def _trace_html(frames: List[Frame], config: InsightConfig, labels: Dict[str, str]) -> str:
    if not frames:
        return ""
    items = []
    for frame in frames:
        link = _link(frame.file, frame.line, config, labels["open_in_editor"])
        items.append(
            f"<li><strong>{_e(frame.function)}</strong> "
            f"{_e(frame.file)}:{_e(frame.line)} {link}</li>"
        )
    return '<ol class="trace">' + "".join(items) + "</ol>"


def _state_html(frames: List[Frame], config: InsightConfig, labels: Dict[str, str]) -> str:
    if not config.verbose or not frames:
        return ""
    blocks = []
    for frame in frames:
        rows = []
        for name, value in frame.local_bindings.items():
            flag = ""
            if value.redacted:
                flag = f' <span class="flag">({_e(labels["redacted"])})</span>'
            elif value.truncated:
                flag = f' <span class="flag">({_e(labels["truncated"])})</span>'
            rows.append(f"<tr><td>{_e(name)}</td><td>{_e(value.rendered_text)}{flag}</td></tr>")
        blocks.append(
            f'<p class="meta">{_e(frame.function)} &middot; {_e(frame.file)}:{_e(frame.line)}</p>'
            f'<table class="bindings">{"".join(rows)}</table>'
        )
    return f"<section><h2>{_e(labels['state'])}</h2>{''.join(blocks)}</section>"


def _causes_html(explanation: Explanation, labels: Dict[str, str]) -> str:
    causes = explanation.failure.causes
    if not causes:
        return ""
    items = "".join(
        f"<li><strong>{_e(c.kind)}</strong>: {_e(c.message)} "
        f'<span class="meta">{_e(c.location)}</span></li>'
        for c in causes
    )
    return f"<section><h2>{_e(labels['causes'])}</h2><ul>{items}</ul></section>"


def render_html(explanation: Explanation, config: InsightConfig, context_label: str) -> str:
    labels = labels_for(config.language)
    failure = explanation.failure

    backend_error = ""
    if explanation.backend_error:
        backend_error = (
            f'<p class="backend-error">{_e(labels["backend_error"])}: '
            f"{_e(explanation.backend_error)}</p>"
        )

    values: Dict[str, str] = {
        "title": _e(labels["title"]),
        "message": _e(failure.message),
        "kind": _e(failure.kind),
        "location": _e(failure.location),
        "location_link": _link(
            failure.source_file, failure.source_line, config, labels["open_in_editor"]
        ),
        "narrative": _e(explanation.narrative or labels["no_narrative"]),
        "backend": _e(explanation.backend_used.value),
        "backend_error": backend_error,
        "trace": _trace_html(list(failure.frames), config, labels),
        "state": _state_html(list(explanation.state), config, labels),
        "causes": _causes_html(explanation, labels),
        "context": _e(context_label),
        "language": _e(normalize_language(config.language)),
    }
    for key, text in labels.items():
        values[f"labels_{key}"] = _e(text)

    return load_template(config.template).safe_substitute(values)
