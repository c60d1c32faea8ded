"""
error_insight/render/json_payload.py - Machine-readable rendering

Key order is fixed; localBindings appear only when config.verbose.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List

from ..config import InsightConfig
from ..schemas import Explanation, FailureRecord


def _cause_dict(cause: FailureRecord) -> Dict[str, Any]:
    return {
        "kind": cause.kind,
        "message": cause.message,
        "file": cause.source_file,
        "line": cause.source_line,
    }


def build_payload(explanation: Explanation, config: InsightConfig, context_label: str) -> Dict[str, Any]:
    failure = explanation.failure
    payload: Dict[str, Any] = {
        "message": failure.message,
        "kind": failure.kind,
        "file": failure.source_file,
        "line": failure.source_line,
        "context": context_label,
        "narrative": explanation.narrative,
        "backend": explanation.backend_used.value,
        "backendError": explanation.backend_error,
        "trace": [frame.to_dict() for frame in failure.frames],
        "causes": [_cause_dict(cause) for cause in failure.causes],
    }

    if config.verbose:
        state: List[Dict[str, Any]] = [
            frame.to_dict(include_bindings=True) for frame in explanation.state
        ]
        payload["state"] = state

    return payload


def render_json(explanation: Explanation, config: InsightConfig, context_label: str) -> str:
    return json.dumps(
        build_payload(explanation, config, context_label),
        ensure_ascii=False,
        indent=2,
        default=str,
    )
