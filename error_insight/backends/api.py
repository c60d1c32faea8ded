"""
error_insight/backends/api.py - Generic HTTP AI endpoint

Posts a structured failure description to config.api_url and reads the
narrative from the first text field present in the JSON reply.
Compatible with Ollama's /api/generate reply shape ({"response": ...}).
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from ..config import BackendKind, InsightConfig
from ..exceptions import BackendError
from ..schemas import FailureRecord, Frame
from .base import HTTPBackend
from .prompts import Prompt

NARRATIVE_FIELDS = ("response", "narrative", "text", "content", "message")


class ApiReply(BaseModel):
    """Reply from a generic endpoint; any one narrative field may be set."""

    model_config = ConfigDict(extra="allow")

    response: Optional[str] = None
    narrative: Optional[str] = None
    text: Optional[str] = None
    content: Optional[str] = None
    message: Optional[str] = None


class ApiBackend(HTTPBackend):
    """Backend for a self-hosted or custom endpoint configured via api_url."""

    kind = BackendKind.API
    response_model = ApiReply

    def endpoint(self, config: InsightConfig) -> str:
        if not config.api_url:
            raise BackendError("no API URL configured", backend=self.name)
        return config.api_url

    def headers(self, config: InsightConfig) -> Dict[str, str]:
        headers = super().headers(config)
        if config.api_key:
            headers["Authorization"] = f"Bearer {config.api_key}"
        return headers

    def payload(
        self,
        prompt: Prompt,
        failure: FailureRecord,
        state: Optional[Sequence[Frame]],
        config: InsightConfig,
    ) -> Dict[str, Any]:
        error: Dict[str, Any] = failure.to_dict()
        if config.verbose and state:
            error["state"] = [frame.to_dict(include_bindings=True) for frame in state]

        return {
            "model": config.model,
            "system": prompt.system,
            "prompt": prompt.user,
            "language": config.language,
            "stream": False,
            "error": error,
        }

    def narrative_from(self, reply: BaseModel) -> str:
        for field in NARRATIVE_FIELDS:
            value = getattr(reply, field, None)
            if value and value.strip():
                return value
        return ""
