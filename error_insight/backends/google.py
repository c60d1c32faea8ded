"""
error_insight/backends/google.py - Google Gemini generateContent backend
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from ..config import BackendKind, InsightConfig
from ..schemas import FailureRecord, Frame
from .base import HTTPBackend
from .prompts import Prompt

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
MAX_TOKENS = 800


class Part(BaseModel):
    text: Optional[str] = None


class Content(BaseModel):
    parts: List[Part] = Field(default_factory=list)


class Candidate(BaseModel):
    content: Content


class GenerateContentReply(BaseModel):
    candidates: List[Candidate]


class GoogleBackend(HTTPBackend):
    """Gemini models; api_url replaces the base URL, not the full endpoint."""

    kind = BackendKind.GOOGLE
    response_model = GenerateContentReply

    def endpoint(self, config: InsightConfig) -> str:
        base = (config.api_url or DEFAULT_BASE_URL).rstrip("/")
        return f"{base}/models/{config.model}:generateContent"

    def headers(self, config: InsightConfig) -> Dict[str, str]:
        headers = super().headers(config)
        headers["x-goog-api-key"] = config.api_key or ""
        return headers

    def payload(
        self,
        prompt: Prompt,
        failure: FailureRecord,
        state: Optional[Sequence[Frame]],
        config: InsightConfig,
    ) -> Dict[str, Any]:
        return {
            "systemInstruction": {"parts": [{"text": prompt.system}]},
            "contents": [{"role": "user", "parts": [{"text": prompt.user}]}],
            "generationConfig": {"maxOutputTokens": MAX_TOKENS, "temperature": 0.2},
        }

    def narrative_from(self, reply: BaseModel) -> str:
        for candidate in reply.candidates:
            text = "".join(part.text or "" for part in candidate.content.parts)
            if text.strip():
                return text
        return ""
