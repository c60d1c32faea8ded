"""
error_insight/backends/openai.py - OpenAI chat completions backend
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel

from ..config import BackendKind, InsightConfig
from ..schemas import FailureRecord, Frame
from .base import HTTPBackend
from .prompts import Prompt

DEFAULT_URL = "https://api.openai.com/v1/chat/completions"
MAX_TOKENS = 800


class ChatMessage(BaseModel):
    role: str = "assistant"
    content: Optional[str] = None


class ChatChoice(BaseModel):
    message: ChatMessage


class ChatCompletion(BaseModel):
    choices: List[ChatChoice]


class OpenAIBackend(HTTPBackend):
    """Chat completions API; api_url overrides the endpoint for compatible servers."""

    kind = BackendKind.OPENAI
    response_model = ChatCompletion

    def endpoint(self, config: InsightConfig) -> str:
        return config.api_url or DEFAULT_URL

    def headers(self, config: InsightConfig) -> Dict[str, str]:
        headers = super().headers(config)
        headers["Authorization"] = f"Bearer {config.api_key or ''}"
        return headers

    def payload(
        self,
        prompt: Prompt,
        failure: FailureRecord,
        state: Optional[Sequence[Frame]],
        config: InsightConfig,
    ) -> Dict[str, Any]:
        return {
            "model": config.model,
            "messages": [
                {"role": "system", "content": prompt.system},
                {"role": "user", "content": prompt.user},
            ],
            "max_tokens": MAX_TOKENS,
            "temperature": 0.2,
        }

    def narrative_from(self, reply: BaseModel) -> str:
        for choice in reply.choices:
            if choice.message.content:
                return choice.message.content
        return ""
