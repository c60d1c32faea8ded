"""
error_insight/backends/anthropic.py - Anthropic Claude backend

Uses the official `anthropic` SDK. SDK retries are disabled; the retry
policy of RemoteBackend applies instead.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Sequence

import anthropic

from ..config import BackendKind, InsightConfig
from ..exceptions import BackendError, BackendTimeoutError, TransientBackendError
from ..schemas import FailureRecord, Frame
from .base import RemoteBackend
from .prompts import Prompt

logger = logging.getLogger("insight.backends.anthropic")

MAX_TOKENS = 800

ClientFactory = Callable[[InsightConfig, float], Any]


def default_client(config: InsightConfig, timeout: float) -> anthropic.AsyncAnthropic:
    return anthropic.AsyncAnthropic(
        api_key=config.api_key,
        base_url=config.api_url or None,
        timeout=timeout,
        max_retries=0,
    )


class AnthropicBackend(RemoteBackend):
    """
    Claude models via messages.create.

    Args:
        client_factory: Builds the async client for one call; replaceable
            for tests
    """

    kind = BackendKind.ANTHROPIC

    def __init__(self, client_factory: Optional[ClientFactory] = None):
        self._client_factory = client_factory or default_client

    async def _request(
        self,
        prompt: Prompt,
        failure: FailureRecord,
        state: Optional[Sequence[Frame]],
        config: InsightConfig,
        timeout: float,
    ) -> str:
        client = self._client_factory(config, timeout)

        try:
            response = await client.messages.create(
                model=config.model,
                max_tokens=MAX_TOKENS,
                temperature=0.2,
                system=prompt.system,
                messages=[{"role": "user", "content": prompt.user}],
            )

        except anthropic.APITimeoutError as e:
            raise BackendTimeoutError(timeout, self.name) from e

        except anthropic.APIConnectionError as e:
            raise TransientBackendError(str(e), backend=self.name, original_error=e) from e

        except anthropic.APIStatusError as e:
            raise BackendError(
                f"HTTP {e.status_code}: {e.message}",
                backend=self.name,
                status_code=e.status_code,
            ) from e

        except anthropic.AnthropicError as e:
            raise BackendError(str(e), backend=self.name) from e

        finally:
            await client.close()

        content = ""
        for block in getattr(response, "content", None) or []:
            if getattr(block, "type", "text") == "text" and hasattr(block, "text"):
                content += block.text

        if not content.strip():
            raise BackendError("malformed response: no text content", backend=self.name)

        logger.debug(f"Claude replied with {len(content)} chars (model={config.model})")
        return content
