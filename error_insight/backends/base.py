"""
error_insight/backends/base.py - Base classes for network backends

RemoteBackend owns the call policy shared by every AI backend:
- one overall deadline (config.timeout_seconds) across all attempts
- exactly one retry, and only for transient network errors
- every failure folded into BackendResult.error, never raised

HTTPBackend adds an httpx transport and pydantic reply validation.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Sequence, Type

import httpx
from pydantic import BaseModel, ValidationError as PydanticValidationError

from ..config import BackendKind, InsightConfig
from ..exceptions import BackendError, BackendTimeoutError, TransientBackendError
from ..schemas import FailureRecord, Frame
from .prompts import Prompt, build_prompt
from .protocol import BackendResult

logger = logging.getLogger("insight.backends.remote")

MAX_ATTEMPTS = 2
MAX_ERROR_BODY = 200


class RemoteBackend(ABC):
    """
    Abstract base class for network-calling backends.

    Subclasses implement _request(); the retry and timeout policy lives here.
    """

    kind: BackendKind = BackendKind.API
    wants_state = False

    @property
    def name(self) -> str:
        return self.kind.value

    @abstractmethod
    async def _request(
        self,
        prompt: Prompt,
        failure: FailureRecord,
        state: Optional[Sequence[Frame]],
        config: InsightConfig,
        timeout: float,
    ) -> str:
        """
        Make one backend call and return the narrative text.

        Raises:
            TransientBackendError: On network errors worth one retry
            BackendError: On status or payload errors
        """
        ...

    async def explain(
        self,
        failure: FailureRecord,
        state: Optional[Sequence[Frame]],
        config: InsightConfig,
    ) -> BackendResult:
        """Call the backend under the deadline and retry policy."""
        prompt = build_prompt(failure, state, config)
        loop = asyncio.get_running_loop()
        deadline = loop.time() + config.timeout_seconds
        last_error: Optional[BackendError] = None

        for attempt in range(MAX_ATTEMPTS):
            remaining = deadline - loop.time()
            if remaining <= 0:
                break

            try:
                narrative = await asyncio.wait_for(
                    self._request(prompt, failure, state, config, remaining),
                    timeout=remaining,
                )
                return BackendResult(narrative=narrative.strip())

            except asyncio.TimeoutError:
                last_error = BackendTimeoutError(config.timeout_seconds, self.name)

            except TransientBackendError as e:
                last_error = e

            except BackendError as e:
                logger.warning(f"Backend call failed: {e}")
                return BackendResult.failed(str(e))

            except Exception as e:
                logger.warning(f"Unexpected backend failure: {type(e).__name__}: {e}")
                return BackendResult.failed(f"{self.name}: {type(e).__name__}: {e}")

            logger.warning(f"Transient backend error (attempt {attempt + 1}): {last_error}")

        if last_error is None:
            last_error = BackendTimeoutError(config.timeout_seconds, self.name)
        return BackendResult.failed(str(last_error))


class HTTPBackend(RemoteBackend):
    """
    Backend speaking JSON over HTTP POST via httpx.

    A fresh AsyncClient is used per call; `transport` can be injected
    (e.g. httpx.MockTransport).
    """

    response_model: Type[BaseModel]

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._transport = transport

    @abstractmethod
    def endpoint(self, config: InsightConfig) -> str:
        ...

    def headers(self, config: InsightConfig) -> Dict[str, str]:
        return {"Content-Type": "application/json"}

    @abstractmethod
    def payload(
        self,
        prompt: Prompt,
        failure: FailureRecord,
        state: Optional[Sequence[Frame]],
        config: InsightConfig,
    ) -> Dict[str, Any]:
        ...

    @abstractmethod
    def narrative_from(self, reply: BaseModel) -> str:
        """Extract narrative text from a validated reply."""
        ...

    async def _request(
        self,
        prompt: Prompt,
        failure: FailureRecord,
        state: Optional[Sequence[Frame]],
        config: InsightConfig,
        timeout: float,
    ) -> str:
        data = await self._post_json(
            self.endpoint(config),
            self.headers(config),
            self.payload(prompt, failure, state, config),
            timeout,
        )

        try:
            reply = self.response_model.model_validate(data)
        except PydanticValidationError as e:
            raise BackendError(
                f"malformed response ({e.error_count()} validation error(s))",
                backend=self.name,
            ) from e

        narrative = self.narrative_from(reply)
        if not narrative or not narrative.strip():
            raise BackendError("malformed response: no narrative text", backend=self.name)
        return narrative

    async def _post_json(
        self,
        url: str,
        headers: Dict[str, str],
        payload: Dict[str, Any],
        timeout: float,
    ) -> Any:
        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                response = await client.post(url, json=payload, headers=headers)

        except httpx.TimeoutException as e:
            raise BackendTimeoutError(timeout, self.name) from e

        except httpx.TransportError as e:
            raise TransientBackendError(
                f"{type(e).__name__}: {e}", backend=self.name, original_error=e
            ) from e

        if not response.is_success:
            raise BackendError(
                f"HTTP {response.status_code}: {response.text[:MAX_ERROR_BODY]}",
                backend=self.name,
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise BackendError("malformed response: body is not JSON", backend=self.name) from e
