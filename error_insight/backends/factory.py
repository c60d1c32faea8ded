"""
error_insight/backends/factory.py - Backend factory

Selects the backend strategy for a configuration. A misconfigured or
unknown backend degrades to NoneBackend with a logged warning.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from ..config import BackendKind, InsightConfig
from .anthropic import AnthropicBackend
from .api import ApiBackend
from .google import GoogleBackend
from .local import LocalBackend
from .none import NoneBackend
from .openai import OpenAIBackend
from .protocol import BackendProtocol

logger = logging.getLogger("insight.backends.factory")


def create_backend(
    config: InsightConfig,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> BackendProtocol:
    """
    Create the backend named by config.backend.

    Args:
        config: Active configuration
        transport: httpx transport for the HTTP backends (tests use
            httpx.MockTransport)

    Returns:
        Backend implementing BackendProtocol
    """
    problems = config.problems()
    if problems:
        logger.warning(f"Backend disabled ({'; '.join(problems)}); using 'none'")
        return NoneBackend()

    kind = config.backend_kind

    if kind == BackendKind.NONE:
        return NoneBackend()

    elif kind == BackendKind.LOCAL:
        return LocalBackend()

    elif kind == BackendKind.API:
        return ApiBackend(transport=transport)

    elif kind == BackendKind.OPENAI:
        return OpenAIBackend(transport=transport)

    elif kind == BackendKind.GOOGLE:
        return GoogleBackend(transport=transport)

    elif kind == BackendKind.ANTHROPIC:
        if not config.api_key:
            logger.warning("No Anthropic API key configured; requests will fail")
        return AnthropicBackend()

    logger.warning(f"Unsupported backend '{config.backend}'; using 'none'")
    return NoneBackend()
