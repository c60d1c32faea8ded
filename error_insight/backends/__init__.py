"""
error_insight/backends - Narrative backend strategies

Available backends:
- NoneBackend: no narrative (default)
- LocalBackend: offline rule-based guidance
- ApiBackend: generic HTTP endpoint (api_url)
- OpenAIBackend, AnthropicBackend, GoogleBackend: hosted AI providers
"""

from .protocol import BackendProtocol, BackendResult
from .base import HTTPBackend, RemoteBackend
from .none import NoneBackend
from .local import LocalBackend
from .api import ApiBackend
from .openai import OpenAIBackend
from .anthropic import AnthropicBackend
from .google import GoogleBackend
from .factory import create_backend

__all__ = [
    "BackendProtocol",
    "BackendResult",
    "RemoteBackend",
    "HTTPBackend",
    "NoneBackend",
    "LocalBackend",
    "ApiBackend",
    "OpenAIBackend",
    "AnthropicBackend",
    "GoogleBackend",
    "create_backend",
]
