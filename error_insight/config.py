"""
error_insight/config.py - Configuration resolution

Merges environment values with caller overrides into an immutable
InsightConfig snapshot. Overrides always win over the environment.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional
import os

from .exceptions import ConfigError


ENV_PREFIX = "ERROR_INSIGHT_"

DEFAULT_LOCAL_MODEL = "builtin-rules"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


class BackendKind(Enum):
    """Backend strategies that can produce a narrative."""
    NONE = "none"
    LOCAL = "local"
    API = "api"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"

    @classmethod
    def parse(cls, value: str) -> Optional["BackendKind"]:
        name = (value or "none").strip().lower()
        if name == "gemini":
            name = "google"
        for kind in cls:
            if kind.value == name:
                return kind
        return None


class OutputMode(Enum):
    """Output formats. AUTO defers to content negotiation."""
    AUTO = "auto"
    HTML = "html"
    TEXT = "text"
    JSON = "json"

    @property
    def content_type(self) -> str:
        return _CONTENT_TYPES.get(self, "text/plain; charset=utf-8")


_CONTENT_TYPES = {
    OutputMode.HTML: "text/html; charset=utf-8",
    OutputMode.TEXT: "text/plain; charset=utf-8",
    OutputMode.JSON: "application/json",
}


@dataclass(frozen=True)
class InsightConfig:
    """Immutable configuration snapshot."""

    enabled: bool = True
    backend: str = "none"
    model: str = ""
    api_key: Optional[str] = None
    api_url: Optional[str] = None
    language: str = "en"
    output: str = "auto"
    verbose: bool = False
    template: Optional[str] = None
    project_root: str = ""
    host_project_root: Optional[str] = None
    editor_url: Optional[str] = None

    # Backend call and state capture limits
    timeout_seconds: float = 5.0
    max_frames: int = 10
    max_bindings: int = 20
    max_value_length: int = 200

    @property
    def backend_kind(self) -> Optional[BackendKind]:
        """Configured backend, or None when the name is unknown."""
        return BackendKind.parse(self.backend)

    @property
    def output_mode(self) -> OutputMode:
        value = (self.output or "auto").strip().lower()
        for mode in OutputMode:
            if mode.value == value:
                return mode
        return OutputMode.AUTO

    def problems(self) -> List[str]:
        """List invariant violations that make the backend unusable."""
        kind = self.backend_kind
        issues = []
        if kind is None:
            issues.append(f"unknown backend '{self.backend}'")
            return issues
        if kind != BackendKind.NONE and not self.model:
            issues.append(f"backend '{kind.value}' requires a model")
        if kind == BackendKind.API and not self.api_url:
            issues.append("backend 'api' requires an API URL")
        return issues

    @classmethod
    def from_env(cls) -> "InsightConfig":
        return resolve(os.environ, {})

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for display. The API key is masked."""
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        if self.api_key:
            data["api_key"] = self.api_key[:4] + "..." if len(self.api_key) > 8 else "***"
        return data


# =============================================================================
# Resolution
# =============================================================================

def _parse_bool(raw: str, default: bool) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    return default


def _parse_int(raw: str, default: int) -> int:
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _parse_float(raw: str, default: float) -> float:
    try:
        return float(raw.strip())
    except ValueError:
        return default


def _parse_str(raw: str, default: Any) -> Any:
    return raw


def _parse_optional_str(raw: str, default: Any) -> Any:
    return raw or None


# field name -> (env suffix, env parser)
_ENV_FIELDS: Dict[str, tuple] = {
    "enabled": ("ENABLED", _parse_bool),
    "backend": ("BACKEND", _parse_str),
    "model": ("MODEL", _parse_str),
    "api_key": ("API_KEY", _parse_optional_str),
    "api_url": ("API_URL", _parse_optional_str),
    "language": ("LANG", _parse_str),
    "output": ("OUTPUT", _parse_str),
    "verbose": ("VERBOSE", _parse_bool),
    "template": ("TEMPLATE", _parse_optional_str),
    "project_root": ("ROOT", _parse_str),
    "host_project_root": ("HOST_ROOT", _parse_optional_str),
    "editor_url": ("EDITOR", _parse_optional_str),
    "timeout_seconds": ("TIMEOUT", _parse_float),
    "max_frames": ("MAX_FRAMES", _parse_int),
    "max_bindings": ("MAX_BINDINGS", _parse_int),
    "max_value_length": ("MAX_VALUE_LENGTH", _parse_int),
}

# camelCase keys accepted in override maps
_OVERRIDE_ALIASES = {
    "apiKey": "api_key",
    "apiUrl": "api_url",
    "outputMode": "output",
    "templatePath": "template",
    "projectRoot": "project_root",
    "hostProjectRoot": "host_project_root",
    "editorUrl": "editor_url",
    "editorUrlTemplate": "editor_url",
    "backendKind": "backend",
    "lang": "language",
    "timeout": "timeout_seconds",
}

_BOOL_FIELDS = {"enabled", "verbose"}
_INT_FIELDS = {"max_frames", "max_bindings", "max_value_length"}
_FLOAT_FIELDS = {"timeout_seconds"}
_OPTIONAL_FIELDS = {"api_key", "api_url", "template", "host_project_root", "editor_url"}


def _check_override(name: str, value: Any) -> Any:
    """Validate the type of one override value."""
    if name in _BOOL_FIELDS:
        if not isinstance(value, bool):
            raise ConfigError(name, "bool", value)
        return value

    if name in _INT_FIELDS:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(name, "int", value)
        return value

    if name in _FLOAT_FIELDS:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigError(name, "number", value)
        return float(value)

    if value is None and name in _OPTIONAL_FIELDS:
        return None
    if isinstance(value, Path):
        return str(value)
    if not isinstance(value, str):
        raise ConfigError(name, "str", value)
    if name in _OPTIONAL_FIELDS:
        return value or None
    return value


def resolve(
    env: Mapping[str, str],
    overrides: Optional[Mapping[str, Any]] = None,
) -> InsightConfig:
    """
    Build an InsightConfig from an environment mapping and overrides.

    Args:
        env: Environment source (usually os.environ)
        overrides: Caller-supplied values, keyed by field name or by the
            camelCase alias (apiKey, editorUrl, ...)

    Returns:
        Frozen InsightConfig

    Raises:
        ConfigError: If an override value has the wrong type
    """
    defaults = InsightConfig()
    values: Dict[str, Any] = {}

    for name, (suffix, parser) in _ENV_FIELDS.items():
        raw = env.get(ENV_PREFIX + suffix)
        if raw is not None:
            values[name] = parser(raw, getattr(defaults, name))

    for key, value in (overrides or {}).items():
        name = _OVERRIDE_ALIASES.get(key, key)
        if name not in _ENV_FIELDS:
            continue
        values[name] = _check_override(name, value)

    if not values.get("project_root"):
        values["project_root"] = str(Path.cwd())

    if BackendKind.parse(values.get("backend", "none")) == BackendKind.LOCAL and not values.get("model"):
        values["model"] = DEFAULT_LOCAL_MODEL

    return InsightConfig(**values)


def load_config(overrides: Optional[Mapping[str, Any]] = None) -> InsightConfig:
    """Resolve configuration from os.environ plus overrides."""
    return resolve(os.environ, overrides)
