"""
error_insight/render/links.py - Editor deep links

Paths under project_root are rewritten to host_project_root when both are
set, so links still open when the app runs in a container or remote host.
"""

from __future__ import annotations

from typing import Optional

from ..config import InsightConfig

_SEPARATORS = "/\\"


def map_to_host(path: str, project_root: str, host_project_root: Optional[str]) -> str:
    """
    Translate a runtime path to the editing host's path.

    Args:
        path: File path as seen by the running application
        project_root: Project root on the running host
        host_project_root: Project root on the editing host

    Returns:
        Mapped path, or the input unchanged when it is outside project_root
    """
    if not path or not project_root or not host_project_root:
        return path

    root = project_root.rstrip(_SEPARATORS)
    if not root:
        return path
    if path != root and not (path.startswith(root) and path[len(root)] in _SEPARATORS):
        return path

    return host_project_root.rstrip(_SEPARATORS) + path[len(root):]


def editor_link(file: str, line: int, config: InsightConfig) -> str:
    """Fill %file and %line in config.editor_url; empty when no template or file."""
    if not config.editor_url or not file:
        return ""
    mapped = map_to_host(file, config.project_root, config.host_project_root)
    return config.editor_url.replace("%file", mapped).replace("%line", str(line or 0))
