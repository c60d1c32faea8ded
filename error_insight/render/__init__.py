"""
error_insight/render - Explanation renderers (HTML, text, JSON)
"""

from .renderer import Renderer
from .html_page import render_html, load_template
from .plain_text import render_text
from .json_payload import build_payload, render_json
from .links import editor_link, map_to_host

__all__ = [
    "Renderer",
    "render_html",
    "render_text",
    "render_json",
    "build_payload",
    "load_template",
    "editor_link",
    "map_to_host",
]
