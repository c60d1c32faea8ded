"""
error_insight/i18n.py - Language handling and UI labels
"""

from __future__ import annotations

from typing import Dict


DEFAULT_LANGUAGE = "en"

SUPPORTED_LANGUAGES = ("en", "it")

LANGUAGE_NAMES = {
    "en": "English",
    "it": "Italian",
}

LABELS: Dict[str, Dict[str, str]] = {
    "en": {
        "title": "Unhandled error",
        "explanation": "Explanation",
        "location": "Location",
        "trace": "Stack trace",
        "state": "Local variables",
        "causes": "Caused by",
        "backend": "Backend",
        "backend_error": "Backend unavailable",
        "redacted": "redacted",
        "truncated": "truncated",
        "open_in_editor": "open in editor",
        "no_narrative": "No explanation available.",
    },
    "it": {
        "title": "Errore non gestito",
        "explanation": "Spiegazione",
        "location": "Posizione",
        "trace": "Stack trace",
        "state": "Variabili locali",
        "causes": "Causato da",
        "backend": "Backend",
        "backend_error": "Backend non disponibile",
        "redacted": "oscurato",
        "truncated": "troncato",
        "open_in_editor": "apri nell'editor",
        "no_narrative": "Nessuna spiegazione disponibile.",
    },
}


def normalize_language(language: str) -> str:
    """Map 'it_IT', 'IT', 'it-it' to 'it'; unknown languages to English."""
    code = (language or "").strip().lower().replace("_", "-").split("-")[0]
    return code if code in SUPPORTED_LANGUAGES else DEFAULT_LANGUAGE


def labels_for(language: str) -> Dict[str, str]:
    return LABELS[normalize_language(language)]


def language_name(language: str) -> str:
    """Human name used in AI prompts; unknown codes are passed through."""
    code = (language or "").strip().lower().replace("_", "-").split("-")[0]
    return LANGUAGE_NAMES.get(code, language or LANGUAGE_NAMES[DEFAULT_LANGUAGE])
