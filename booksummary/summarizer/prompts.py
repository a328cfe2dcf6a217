"""Prompt construction for the summary model."""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

from booksummary.summarizer.models import SummaryRequest

LANGUAGE_NAMES: Dict[str, str] = {
    "en": "English",
    "hi": "Hindi",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "pt": "Portuguese",
    "it": "Italian",
    "ru": "Russian",
    "ja": "Japanese",
    "zh-Hans": "Chinese (Simplified)",
    "ar": "Arabic",
}

RESPONSE_KEYS = ("summary", "readers_takeaway", "readers_treat", "readers_suggestion")


def resolve_language(language: Optional[str]) -> str:
    """Map a language code to its display name, passing unknown values through."""
    code = (language or "").strip()
    if not code:
        return LANGUAGE_NAMES["en"]
    return LANGUAGE_NAMES.get(code) or LANGUAGE_NAMES.get(code.lower()) or code


def build_system_prompt(
    language_name: str, desired_words: int, tolerance: float
) -> str:
    tolerance_pct = round(tolerance * 100)
    return (
        "You are TRL Summarizer for The Reader's Lawn.\n"
        f"Write the MAIN SUMMARY in {language_name}. It must be exactly three "
        "substantial paragraphs separated by one blank line, "
        f"totaling about {desired_words} words (±{tolerance_pct}%). "
        "Avoid spoilers where possible.\n"
        "After the three paragraphs, also include:\n"
        "1) Reader's Takeaway: 5-8 crisp bullets.\n"
        "2) Reader's Treat: 4-5 lines introducing the author and mentioning "
        "a few of their important works.\n"
        "3) Reader's Suggestion: EXACTLY 3 similar books (same topic/genre). "
        "Return only titles and optional author names; no reasons.\n"
        f"Return STRICT JSON with keys: {', '.join(RESPONSE_KEYS)}.\n"
        'Format readers_suggestion as an array of objects: [{"title": string, "author"?: string}].\n'
        "Put ONLY the three paragraphs (separated by blank lines) inside the `summary` string."
    )


def book_metadata(request: SummaryRequest, snippet_chars: int = 1200) -> Dict[str, Any]:
    return {
        "title": request.title,
        "authors": list(request.authors),
        "publishedDate": request.published_date,
        "categories": list(request.categories),
        "descriptionSnippet": (request.description or "")[:snippet_chars],
    }


def build_user_prompt(request: SummaryRequest, snippet_chars: int = 1200) -> str:
    metadata = json.dumps(
        book_metadata(request, snippet_chars), indent=2, ensure_ascii=False
    )
    return f"BOOK METADATA (JSON):\n{metadata}\n\nReturn only JSON."


RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "summary": {"type": "string"},
        "readers_takeaway": {"type": "array", "items": {"type": "string"}},
        "readers_treat": {"type": "string"},
        "readers_suggestion": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "title": {"type": "string"},
                    "author": {"type": "string"},
                },
                "required": ["title"],
            },
        },
    },
    "required": list(RESPONSE_KEYS),
}
