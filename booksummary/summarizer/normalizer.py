"""Coercion of loosely-typed model output into ``SummaryResult``."""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

import orjson

from booksummary.summarizer.models import Suggestion, SummaryResult

MAX_SUGGESTIONS = 3

_KEY_SEPARATORS = re.compile(r"[-\s'’]")
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")

TAKEAWAY_KEYS = ("readers_takeaway", "reader_s_takeaway")
SUGGESTION_KEYS = ("readers_suggestion", "reader_s_suggestion")
TREAT_KEYS = ("readers_treat", "reader_s_treat")
SUGGESTION_TITLE_KEYS = ("title", "book", "name")


def normalize_key(key: Any) -> str:
    """Lower-case a key and fold hyphens, whitespace and apostrophes to ``_``."""
    return _KEY_SEPARATORS.sub("_", str(key).lower())


def normalize_keys(raw: Dict[Any, Any]) -> Dict[str, Any]:
    # Later keys overwrite earlier ones that fold to the same name.
    return {normalize_key(key): value for key, value in raw.items()}


def _first_list(mapping: Dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = mapping.get(key)
        if isinstance(value, list):
            return value
    return None


def _first_treat(mapping: Dict[str, Any]) -> Any:
    for key in TREAT_KEYS:
        value = mapping.get(key)
        if isinstance(value, (str, list)):
            return value
    return None


def _coerce_text(value: Any) -> Optional[str]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return value
    return None


def _coerce_string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    items: List[str] = []
    for item in value:
        text = _coerce_text(item)
        if text is not None and text.strip():
            items.append(text)
    return items


def _coerce_treat(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        return " ".join(item for item in value if isinstance(item, str))
    return ""


def _suggestion_from_mapping(item: Dict[Any, Any]) -> Optional[Suggestion]:
    fields = normalize_keys(item)
    title = ""
    for key in SUGGESTION_TITLE_KEYS:
        candidate = _coerce_text(fields.get(key))
        if candidate and candidate.strip():
            title = candidate.strip()
            break
    if not title:
        return None

    author = _coerce_text(fields.get("author"))
    if not (author and author.strip()):
        authors = fields.get("authors")
        author = _coerce_text(authors[0]) if isinstance(authors, list) and authors else None
    author = author.strip() if author and author.strip() else None
    return Suggestion(title=title, author=author)


def normalize_suggestions(value: Any) -> List[Suggestion]:
    """
    Coerce a heterogeneous suggestion list into at most three unique entries.

    Strings become title-only suggestions, mappings are searched for a title
    under ``title``/``book``/``name`` and an author under ``author`` or the
    first of ``authors``. Anything else is skipped. Titles are de-duplicated
    case-insensitively, keeping the first occurrence. Never raises.
    """
    if not isinstance(value, list):
        return []

    suggestions: List[Suggestion] = []
    seen: set[str] = set()
    for item in value:
        suggestion: Optional[Suggestion] = None
        if isinstance(item, str):
            if item.strip():
                suggestion = Suggestion(title=item.strip())
        elif isinstance(item, dict):
            suggestion = _suggestion_from_mapping(item)
        if suggestion is None:
            continue

        dedupe_key = suggestion.title.casefold()
        if dedupe_key in seen:
            continue
        seen.add(dedupe_key)
        suggestions.append(suggestion)
        if len(suggestions) == MAX_SUGGESTIONS:
            break
    return suggestions


def normalize_summary(raw: Any) -> Optional[SummaryResult]:
    """
    Build a ``SummaryResult`` from parsed model output.

    Returns None when ``raw`` is not a mapping or carries no usable
    ``summary`` string; every other field falls back to an empty value.
    """
    if not isinstance(raw, dict):
        return None

    fields = normalize_keys(raw)

    summary = fields.get("summary")
    if not isinstance(summary, str):
        summary = ""

    takeaway = _coerce_string_list(_first_list(fields, TAKEAWAY_KEYS))
    suggestions = normalize_suggestions(_first_list(fields, SUGGESTION_KEYS))
    treat = _coerce_treat(_first_treat(fields))

    if not summary.strip():
        return None

    return SummaryResult(
        summary=summary,
        readers_takeaway=takeaway,
        readers_suggestion=suggestions,
        readers_treat=treat,
    )


def parse_model_json(text: Optional[str]) -> Any:
    """
    Parse the model's text reply as JSON.

    Falls back to the outermost ``{...}`` span when the reply wraps the
    object in prose or code fences. Returns None when nothing parses.
    """
    if not text:
        return None
    try:
        return orjson.loads(text)
    except orjson.JSONDecodeError:
        pass

    match = _JSON_OBJECT.search(text)
    if match is None:
        return None
    try:
        return orjson.loads(match.group(0))
    except orjson.JSONDecodeError:
        return None
