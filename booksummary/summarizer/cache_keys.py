"""Deterministic storage keys for cached summaries and searches."""

from __future__ import annotations

import hashlib
from typing import Any, Mapping, Optional

import orjson

from booksummary.summarizer.models import SummaryRequest

KEY_HEX_CHARS = 24


def hash_key(fields: Mapping[str, Any]) -> str:
    """
    Hash a mapping of request fields into a short hex digest.

    Keys are sorted before serialization so insertion order never matters.
    Values orjson cannot encode natively fall back to ``str()``.
    """
    canonical = orjson.dumps(
        dict(fields), option=orjson.OPT_SORT_KEYS | orjson.OPT_NON_STR_KEYS, default=str
    )
    return hashlib.sha256(canonical).hexdigest()[:KEY_HEX_CHARS]


def summary_cache_fields(request: SummaryRequest, language_name: str) -> dict:
    # tolerance, description and categories are not part of cache identity
    return {
        "title": request.title,
        "authors": list(request.authors),
        "publishedDate": request.published_date,
        "desiredWords": request.desired_words,
        "language": language_name,
    }


def summary_cache_key(
    request: SummaryRequest, language_name: str, prefix: str = "trl:sum:"
) -> str:
    return f"{prefix}{hash_key(summary_cache_fields(request, language_name))}"


def search_cache_key(
    query: str,
    max_results: int,
    lang_restrict: Optional[str] = None,
    prefix: str = "trl:books:",
) -> str:
    fields = {"q": query.strip(), "maxResults": max_results, "lang": lang_restrict}
    return f"{prefix}{hash_key(fields)}"
