from datetime import date

from booksummary.summarizer.cache_keys import (
    KEY_HEX_CHARS,
    hash_key,
    search_cache_key,
    summary_cache_key,
)
from booksummary.summarizer.models import SummaryRequest


def _request(**overrides) -> SummaryRequest:
    fields = {
        "title": "Sapiens",
        "authors": ["Yuval Noah Harari"],
        "published_date": "2015",
        "desired_words": 2000,
        "language": "en",
    }
    fields.update(overrides)
    return SummaryRequest(**fields)


def test_hash_key_ignores_insertion_order():
    first = hash_key({"title": "Dune", "language": "English", "desiredWords": 2000})
    second = hash_key({"desiredWords": 2000, "language": "English", "title": "Dune"})

    assert first == second
    assert len(first) == KEY_HEX_CHARS
    int(first, 16)


def test_hash_key_accepts_values_json_cannot_encode():
    assert len(hash_key({"title": "Dune", "when": date(2020, 1, 1), "n": None})) == 24


def test_summary_key_is_deterministic_and_prefixed():
    key = summary_cache_key(_request(), "English")

    assert key == summary_cache_key(_request(), "English")
    assert key.startswith("trl:sum:")
    assert len(key) == len("trl:sum:") + KEY_HEX_CHARS


def test_language_changes_the_key():
    assert summary_cache_key(_request(), "English") != summary_cache_key(
        _request(), "Hindi"
    )


def test_desired_words_changes_the_key():
    assert summary_cache_key(_request(), "English") != summary_cache_key(
        _request(desired_words=1000), "English"
    )


def test_fields_outside_cache_identity_do_not_change_the_key():
    base = summary_cache_key(_request(), "English")
    varied = summary_cache_key(
        _request(tolerance=0.3, description="Different", categories=["History"]),
        "English",
    )

    assert base == varied


def test_search_key_trims_query():
    assert search_cache_key("dune ", 30) == search_cache_key("  dune", 30)
    assert search_cache_key("dune", 30) != search_cache_key("dune", 30, "fr")
