import pytest

from booksummary.summarizer.models import Suggestion
from booksummary.summarizer.normalizer import (
    normalize_key,
    normalize_suggestions,
    normalize_summary,
    parse_model_json,
)


def test_summary_is_preserved_verbatim():
    summary = "Para1\n\nPara2\n\nPara3"
    result = normalize_summary(
        {
            "summary": summary,
            "readers_takeaway": ["a", "b"],
            "readers_suggestion": [
                {"title": "Guns, Germs, and Steel", "author": "Jared Diamond"}
            ],
        }
    )

    assert result is not None
    assert result.summary == summary
    assert result.readers_takeaway == ["a", "b"]
    assert result.readers_suggestion == [
        Suggestion(title="Guns, Germs, and Steel", author="Jared Diamond")
    ]
    assert result.readers_treat == ""


@pytest.mark.parametrize(
    "raw",
    [
        None,
        "summary",
        ["summary"],
        42,
        {},
        {"summary": ""},
        {"Summary": ""},
        {"summary": "   \n "},
        {"summary": None, "readers_takeaway": ["a"]},
        {"summary": ["Para1", "Para2"]},
        {"summary": 12, "readers_treat": "Bio"},
    ],
)
def test_missing_or_unusable_summary_is_rejected(raw):
    assert normalize_summary(raw) is None


@pytest.mark.parametrize(
    "key", ["Readers-Takeaway", "readers takeaway", "readers_takeaway", "Reader's Takeaway"]
)
def test_takeaway_key_spellings_are_equivalent(key):
    result = normalize_summary({"SUMMARY": "text", key: ["one", "two"]})

    assert result is not None
    assert result.readers_takeaway == ["one", "two"]


def test_apostrophe_variant_keys_are_accepted():
    result = normalize_summary(
        {
            "summary": "text",
            "reader_s_takeaway": ["x"],
            "reader_s_suggestion": ["Dune"],
        }
    )

    assert result.readers_takeaway == ["x"]
    assert [s.title for s in result.readers_suggestion] == ["Dune"]


def test_takeaway_skips_non_text_items():
    result = normalize_summary(
        {"summary": "text", "readers_takeaway": ["keep", None, {"a": 1}, "", 3]}
    )

    assert result.readers_takeaway == ["keep", "3"]


def test_takeaway_that_is_not_a_list_becomes_empty():
    result = normalize_summary({"summary": "text", "readers_takeaway": "one line"})

    assert result.readers_takeaway == []


def test_non_list_spelling_falls_through_to_next_spelling():
    result = normalize_summary(
        {
            "summary": "text",
            "readers_takeaway": "oops",
            "reader_s_takeaway": ["a"],
            "readers_suggestion": {"title": "Dune"},
            "reader_s_suggestion": ["Foundation"],
        }
    )

    assert result.readers_takeaway == ["a"]
    assert [s.title for s in result.readers_suggestion] == ["Foundation"]


def test_later_key_wins_when_spellings_collide():
    result = normalize_summary({"summary": "", "Summary": "text"})

    assert result is not None
    assert result.summary == "text"
    assert normalize_summary({"Summary": "text", "summary": ""}) is None


def test_treat_list_is_joined_with_spaces():
    result = normalize_summary(
        {"summary": "text", "Readers Treat": ["Line one.", "Line two."]}
    )

    assert result.readers_treat == "Line one. Line two."


def test_treat_of_unexpected_type_is_empty():
    result = normalize_summary({"summary": "text", "readers_treat": {"bio": "x"}})

    assert result.readers_treat == ""


def test_string_suggestions_are_deduplicated_case_insensitively():
    suggestions = normalize_suggestions(["Dune", "DUNE", "Foundation"])

    assert suggestions == [Suggestion(title="Dune"), Suggestion(title="Foundation")]
    assert [s.to_dict() for s in suggestions] == [
        {"title": "Dune"},
        {"title": "Foundation"},
    ]


def test_object_suggestions_keep_first_duplicate():
    suggestions = normalize_suggestions(
        [{"title": "Dune", "author": "Frank Herbert"}, {"title": "dune", "author": "Other"}]
    )

    assert suggestions == [Suggestion(title="Dune", author="Frank Herbert")]


def test_suggestions_are_capped_at_three_in_first_occurrence_order():
    suggestions = normalize_suggestions([f"Book {i}" for i in range(10)])

    assert [s.title for s in suggestions] == ["Book 0", "Book 1", "Book 2"]


def test_suggestion_title_and_author_fallbacks():
    suggestions = normalize_suggestions(
        [
            {"Book": "  Sapiens  ", "Authors": ["Yuval Noah Harari", "Someone"]},
            {"Name": "Homo Deus"},
            {"TITLE": "Cosmos", "Author": "Carl Sagan"},
        ]
    )

    assert suggestions == [
        Suggestion(title="Sapiens", author="Yuval Noah Harari"),
        Suggestion(title="Homo Deus"),
        Suggestion(title="Cosmos", author="Carl Sagan"),
    ]


def test_garbage_suggestions_are_skipped():
    suggestions = normalize_suggestions(
        [None, 7, "   ", {"author": "No Title"}, {"title": "  "}, ["Dune"], "Emma"]
    )

    assert suggestions == [Suggestion(title="Emma")]


def test_non_list_suggestions_are_empty():
    assert normalize_suggestions({"title": "Dune"}) == []
    assert normalize_suggestions(None) == []


def test_normalize_key_folds_case_and_separators():
    assert normalize_key("Readers-Takeaway") == "readers_takeaway"
    assert normalize_key("readers takeaway") == "readers_takeaway"
    assert normalize_key("Reader's Suggestion") == "reader_s_suggestion"


def test_parse_model_json_direct():
    assert parse_model_json('{"summary": "x"}') == {"summary": "x"}


def test_parse_model_json_extracts_wrapped_object():
    text = 'Sure! Here it is:\n```json\n{"summary": "x", "readers_takeaway": []}\n```'

    assert parse_model_json(text) == {"summary": "x", "readers_takeaway": []}


@pytest.mark.parametrize("text", [None, "", "no json here", "{not: valid}"])
def test_parse_model_json_failure_returns_none(text):
    assert parse_model_json(text) is None
