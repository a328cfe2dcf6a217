from __future__ import annotations

"""Domain models shared by the search, summary and feedback flows."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional


FeedbackKind = Literal["up", "down"]


@dataclass(slots=True)
class BookCandidate:
    id: str
    title: str
    authors: List[str] = field(default_factory=list)
    published_date: Optional[str] = None
    description: Optional[str] = None
    categories: List[str] = field(default_factory=list)
    thumbnail: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "authors": list(self.authors),
            "publishedDate": self.published_date,
            "description": self.description,
            "categories": list(self.categories),
            "thumbnail": self.thumbnail,
        }


@dataclass(slots=True)
class SummaryRequest:
    title: str
    authors: List[str] = field(default_factory=list)
    published_date: Optional[str] = None
    description: Optional[str] = None
    categories: List[str] = field(default_factory=list)
    desired_words: int = 2000
    tolerance: float = 0.15
    language: str = "en"


@dataclass(slots=True)
class Suggestion:
    title: str
    author: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"title": self.title}
        if self.author:
            data["author"] = self.author
        return data


@dataclass(slots=True)
class SummaryResult:
    """Canonical summary shape; only ever built by the normalizer."""

    summary: str
    readers_takeaway: List[str] = field(default_factory=list)
    readers_suggestion: List[Suggestion] = field(default_factory=list)
    readers_treat: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary,
            "readers_takeaway": list(self.readers_takeaway),
            "readers_treat": self.readers_treat,
            "readers_suggestion": [s.to_dict() for s in self.readers_suggestion],
        }


@dataclass(slots=True)
class SummaryOutcome:
    result: SummaryResult
    cache_hit: bool = False
    cache_key: str = ""


@dataclass(slots=True)
class FeedbackEvent:
    kind: FeedbackKind
    book_title: str
    book_authors: List[str] = field(default_factory=list)
    language: str = "en"
    query: str = ""
    country: str = ""
    region: str = ""
    city: str = ""
    user_agent: str = ""
