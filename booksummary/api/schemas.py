# booksummary/api/schemas.py
from typing import Any, List, Literal, Optional
from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)

from booksummary.summarizer.models import BookCandidate, SummaryResult


def _string_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, list):
        return [str(item) for item in value if item is not None]
    return [str(value)]


class SummarizeRequestModel(BaseModel):
    # clients post the whole selected candidate, so unknown fields are ignored
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: Optional[str] = Field(default=None, description="Book title (required).")
    authors: List[str] = Field(default_factory=list)
    published_date: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("publishedDate", "published_date"),
    )
    description: Optional[str] = Field(default=None)
    categories: List[str] = Field(default_factory=list)
    desired_words: Optional[int] = Field(
        default=None,
        ge=50,
        le=10000,
        validation_alias=AliasChoices("desiredWords", "desired_words"),
    )
    tolerance: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    language: Optional[str] = Field(default=None)

    @field_validator("authors", "categories", mode="before")
    @classmethod
    def normalize_string_list(cls, value: Any) -> List[str]:
        return _string_list(value)


class SuggestionModel(BaseModel):
    title: str
    author: Optional[str] = None


class SummaryResponseModel(BaseModel):
    summary: str
    readers_takeaway: List[str] = Field(default_factory=list)
    readers_treat: str = ""
    readers_suggestion: List[SuggestionModel] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, result: SummaryResult) -> "SummaryResponseModel":
        return cls(
            summary=result.summary,
            readers_takeaway=list(result.readers_takeaway),
            readers_treat=result.readers_treat,
            readers_suggestion=[
                SuggestionModel(title=s.title, author=s.author)
                for s in result.readers_suggestion
            ],
        )


class BookCandidateModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    authors: List[str] = Field(default_factory=list)
    published_date: Optional[str] = Field(default=None, serialization_alias="publishedDate")
    description: Optional[str] = None
    categories: List[str] = Field(default_factory=list)
    thumbnail: Optional[str] = None

    @classmethod
    def from_domain(cls, book: BookCandidate) -> "BookCandidateModel":
        return cls(
            id=book.id,
            title=book.title,
            authors=list(book.authors),
            published_date=book.published_date,
            description=book.description,
            categories=list(book.categories),
            thumbnail=book.thumbnail,
        )


class SearchResponseModel(BaseModel):
    items: List[BookCandidateModel] = Field(default_factory=list)
    error: Optional[str] = None


class FeedbackBookModel(BaseModel):
    title: Optional[str] = None
    authors: List[str] = Field(default_factory=list)

    @field_validator("authors", mode="before")
    @classmethod
    def normalize_authors(cls, value: Any) -> List[str]:
        return _string_list(value)


class FeedbackRequestModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    kind: Optional[Literal["up", "down"]] = None
    book: Optional[FeedbackBookModel] = None
    language: Optional[str] = None
    query: Optional[str] = None


class CoverRequestModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = None
    authors: List[str] = Field(default_factory=list)

    @field_validator("authors", mode="before")
    @classmethod
    def normalize_authors(cls, value: Any) -> List[str]:
        return _string_list(value)
