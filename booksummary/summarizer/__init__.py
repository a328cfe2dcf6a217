"""Summary generation pipeline."""

from booksummary.summarizer.models import SummaryRequest, SummaryResult
from booksummary.summarizer.service import SummaryService

__all__ = ["SummaryRequest", "SummaryResult", "SummaryService"]
