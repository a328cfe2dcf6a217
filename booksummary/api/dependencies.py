"""Service wiring, built once per application and injected into routes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from starlette.requests import Request

from booksummary.clients.books import GoogleBooksClient
from booksummary.clients.cache import CacheStore
from booksummary.config import Settings
from booksummary.covers import CoverIllustrator
from booksummary.feedback import FeedbackLogger
from booksummary.summarizer.providers import build_provider
from booksummary.summarizer.service import SummaryService


@dataclass
class Services:
    settings: Settings
    cache: CacheStore
    books: GoogleBooksClient
    summaries: SummaryService
    feedback: FeedbackLogger
    covers: Optional[CoverIllustrator] = None


def build_services(settings: Settings) -> Services:
    cache = CacheStore.from_settings(settings)
    return Services(
        settings=settings,
        cache=cache,
        books=GoogleBooksClient.from_settings(settings, cache=cache),
        summaries=SummaryService(settings, build_provider(settings), cache),
        feedback=FeedbackLogger.from_settings(settings, cache),
        covers=CoverIllustrator.from_settings(settings),
    )


def get_services(request: Request) -> Services:
    return request.app.state.services
