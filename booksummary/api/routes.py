"""HTTP route handlers for search, summaries, feedback and cover images."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Type, TypeVar

import anyio
import orjson
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from booksummary.api.dependencies import Services, get_services
from booksummary.clients.books import MIN_QUERY_CHARS
from booksummary.config import Settings
from booksummary.covers import CoverGenerationError
from booksummary.summarizer.errors import (
    InvalidSummaryError,
    SummarizerUnavailableError,
    SummaryCancelledError,
    SummaryError,
)
from booksummary.summarizer.models import FeedbackEvent, SummaryOutcome, SummaryRequest

from .schemas import (
    BookCandidateModel,
    CoverRequestModel,
    FeedbackRequestModel,
    SearchResponseModel,
    SummarizeRequestModel,
    SummaryResponseModel,
)

logger = logging.getLogger(__name__)

router = APIRouter()

ModelT = TypeVar("ModelT", bound=BaseModel)

# Non-standard "client closed request" status; the caller is gone anyway.
STATUS_CLIENT_CLOSED_REQUEST = 499


async def _load_request_model(
    http_request: Request, model_cls: Type[ModelT], settings: Settings
) -> ModelT:
    header_length = http_request.headers.get("content-length")
    if header_length:
        try:
            content_length = int(header_length)
        except ValueError:
            content_length = None
        else:
            if content_length > settings.max_payload_bytes:
                raise HTTPException(
                    status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                    detail={
                        "error": "payload_too_large",
                        "limit_bytes": settings.max_payload_bytes,
                    },
                )

    body_bytes = await http_request.body()
    if body_bytes and len(body_bytes) > settings.max_payload_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail={
                "error": "payload_too_large",
                "limit_bytes": settings.max_payload_bytes,
            },
        )

    if not body_bytes:
        data: Any = {}
    else:
        try:
            data = orjson.loads(body_bytes)
        except orjson.JSONDecodeError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"error": "invalid_json", "details": str(exc)},
            ) from exc

    try:
        return model_cls.model_validate(data)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors()) from exc


async def load_summarize_request(
    http_request: Request, services: Services = Depends(get_services)
) -> SummarizeRequestModel:
    return await _load_request_model(
        http_request, SummarizeRequestModel, services.settings
    )


async def load_feedback_request(
    http_request: Request, services: Services = Depends(get_services)
) -> FeedbackRequestModel:
    return await _load_request_model(
        http_request, FeedbackRequestModel, services.settings
    )


async def load_cover_request(
    http_request: Request, services: Services = Depends(get_services)
) -> CoverRequestModel:
    return await _load_request_model(http_request, CoverRequestModel, services.settings)


def _invalid_request(details: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"error": "invalid_request", "details": details},
    )


async def _watch_disconnect(
    http_request: Request, cancel_event: anyio.Event, interval: float
) -> None:
    while not await http_request.is_disconnected():
        await anyio.sleep(interval)
    logger.info(f"Client disconnected from {http_request.url.path}")
    cancel_event.set()


async def _run_until_disconnect(
    http_request: Request,
    func: Callable[[anyio.Event], Awaitable[SummaryOutcome]],
    interval: float,
) -> SummaryOutcome:
    """Run ``func`` with an event that fires if the client goes away."""
    cancel_event = anyio.Event()
    outcome: Optional[SummaryOutcome] = None
    error: Optional[SummaryError] = None
    async with anyio.create_task_group() as tg:
        tg.start_soon(_watch_disconnect, http_request, cancel_event, interval)
        try:
            outcome = await func(cancel_event)
        except SummaryError as exc:
            error = exc
        finally:
            tg.cancel_scope.cancel()

    if error is not None:
        raise error
    if outcome is None:
        raise SummaryCancelledError("Summary request was cancelled")
    return outcome


def _to_summary_request(
    model: SummarizeRequestModel, settings: Settings
) -> SummaryRequest:
    return SummaryRequest(
        title=model.title.strip(),
        authors=model.authors,
        published_date=model.published_date,
        description=model.description,
        categories=model.categories,
        desired_words=model.desired_words or settings.summary_desired_words,
        tolerance=(
            model.tolerance if model.tolerance is not None else settings.summary_tolerance
        ),
        language=model.language or "en",
    )


@router.get("/v1/books/search", response_model=SearchResponseModel)
async def search_books(
    q: str = Query(default=""),
    max_results: Optional[int] = Query(default=None, alias="maxResults", ge=1, le=40),
    lang_restrict: Optional[str] = Query(default=None, alias="langRestrict"),
    services: Services = Depends(get_services),
):
    if len(q.strip()) < MIN_QUERY_CHARS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "query_too_short",
                "details": f"Query must be at least {MIN_QUERY_CHARS} characters.",
            },
        )

    outcome = await services.books.search(
        q,
        max_results=max_results or services.settings.books_default_results,
        lang_restrict=lang_restrict or None,
    )
    response = SearchResponseModel(
        items=[BookCandidateModel.from_domain(book) for book in outcome.items],
        error=outcome.error,
    )
    return JSONResponse(
        content=response.model_dump(by_alias=True, exclude_none=True)
    )


@router.post("/v1/summarize")
async def summarize_book(
    http_request: Request,
    summarize_request: SummarizeRequestModel = Depends(load_summarize_request),
    services: Services = Depends(get_services),
):
    if not summarize_request.title or not summarize_request.title.strip():
        raise _invalid_request("`title` is required.")

    settings = services.settings
    request = _to_summary_request(summarize_request, settings)

    try:
        outcome = await _run_until_disconnect(
            http_request,
            lambda cancel_event: services.summaries.summarize(request, cancel_event),
            settings.disconnect_poll_interval_s,
        )
    except SummaryCancelledError:
        logger.info(f"Summary for {request.title!r} cancelled by the client")
        return JSONResponse(
            status_code=STATUS_CLIENT_CLOSED_REQUEST, content={"status": "cancelled"}
        )
    except InvalidSummaryError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"error": exc.code, "details": str(exc)},
        ) from exc
    except SummarizerUnavailableError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error": exc.code, "details": str(exc)},
        ) from exc

    payload = SummaryResponseModel.from_domain(outcome.result)
    return JSONResponse(
        content=payload.model_dump(exclude_none=True),
        headers={"X-Cache": "HIT" if outcome.cache_hit else "MISS"},
    )


@router.post("/v1/feedback")
async def submit_feedback(
    http_request: Request,
    background_tasks: BackgroundTasks,
    feedback_request: FeedbackRequestModel = Depends(load_feedback_request),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    book = feedback_request.book
    if not feedback_request.kind or book is None or not book.title:
        raise _invalid_request("`kind` and `book.title` are required.")

    settings = services.settings
    headers = http_request.headers
    event = FeedbackEvent(
        kind=feedback_request.kind,
        book_title=book.title,
        book_authors=book.authors,
        language=feedback_request.language or "en",
        query=feedback_request.query or "",
        country=headers.get(settings.geo_country_header, ""),
        region=headers.get(settings.geo_region_header, ""),
        city=headers.get(settings.geo_city_header, ""),
        user_agent=headers.get("user-agent", ""),
    )
    background_tasks.add_task(services.feedback.record, event)
    return {"ok": True}


@router.post("/v1/generate-image")
async def generate_cover(
    cover_request: CoverRequestModel = Depends(load_cover_request),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    if not cover_request.title:
        raise _invalid_request("`title` is required.")
    if services.covers is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "error": "image_generation_disabled",
                "details": "Cover illustrations are not enabled.",
            },
        )

    try:
        image = await services.covers.generate(cover_request.title, cover_request.authors)
    except CoverGenerationError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"error": "image_failed", "details": str(exc)},
        ) from exc
    except Exception as exc:
        logger.error(f"Cover generation failed for {cover_request.title!r}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error": "image_failed", "details": "Image service is unreachable."},
        ) from exc
    return {"image": image}
