"""Summary orchestration: cache lookup, generation, normalization, caching."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional, TypeVar
import logging

import anyio

from booksummary.clients.cache import CacheStore, CacheStoreError
from booksummary.config import Settings
from booksummary.summarizer.cache_keys import summary_cache_key
from booksummary.summarizer.errors import (
    InvalidSummaryError,
    SummarizerUnavailableError,
    SummaryCancelledError,
)
from booksummary.summarizer.models import SummaryOutcome, SummaryRequest, SummaryResult
from booksummary.summarizer.normalizer import normalize_summary, parse_model_json
from booksummary.summarizer.prompts import (
    RESPONSE_SCHEMA,
    build_system_prompt,
    build_user_prompt,
    resolve_language,
)
from booksummary.summarizer.providers import LLMProvider

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SummaryService:
    """
    Produce a ``SummaryResult`` for one book selection.

    Flow per call: check cache, on a miss call the provider, normalize the
    reply, write it back to the cache. Cache problems never fail a call.
    An optional ``cancel_event`` abandons the call between steps and while
    a network round-trip is outstanding; nothing is cached afterwards.
    """

    def __init__(
        self,
        settings: Settings,
        provider: Optional[LLMProvider],
        cache: CacheStore,
    ) -> None:
        self.settings = settings
        self.provider = provider
        self.cache = cache

    async def summarize(
        self,
        request: SummaryRequest,
        cancel_event: Optional[anyio.Event] = None,
    ) -> SummaryOutcome:
        language_name = resolve_language(request.language)
        key = summary_cache_key(
            request, language_name, prefix=self.settings.summary_cache_prefix
        )

        self._check_cancelled(cancel_event)
        cached = await self._cancellable(self._read_cache, key, cancel_event=cancel_event)
        if cached is not None:
            logger.info(f"Summary cache hit for {key}")
            return SummaryOutcome(result=cached, cache_hit=True, cache_key=key)
        logger.info(f"Summary cache miss for {key}")

        self._check_cancelled(cancel_event)
        raw_text = await self._cancellable(
            self._generate, request, language_name, cancel_event=cancel_event
        )

        self._check_cancelled(cancel_event)
        result = normalize_summary(parse_model_json(raw_text))
        if result is None:
            logger.warning(f"Model returned an empty or invalid summary for {key}")
            raise InvalidSummaryError("Model returned an empty or invalid summary")

        self._check_cancelled(cancel_event)
        await self._write_cache(key, result)
        return SummaryOutcome(result=result, cache_hit=False, cache_key=key)

    async def _read_cache(self, key: str) -> Optional[SummaryResult]:
        try:
            cached = await self.cache.get_json(key)
        except CacheStoreError as exc:
            logger.warning(f"Summary cache read failed, treating as miss: {exc}")
            return None
        # Stored values pass through the same gate as fresh model output.
        return normalize_summary(cached)

    async def _write_cache(self, key: str, result: SummaryResult) -> None:
        try:
            await self.cache.set_json(
                key, result.to_dict(), self.settings.summary_cache_ttl_s
            )
        except CacheStoreError as exc:
            logger.warning(f"Summary cache write failed, result still returned: {exc}")

    async def _generate(self, request: SummaryRequest, language_name: str) -> str:
        if self.provider is None:
            raise SummarizerUnavailableError("No summary provider is configured")

        system_prompt = build_system_prompt(
            language_name, request.desired_words, request.tolerance
        )
        user_prompt = build_user_prompt(
            request, self.settings.description_snippet_chars
        )
        if logger.isEnabledFor(logging.DEBUG):
            # tokenizers may load their vocabulary from disk or network
            prompt_tokens = await anyio.to_thread.run_sync(
                self.provider.count_tokens, system_prompt + user_prompt
            )
            logger.debug(
                f"Requesting summary of {request.title!r} in {language_name} "
                f"(~{prompt_tokens} prompt tokens)"
            )
        try:
            return await self.provider.generate(
                system_prompt,
                user_prompt,
                response_format=RESPONSE_SCHEMA,
                max_tokens=self.settings.llm_max_tokens,
                temperature=self.settings.llm_temperature,
            )
        except Exception as exc:
            logger.error(f"Summary provider {self.provider.name} failed: {exc}")
            raise SummarizerUnavailableError(
                "The summary service is temporarily unreachable"
            ) from exc

    @staticmethod
    def _check_cancelled(cancel_event: Optional[anyio.Event]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise SummaryCancelledError("Summary request was cancelled")

    @staticmethod
    async def _cancellable(
        func: Callable[..., Awaitable[T]],
        *args: Any,
        cancel_event: Optional[anyio.Event] = None,
    ) -> T:
        """Await ``func(*args)``, abandoning it as soon as ``cancel_event`` fires."""
        if cancel_event is None:
            return await func(*args)

        finished = False
        result: Any = None
        error: Optional[Exception] = None
        async with anyio.create_task_group() as tg:

            async def _watch() -> None:
                await cancel_event.wait()
                tg.cancel_scope.cancel()

            tg.start_soon(_watch)
            # Raised outside the task group so callers see the bare exception.
            try:
                result = await func(*args)
            except Exception as exc:
                error = exc
            finished = True
            tg.cancel_scope.cancel()

        if error is not None:
            raise error
        if not finished:
            raise SummaryCancelledError("Summary request was cancelled")
        return result
