"""Pytest configuration and shared fakes for tests."""

from typing import Any, Dict, List, Optional

import httpx
import orjson
import pytest

from booksummary.api.dependencies import Services
from booksummary.clients.books import GoogleBooksClient
from booksummary.clients.cache import CacheStore
from booksummary.config import Settings
from booksummary.feedback import FeedbackLogger
from booksummary.summarizer.providers import LLMProvider
from booksummary.summarizer.service import SummaryService

CACHE_URL = "https://cache.test"
BOOKS_URL = "https://books.test/volumes"


@pytest.fixture(scope="session")
def anyio_backend():
    """Configure anyio to use only asyncio backend."""
    return "asyncio"


class FakeRedisRest:
    """In-memory stand-in for an Upstash Redis REST endpoint."""

    def __init__(self) -> None:
        self.values: Dict[str, str] = {}
        self.lists: Dict[str, List[str]] = {}
        self.ttls: Dict[str, int] = {}
        self.commands: List[List[str]] = []
        self.fail = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        if self.fail:
            return httpx.Response(503, json={"error": "unavailable"})
        command = orjson.loads(request.content)
        self.commands.append(command)
        name, key = command[0], command[1]
        if name == "GET":
            return httpx.Response(200, json={"result": self.values.get(key)})
        if name == "SET":
            self.values[key] = command[2]
            if len(command) >= 5 and command[3] == "EX":
                self.ttls[key] = int(command[4])
            return httpx.Response(200, json={"result": "OK"})
        if name == "LPUSH":
            self.lists.setdefault(key, []).insert(0, command[2])
            return httpx.Response(200, json={"result": len(self.lists[key])})
        if name == "EXPIRE":
            self.ttls[key] = int(command[2])
            return httpx.Response(200, json={"result": 1})
        return httpx.Response(200, json={"error": f"ERR unknown command {name}"})

    def names(self) -> List[str]:
        return [command[0] for command in self.commands]


class StubProvider(LLMProvider):
    """Provider returning canned replies instead of calling a model."""

    name = "stub"
    model = "stub-model"

    def __init__(self, reply: Any = "", error: Optional[Exception] = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        response_format: Optional[Dict[str, Any]] = None,
        max_tokens: int = 1000,
        temperature: float = 0.7,
    ) -> str:
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "user_prompt": user_prompt,
                "response_format": response_format,
            }
        )
        if self.error is not None:
            raise self.error
        if isinstance(self.reply, str):
            return self.reply
        return orjson.dumps(self.reply).decode()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        llm_provider="none",
        upstash_redis_rest_url=CACHE_URL,
        upstash_redis_rest_token="test-token",
        books_base_url=BOOKS_URL,
        image_generation_enabled=False,
    )


@pytest.fixture
def fake_redis() -> FakeRedisRest:
    return FakeRedisRest()


@pytest.fixture
def cache(settings, fake_redis) -> CacheStore:
    return CacheStore(
        url=settings.upstash_redis_rest_url,
        token=settings.upstash_redis_rest_token,
        transport=httpx.MockTransport(fake_redis.handler),
    )


def build_test_services(
    settings: Settings,
    cache: CacheStore,
    provider: Optional[LLMProvider] = None,
    books_handler=None,
) -> Services:
    books_transport = httpx.MockTransport(
        books_handler or (lambda request: httpx.Response(200, json={"items": []}))
    )
    return Services(
        settings=settings,
        cache=cache,
        books=GoogleBooksClient(
            base_url=settings.books_base_url,
            cache=cache,
            cache_ttl=settings.search_cache_ttl_s,
            transport=books_transport,
        ),
        summaries=SummaryService(settings, provider, cache),
        feedback=FeedbackLogger.from_settings(settings, cache),
    )


@pytest.fixture
def stub_provider():
    """Factory for providers with canned replies."""
    return StubProvider


@pytest.fixture
def make_services(settings, cache):
    def _make(provider: Optional[LLMProvider] = None, books_handler=None) -> Services:
        return build_test_services(settings, cache, provider, books_handler)

    return _make
