"""Async client for an Upstash-compatible Redis REST endpoint."""

from __future__ import annotations

import logging
from typing import Any, List, Optional

import httpx
import orjson

from booksummary.config import Settings

logger = logging.getLogger(__name__)


class CacheStoreError(Exception):
    """The cache store could not be reached or rejected a command."""


class CacheStore:
    """
    Key-value store used as summary cache and feedback event log.

    Every command is a no-op when the store is not configured, so callers
    never need to check before using it. Failures of a configured store
    raise ``CacheStoreError``; callers decide how to degrade.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: float = 3.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.url = url.rstrip("/") if url else None
        self.token = token
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "CacheStore":
        return cls(
            url=settings.upstash_redis_rest_url,
            token=settings.upstash_redis_rest_token,
            timeout=settings.cache_timeout_s,
        )

    @property
    def configured(self) -> bool:
        return bool(self.url and self.token)

    async def _command(self, *args: Any) -> Any:
        command: List[str] = [str(arg) for arg in args]
        headers = {"Authorization": f"Bearer {self.token}"}
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.post(self.url, json=command, headers=headers)
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPError as exc:
            raise CacheStoreError(f"{command[0]} failed: {exc}") from exc
        except ValueError as exc:
            raise CacheStoreError(f"{command[0]} returned invalid JSON") from exc

        if not isinstance(body, dict):
            raise CacheStoreError(f"{command[0]} returned an unexpected reply")
        if body.get("error"):
            raise CacheStoreError(f"{command[0]} rejected: {body['error']}")
        return body.get("result")

    async def get(self, key: str) -> Optional[str]:
        if not self.configured:
            return None
        result = await self._command("GET", key)
        return result if isinstance(result, str) else None

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        if not self.configured:
            return
        await self._command("SET", key, value, "EX", ttl_seconds)

    async def lpush(self, key: str, value: str) -> None:
        if not self.configured:
            return
        await self._command("LPUSH", key, value)

    async def expire(self, key: str, seconds: int) -> None:
        if not self.configured:
            return
        await self._command("EXPIRE", key, seconds)

    async def get_json(self, key: str) -> Any:
        """Fetch and decode a JSON value; undecodable values read as absent."""
        raw = await self.get(key)
        if raw is None:
            return None
        try:
            return orjson.loads(raw)
        except orjson.JSONDecodeError:
            logger.warning(f"Discarding undecodable cache value for {key}")
            return None

    async def set_json(self, key: str, value: Any, ttl_seconds: int) -> None:
        await self.set(key, orjson.dumps(value).decode(), ttl_seconds)
