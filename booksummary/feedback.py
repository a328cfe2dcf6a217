"""Reader feedback event log, kept as one list per calendar day."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo

import orjson

from booksummary.clients.cache import CacheStore, CacheStoreError
from booksummary.config import Settings
from booksummary.summarizer.models import FeedbackEvent

logger = logging.getLogger(__name__)


class FeedbackLogger:
    """Append feedback events to ``<prefix><YYYY-MM-DD>`` lists in the cache store."""

    def __init__(
        self,
        cache: CacheStore,
        tz_name: str = "Asia/Kolkata",
        key_prefix: str = "trl:fb:",
        ttl_seconds: int = 60 * 24 * 60 * 60,
    ) -> None:
        self.cache = cache
        self.tz_name = tz_name
        self.tz = ZoneInfo(tz_name)
        self.key_prefix = key_prefix
        self.ttl_seconds = ttl_seconds

    @classmethod
    def from_settings(cls, settings: Settings, cache: CacheStore) -> "FeedbackLogger":
        return cls(
            cache,
            tz_name=settings.feedback_timezone,
            key_prefix=settings.feedback_key_prefix,
            ttl_seconds=settings.feedback_ttl_s,
        )

    def build_record(
        self, event: FeedbackEvent, now: Optional[datetime] = None
    ) -> tuple[str, Dict[str, Any]]:
        """Return the day-list key and the stored record for ``event``."""
        now_utc = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
        local = now_utc.astimezone(self.tz)
        record = {
            "kind": event.kind,
            "isoUTC": now_utc.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "localString": local.strftime("%d %b %Y, %H:%M:%S"),
            "tz": self.tz_name,
            "query": event.query or "",
            "language": event.language or "en",
            "book": {"title": event.book_title, "authors": list(event.book_authors)},
            "location": {
                "country": event.country,
                "region": event.region,
                "city": event.city,
            },
            "ua": event.user_agent,
        }
        return f"{self.key_prefix}{local.strftime('%Y-%m-%d')}", record

    async def record(self, event: FeedbackEvent, now: Optional[datetime] = None) -> bool:
        """
        Append ``event`` to today's list and refresh the list's TTL.

        Returns False instead of raising when the store fails; feedback is
        fire-and-forget.
        """
        key, record = self.build_record(event, now)
        try:
            await self.cache.lpush(key, orjson.dumps(record).decode())
            await self.cache.expire(key, self.ttl_seconds)
        except CacheStoreError as exc:
            logger.error(f"Failed to record {event.kind} feedback in {key}: {exc}")
            return False
        return True
