"""Illustrated cover headers generated with the OpenAI images API."""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence

from booksummary.config import Settings

logger = logging.getLogger(__name__)


class CoverGenerationError(Exception):
    """The image provider returned no usable image."""


def build_cover_prompt(title: str, authors: Sequence[str], size: str = "1024x1536") -> str:
    author_text = f" by {', '.join(authors)}" if authors else ""
    return (
        f"Create a vertical {size} animated/illustrative book-cover-style header "
        f'inspired by the tone and motifs of "{title}"{author_text}. '
        "Use clean modern vector/illustration style, soft gradients, and symbolic imagery. "
        "Avoid copying the exact copyrighted cover art, logos, or layout."
    )


class CoverIllustrator:
    """Generate a cover illustration and return it as a PNG data URL."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-image-1",
        size: str = "1024x1536",
        client: Optional[Any] = None,
    ):
        if client is None:
            try:
                from openai import AsyncOpenAI
            except ImportError:
                raise ImportError(
                    "OpenAI package not installed. Install with: pip install openai"
                )
            client = AsyncOpenAI(api_key=api_key)
        self.client = client
        self.model = model
        self.size = size

    @classmethod
    def from_settings(cls, settings: Settings) -> Optional["CoverIllustrator"]:
        if not settings.image_generation_enabled:
            return None
        if not settings.openai_api_key:
            logger.warning("Image generation enabled without an OpenAI API key")
            return None
        return cls(
            api_key=settings.openai_api_key,
            model=settings.image_model,
            size=settings.image_size,
        )

    async def generate(self, title: str, authors: List[str]) -> str:
        prompt = build_cover_prompt(title, authors, self.size)
        result = await self.client.images.generate(
            model=self.model, prompt=prompt, size=self.size, n=1
        )
        data = getattr(result, "data", None) or []
        b64 = getattr(data[0], "b64_json", None) if data else None
        if not b64:
            raise CoverGenerationError("No image returned")
        return f"data:image/png;base64,{b64}"
