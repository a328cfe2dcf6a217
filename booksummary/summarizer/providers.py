"""
LLM providers used to generate raw summary text.

Providers only move text to and from the upstream service; parsing and
validation of the reply happen in the normalizer.
"""

from typing import Any, Dict, Optional
import json
import logging
from abc import ABC, abstractmethod

import httpx

from booksummary.config import Settings

logger = logging.getLogger(__name__)


class LLMProvider(ABC):
    """Abstract base class for LLM providers."""

    name: str = "llm"
    model: str = ""

    @abstractmethod
    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        response_format: Optional[Dict[str, Any]] = None,
        max_tokens: int = 1000,
        temperature: float = 0.7,
    ) -> str:
        """Return the model's raw text reply."""
        pass

    def count_tokens(self, text: str) -> int:
        """Estimate tokens (roughly 4 chars per token)."""
        return len(text) // 4


class OpenAIProvider(LLMProvider):
    """OpenAI API provider."""

    name = "openai"

    def __init__(
        self, api_key: str, model: str = "gpt-4o-mini", timeout: float = 90.0
    ):
        try:
            from openai import AsyncOpenAI
            import tiktoken
        except ImportError:
            raise ImportError(
                "OpenAI package not installed. Install with: pip install openai tiktoken"
            )

        self.client = AsyncOpenAI(api_key=api_key, timeout=timeout)
        self.model = model
        self._encoding = None

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        response_format: Optional[Dict[str, Any]] = None,
        max_tokens: int = 1000,
        temperature: float = 0.7,
    ) -> str:
        """Generate response from OpenAI API."""
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]

        kwargs = {
            "model": self.model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }

        # Structured JSON output mode
        if response_format:
            kwargs["response_format"] = {"type": "json_object"}

        response = await self.client.chat.completions.create(**kwargs)
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    @property
    def encoding(self):
        # tiktoken fetches its BPE files on first use
        if self._encoding is None:
            import tiktoken

            try:
                self._encoding = tiktoken.encoding_for_model(self.model)
            except KeyError:
                self._encoding = tiktoken.get_encoding("o200k_base")
        return self._encoding

    def count_tokens(self, text: str) -> int:
        """Count tokens using tiktoken."""
        return len(self.encoding.encode(text))


class AnthropicProvider(LLMProvider):
    """Anthropic Claude API provider."""

    name = "anthropic"

    def __init__(
        self,
        api_key: str,
        model: str = "claude-3-haiku-20240307",
        timeout: float = 90.0,
    ):
        try:
            from anthropic import AsyncAnthropic
        except ImportError:
            raise ImportError(
                "Anthropic package not installed. Install with: pip install anthropic"
            )

        self.client = AsyncAnthropic(api_key=api_key, timeout=timeout)
        self.model = model

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        response_format: Optional[Dict[str, Any]] = None,
        max_tokens: int = 1000,
        temperature: float = 0.7,
    ) -> str:
        """Generate response from Anthropic API."""
        if response_format:
            system_prompt += (
                "\n\nRespond with valid JSON matching this schema:\n"
                + json.dumps(response_format, indent=2)
            )

        response = await self.client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
        )

        return "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )


class OllamaProvider(LLMProvider):
    """Ollama local LLM provider."""

    name = "ollama"

    def __init__(
        self,
        model: str = "llama3.2",
        base_url: str = "http://localhost:11434",
        timeout: float = 90.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Ollama provider.

        Args:
            model: Ollama model name (e.g., llama3.2, mistral)
            base_url: Ollama server URL (default: http://localhost:11434)
            timeout: Request timeout in seconds
            transport: Optional httpx transport, used by tests
        """
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        response_format: Optional[Dict[str, Any]] = None,
        max_tokens: int = 1000,
        temperature: float = 0.7,
    ) -> str:
        """Generate response from Ollama API."""
        if response_format:
            full_prompt = (
                f"{system_prompt}\n\n"
                f"Respond with valid JSON matching this schema:\n"
                f"{json.dumps(response_format, indent=2)}\n\n"
                f"{user_prompt}"
            )
        else:
            full_prompt = f"{system_prompt}\n\n{user_prompt}"

        payload: Dict[str, Any] = {
            "model": self.model,
            "prompt": full_prompt,
            "stream": False,
            "options": {
                "temperature": temperature,
                "num_predict": max_tokens,
            },
        }
        if response_format:
            payload["format"] = "json"

        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self.transport
        ) as client:
            response = await client.post(f"{self.base_url}/api/generate", json=payload)
            response.raise_for_status()
            result = response.json()

        return result.get("response", "") if isinstance(result, dict) else ""


def build_provider(settings: Settings) -> Optional[LLMProvider]:
    """Create the configured provider, or None when it cannot be used."""
    if settings.llm_provider == "none":
        logger.info("LLM provider disabled; summaries are unavailable")
        return None

    if settings.llm_provider == "openai":
        if not settings.openai_api_key:
            logger.warning("OpenAI API key not configured, summaries are unavailable")
            return None
        model = settings.llm_model or "gpt-4o-mini"
        provider: LLMProvider = OpenAIProvider(
            api_key=settings.openai_api_key, model=model, timeout=settings.llm_timeout_s
        )

    elif settings.llm_provider == "anthropic":
        if not settings.anthropic_api_key:
            logger.warning(
                "Anthropic API key not configured, summaries are unavailable"
            )
            return None
        model = settings.llm_model or "claude-3-haiku-20240307"
        provider = AnthropicProvider(
            api_key=settings.anthropic_api_key,
            model=model,
            timeout=settings.llm_timeout_s,
        )

    elif settings.llm_provider == "ollama":
        model = settings.llm_model or "llama3.2"
        base_url = settings.ollama_base_url or "http://localhost:11434"
        provider = OllamaProvider(
            model=model, base_url=base_url, timeout=settings.llm_timeout_s
        )

    else:
        logger.warning(f"Unknown LLM provider: {settings.llm_provider}")
        return None

    logger.info(f"Initialized {provider.name} provider with model: {provider.model}")
    return provider
