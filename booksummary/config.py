from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Centralized application settings leveraging environment overrides.
    """

    app_name: str = "Reader's Lawn Book Summaries"
    environment: str = "local"
    allow_origins: List[str] = Field(default_factory=lambda: ["*"])
    max_payload_bytes: int = Field(256 * 1024, ge=1024)
    log_level: str = "INFO"

    # LLM settings
    llm_provider: str = Field(
        "openai", description="LLM provider: none, openai, anthropic, ollama"
    )
    llm_model: Optional[str] = Field(None, description="Model name for LLM provider")
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    ollama_base_url: Optional[str] = None
    llm_max_tokens: int = Field(4000, ge=100, le=16000)
    llm_temperature: float = Field(0.7, ge=0.0, le=2.0)
    llm_timeout_s: float = Field(90.0, gt=0)

    # Summary defaults
    summary_desired_words: int = Field(2000, ge=100)
    summary_tolerance: float = Field(0.15, ge=0.0, le=1.0)
    description_snippet_chars: int = Field(1200, ge=0)
    summary_cache_ttl_s: int = Field(30 * 24 * 60 * 60, ge=1)  # 30 days
    summary_cache_prefix: str = "trl:sum:"

    # Upstash-compatible Redis REST cache
    upstash_redis_rest_url: Optional[str] = None
    upstash_redis_rest_token: Optional[str] = None
    cache_timeout_s: float = Field(3.0, gt=0)

    # Google Books search
    google_books_api_key: Optional[str] = None
    books_base_url: str = "https://www.googleapis.com/books/v1/volumes"
    books_timeout_s: float = Field(5.0, gt=0)
    books_default_results: int = Field(30, ge=1, le=40)
    books_max_results: int = Field(40, ge=1, le=40)
    search_cache_ttl_s: int = Field(60, ge=0)
    search_cache_prefix: str = "trl:books:"

    # Feedback event log
    feedback_ttl_s: int = Field(60 * 24 * 60 * 60, ge=1)  # 60 days
    feedback_timezone: str = "Asia/Kolkata"
    feedback_key_prefix: str = "trl:fb:"
    geo_country_header: str = "x-vercel-ip-country"
    geo_region_header: str = "x-vercel-ip-country-region"
    geo_city_header: str = "x-vercel-ip-city"

    # Cover illustrations
    image_generation_enabled: bool = False
    image_model: str = "gpt-image-1"
    image_size: str = "1024x1536"

    disconnect_poll_interval_s: float = Field(0.25, gt=0)

    class Config:
        env_file = ".env"
        case_sensitive = False

    @property
    def cache_enabled(self) -> bool:
        return bool(self.upstash_redis_rest_url and self.upstash_redis_rest_token)


@lru_cache
def get_settings() -> Settings:
    return Settings()
