"""Client settings via environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Client settings via environment variables."""

    # Backend
    api_base_url: str = "http://localhost:3001"
    ask_stream_path: str = "/api/ask/stream"
    auth_token: str | None = None  # Sent as a bearer token when set

    # Transport
    request_timeout_seconds: float = 120.0
    connect_timeout_seconds: float = 10.0
    connect_retry_attempts: int = 3

    # Decoding
    fallback_min_chars: int = 50  # Residual prose shorter than this is not promoted
    promote_untagged_text: bool = True

    # Sources
    default_pdf_page_count: int = 50

    # Logging
    log_level: str = "INFO"
    log_json: bool = False  # One JSON object per line

    model_config = {
        "env_prefix": "RESEARCH_STREAM_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
