import logging
import os
from dataclasses import dataclass
from functools import lru_cache

import redis.asyncio as redis
from dotenv import load_dotenv

load_dotenv()

MAX_CACHE_TTL_SECONDS = 72 * 60 * 60


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    # Blob store
    blob_backend: str = os.getenv("BLOB_BACKEND", "vercel")  # vercel, redis or memory
    blob_read_write_token: str | None = os.getenv("BLOB_READ_WRITE_TOKEN")
    blob_api_url: str = os.getenv("BLOB_API_URL", "https://blob.vercel-storage.com")

    # Redis
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379")
    redis_password: str | None = os.getenv("REDIS_PASSWORD")

    # Content cache
    cache_ttl_seconds: int = int(os.getenv("CACHE_TTL_SECONDS", "86400"))  # 24 hours

    # Input normalization
    query_mode: str = os.getenv("QUERY_MODE", "strict")  # strict or permissive
    max_query_length: int = int(os.getenv("MAX_QUERY_LENGTH", "50"))

    # Rate limiting
    rate_limit_max_requests: int = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "10"))
    rate_limit_window_seconds: int = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "3600"))
    rate_limit_prefix: str = os.getenv("RATE_LIMIT_PREFIX", "ratelimit/")
    rate_limit_salt: str = os.getenv("RATE_LIMIT_SALT", "")

    # Gemini
    gemini_api_key: str | None = os.getenv("GEMINI_API_KEY")
    gemini_model: str = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
    gemini_base_url: str = os.getenv(
        "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
    )

    # Upstream call policy
    upstream_timeout_seconds: float = float(os.getenv("UPSTREAM_TIMEOUT_SECONDS", "60"))
    upstream_max_attempts: int = int(os.getenv("UPSTREAM_MAX_ATTEMPTS", "1"))
    upstream_backoff_seconds: float = float(os.getenv("UPSTREAM_BACKOFF_SECONDS", "1.0"))

    # API
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    api_reload: bool = os.getenv("API_RELOAD", "true").lower() == "true"
    frontend_url: str = os.getenv("FRONTEND_URL", "*")

    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def cors_origins(self) -> list[str]:
        """Allowed CORS origins parsed from FRONTEND_URL."""
        return [origin.strip() for origin in self.frontend_url.split(",") if origin.strip()]

    @property
    def cache_ttl_ms(self) -> int:
        return self.cache_ttl_seconds * 1000

    @property
    def rate_limit_window_ms(self) -> int:
        return self.rate_limit_window_seconds * 1000

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if self.blob_backend not in ("vercel", "redis", "memory"):
            raise ValueError(
                f"BLOB_BACKEND must be one of ['vercel', 'redis', 'memory'], got {self.blob_backend}"
            )

        if not 0 < self.cache_ttl_seconds <= MAX_CACHE_TTL_SECONDS:
            raise ValueError(
                f"CACHE_TTL_SECONDS must be between 1 and {MAX_CACHE_TTL_SECONDS} (72 hours)"
            )

        if self.query_mode not in ("strict", "permissive"):
            raise ValueError(f"QUERY_MODE must be 'strict' or 'permissive', got {self.query_mode}")

        if self.max_query_length < 1:
            raise ValueError("MAX_QUERY_LENGTH must be positive")

        if self.rate_limit_max_requests < 1 or self.rate_limit_window_seconds < 1:
            raise ValueError("RATE_LIMIT_MAX_REQUESTS and RATE_LIMIT_WINDOW_SECONDS must be positive")

        if self.upstream_max_attempts < 1:
            raise ValueError("UPSTREAM_MAX_ATTEMPTS must be at least 1")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


def get_redis_client() -> redis.Redis:
    """Create an async Redis client instance."""
    return redis.from_url(
        settings.redis_url,
        password=settings.redis_password,
        decode_responses=False,
    )


def configure_logging(level: str | None = None) -> None:
    """Install a single timestamped stream handler on the root logger."""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        force=True,
    )
