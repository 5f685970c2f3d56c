"""Application configuration using Pydantic settings."""
from pydantic import field_validator
from pydantic_settings import BaseSettings

from registry.constants import MIN_SESSION_TOKEN_BYTES


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8100
    environment: str = "development"

    # Security
    api_key_salt: str = ""  # Empty keeps digests compatible with plain SHA-256 provisioning

    # Sessions
    session_ttl_seconds: int = 1800
    session_token_bytes: int = 32
    repair_session_cache: bool = True
    expired_session_retention_minutes: int = 60

    # Redis (session cache and ARQ worker)
    redis_url: str = "redis://127.0.0.1:6379"

    # Timeouts for external calls
    store_timeout_seconds: float = 2.0
    cache_timeout_seconds: float = 0.5

    # Background jobs: "inline" (asyncio tasks) or "arq" (Redis queue)
    job_backend: str = "inline"

    @field_validator("session_token_bytes")
    @classmethod
    def check_token_entropy(cls, value: int) -> int:
        """Session tokens must carry at least 128 bits of randomness."""
        if value < MIN_SESSION_TOKEN_BYTES:
            raise ValueError(
                f"session_token_bytes must be >= {MIN_SESSION_TOKEN_BYTES}, got {value}"
            )
        return value

    @field_validator("job_backend")
    @classmethod
    def check_job_backend(cls, value: str) -> str:
        value = value.lower()
        if value not in ("inline", "arq"):
            raise ValueError(f"job_backend must be 'inline' or 'arq', got {value!r}")
        return value

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
