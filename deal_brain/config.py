"""Environment-based configuration for the deal brain service."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Deal brain settings, loaded from environment variables."""

    # Server
    PORT: int = 8092
    LOG_LEVEL: str = "INFO"

    # Document insight (AI) service connection (empty = pattern-only extraction)
    INSIGHT_SERVICE_URL: str = ""

    # Insight service timeouts. Failed calls are never retried.
    INSIGHT_TIMEOUT_SECONDS: int = 45
    INSIGHT_CONNECT_TIMEOUT: int = 10

    # Whole-request deadline for the six domain extractors
    REQUEST_TIMEOUT_SECONDS: int = 120

    TARGET_CURRENCY: str = "USD"

    model_config = {"env_prefix": "", "case_sensitive": True}


settings = Settings()
