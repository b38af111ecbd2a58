import os
from typing import List, Optional

from pydantic import BaseModel, Field


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    """
    Runtime configuration read from environment variables.

    Call ``load_dotenv()`` before ``Settings.from_env()`` so values from a local
    ``.env`` file are picked up.
    """

    xai_api_key: Optional[str] = None
    xai_model: str = "grok-3-mini"
    environment: str = "development"
    log_level: str = "INFO"
    log_file: Optional[str] = None
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    cache_ttl: float = 3600
    cache_check_period: float = 120
    cache_max_size: int = 1024

    primary_transcript_provider: str = "youtube_transcript_api"
    enable_alternative_provider: bool = True
    transcript_region: str = "US"

    composition_timeout: float = 30
    composition_retry_delay: float = 2

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment, keeping defaults for unset keys."""
        defaults = cls()
        origins = os.getenv("CORS_ORIGINS")
        return cls(
            xai_api_key=os.getenv("XAI_API_KEY") or None,
            xai_model=os.getenv("XAI_MODEL", defaults.xai_model),
            environment=os.getenv("ENVIRONMENT", defaults.environment),
            log_level=os.getenv("LOG_LEVEL", defaults.log_level),
            log_file=os.getenv("LOG_FILE") or None,
            cors_origins=(
                [origin.strip() for origin in origins.split(",") if origin.strip()]
                if origins
                else defaults.cors_origins
            ),
            cache_ttl=float(os.getenv("CACHE_TTL", defaults.cache_ttl)),
            cache_check_period=float(
                os.getenv("CACHE_CHECK_PERIOD", defaults.cache_check_period)
            ),
            cache_max_size=int(os.getenv("CACHE_MAX_SIZE", defaults.cache_max_size)),
            primary_transcript_provider=os.getenv(
                "PRIMARY_TRANSCRIPT_PROVIDER", defaults.primary_transcript_provider
            ),
            enable_alternative_provider=_env_bool(
                "ENABLE_ALTERNATIVE_PROVIDER", defaults.enable_alternative_provider
            ),
            transcript_region=os.getenv(
                "TRANSCRIPT_REGION", defaults.transcript_region
            ),
            composition_timeout=float(
                os.getenv("COMPOSITION_TIMEOUT", defaults.composition_timeout)
            ),
            composition_retry_delay=float(
                os.getenv("COMPOSITION_RETRY_DELAY", defaults.composition_retry_delay)
            ),
        )
