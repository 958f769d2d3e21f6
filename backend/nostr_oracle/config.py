"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - Placeholder credentials count as "not configured" (fallback paths taken)

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - relays kept as the raw comma-separated string (RELAYS env) and split by relay_urls:
      complex list types in pydantic-settings expect JSON, operators write CSV
    - Admission interval / poll granularity are settings, not constants
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache

_PLACEHOLDER_PREFIXES = ("YOUR_", "sk-ant-placeholder", "changeme")


def is_configured(value: str | None) -> bool:
    """True for a real credential (not empty, not a template placeholder)."""
    if not value or not value.strip():
        return False
    return not value.strip().startswith(_PLACEHOLDER_PREFIXES)


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Service
    port: int = 4000

    # Database
    database_url: str = (
        "postgresql+asyncpg://oracle:oracle@db:5432/nostr_oracle"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres provides postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 10
    database_max_overflow: int = 5

    # Anthropic (claim extraction)
    anthropic_api_key: str = "sk-ant-placeholder"
    anthropic_max_retries: int = 2
    anthropic_base_delay_ms: int = 500
    anthropic_max_delay_ms: int = 4_000
    extraction_model: str = "claude-haiku-4-5"
    extraction_max_tokens: int = 500

    # News search
    newsapi_key: str = ""
    newsapi_base_url: str = "https://newsapi.org/v2"
    newsapi_page_size: int = 5

    # Nostr
    relays: str = "wss://relay.damus.io,wss://nos.lol"
    nostr_priv_key: str = ""

    # Lightning
    lightning_address: str = "nostroracle@getalby.com"
    zap_amount_sats: int = 1000
    zap_threshold: int = 80

    # Pipeline
    admission_interval_seconds: float = 30.0
    admission_poll_seconds: float = 10.0
    outbound_timeout_seconds: float = 8.0
    recent_results_limit: int = 20
    raw_event_preview_chars: int = 200

    # Claim cache
    cache_max_age_days: int = 30
    cache_cleanup_interval_seconds: int = 86_400

    # API
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @property
    def relay_urls(self) -> list[str]:
        return [u.strip() for u in self.relays.split(",") if u.strip()]

    @property
    def anthropic_configured(self) -> bool:
        return is_configured(self.anthropic_api_key)

    @property
    def newsapi_configured(self) -> bool:
        return is_configured(self.newsapi_key)


@lru_cache
def get_settings() -> Settings:
    return Settings()
