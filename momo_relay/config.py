"""Application configuration settings."""
from __future__ import annotations

from functools import lru_cache

from pydantic import BaseModel, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Tokens that mean "nobody configured this yet".
PLACEHOLDER_TOKENS = {"", "your-api-token", "change-me"}
PRODUCTION_ENVS = {"prod", "production"}
STORE_BACKENDS = {"memory", "sql"}


class Settings(BaseSettings):
    """Environment configuration for the relay."""

    app_env: str = "dev"
    LOG_LEVEL: str = "INFO"
    # Overrides LOG_LEVEL for the status reconciliation logger only.
    ORCHESTRATOR_LOG_LEVEL: str | None = None

    # --- pawaPay ------------------------------------------------------------
    PAWAPAY_API_BASE: str = "https://api.sandbox.pawapay.io/v2"
    PAWAPAY_WIDGET_API_BASE: str = "https://api.sandbox.pawapay.io/v1"
    PAWAPAY_API_TOKEN: str = "your-api-token"
    PAWAPAY_CALLBACK_SECRET: str | None = None
    GATEWAY_TIMEOUT_SECONDS: float | None = None

    # --- Hosted payment flow -----------------------------------------------
    PUBLIC_BASE_URL: str = "http://localhost:5000"
    RECEIPT_PATH: str = "/receipt"
    PAYMENT_FAILED_PATH: str = "/payment-failed"
    # Sandbox status checks right after the hosted page are unreliable; treat
    # a failed check as success unless this is switched off.
    ASSUME_COMPLETED_ON_RETURN_FAILURE: bool = True

    # --- Storage ------------------------------------------------------------
    STORE_BACKEND: str = "memory"
    database_url: str = "sqlite:///momo_relay.db"

    # --- Background reconciliation -----------------------------------------
    SCHEDULER_ENABLED: bool = False
    RECONCILE_INTERVAL_SECONDS: int = 60

    # --- HTTP / observability ----------------------------------------------
    CORS_ALLOW_ORIGINS: list[str] = ["http://localhost:5000", "http://localhost:5173"]
    SENTRY_DSN: str | None = None
    PROMETHEUS_ENABLED: bool = False

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("PAWAPAY_CALLBACK_SECRET")
    @classmethod
    def _strip_empty_secret(cls, value: str | None) -> str | None:
        """Normalise empty callback secrets to ``None``."""

        if value is None:
            return None
        cleaned = value.strip()
        return cleaned or None

    @field_validator("STORE_BACKEND")
    @classmethod
    def _check_backend(cls, value: str) -> str:
        backend = value.strip().lower()
        if backend not in STORE_BACKENDS:
            raise ValueError(f"STORE_BACKEND must be one of {sorted(STORE_BACKENDS)}")
        return backend

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() in PRODUCTION_ENVS

    @property
    def token_is_placeholder(self) -> bool:
        return self.PAWAPAY_API_TOKEN.strip() in PLACEHOLDER_TOKENS


class AppInfo(BaseModel):
    name: str = "momo-relay"
    version: str = "0.1.0"


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()


__all__ = [
    "PLACEHOLDER_TOKENS",
    "PRODUCTION_ENVS",
    "Settings",
    "AppInfo",
    "get_settings",
]
