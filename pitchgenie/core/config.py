import logging

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    # Environment
    ENV: str = "development"
    CONFIG_STRICT: bool = False

    # Database
    DATABASE_URL: Optional[str] = None
    TEST_DATABASE_URL: Optional[str] = None

    # Sessions
    AUTH_SECRET: Optional[str] = None
    SESSION_COOKIE_NAME: str = "pitchgenie_session"
    SESSION_MAX_AGE_SECONDS: int = 30 * 24 * 60 * 60
    MAGIC_LINK_MAX_AGE_SECONDS: int = 24 * 60 * 60

    # OpenRouter (OpenAI-compatible)
    OPENROUTER_API_KEY: Optional[str] = None
    OPENROUTER_BASE_URL: str = "https://openrouter.ai/api/v1"

    # Stripe
    STRIPE_SECRET_KEY: Optional[str] = None
    STRIPE_WEBHOOK_SECRET: Optional[str] = None
    STRIPE_PRICE_PRO: Optional[str] = None
    STRIPE_PRICE_ENTERPRISE: Optional[str] = None

    # Magic-link email (optional provider)
    EMAIL_SERVER_HOST: Optional[str] = None
    EMAIL_SERVER_PORT: int = 587
    EMAIL_SERVER_USER: Optional[str] = None
    EMAIL_SERVER_PASSWORD: Optional[str] = None
    EMAIL_FROM: str = "noreply@pitchgenie.app"

    # App URLs
    APP_URL: str = "http://localhost:3000"
    CORS_ORIGINS: str = "http://localhost:3000"  # comma-separated

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()


def cors_origins(settings_obj: Optional[Settings] = None) -> list[str]:
    cfg = settings_obj or settings
    return [origin.strip() for origin in cfg.CORS_ORIGINS.split(",") if origin.strip()]


# Without these the app cannot store documents, sign sessions or generate
REQUIRED_KEYS = ("DATABASE_URL", "AUTH_SECRET", "OPENROUTER_API_KEY")


def missing_keys(settings_obj=None) -> list[str]:
    cfg = settings_obj or settings
    return [key for key in REQUIRED_KEYS if not getattr(cfg, key, None)]


def validate_config(strict: Optional[bool] = None, settings_obj: Optional[Settings] = None, logger: Optional[logging.Logger] = None) -> bool:
    """Report missing configuration by key name (values are never logged).

    Strict mode raises RuntimeError instead of warning.
    """
    cfg = settings_obj or settings
    log = logger or logging.getLogger("pitchgenie")
    if strict is None:
        strict = bool(getattr(cfg, "CONFIG_STRICT", False))

    missing = missing_keys(cfg)
    if missing:
        message = f"Missing required configuration: {', '.join(missing)}"
        if strict:
            raise RuntimeError(message)
        log.warning(message)

    if not getattr(cfg, "STRIPE_SECRET_KEY", None):
        log.info("STRIPE_SECRET_KEY not set; billing disabled")
    if not getattr(cfg, "EMAIL_SERVER_HOST", None):
        log.info("EMAIL_SERVER_HOST not set; magic links are logged instead of sent")

    return True
