"""
Centralized configuration management for the mail relay bot.

All environment variables should be accessed through this module.
This provides:
- Type safety
- Default values
- Validation of required credentials
"""

import os
import logging
from typing import Optional
from dotenv import load_dotenv

from mailbot.utils.error_handler import ConfigError

load_dotenv()


class Config:
    """Centralized configuration management"""

    # ═══════════════════════════════════════════════════════════════════
    # Environment & App Settings
    # ═══════════════════════════════════════════════════════════════════

    APP_ENV: str = os.getenv("APP_ENV", "development")  # development | production

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")  # DEBUG | INFO | WARNING | ERROR
    LOG_FORMAT: str = os.getenv(
        "LOG_FORMAT",
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    # ═══════════════════════════════════════════════════════════════════
    # Chat Transport (Telegram)
    # ═══════════════════════════════════════════════════════════════════

    TELEGRAM_BOT_TOKEN: Optional[str] = os.getenv("TELEGRAM_BOT_TOKEN")
    TELEGRAM_POLL_TIMEOUT: int = int(os.getenv("TELEGRAM_POLL_TIMEOUT", "30"))
    MAX_WORKERS: int = int(os.getenv("MAX_WORKERS", "8"))

    # ═══════════════════════════════════════════════════════════════════
    # LLM Configuration (any OpenAI-compatible endpoint)
    # ═══════════════════════════════════════════════════════════════════

    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    LLM_BASE_URL: str = os.getenv("LLM_BASE_URL", "https://openrouter.ai/api/v1")
    LLM_MODEL: str = os.getenv("LLM_MODEL", "deepseek/deepseek-r1-0528-qwen3-8b:free")
    LLM_TEMPERATURE: float = float(os.getenv("LLM_TEMPERATURE", "0.2"))

    # ═══════════════════════════════════════════════════════════════════
    # Google OAuth & Gmail
    # ═══════════════════════════════════════════════════════════════════

    GOOGLE_CLIENT_ID: Optional[str] = os.getenv("GOOGLE_CLIENT_ID")
    GOOGLE_CLIENT_SECRET: Optional[str] = os.getenv("GOOGLE_CLIENT_SECRET")
    GOOGLE_REDIRECT_URI: str = os.getenv(
        "GOOGLE_REDIRECT_URI", "http://localhost:3000/oauth2callback"
    )
    GOOGLE_TOKEN_URI: str = "https://oauth2.googleapis.com/token"
    GOOGLE_AUTH_URI: str = "https://accounts.google.com/o/oauth2/auth"
    OAUTH_PORT: int = int(os.getenv("OAUTH_PORT", "3000"))

    GMAIL_USER_EMAIL: Optional[str] = os.getenv("GMAIL_USER_EMAIL")  # mailbox we send from
    GMAIL_SENDER_NAME: str = os.getenv("GMAIL_SENDER_NAME", "Email Bot")
    GMAIL_REFRESH_TOKEN: Optional[str] = os.getenv("GMAIL_REFRESH_TOKEN")  # set after OAuth

    # ═══════════════════════════════════════════════════════════════════
    # Helper Methods
    # ═══════════════════════════════════════════════════════════════════

    REQUIRED = (
        "TELEGRAM_BOT_TOKEN",
        "OPENAI_API_KEY",
        "GOOGLE_CLIENT_ID",
        "GOOGLE_CLIENT_SECRET",
        "GMAIL_USER_EMAIL",
    )

    @classmethod
    def is_production(cls) -> bool:
        """Check if running in production mode"""
        return cls.APP_ENV == "production"

    @classmethod
    def is_development(cls) -> bool:
        """Check if running in development mode"""
        return not cls.is_production()

    @classmethod
    def validate(cls) -> list[str]:
        """Validate required configuration and return list of missing items"""
        return [name for name in cls.REQUIRED if not getattr(cls, name, None)]

    @classmethod
    def require(cls):
        """Raise ConfigError if any required setting is missing."""
        missing = cls.validate()
        if missing:
            raise ConfigError(
                f"Missing required environment variables: {', '.join(missing)}"
            )

    @classmethod
    def get_log_level(cls) -> int:
        """Get logging level as int"""
        level_map = {
            "DEBUG": logging.DEBUG,
            "INFO": logging.INFO,
            "WARNING": logging.WARNING,
            "ERROR": logging.ERROR,
            "CRITICAL": logging.CRITICAL,
        }
        return level_map.get(cls.LOG_LEVEL.upper(), logging.INFO)

    @classmethod
    def summary(cls) -> str:
        """Configuration summary (safe for logs, no secrets)"""
        return (
            f"env={cls.APP_ENV} model={cls.LLM_MODEL} llm_base_url={cls.LLM_BASE_URL} "
            f"sender={cls.GMAIL_USER_EMAIL} "
            f"refresh_token={'set' if cls.GMAIL_REFRESH_TOKEN else 'missing'}"
        )
