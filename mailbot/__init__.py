"""Telegram to Gmail relay bot: chat message → LLM intent → Gmail send."""

__version__ = "1.0.0"
