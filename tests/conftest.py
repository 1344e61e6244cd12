"""
Pytest configuration and fixtures for all tests.
"""

import os
import sys
from datetime import datetime, timedelta
from unittest.mock import Mock

import pytest

# Make the project root importable without installing
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

# Set up test environment variables before importing any modules
os.environ.setdefault('APP_ENV', 'test')
os.environ.setdefault('TELEGRAM_BOT_TOKEN', '123456:test-bot-token')
os.environ.setdefault('OPENAI_API_KEY', 'sk-test')
os.environ.setdefault('GOOGLE_CLIENT_ID', 'test-client-id.apps.googleusercontent.com')
os.environ.setdefault('GOOGLE_CLIENT_SECRET', 'test-client-secret')
os.environ.setdefault('GMAIL_USER_EMAIL', 'bot@example.com')
os.environ.setdefault('LOG_LEVEL', 'DEBUG')

from mailbot.models import EmailCommand  # noqa: E402
from mailbot.services.token_manager import TokenManager  # noqa: E402


@pytest.fixture
def meeting_command():
    return EmailCommand(
        recipient="bob@example.com",
        subject="Meeting update",
        body="The meeting moved to 3pm.",
    )


@pytest.fixture
def valid_token_manager():
    """TokenManager holding an access token that is good for another hour."""
    now = datetime(2026, 1, 1, 12, 0, 0)
    return TokenManager(
        client_id="cid",
        client_secret="secret",
        refresh_token="refresh-1",
        access_token="access-1",
        expiry=now + timedelta(hours=1),
        clock=lambda: now,
    )


@pytest.fixture
def mock_llm():
    """LLMService stand-in; set chat_completion_text.return_value per test."""
    return Mock()
