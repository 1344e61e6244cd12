"""
Data models for the mail relay pipeline.

These small immutable structures are the contracts between the extractor,
the token manager, the Gmail dispatcher and the conversation bridge.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Union

# Treat tokens this close to expiry as already expired
EXPIRY_SKEW = timedelta(seconds=60)


@dataclass(frozen=True)
class EmailCommand:
    """
    A single "send email" intent extracted from a chat message.

    Attributes:
        recipient: Destination address
        subject: Subject line
        body: Plain text body
    """
    recipient: str
    subject: str
    body: str


@dataclass(frozen=True)
class TokenPair:
    """
    OAuth2 token state owned by the TokenManager.

    Attributes:
        access_token: Short-lived bearer token (None until first refresh)
        expiry: Naive UTC expiry of the access token, if known
        refresh_token: Long-lived token used to mint access tokens
    """
    access_token: Optional[str]
    expiry: Optional[datetime]
    refresh_token: Optional[str]

    def is_expired(self, now: datetime) -> bool:
        if not self.access_token:
            return True
        if self.expiry is None:
            return False
        return now >= self.expiry - EXPIRY_SKEW


@dataclass(frozen=True)
class ConversationContext:
    """One inbound chat message."""
    conversation_id: str
    raw_text: str


@dataclass(frozen=True)
class Success:
    provider_message_id: str


@dataclass(frozen=True)
class Failure:
    """
    Failed dispatch attempt.

    Attributes:
        reason: Short log-safe description
        error: The original exception, if any
    """
    reason: str
    error: Optional[Exception] = None

    def __repr__(self) -> str:
        return f"Failure(reason={self.reason!r})"


SendResult = Union[Success, Failure]
