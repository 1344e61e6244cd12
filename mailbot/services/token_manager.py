"""
Token Manager - owns the Gmail OAuth2 token pair.

The refresh token is stable for the process lifetime; the access token is
replaced whenever it is missing, expired or rejected by the provider.
"""

from datetime import datetime, timezone
from threading import Lock
from typing import Callable, Optional

import google.auth.exceptions
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials

from mailbot.config import Config
from mailbot.models import TokenPair
from mailbot.utils.error_handler import AuthError, TransportError
from mailbot.utils.logging_utils import get_logger

logger = get_logger(__name__)


def _utcnow() -> datetime:
    # google-auth reports expiry as naive UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


class TokenManager:
    """
    Hands out valid Gmail access tokens.

    Only ``ensure_access_token`` and ``mark_rejected`` touch the token state.
    The lock guards reads and swaps of the TokenPair, not the refresh call,
    so concurrent callers may refresh redundantly; the last result wins.
    """

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        refresh_token: Optional[str] = None,
        token_uri: Optional[str] = None,
        access_token: Optional[str] = None,
        expiry: Optional[datetime] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.client_id = client_id or Config.GOOGLE_CLIENT_ID
        self.client_secret = client_secret or Config.GOOGLE_CLIENT_SECRET
        self.token_uri = token_uri or Config.GOOGLE_TOKEN_URI
        self._clock = clock
        self._lock = Lock()
        self._tokens = TokenPair(
            access_token=access_token,
            expiry=expiry,
            refresh_token=refresh_token,
        )

    @classmethod
    def from_config(cls) -> "TokenManager":
        return cls(refresh_token=Config.GMAIL_REFRESH_TOKEN)

    @property
    def has_refresh_token(self) -> bool:
        with self._lock:
            return bool(self._tokens.refresh_token)

    def ensure_access_token(self) -> str:
        """
        Return a currently valid access token, refreshing if needed.

        Raises
        ------
        AuthError
            NO_REFRESH_TOKEN when consent was never granted,
            REFRESH_REJECTED when Google refuses the refresh token
        TransportError
            If the token endpoint could not be reached
        """
        with self._lock:
            tokens = self._tokens

        if not tokens.is_expired(self._clock()):
            return tokens.access_token

        if not tokens.refresh_token:
            raise AuthError(
                AuthError.NO_REFRESH_TOKEN,
                "No refresh token configured. Run the OAuth consent flow first.",
            )

        refreshed = self._refresh(tokens.refresh_token)
        with self._lock:
            self._tokens = refreshed
        logger.info(f"Gmail access token refreshed (expires {refreshed.expiry})")
        return refreshed.access_token

    def mark_rejected(self, access_token: str):
        """Drop the cached access token after the provider rejected it."""
        with self._lock:
            if self._tokens.access_token != access_token:
                # Already replaced by a concurrent refresh
                return
            self._tokens = TokenPair(
                access_token=None,
                expiry=None,
                refresh_token=self._tokens.refresh_token,
            )
        logger.warning("Gmail access token rejected by provider; will refresh on next send")

    def _refresh(self, refresh_token: str) -> TokenPair:
        creds = Credentials(
            token=None,
            refresh_token=refresh_token,
            token_uri=self.token_uri,
            client_id=self.client_id,
            client_secret=self.client_secret,
        )
        try:
            creds.refresh(Request())
        except google.auth.exceptions.RefreshError as e:
            logger.error(f"Refresh token rejected: {e}")
            raise AuthError(AuthError.REFRESH_REJECTED, f"Token refresh rejected: {e}") from e
        except google.auth.exceptions.TransportError as e:
            logger.error(f"Token endpoint unreachable: {e}")
            raise TransportError(f"Token refresh failed: {e}") from e

        if not creds.token:
            raise AuthError(AuthError.REFRESH_REJECTED, "Failed to get access token")

        return TokenPair(
            access_token=creds.token,
            expiry=creds.expiry,
            # Google may rotate the refresh token; keep the newest one
            refresh_token=creds.refresh_token or refresh_token,
        )
