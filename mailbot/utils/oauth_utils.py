"""OAuth utilities for the one-time Google consent flow"""

import os
from typing import Optional

from google_auth_oauthlib.flow import Flow

from mailbot.config import Config

# Google may echo granted scopes back in a different order or form
os.environ.setdefault("OAUTHLIB_RELAX_TOKEN_SCOPE", "1")

# Google OAuth scopes
GOOGLE_SCOPES = [
    "https://www.googleapis.com/auth/gmail.send",
    "https://www.googleapis.com/auth/userinfo.email",
    "https://www.googleapis.com/auth/userinfo.profile",
    "openid",
]


def build_google_flow(redirect_uri: Optional[str] = None, state: Optional[str] = None) -> Flow:
    """Build a Google OAuth Flow object from the configured client credentials"""
    redirect_uri = redirect_uri or Config.GOOGLE_REDIRECT_URI
    client_config = {
        "web": {
            "client_id": Config.GOOGLE_CLIENT_ID,
            "client_secret": Config.GOOGLE_CLIENT_SECRET,
            "auth_uri": Config.GOOGLE_AUTH_URI,
            "token_uri": Config.GOOGLE_TOKEN_URI,
            "redirect_uris": [redirect_uri],
        }
    }
    flow = Flow.from_client_config(
        client_config,
        scopes=GOOGLE_SCOPES,
        redirect_uri=redirect_uri,
        state=state,
    )
    flow.redirect_uri = redirect_uri
    return flow


def build_authorization_url(flow: Flow) -> tuple[str, str]:
    """
    Consent URL asking for offline access so Google issues a refresh token.

    Returns the URL and the anti-forgery state the callback must echo back.
    """
    auth_url, state = flow.authorization_url(
        access_type="offline",
        prompt="consent",
    )
    return auth_url, state
