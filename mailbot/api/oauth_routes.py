"""One-time Google OAuth consent server.

Serves the callback that exchanges the authorization code for tokens, logs
the refresh token for the operator, then stops the process.
"""

import hmac
import os
import threading
from typing import Callable, Optional
from urllib.parse import urlparse

from flask import Flask, request
from google_auth_oauthlib.flow import Flow

from mailbot.config import Config
from mailbot.utils.logging_utils import get_logger

logger = get_logger(__name__)

SHUTDOWN_DELAY_SECONDS = 2.0


def _exit_process():
    os._exit(0)


def schedule_shutdown(delay: float = SHUTDOWN_DELAY_SECONDS):
    """Stop the process shortly after the success page has been served."""
    timer = threading.Timer(delay, _exit_process)
    timer.daemon = True
    timer.start()


def create_consent_app(
    flow: Flow,
    expected_state: str,
    on_success: Optional[Callable[[], None]] = None,
    redirect_uri: Optional[str] = None,
) -> Flask:
    """
    Build the Flask app that completes the consent flow.

    ``flow`` must be the same Flow that produced the authorization URL so the
    PKCE code verifier matches, and ``expected_state`` the state it returned.
    Callbacks carrying any other state are refused. ``on_success`` runs after
    a successful exchange; it defaults to scheduling process exit.
    """
    on_success = on_success or schedule_shutdown
    callback_path = urlparse(redirect_uri or Config.GOOGLE_REDIRECT_URI).path or "/oauth2callback"

    app = Flask(__name__)

    @app.get(callback_path)
    def oauth2callback():
        """OAuth callback endpoint."""
        state = request.args.get("state")
        if not state or not hmac.compare_digest(state.encode(), expected_state.encode()):
            logger.warning("OAuth callback rejected: missing or mismatched state")
            return "Invalid state parameter.", 400

        code = request.args.get("code")
        if not code:
            return "No code received.", 400

        try:
            flow.fetch_token(code=code)
        except Exception as e:
            logger.error(f"Error retrieving access token: {e}", exc_info=True)
            return "Error retrieving access token.", 500

        creds = flow.credentials
        logger.info(f"✅ Tokens acquired (access token expires {creds.expiry})")
        if creds.refresh_token:
            logger.info(
                "Save this refresh token to your environment variables "
                f"as GMAIL_REFRESH_TOKEN: {creds.refresh_token}"
            )
        else:
            logger.warning(
                "Google did not return a refresh token. Revoke the app's access "
                "in your Google account and run the consent flow again."
            )

        on_success()
        return "Authorization successful! You can now return to the terminal and restart the bot."

    return app
