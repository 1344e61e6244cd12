"""
Gmail dispatcher - sends one plain-text email per EmailCommand.

Builds the RFC 822 envelope by hand, base64url-encodes it and submits it
through ``users.messages.send`` for the authenticated mailbox.
"""

import base64
from email.header import Header
from typing import Optional

import google.auth.exceptions
import httplib2
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from mailbot.config import Config
from mailbot.models import EmailCommand, Failure, SendResult, Success
from mailbot.services.token_manager import TokenManager
from mailbot.utils.error_handler import AuthError, TransportError, format_error_response
from mailbot.utils.logging_utils import get_logger

logger = get_logger(__name__)

CRLF = "\r\n"


def encode_subject(subject: str) -> str:
    """RFC 2047 encoded-word for non-ASCII subjects, ASCII passes through."""
    if subject.isascii():
        return subject
    return Header(subject, "utf-8").encode(linesep=CRLF)


def build_envelope(sender_address: str, sender_name: str, command: EmailCommand) -> str:
    """Plain-text RFC 822 message for ``command``, CRLF line endings throughout."""
    body = command.body.replace("\r\n", "\n").replace("\r", "\n").replace("\n", CRLF)
    lines = [
        f'From: "{sender_name}" <{sender_address}>',
        f"To: {command.recipient}",
        f"Subject: {encode_subject(command.subject)}",
        'Content-Type: text/plain; charset="UTF-8"',
        "",
        body,
    ]
    return CRLF.join(lines)


def encode_raw(envelope: str) -> str:
    """URL-safe base64 of the UTF-8 envelope with '=' padding stripped."""
    return base64.urlsafe_b64encode(envelope.encode("utf-8")).decode("ascii").rstrip("=")


def get_gmail_service(access_token: str):
    """Gmail API v1 client authorized with a bare access token."""
    creds = Credentials(token=access_token)
    return build("gmail", "v1", credentials=creds, cache_discovery=False)


class GmailDispatcher:
    """Sends EmailCommands from the configured mailbox. One attempt, no retry."""

    def __init__(
        self,
        token_manager: TokenManager,
        sender_address: Optional[str] = None,
        sender_name: Optional[str] = None,
    ):
        self.token_manager = token_manager
        self.sender_address = sender_address or Config.GMAIL_USER_EMAIL
        self.sender_name = sender_name or Config.GMAIL_SENDER_NAME

    def send(self, command: EmailCommand) -> SendResult:
        try:
            access_token = self.token_manager.ensure_access_token()
        except (AuthError, TransportError) as e:
            logger.error(f"Cannot send email, no access token: {format_error_response(e)}")
            return Failure(reason=format_error_response(e), error=e)

        envelope = build_envelope(self.sender_address, self.sender_name, command)
        message = {"raw": encode_raw(envelope)}

        try:
            svc = get_gmail_service(access_token)
            response = svc.users().messages().send(userId="me", body=message).execute()
        except HttpError as e:
            status = getattr(e.resp, "status", None)
            if status == 401:
                self.token_manager.mark_rejected(access_token)
            logger.error(f"Gmail send failed (status={status}): {e}", exc_info=True)
            return Failure(reason=f"Gmail API error (status={status})", error=e)
        except google.auth.exceptions.RefreshError as e:
            # A bare access token cannot refresh itself; it was rejected
            self.token_manager.mark_rejected(access_token)
            logger.error(f"Gmail rejected access token: {e}")
            return Failure(reason="Access token rejected", error=e)
        except (httplib2.HttpLib2Error, google.auth.exceptions.TransportError, OSError) as e:
            logger.error(f"Gmail transport error: {e}", exc_info=True)
            return Failure(reason=f"Transport error: {type(e).__name__}", error=e)

        message_id = response.get("id")
        if not message_id:
            logger.error(f"Gmail send returned no message id: {response}")
            return Failure(reason="Gmail response missing message id")

        logger.info(f"Email sent! Message ID: {message_id}")
        return Success(provider_message_id=message_id)
