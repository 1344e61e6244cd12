"""
Tests for the Gmail dispatcher: envelope, encoding and send outcomes.
"""

import base64
from email import message_from_string
from email.header import decode_header, make_header
from unittest.mock import Mock, patch

import google.auth.exceptions
import httplib2
import pytest
from googleapiclient.errors import HttpError

from mailbot.models import EmailCommand, Failure, Success
from mailbot.services.gmail_service import GmailDispatcher, build_envelope, encode_raw
from mailbot.utils.error_handler import AuthError, TransportError


def decode_raw(raw: str) -> bytes:
    return base64.urlsafe_b64decode(raw + "=" * (-len(raw) % 4))


def http_error(status: int) -> HttpError:
    return HttpError(resp=httplib2.Response({"status": status}), content=b'{"error": {"message": "nope"}}')


@pytest.fixture
def mock_build():
    with patch("mailbot.services.gmail_service.build") as build:
        yield build


def send_call(mock_build):
    return mock_build.return_value.users.return_value.messages.return_value.send


class TestEnvelope:

    def test_headers_and_body(self, meeting_command):
        envelope = build_envelope("bot@example.com", "Email Bot", meeting_command)
        assert envelope == (
            'From: "Email Bot" <bot@example.com>\r\n'
            "To: bob@example.com\r\n"
            "Subject: Meeting update\r\n"
            'Content-Type: text/plain; charset="UTF-8"\r\n'
            "\r\n"
            "The meeting moved to 3pm."
        )

    def test_encoding_round_trip(self):
        command = EmailCommand("a@b.co", "Ünïcödé ???", "Body with >>> and ~~~ and ÿÿÿ\nsecond line")
        envelope = build_envelope("bot@example.com", "Email Bot", command)

        raw = encode_raw(envelope)

        assert decode_raw(raw) == envelope.encode("utf-8")
        assert not any(ch in raw for ch in "+/=")

    def test_non_ascii_subject_is_encoded_word(self):
        command = EmailCommand("a@b.co", "Réunion déplacée à 15h", "b")

        envelope = build_envelope("bot@example.com", "Email Bot", command)

        subject_line = next(line for line in envelope.split("\r\n") if line.startswith("Subject: "))
        encoded = subject_line[len("Subject: "):]
        assert encoded.isascii()
        assert encoded.startswith("=?utf-8?")
        assert str(make_header(decode_header(encoded))) == "Réunion déplacée à 15h"

    def test_long_non_ascii_subject_folds_with_crlf(self):
        subject = ("Ünïcödé " * 20).strip()
        envelope = build_envelope("bot@example.com", "Email Bot", EmailCommand("a@b.co", subject, "b"))

        header_block = envelope.split("\r\n\r\n", 1)[0]
        assert "\n" not in header_block.replace("\r\n", "")
        parsed = message_from_string(envelope.replace("\r\n", "\n"))
        assert str(make_header(decode_header(parsed["Subject"]))) == subject

    def test_body_line_endings_become_crlf(self):
        command = EmailCommand("a@b.co", "s", "line1\nline2\r\nline3\rline4")

        envelope = build_envelope("bot@example.com", "Email Bot", command)

        assert envelope.endswith("\r\n\r\nline1\r\nline2\r\nline3\r\nline4")
        assert "\n" not in envelope.replace("\r\n", "")

    def test_encoding_strips_padding(self):
        # 1 byte of input produces two '=' of padding in standard base64
        assert encode_raw("a") == "YQ"


class TestGmailDispatcher:

    def test_success(self, valid_token_manager, meeting_command, mock_build):
        send_call(mock_build).return_value.execute.return_value = {"id": "msg-123", "threadId": "t-1"}
        dispatcher = GmailDispatcher(valid_token_manager, "bot@example.com", "Email Bot")

        result = dispatcher.send(meeting_command)

        assert result == Success(provider_message_id="msg-123")
        send_call(mock_build).assert_called_once()
        kwargs = send_call(mock_build).call_args.kwargs
        assert kwargs["userId"] == "me"
        sent = decode_raw(kwargs["body"]["raw"]).decode("utf-8")
        assert "To: bob@example.com\r\n" in sent
        assert "Subject: Meeting update\r\n" in sent
        assert sent.endswith("\r\n\r\nThe meeting moved to 3pm.")

    def test_service_uses_access_token(self, valid_token_manager, meeting_command, mock_build):
        send_call(mock_build).return_value.execute.return_value = {"id": "msg-123"}
        GmailDispatcher(valid_token_manager, "bot@example.com").send(meeting_command)

        args, kwargs = mock_build.call_args
        assert args == ("gmail", "v1")
        assert kwargs["credentials"].token == "access-1"

    def test_auth_error_is_failure(self, meeting_command, mock_build):
        token_manager = Mock()
        token_manager.ensure_access_token.side_effect = AuthError(AuthError.NO_REFRESH_TOKEN)

        result = GmailDispatcher(token_manager, "bot@example.com").send(meeting_command)

        assert isinstance(result, Failure)
        assert isinstance(result.error, AuthError)
        mock_build.assert_not_called()

    def test_token_transport_error_is_failure(self, meeting_command, mock_build):
        token_manager = Mock()
        token_manager.ensure_access_token.side_effect = TransportError("down")

        result = GmailDispatcher(token_manager, "bot@example.com").send(meeting_command)

        assert isinstance(result, Failure)
        mock_build.assert_not_called()

    def test_provider_error_is_failure(self, valid_token_manager, meeting_command, mock_build):
        error = http_error(500)
        send_call(mock_build).return_value.execute.side_effect = error

        result = GmailDispatcher(valid_token_manager, "bot@example.com").send(meeting_command)

        assert isinstance(result, Failure)
        assert result.error is error
        send_call(mock_build).return_value.execute.assert_called_once()

    def test_unauthorized_marks_token_rejected(self, meeting_command, mock_build):
        token_manager = Mock()
        token_manager.ensure_access_token.return_value = "access-1"
        send_call(mock_build).return_value.execute.side_effect = http_error(401)

        result = GmailDispatcher(token_manager, "bot@example.com").send(meeting_command)

        assert isinstance(result, Failure)
        token_manager.mark_rejected.assert_called_once_with("access-1")

    def test_refresh_error_marks_token_rejected(self, meeting_command, mock_build):
        token_manager = Mock()
        token_manager.ensure_access_token.return_value = "access-1"
        send_call(mock_build).return_value.execute.side_effect = google.auth.exceptions.RefreshError("no refresh")

        result = GmailDispatcher(token_manager, "bot@example.com").send(meeting_command)

        assert isinstance(result, Failure)
        token_manager.mark_rejected.assert_called_once_with("access-1")

    def test_network_error_is_failure(self, valid_token_manager, meeting_command, mock_build):
        send_call(mock_build).return_value.execute.side_effect = ConnectionResetError("reset")

        result = GmailDispatcher(valid_token_manager, "bot@example.com").send(meeting_command)

        assert isinstance(result, Failure)
        assert isinstance(result.error, ConnectionResetError)

    def test_missing_message_id_is_failure(self, valid_token_manager, meeting_command, mock_build):
        send_call(mock_build).return_value.execute.return_value = {}

        result = GmailDispatcher(valid_token_manager, "bot@example.com").send(meeting_command)

        assert isinstance(result, Failure)
