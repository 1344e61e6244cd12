"""
Tests for the one-time OAuth consent flow.
"""

from unittest.mock import Mock
from urllib.parse import parse_qs, urlparse

import pytest

from mailbot.api.oauth_routes import create_consent_app
from mailbot.utils.oauth_utils import GOOGLE_SCOPES, build_authorization_url, build_google_flow

STATE = "expected-state-abc123"


@pytest.fixture
def flow():
    flow = Mock()
    flow.credentials.refresh_token = "new-refresh-token"
    flow.credentials.expiry = None
    return flow


@pytest.fixture
def on_success():
    return Mock()


@pytest.fixture
def client(flow, on_success):
    app = create_consent_app(
        flow, STATE, on_success=on_success, redirect_uri="http://localhost:3000/oauth2callback"
    )
    app.testing = True
    return app.test_client()


class TestConsentCallback:

    def test_missing_code(self, client, flow, on_success):
        response = client.get(f"/oauth2callback?state={STATE}")

        assert response.status_code == 400
        assert b"No code received." in response.data
        flow.fetch_token.assert_not_called()
        on_success.assert_not_called()

    def test_successful_exchange(self, client, flow, on_success, caplog):
        with caplog.at_level("INFO"):
            response = client.get(f"/oauth2callback?code=auth-code-1&state={STATE}")

        assert response.status_code == 200
        assert b"Authorization successful" in response.data
        flow.fetch_token.assert_called_once_with(code="auth-code-1")
        on_success.assert_called_once()
        assert "new-refresh-token" in caplog.text

    def test_exchange_failure(self, client, flow, on_success):
        flow.fetch_token.side_effect = ValueError("invalid_grant")

        response = client.get(f"/oauth2callback?code=bad&state={STATE}")

        assert response.status_code == 500
        assert b"Error retrieving access token." in response.data
        on_success.assert_not_called()

    @pytest.mark.parametrize("query", [
        "code=attacker-code&state=forged",
        "code=attacker-code",
        "code=attacker-code&state=",
        "code=attacker-code&state=%C3%BC",
    ])
    def test_forged_or_missing_state_is_refused(self, client, flow, on_success, query):
        response = client.get(f"/oauth2callback?{query}")

        assert response.status_code == 400
        assert b"Invalid state parameter." in response.data
        flow.fetch_token.assert_not_called()
        on_success.assert_not_called()

    def test_callback_path_follows_redirect_uri(self, flow, on_success):
        app = create_consent_app(
            flow, STATE, on_success=on_success, redirect_uri="http://localhost:8080/google/callback"
        )
        response = app.test_client().get(f"/google/callback?state={STATE}")
        assert response.status_code == 400
        assert b"No code received." in response.data


class TestAuthorizationUrl:

    def test_offline_consent_with_send_scope(self):
        flow = build_google_flow(redirect_uri="http://localhost:3000/oauth2callback")

        url, state = build_authorization_url(flow)

        query = parse_qs(urlparse(url).query)
        assert query["access_type"] == ["offline"]
        assert query["prompt"] == ["consent"]
        assert query["redirect_uri"] == ["http://localhost:3000/oauth2callback"]
        assert set(query["scope"][0].split()) == set(GOOGLE_SCOPES)
        assert state
        assert query["state"] == [state]
