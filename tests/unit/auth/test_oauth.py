"""Tests for the Google OAuth client against a mocked token endpoint."""

import json
from pathlib import Path
from urllib.parse import parse_qs, urlparse

import httpx
import pytest
from pydantic import SecretStr

from tests.helpers.auth import make_credential
from tests.helpers.http import RecordingTransport
from ytanalytics.auth.exceptions import (
    ClientConfigError,
    OAuthCallbackError,
    OAuthRevokeError,
    OAuthTokenRefreshError,
)
from ytanalytics.auth.models import OAuthClientConfig
from ytanalytics.auth.oauth import GoogleOAuthClient
from ytanalytics.config.auth import AuthSettings


def client_config() -> OAuthClientConfig:
    return OAuthClientConfig(
        client_id="cid",
        client_secret=SecretStr("csecret"),
        redirect_uris=["http://localhost"],
    )


def auth_settings(tmp_path: Path, **overrides: object) -> AuthSettings:
    values: dict[str, object] = {
        "credentials_file": tmp_path / "token.json",
        "client_secrets_file": tmp_path / "credentials.json",
        "callback_host": "127.0.0.1",
        "callback_timeout": 5.0,
    }
    values.update(overrides)
    return AuthSettings.model_validate(values)


@pytest.mark.auth
class TestRefreshExchange:
    """Refresh token grant."""

    async def test_refresh_posts_form_and_returns_grant(self, tmp_path: Path) -> None:
        transport = RecordingTransport(
            {
                "/token": [
                    httpx.Response(
                        200,
                        json={
                            "access_token": "new-access",
                            "expires_in": 3599,
                            "token_type": "Bearer",
                        },
                    )
                ]
            }
        )
        async with transport.client() as http_client:
            oauth = GoogleOAuthClient(auth_settings(tmp_path), http_client)
            grant = await oauth.refresh_access_token(make_credential())

        assert grant.access_token.get_secret_value() == "new-access"
        assert grant.expires_in == 3599
        assert grant.refresh_token is None
        form = parse_qs(transport.requests[0].content.decode())
        assert form == {
            "grant_type": ["refresh_token"],
            "refresh_token": ["refresh-1"],
            "client_id": ["client-id"],
            "client_secret": ["client-secret"],
        }

    async def test_rotated_refresh_token_is_returned(self, tmp_path: Path) -> None:
        transport = RecordingTransport(
            {
                "/token": [
                    httpx.Response(
                        200,
                        json={
                            "access_token": "a",
                            "expires_in": 60,
                            "refresh_token": "rotated",
                        },
                    )
                ]
            }
        )
        async with transport.client() as http_client:
            oauth = GoogleOAuthClient(auth_settings(tmp_path), http_client)
            grant = await oauth.refresh_access_token(make_credential())

        assert grant.refresh_token == SecretStr("rotated")

    async def test_rejected_refresh_raises_without_secrets(
        self, tmp_path: Path
    ) -> None:
        transport = RecordingTransport(
            {
                "/token": [
                    httpx.Response(
                        400,
                        json={
                            "error": "invalid_grant",
                            "error_description": "Token has been expired or revoked.",
                        },
                    )
                ]
            }
        )
        async with transport.client() as http_client:
            oauth = GoogleOAuthClient(auth_settings(tmp_path), http_client)
            with pytest.raises(OAuthTokenRefreshError) as exc_info:
                await oauth.refresh_access_token(make_credential())

        assert "invalid_grant" in str(exc_info.value)
        assert "refresh-1" not in str(exc_info.value)

    async def test_network_error_raises_refresh_error(self, tmp_path: Path) -> None:
        def fail(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(fail)) as http_client:
            oauth = GoogleOAuthClient(auth_settings(tmp_path), http_client)
            with pytest.raises(OAuthTokenRefreshError, match="Network error"):
                await oauth.refresh_access_token(make_credential())

    async def test_missing_refresh_token(self, tmp_path: Path) -> None:
        oauth = GoogleOAuthClient(auth_settings(tmp_path))

        with pytest.raises(OAuthTokenRefreshError):
            await oauth.refresh_access_token(make_credential(refresh_token=None))
        await oauth.aclose()


@pytest.mark.auth
class TestRevoke:
    """Token revocation endpoint."""

    @pytest.mark.parametrize(("status", "expected"), [(200, True), (400, False)])
    async def test_revoke_result(
        self, tmp_path: Path, status: int, expected: bool
    ) -> None:
        transport = RecordingTransport(
            {"/revoke": [httpx.Response(status, json={"error": "invalid_token"})]}
        )
        async with transport.client() as http_client:
            oauth = GoogleOAuthClient(auth_settings(tmp_path), http_client)
            assert await oauth.revoke("refresh-1") is expected

        assert parse_qs(transport.requests[0].content.decode()) == {
            "token": ["refresh-1"]
        }

    async def test_unreachable_endpoint(self, tmp_path: Path) -> None:
        def fail(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(fail)) as http_client:
            oauth = GoogleOAuthClient(auth_settings(tmp_path), http_client)
            with pytest.raises(OAuthRevokeError):
                await oauth.revoke("refresh-1")


@pytest.mark.auth
class TestConsentFlow:
    """Loopback consent flow with a scripted browser."""

    @staticmethod
    def browser_answering(**query: str):  # type: ignore[no-untyped-def]
        opened: list[str] = []

        def open_browser(url: str) -> bool:
            opened.append(url)
            params = parse_qs(urlparse(url).query)
            answer = {"state": params["state"][0], **query}
            httpx.get(params["redirect_uri"][0], params=answer, trust_env=False)
            return True

        return open_browser, opened

    async def test_login_exchanges_code(self, tmp_path: Path) -> None:
        transport = RecordingTransport(
            {
                "/token": [
                    httpx.Response(
                        200,
                        json={
                            "access_token": "login-access",
                            "refresh_token": "login-refresh",
                            "expires_in": 3599,
                        },
                    )
                ]
            }
        )
        opener, opened = self.browser_answering(code="auth-code")
        async with transport.client() as http_client:
            oauth = GoogleOAuthClient(
                auth_settings(tmp_path),
                http_client,
                client_config=client_config(),
                browser_opener=opener,
            )
            credential = await oauth.login()

        assert credential.client_id == "cid"
        assert credential.refresh_token == SecretStr("login-refresh")
        assert credential.access_token == SecretStr("login-access")
        assert credential.expiry_date is not None

        auth_params = parse_qs(urlparse(opened[0]).query)
        assert auth_params["access_type"] == ["offline"]
        assert auth_params["code_challenge_method"] == ["S256"]
        assert "yt-analytics.readonly" in auth_params["scope"][0]

        form = parse_qs(transport.requests[0].content.decode())
        assert form["grant_type"] == ["authorization_code"]
        assert form["code"] == ["auth-code"]
        assert form["redirect_uri"] == auth_params["redirect_uri"]
        assert "code_verifier" in form

    async def test_denied_consent(self, tmp_path: Path) -> None:
        opener, _ = self.browser_answering(
            error="access_denied", error_description="User denied access"
        )
        oauth = GoogleOAuthClient(
            auth_settings(tmp_path),
            client_config=client_config(),
            browser_opener=opener,
        )

        with pytest.raises(OAuthCallbackError, match="User denied access"):
            await oauth.login()
        await oauth.aclose()

    async def test_missing_client_config(self, tmp_path: Path) -> None:
        oauth = GoogleOAuthClient(auth_settings(tmp_path))

        with pytest.raises(ClientConfigError):
            await oauth.login()
        await oauth.aclose()

    async def test_client_config_read_from_settings_path(self, tmp_path: Path) -> None:
        settings = auth_settings(tmp_path)
        settings.client_secrets_file.write_text(
            json.dumps({"installed": {"client_id": "file-cid", "client_secret": "s"}})
        )
        oauth = GoogleOAuthClient(settings)

        assert oauth.load_client_config().client_id == "file-cid"
        await oauth.aclose()
