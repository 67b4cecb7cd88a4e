"""Google OAuth client: consent flow, refresh exchange and revocation."""

import asyncio
import base64
import hashlib
import secrets
import threading
import time
import urllib.parse
import webbrowser
from collections.abc import Callable
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any, Protocol
from urllib.parse import parse_qs, urlparse

import httpx
from pydantic import ValidationError
from structlog import get_logger

from ytanalytics.config.auth import AuthSettings

from .exceptions import (
    OAuthCallbackError,
    OAuthLoginError,
    OAuthRevokeError,
    OAuthTokenRefreshError,
)
from .models import Credential, OAuthClientConfig, TokenGrant


logger = get_logger(__name__)


class OAuthFlowClient(Protocol):
    """Operations the credential manager needs from an authorization server."""

    async def login(self) -> Credential: ...

    async def refresh_access_token(self, credential: Credential) -> TokenGrant: ...

    async def revoke(self, token: str) -> bool: ...


def _error_detail(response: httpx.Response) -> str:
    """Extract the OAuth error code and description without echoing the body."""
    try:
        payload = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    if not isinstance(payload, dict):
        return f"HTTP {response.status_code}"
    error = payload.get("error")
    if isinstance(error, dict):
        return str(error.get("message") or error.get("status") or response.status_code)
    description = payload.get("error_description")
    if error and description:
        return f"{error}: {description}"
    return str(error or f"HTTP {response.status_code}")


class GoogleOAuthClient:
    """Client for the Google OAuth 2.0 endpoints."""

    def __init__(
        self,
        settings: AuthSettings,
        http_client: httpx.AsyncClient | None = None,
        *,
        client_config: OAuthClientConfig | None = None,
        browser_opener: Callable[[str], Any] | None = None,
    ):
        """Initialize the OAuth client.

        Args:
            settings: Auth settings with endpoints and consent flow options
            http_client: Shared HTTP client (one is created and owned if omitted)
            client_config: Client identity; read from
                ``settings.client_secrets_file`` on first use when omitted
            browser_opener: Replaces ``webbrowser.open`` for the consent page
        """
        self.settings = settings
        self._http_client = http_client
        self._owns_http_client = http_client is None
        self._client_config = client_config
        self._browser_opener = browser_opener or webbrowser.open

    async def __aenter__(self) -> "GoogleOAuthClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    @property
    def http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=30.0)
        return self._http_client

    def load_client_config(self) -> OAuthClientConfig:
        """Return the client identity, reading the secrets file once.

        Raises:
            ClientConfigError: If no usable client configuration exists
        """
        if self._client_config is None:
            self._client_config = OAuthClientConfig.from_file(
                self.settings.client_secrets_file
            )
        return self._client_config

    def _token_uri(self) -> str:
        if self._client_config is not None and self._client_config.token_uri:
            return self._client_config.token_uri
        return self.settings.token_uri

    def build_authorization_url(
        self, config: OAuthClientConfig, redirect_uri: str, state: str, challenge: str
    ) -> str:
        params = {
            "response_type": "code",
            "client_id": config.client_id,
            "redirect_uri": redirect_uri,
            "scope": " ".join(self.settings.scopes),
            "state": state,
            "code_challenge": challenge,
            "code_challenge_method": "S256",
            # offline access plus forced consent guarantees a refresh token
            "access_type": "offline",
            "prompt": "consent",
        }
        base_url = config.auth_uri or self.settings.auth_uri
        return f"{base_url}?{urllib.parse.urlencode(params)}"

    async def login(self) -> Credential:
        """Run the browser consent flow and return a fresh credential.

        Raises:
            ClientConfigError: If no client configuration is available
            OAuthCallbackError: If consent is denied or the callback is invalid
            OAuthLoginError: If the flow times out or the code exchange fails
        """
        config = self.load_client_config()

        state = secrets.token_urlsafe(32)
        code_verifier = secrets.token_urlsafe(64)
        code_challenge = (
            base64.urlsafe_b64encode(hashlib.sha256(code_verifier.encode()).digest())
            .decode()
            .rstrip("=")
        )

        result: dict[str, str] = {}
        completed = threading.Event()

        class OAuthCallbackHandler(BaseHTTPRequestHandler):
            def do_GET(self) -> None:  # noqa: N802
                query = parse_qs(urlparse(self.path).query)
                if not query:
                    # favicon and other stray requests
                    self.send_response(404)
                    self.end_headers()
                    return

                if query.get("state", [None])[0] != state:
                    result["error"] = "Invalid state parameter"
                    body = b"Error: Invalid state parameter"
                    self.send_response(400)
                elif "code" in query:
                    result["code"] = query["code"][0]
                    body = b"Authentication successful! You can close this window."
                    self.send_response(200)
                else:
                    result["error"] = query.get(
                        "error_description", query.get("error", ["Unknown error"])
                    )[0]
                    body = f"Error: {result['error']}".encode()
                    self.send_response(400)
                self.send_header("Content-Type", "text/plain; charset=utf-8")
                self.end_headers()
                self.wfile.write(body)
                completed.set()

            def log_message(self, format: str, *args: Any) -> None:
                pass

        try:
            server = HTTPServer(
                (self.settings.callback_host, self.settings.callback_port),
                OAuthCallbackHandler,
            )
        except OSError as e:
            raise OAuthLoginError(f"Cannot start local callback server: {e}") from e

        server_thread = threading.Thread(target=server.serve_forever, daemon=True)
        server_thread.start()
        port = server.server_address[1]
        redirect_uri = f"http://{self.settings.callback_host}:{port}/"

        try:
            auth_url = self.build_authorization_url(
                config, redirect_uri, state, code_challenge
            )
            logger.info("oauth_consent_started", redirect_uri=redirect_uri)
            logger.info("oauth_consent_url", url=auth_url)
            if self.settings.open_browser:
                self._browser_opener(auth_url)

            received = await asyncio.to_thread(
                completed.wait, self.settings.callback_timeout
            )
            if not received:
                raise OAuthLoginError(
                    f"Timed out after {self.settings.callback_timeout:.0f}s waiting for consent"
                )
            if "error" in result:
                raise OAuthCallbackError(f"OAuth callback failed: {result['error']}")

            grant = await self._post_token(
                self._token_uri(),
                {
                    "grant_type": "authorization_code",
                    "code": result["code"],
                    "redirect_uri": redirect_uri,
                    "client_id": config.client_id,
                    "client_secret": config.client_secret.get_secret_value(),
                    "code_verifier": code_verifier,
                },
                OAuthLoginError,
            )
        finally:
            server.shutdown()
            server.server_close()
            server_thread.join(timeout=1)

        if grant.refresh_token is None:
            raise OAuthLoginError(
                "Authorization server did not return a refresh token"
            )

        logger.info("oauth_login_completed", expires_in=grant.expires_in)
        return Credential(
            client_id=config.client_id,
            client_secret=config.client_secret,
            refresh_token=grant.refresh_token,
            access_token=grant.access_token,
            expiry_date=grant.expiry_date(time.time()),
        )

    async def refresh_access_token(self, credential: Credential) -> TokenGrant:
        """Trade the credential's refresh token for a new access token.

        Raises:
            OAuthTokenRefreshError: If the exchange is rejected or fails
        """
        if credential.refresh_token is None:
            raise OAuthTokenRefreshError("Credential has no refresh token")

        return await self._post_token(
            self._token_uri(),
            {
                "grant_type": "refresh_token",
                "refresh_token": credential.refresh_token.get_secret_value(),
                "client_id": credential.client_id,
                "client_secret": credential.client_secret.get_secret_value(),
            },
            OAuthTokenRefreshError,
        )

    async def _post_token(
        self,
        url: str,
        data: dict[str, str],
        error_cls: type[OAuthLoginError] | type[OAuthTokenRefreshError],
    ) -> TokenGrant:
        try:
            response = await self.http_client.post(
                url, data=data, headers={"Accept": "application/json"}
            )
        except httpx.RequestError as e:
            raise error_cls(f"Network error during token exchange: {e}") from e

        if response.status_code != 200:
            detail = _error_detail(response)
            logger.warning(
                "oauth_token_exchange_rejected",
                grant_type=data["grant_type"],
                status_code=response.status_code,
                detail=detail,
            )
            raise error_cls(f"Token exchange failed: {detail}")

        try:
            return TokenGrant.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise error_cls("Token endpoint returned an invalid response") from e

    async def revoke(self, token: str) -> bool:
        """Revoke ``token`` with the authorization server.

        Returns:
            True if the server confirmed revocation

        Raises:
            OAuthRevokeError: If the revocation endpoint cannot be reached
        """
        try:
            response = await self.http_client.post(
                self.settings.revoke_uri, data={"token": token}
            )
        except httpx.RequestError as e:
            raise OAuthRevokeError(f"Network error during revocation: {e}") from e

        if response.status_code == 200:
            logger.info("oauth_token_revoked")
            return True
        logger.warning(
            "oauth_revoke_rejected",
            status_code=response.status_code,
            detail=_error_detail(response),
        )
        return False
