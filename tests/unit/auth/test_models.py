"""Tests for credential models and client configuration parsing."""

import json
from pathlib import Path

import pytest
from pydantic import SecretStr

from tests.helpers.auth import make_credential
from ytanalytics.auth.exceptions import ClientConfigError
from ytanalytics.auth.models import Credential, OAuthClientConfig, TokenGrant


class TestCredential:
    """Expiry arithmetic and safe rendering."""

    def test_valid_access_token_respects_margin(self) -> None:
        credential = make_credential(expires_in=240, now=1000.0)

        assert credential.has_valid_access_token(1000.0)
        assert not credential.has_valid_access_token(1000.0, margin=300)

    def test_missing_expiry_counts_as_expired(self) -> None:
        credential = make_credential(expires_in=None)

        assert credential.seconds_until_expiry(0) is None
        assert not credential.has_valid_access_token(0)

    def test_can_refresh_requires_refresh_token(self) -> None:
        assert make_credential().can_refresh
        assert not make_credential(refresh_token=None).can_refresh

    def test_apply_grant_keeps_refresh_token_unless_rotated(self) -> None:
        credential = make_credential(now=0)

        credential.apply_grant(
            TokenGrant(access_token=SecretStr("a2"), expires_in=60), now=100.0
        )
        assert credential.access_token == SecretStr("a2")
        assert credential.expiry_date == 160_000
        assert credential.refresh_token == SecretStr("refresh-1")

        credential.apply_grant(
            TokenGrant(
                access_token=SecretStr("a3"),
                expires_in=60,
                refresh_token=SecretStr("refresh-2"),
            ),
            now=100.0,
        )
        assert credential.refresh_token == SecretStr("refresh-2")

    def test_repr_masks_secrets(self) -> None:
        credential = Credential(
            client_id="id",
            client_secret=SecretStr("very-secret-client-value"),
            refresh_token=SecretStr("refresh-token-value-that-is-long"),
            access_token=SecretStr("short"),
        )

        text = repr(credential)

        assert "very-secret-client-value" not in text
        assert "refresh-token-value-that-is-long" not in text
        assert "short" not in text


class TestOAuthClientConfig:
    """Reading the Google console client secrets download."""

    @pytest.mark.parametrize("section", ["installed", "web"])
    def test_reads_section(self, tmp_path: Path, section: str) -> None:
        path = tmp_path / "credentials.json"
        path.write_text(
            json.dumps(
                {
                    section: {
                        "client_id": "cid",
                        "client_secret": "csecret",
                        "redirect_uris": ["http://localhost"],
                        "token_uri": "https://oauth2.googleapis.com/token",
                    }
                }
            )
        )

        config = OAuthClientConfig.from_file(path)

        assert config.client_id == "cid"
        assert config.client_secret.get_secret_value() == "csecret"
        assert config.redirect_uris == ["http://localhost"]

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ClientConfigError, match="not found"):
            OAuthClientConfig.from_file(tmp_path / "absent.json")

    def test_missing_section(self, tmp_path: Path) -> None:
        path = tmp_path / "credentials.json"
        path.write_text(json.dumps({"other": {}}))

        with pytest.raises(ClientConfigError, match="'installed' or 'web'"):
            OAuthClientConfig.from_file(path)

    def test_invalid_section(self, tmp_path: Path) -> None:
        path = tmp_path / "credentials.json"
        path.write_text(json.dumps({"installed": {"client_id": "cid"}}))

        with pytest.raises(ClientConfigError, match="Invalid"):
            OAuthClientConfig.from_file(path)
