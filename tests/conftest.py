"""Shared fixtures for ytanalytics tests.

External services are replaced by httpx MockTransport handlers or by the
fakes in ``tests.helpers``; everything else uses real components.
"""

from collections.abc import AsyncGenerator
from pathlib import Path

import httpx
import pytest

from tests.helpers.auth import FakeOAuthClient, make_credential
from ytanalytics.auth.manager import CredentialManager
from ytanalytics.auth.oauth import OAuthFlowClient
from ytanalytics.auth.storage import CredentialStore
from ytanalytics.config.auth import AuthSettings
from ytanalytics.config.core import RetrySettings
from ytanalytics.config.settings import Settings
from ytanalytics.core.logging import setup_logging
from ytanalytics.services.container import ServiceContainer


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom settings."""
    config.option.asyncio_mode = "auto"
    setup_logging(json_logs=False, log_level_name="DEBUG")


@pytest.fixture
def credentials_path(tmp_path: Path) -> Path:
    return tmp_path / "config" / "token.json"


@pytest.fixture
def store(credentials_path: Path) -> CredentialStore:
    return CredentialStore(credentials_path)


@pytest.fixture
def fake_oauth() -> FakeOAuthClient:
    return FakeOAuthClient(login_credential=make_credential(access_token="access-login"))


@pytest.fixture
def manager(store: CredentialStore, fake_oauth: FakeOAuthClient) -> CredentialManager:
    return CredentialManager(store, fake_oauth)


@pytest.fixture
def test_settings(tmp_path: Path, credentials_path: Path) -> Settings:
    return Settings(
        auth=AuthSettings(
            credentials_file=credentials_path,
            client_secrets_file=tmp_path / "credentials.json",
            allow_interactive=False,
            open_browser=False,
        ),
        retry=RetrySettings(max_attempts=3, base_delay=0.01, jitter_ratio=0.0),
    )


@pytest.fixture
async def make_container(
    test_settings: Settings, fake_oauth: FakeOAuthClient
) -> AsyncGenerator[object, None]:
    """Factory building containers whose API traffic goes to ``handler``."""
    containers: list[ServiceContainer] = []

    def _make(handler: httpx.MockTransport | None = None) -> ServiceContainer:
        container = ServiceContainer(test_settings)
        if handler is not None:
            container.register_service(
                httpx.AsyncClient, httpx.AsyncClient(transport=handler)
            )
        container.register_service(OAuthFlowClient, fake_oauth)
        containers.append(container)
        return container

    yield _make

    for container in containers:
        await container.close()
