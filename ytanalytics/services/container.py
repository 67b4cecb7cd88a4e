"""Service container wiring the credential and API layers.

Services are created lazily from factories so tests can register
replacements before first use.
"""

import functools
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar, cast

import httpx
import structlog

from ytanalytics.api.cache import AuthenticatedClientCache
from ytanalytics.api.client import YouTubeClient
from ytanalytics.api.errors import AuthFailedError
from ytanalytics.api.resilience import ResilientInvoker
from ytanalytics.auth.exceptions import AuthenticationError
from ytanalytics.auth.manager import CredentialManager
from ytanalytics.auth.models import Credential
from ytanalytics.auth.oauth import GoogleOAuthClient, OAuthFlowClient
from ytanalytics.auth.storage import CredentialStore
from ytanalytics.config.settings import Settings


logger = structlog.get_logger(__name__)

T = TypeVar("T")


class ServiceContainer:
    """Owns the shared HTTP client and every service built on it."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._services: dict[object, Any] = {}
        self._factories: dict[object, Callable[[], Any]] = {}

        self.register_service(Settings, self.settings)
        self.register_service(ServiceContainer, self)
        self.register_service(httpx.AsyncClient, factory=self._create_http_client)
        self.register_service(
            CredentialStore,
            factory=lambda: CredentialStore(self.settings.auth.credentials_file),
        )
        self.register_service(
            OAuthFlowClient,
            factory=lambda: GoogleOAuthClient(
                self.settings.auth, self.get_service(httpx.AsyncClient)
            ),
        )
        self.register_service(CredentialManager, factory=self._create_manager)
        self.register_service(
            ResilientInvoker,
            factory=lambda: ResilientInvoker(
                self.settings.retry.max_attempts,
                base_delay=self.settings.retry.base_delay,
                jitter_ratio=self.settings.retry.jitter_ratio,
            ),
        )
        self.register_service(
            AuthenticatedClientCache,
            factory=lambda: AuthenticatedClientCache(
                self.get_credential_manager(), self._create_client
            ),
        )

    def register_service(
        self,
        service_type: object,
        instance: Any | None = None,
        factory: Callable[[], Any] | None = None,
    ) -> None:
        """Register a service instance or factory."""
        if instance is not None:
            self._services[service_type] = instance
        elif factory is not None:
            self._services.pop(service_type, None)
            self._factories[service_type] = factory
        else:
            raise ValueError("Either instance or factory must be provided")

    def get_service(self, service_type: type[T]) -> T:
        """Get a service instance, building it on first use."""
        if service_type not in self._services:
            if service_type not in self._factories:
                name = getattr(service_type, "__name__", str(service_type))
                raise ValueError(f"Service {name} not registered")
            self._services[service_type] = self._factories[service_type]()
        return cast(T, self._services[service_type])

    def _create_http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.settings.http.timeout),
            verify=self.settings.http.verify,
            follow_redirects=True,
        )

    def _create_manager(self) -> CredentialManager:
        auth = self.settings.auth
        return CredentialManager(
            self.get_service(CredentialStore),
            self.get_service(OAuthFlowClient),  # type: ignore[type-abstract]
            refresh_margin=auth.refresh_margin_seconds,
            refresh_policy=auth.refresh_policy,
            proactive_ratio=auth.proactive_refresh_ratio,
            allow_interactive=auth.allow_interactive,
        )

    def _create_client(self, credential: Credential) -> YouTubeClient:
        return YouTubeClient(
            credential, self.get_service(httpx.AsyncClient), self.settings.youtube
        )

    def get_credential_manager(self) -> CredentialManager:
        return self.get_service(CredentialManager)

    def get_invoker(self) -> ResilientInvoker:
        return self.get_service(ResilientInvoker)

    def get_client_cache(self) -> AuthenticatedClientCache:
        return self.get_service(AuthenticatedClientCache)

    async def call(
        self,
        operation: Callable[[YouTubeClient], Awaitable[T]],
        *,
        name: str = "remote_call",
    ) -> T:
        """Run ``operation`` with the cached client through the invoker.

        An authentication failure invalidates the client, forces a credential
        refresh and retries the operation exactly once.

        Raises:
            AuthenticationError: If the refreshed credential is rejected too
        """
        cache = self.get_client_cache()
        invoker = self.get_invoker()

        client = await cache.get()
        try:
            return await invoker.invoke(
                functools.partial(operation, client), operation=name
            )
        except AuthFailedError:
            logger.info("remote_call_reauthenticating", operation=name)
            cache.invalidate()

        await self.get_credential_manager().refresh()
        client = await cache.get()
        try:
            return await invoker.invoke(
                functools.partial(operation, client), operation=name
            )
        except AuthFailedError as e:
            cache.invalidate()
            raise AuthenticationError(
                "The API rejected the refreshed credential. "
                "Run `ytanalytics auth login` to sign in again."
            ) from e

    async def is_authenticated(self) -> bool:
        return await self.get_credential_manager().is_authenticated()

    async def revoke(self) -> bool:
        """Revoke the credential and drop the cached client."""
        self.get_client_cache().invalidate()
        try:
            return await self.get_credential_manager().revoke()
        finally:
            self.get_client_cache().invalidate()

    def shutdown(self) -> None:
        """Interrupt pending retry backoff."""
        if ResilientInvoker in self._services:
            self.get_invoker().shutdown()

    async def close(self) -> None:
        """Close the shared HTTP client if it was created."""
        client = self._services.pop(httpx.AsyncClient, None)
        if client is not None:
            await client.aclose()
            logger.debug("http_client_closed")

    async def __aenter__(self) -> "ServiceContainer":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
