"""Cache of the authenticated API client."""

import asyncio
from collections.abc import Callable

from structlog import get_logger

from ytanalytics.auth.manager import CredentialManager
from ytanalytics.auth.models import Credential

from .client import YouTubeClient


logger = get_logger(__name__)


class AuthenticatedClientCache:
    """Holds one lazily built client bound to the current credential.

    A cached client is dropped on :meth:`invalidate`, whenever the manager's
    credential generation moves on and whenever its credential is due for
    refresh, so :meth:`get` never returns a client bound to a credential
    known to be stale.
    """

    def __init__(
        self,
        manager: CredentialManager,
        factory: Callable[[Credential], YouTubeClient],
    ):
        self.manager = manager
        self.factory = factory
        self._client: YouTubeClient | None = None
        self._generation: int | None = None
        self._lock = asyncio.Lock()

    @property
    def cached(self) -> bool:
        return self._client is not None

    def _is_current(self, client: YouTubeClient) -> bool:
        return self._generation == self.manager.generation and not (
            self.manager.needs_refresh(client.credential)
        )

    async def get(self) -> YouTubeClient:
        client = self._client
        if client is not None and self._is_current(client):
            return client

        async with self._lock:
            if self._client is not None and not self._is_current(self._client):
                logger.debug("client_cache_stale", generation=self._generation)
                self._client = None
            if self._client is None:
                credential = await self.manager.get_valid()
                self._client = self.factory(credential)
                self._generation = self.manager.generation
                logger.debug("client_cache_built", generation=self._generation)
            return self._client

    def invalidate(self) -> None:
        """Drop the cached client; the credential is untouched."""
        if self._client is not None:
            logger.debug("client_cache_invalidated")
        self._client = None
        self._generation = None
