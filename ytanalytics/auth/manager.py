"""Credential lifecycle: load, refresh, acquire and revoke."""

import asyncio
import time
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, TypeVar, cast

from structlog import get_logger

from .exceptions import (
    AuthenticationError,
    CorruptRecordError,
    OAuthError,
    PersistenceError,
    TokenExpiredError,
)
from .models import Credential
from .oauth import OAuthFlowClient
from .storage import CredentialStore


logger = get_logger(__name__)

T = TypeVar("T")


class CredentialState(str, Enum):
    UNLOADED = "unloaded"
    LOADED = "loaded"
    NEAR_EXPIRY = "near_expiry"
    REFRESHING = "refreshing"
    ACQUIRING = "acquiring"
    REVOKED = "revoked"


class RefreshPolicy(str, Enum):
    REACTIVE = "reactive"
    PROACTIVE = "proactive"


class _Operation(str, Enum):
    RESOLVE = "resolve"
    REFRESH = "refresh"
    ACQUIRE = "acquire"
    REVOKE = "revoke"


# operations whose outcome a get_valid() caller can share
_SHAREABLE_WITH_RESOLVE = frozenset(
    {_Operation.RESOLVE, _Operation.REFRESH, _Operation.ACQUIRE}
)


class CredentialManager:
    """Produces a currently valid credential on demand.

    A single operation (load, refresh, acquisition or revocation) is in
    flight at any time. Callers asking for the same kind of operation attach
    to it; ``get_valid()`` also attaches to a running refresh or acquisition.
    Any other request waits for the running operation to settle and then
    starts its own, so an explicit sign-in always shows consent, a forced
    refresh always exchanges a new token and nothing outlives a revocation.
    """

    def __init__(
        self,
        storage: CredentialStore,
        oauth_client: OAuthFlowClient,
        *,
        refresh_margin: float = 300.0,
        refresh_policy: RefreshPolicy | str = RefreshPolicy.REACTIVE,
        proactive_ratio: float = 0.5,
        allow_interactive: bool = True,
        account: str = "default",
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the credential manager.

        Args:
            storage: Store holding the persisted credential record
            oauth_client: Authorization server client
            refresh_margin: Refresh when fewer seconds than this remain
            refresh_policy: ``proactive`` also refreshes once ``proactive_ratio``
                of a token's observed lifetime has elapsed
            proactive_ratio: Fraction of lifetime for the proactive policy
            allow_interactive: Permit the browser consent flow from get_valid()
            account: Label used in error messages
            clock: Returns the current time in epoch seconds
        """
        self.storage = storage
        self.oauth_client = oauth_client
        self.refresh_margin = refresh_margin
        self.refresh_policy = RefreshPolicy(refresh_policy)
        self.proactive_ratio = proactive_ratio
        self.allow_interactive = allow_interactive
        self.account = account
        self._clock = clock

        self._credential: Credential | None = None
        # set when this process obtained the current access token
        self._issued_at: float | None = None
        self._state = CredentialState.UNLOADED
        self._reacquire_required = False
        self._generation = 0
        self._inflight: asyncio.Task[Any] | None = None
        self._inflight_operation: _Operation | None = None

    @property
    def state(self) -> CredentialState:
        credential = self._credential
        if (
            self._state is CredentialState.LOADED
            and credential is not None
            and self.needs_refresh(credential)
        ):
            return CredentialState.NEAR_EXPIRY
        return self._state

    @property
    def generation(self) -> int:
        """Incremented whenever the held credential is replaced or dropped."""
        return self._generation

    @property
    def credential(self) -> Credential | None:
        return self._credential

    def needs_refresh(self, credential: Credential) -> bool:
        now = self._clock()
        if not credential.has_valid_access_token(now, self.refresh_margin):
            return True
        if (
            self.refresh_policy is RefreshPolicy.PROACTIVE
            and self._issued_at is not None
            and credential.expiry_date is not None
        ):
            lifetime = credential.expiry_date / 1000 - self._issued_at
            if lifetime > 0 and now - self._issued_at >= lifetime * self.proactive_ratio:
                return True
        return False

    async def get_valid(self) -> Credential:
        """Return a credential whose access token is usable now.

        Raises:
            AuthenticationError: If sign-in is required
            TokenExpiredError: If a needed refresh failed
            PersistenceError: If the refreshed credential cannot be stored
        """
        credential = self._credential
        if credential is not None and not self.needs_refresh(credential):
            return credential
        return await self._single_flight(_Operation.RESOLVE, self._resolve)

    async def acquire(self) -> Credential:
        """Run the interactive consent flow, ignoring any stored credential."""
        return await self._single_flight(
            _Operation.ACQUIRE, lambda: self._acquire(interactive_requested=True)
        )

    async def refresh(self) -> Credential:
        """Force a refresh exchange, e.g. after the API rejected the token."""
        return await self._single_flight(_Operation.REFRESH, self._force_refresh)

    def _can_join(self, operation: _Operation) -> bool:
        running = self._inflight_operation
        if running is operation:
            return True
        return operation is _Operation.RESOLVE and running in _SHAREABLE_WITH_RESOLVE

    async def _single_flight(
        self, operation: _Operation, factory: Callable[[], Awaitable[T]]
    ) -> T:
        while True:
            task = self._inflight
            if task is None or task.done():
                task = asyncio.create_task(factory())
                task.add_done_callback(self._on_inflight_done)
                self._inflight = task
                self._inflight_operation = operation
                break
            if self._can_join(operation):
                logger.debug(
                    "credential_operation_joined",
                    operation=operation.value,
                    state=self._state.value,
                )
                break
            logger.debug(
                "credential_operation_waiting",
                operation=operation.value,
                running=self._inflight_operation,
            )
            # outcome is delivered to the operation's own callers
            await asyncio.wait({task})
        # a cancelled caller must not cancel the shared operation
        return cast(T, await asyncio.shield(task))

    def _on_inflight_done(self, task: "asyncio.Task[Any]") -> None:
        if self._inflight is task:
            self._inflight = None
            self._inflight_operation = None
        if not task.cancelled():
            # retrieved here so abandoned failures are not reported as unhandled
            task.exception()

    async def _resolve(self) -> Credential:
        credential = self._credential
        if credential is None:
            if self._reacquire_required:
                return await self._acquire()
            credential = await self._load()
            if credential is None:
                return await self._acquire()
        if self.needs_refresh(credential):
            return await self._refresh(credential)
        return credential

    async def _force_refresh(self) -> Credential:
        credential = self._credential
        if credential is None:
            credential = await self._load()
        if credential is None:
            raise AuthenticationError(
                "No stored credential to refresh; sign in again", account=self.account
            )
        return await self._refresh(credential)

    async def _load(self) -> Credential | None:
        try:
            credential = await self.storage.load()
        except CorruptRecordError as e:
            logger.warning("credential_record_corrupt_ignored", error=str(e))
            return None
        if credential is None:
            return None
        self._credential = credential
        self._issued_at = None
        self._state = CredentialState.LOADED
        logger.debug(
            "credential_loaded",
            expires_at=credential.expires_at_datetime,
            can_refresh=credential.can_refresh,
        )
        return credential

    async def _refresh(self, credential: Credential) -> Credential:
        if not credential.can_refresh:
            self._discard("missing_refresh_token")
            raise TokenExpiredError(
                self.account, reason="no refresh token; sign in again"
            )

        self._state = CredentialState.REFRESHING
        logger.debug("credential_refresh_started")
        now = self._clock()
        try:
            grant = await self.oauth_client.refresh_access_token(credential)
        except OAuthError as e:
            self._discard("refresh_rejected")
            raise TokenExpiredError(self.account, reason=str(e)) from e

        credential.apply_grant(grant, now)
        self._credential = credential
        self._issued_at = now
        self._state = CredentialState.LOADED
        self._generation += 1
        # PersistenceError propagates; the refreshed credential stays in memory
        await self.storage.save(credential)
        logger.info(
            "credential_refreshed",
            expires_at=credential.expires_at_datetime,
            rotated=grant.refresh_token is not None,
        )
        return credential

    async def _acquire(self, interactive_requested: bool = False) -> Credential:
        if not (self.allow_interactive or interactive_requested):
            raise AuthenticationError(
                "Not authenticated. Run `ytanalytics auth login` to sign in.",
                account=self.account,
            )

        self._state = CredentialState.ACQUIRING
        logger.info("credential_acquisition_started")
        try:
            credential = await self.oauth_client.login()
        except OAuthError as e:
            self._state = CredentialState.UNLOADED
            raise AuthenticationError(
                f"Sign-in failed: {e}", account=self.account
            ) from e
        except AuthenticationError:
            self._state = CredentialState.UNLOADED
            raise

        try:
            await self.storage.save(credential)
        except PersistenceError:
            self._state = CredentialState.UNLOADED
            raise
        self._credential = credential
        self._issued_at = self._clock()
        self._state = CredentialState.LOADED
        self._reacquire_required = False
        self._generation += 1
        logger.info("credential_acquired", expires_at=credential.expires_at_datetime)
        return credential

    def _discard(self, reason: str) -> None:
        logger.warning("credential_discarded", reason=reason)
        self._credential = None
        self._issued_at = None
        self._state = CredentialState.UNLOADED
        self._reacquire_required = True
        self._generation += 1

    async def revoke(self) -> bool:
        """Revoke remotely, then clear memory and the persisted record.

        Local state is cleared even when the authorization server cannot
        be reached. Runs as the in-flight operation: a load, refresh or
        acquisition requested meanwhile starts only after revocation ends.

        Returns:
            True if the authorization server confirmed revocation
        """
        return await self._single_flight(_Operation.REVOKE, self._revoke)

    async def _revoke(self) -> bool:
        credential = self._credential
        if credential is None:
            try:
                credential = await self.storage.load()
            except CorruptRecordError:
                credential = None

        revoked_remotely = False
        try:
            if credential is not None:
                secret = credential.refresh_token or credential.access_token
                if secret is not None:
                    try:
                        revoked_remotely = await self.oauth_client.revoke(
                            secret.get_secret_value()
                        )
                    except OAuthError as e:
                        logger.warning("credential_remote_revoke_failed", error=str(e))
        finally:
            self._credential = None
            self._issued_at = None
            self._reacquire_required = False
            self._generation += 1
            self._state = CredentialState.REVOKED
            await self.storage.delete()

        logger.info("credential_revoked", remote=revoked_remotely)
        return revoked_remotely

    async def is_authenticated(self) -> bool:
        """Check sign-in status without refreshing or prompting.

        True when a credential is held or stored and either its access token
        is unexpired or it can be refreshed.
        """
        credential = self._credential
        if credential is None:
            if self._reacquire_required:
                return False
            try:
                credential = await self.storage.load()
            except (CorruptRecordError, PersistenceError) as e:
                logger.debug("auth_status_load_failed", error=str(e))
                return False
        if credential is None:
            return False
        return credential.can_refresh or credential.has_valid_access_token(
            self._clock()
        )

    async def get_auth_status(self) -> dict[str, Any]:
        """Summarize authentication status for display."""
        authenticated = await self.is_authenticated()
        status: dict[str, Any] = {
            "authenticated": authenticated,
            "state": self.state.value,
            "storage_location": self.storage.get_location(),
            "refresh_policy": self.refresh_policy.value,
        }
        credential = self._credential
        if credential is None and not self._reacquire_required:
            try:
                credential = await self.storage.load()
            except (CorruptRecordError, PersistenceError) as e:
                status["reason"] = str(e)
                return status
        if credential is None:
            status["reason"] = "No credentials found"
            return status

        status["can_refresh"] = credential.can_refresh
        expires_at = credential.expires_at_datetime
        if expires_at is not None:
            status["expires_at"] = expires_at.isoformat()
            status["expires_in"] = max(
                0, int(credential.seconds_until_expiry(self._clock()) or 0)
            )
        return status
