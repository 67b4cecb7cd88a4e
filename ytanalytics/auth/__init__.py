"""Credential lifecycle for the YouTube APIs."""

from .exceptions import (
    AuthenticationError,
    ClientConfigError,
    CorruptRecordError,
    CredentialsError,
    OAuthError,
    PersistenceError,
    TokenExpiredError,
)
from .manager import CredentialManager, CredentialState, RefreshPolicy
from .models import Credential, CredentialRecord, OAuthClientConfig, TokenGrant
from .oauth import GoogleOAuthClient
from .storage import CredentialStore


__all__ = [
    "AuthenticationError",
    "ClientConfigError",
    "CorruptRecordError",
    "Credential",
    "CredentialManager",
    "CredentialRecord",
    "CredentialState",
    "CredentialStore",
    "CredentialsError",
    "GoogleOAuthClient",
    "OAuthClientConfig",
    "OAuthError",
    "PersistenceError",
    "RefreshPolicy",
    "TokenExpiredError",
    "TokenGrant",
]
