"""Exceptions for credential handling."""


class CredentialsError(Exception):
    """Base exception for all credential-related errors."""

    pass


class AuthenticationError(CredentialsError):
    """Raised when no usable credential exists and sign-in is required."""

    def __init__(self, message: str, account: str | None = None) -> None:
        super().__init__(message)
        self.account = account


class TokenExpiredError(AuthenticationError):
    """Raised when a refresh attempt failed or was impossible."""

    def __init__(self, account: str = "default", reason: str | None = None) -> None:
        message = f"Token expired for account {account}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, account=account)
        self.reason = reason


class ClientConfigError(AuthenticationError):
    """Raised when the OAuth client configuration is missing or invalid."""

    pass


class PersistenceError(CredentialsError):
    """Raised when the credential record cannot be read or written."""

    pass


class CorruptRecordError(CredentialsError):
    """Raised when the credential record exists but cannot be parsed."""

    pass


class OAuthError(CredentialsError):
    """Base exception for errors reported by the authorization server."""

    pass


class OAuthLoginError(OAuthError):
    """Raised when the interactive consent flow fails."""

    pass


class OAuthCallbackError(OAuthError):
    """Raised when the consent callback reports an error or a bad state."""

    pass


class OAuthTokenRefreshError(OAuthError):
    """Raised when the refresh exchange is rejected."""

    pass


class OAuthRevokeError(OAuthError):
    """Raised when the revocation endpoint cannot be reached."""

    pass
