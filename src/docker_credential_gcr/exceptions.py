"""docker-credential-gcr custom exceptions.

Exception Design Principles:
1. Every failure surfaced to the host tooling is a CredentialHelperError
2. Wrap collaborator errors as `cause` instead of re-parsing them downstream
3. Split on how the resolver reacts:
   - Per-source failures, skipped in favour of the next source (TokenSourceError)
   - Misconfiguration, fatal immediately (UnknownSourceKindError, ConfigError)
   - Reauthentication outcomes, terminal (AuthenticationFailedError, PersistError)
"""

from typing import Any

from .consts import ERROR_PREFIX


class CredentialHelperError(Exception):
    """Base exception for all docker-credential-gcr errors.

    Renders as ``docker-credential-gcr/helper: <message>[: <cause>]``. Nested
    helper errors contribute their detail without repeating the prefix.
    """

    def __init__(
        self,
        message: str,  # the error message
        *,
        cause: BaseException | None = None,  # underlying collaborator error
        suggestions: list[str] | None = None,  # remedial actions
        context: dict[str, Any] | None = None,  # additional detailed context
    ):
        """Initialize CredentialHelperError.

        Args:
            message: Primary error message for users
            cause: Underlying exception, rendered after the message
            suggestions: List of actionable suggestions for resolution
            context: Additional context information as key-value pairs
        """
        self.message = message
        self.cause = cause
        self.suggestions = suggestions or []
        self.context = context or {}
        super().__init__(str(self))

    @property
    def detail(self) -> str:
        """Message followed by the chain of causes, without the prefix."""
        if self.cause is None:
            return self.message
        if isinstance(self.cause, CredentialHelperError):
            return f"{self.message}: {self.cause.detail}"
        return f"{self.message}: {self.cause}"

    def __str__(self) -> str:
        return f"{ERROR_PREFIX}: {self.detail}"


class ConfigError(CredentialHelperError):
    """Invalid user configuration (unreadable or malformed config file)."""

    pass


class UnknownSourceKindError(ConfigError):
    """A configured token source identifier is not recognised.

    Fatal for the whole resolution: sources after the unknown entry are
    never attempted.
    """

    def __init__(self, source: str, **kwargs):
        super().__init__(f"unknown token source: {source}", **kwargs)
        self.source = source


# Per-source failures. The resolver records these and moves on.
class TokenSourceError(CredentialHelperError):
    """Base exception for a single token source failing."""

    pass


class InvalidCredentialsError(TokenSourceError):
    """Ambient credential detection failed."""

    pass


class InvalidTokenError(TokenSourceError):
    """A token was obtained but is empty or about to expire."""

    pass


class UnexpectedTokenTypeError(TokenSourceError):
    """The ambient token is not a Bearer token."""

    pass


class ExternalToolError(TokenSourceError):
    """The gcloud SDK invocation failed."""

    pass


class EmptyTokenError(TokenSourceError):
    """The gcloud SDK printed no access token."""

    pass


class StoreReadError(TokenSourceError):
    """The persisted credential could not be read."""

    pass


class TokenRefreshError(TokenSourceError):
    """Exchanging the persisted refresh token failed."""

    pass


class UpstreamError(TokenSourceError):
    """Error surfaced verbatim from an upstream library or service."""

    pass


class RevokedGrantError(UpstreamError):
    """The OAuth grant was revoked and the user must reauthenticate.

    Tagged variant for a token endpoint response carrying
    ``{"error": "invalid_grant", "error_subtype": "invalid_rapt"}``.
    """

    def __init__(self, message: str, *, error: str, error_subtype: str, **kwargs):
        kwargs.setdefault(
            "suggestions", ["Run `docker-credential-gcr auth login` to reauthenticate"]
        )
        super().__init__(message, **kwargs)
        self.error = error
        self.error_subtype = error_subtype


# Outcomes outside the per-source loop
class TokenRetrievalError(CredentialHelperError):
    """No configured source produced a token."""

    pass


class StoreWriteError(CredentialHelperError):
    """The credential store could not be written."""

    pass


class LoginError(CredentialHelperError):
    """The interactive login flow did not complete."""

    pass


class AuthenticationFailedError(CredentialHelperError):
    """Reauthentication was required but the user could not be authenticated."""

    pass


class PersistError(CredentialHelperError):
    """Reauthentication succeeded but the new credential could not be saved."""

    pass


class UnimplementedError(CredentialHelperError):
    """Credential helper operation intentionally not supported."""

    pass
