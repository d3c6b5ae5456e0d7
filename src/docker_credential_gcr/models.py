"""Data model for token resolution."""

from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, NamedTuple

from pydantic import BaseModel, ConfigDict, Field

from .consts import BEARER_TOKEN_TYPE, GOOGLE_TOKEN_URI
from .exceptions import UnknownSourceKindError
from .utils import suggest_similar_strings

if TYPE_CHECKING:
    from .store import OAuthContext, OAuthTokenSource


class TokenSourceKind(StrEnum):
    """Where a token may come from, in configured order."""

    ENV = "env"
    GCLOUD = "gcloud"
    STORE = "store"

    @classmethod
    def parse(cls, identifier: str) -> "TokenSourceKind":
        """Parse a configured identifier, honouring the legacy ``gcloud_sdk`` alias.

        Raises:
            UnknownSourceKindError: If the identifier is not a known source.
        """
        if identifier in _LEGACY_ALIASES:
            return _LEGACY_ALIASES[identifier]
        try:
            return cls(identifier)
        except ValueError:
            candidates = [kind.value for kind in cls] + list(_LEGACY_ALIASES)
            suggestions = [
                f"Did you mean '{name}'?"
                for name in suggest_similar_strings(identifier, candidates)
            ]
            raise UnknownSourceKindError(
                identifier,
                suggestions=suggestions
                or [f"Valid token sources: {', '.join(candidates)}"],
                context={"source": identifier},
            ) from None


_LEGACY_ALIASES = {"gcloud_sdk": TokenSourceKind.GCLOUD}


class Token(BaseModel):
    """A self-describing bearer token."""

    model_config = ConfigDict(frozen=True)

    value: str = Field(..., description="Opaque bearer token")
    token_type: str = Field(default=BEARER_TOKEN_TYPE, description="Token type tag")
    expiry: datetime | None = Field(
        None, description="Expiry instant (UTC); None means no known expiry"
    )


class PersistedCredential(BaseModel):
    """OAuth2 user credential persisted by the credential store."""

    access_token: str = ""
    refresh_token: str = ""
    token_expiry: datetime | None = None
    client_id: str = ""
    client_secret: str = ""
    token_uri: str = GOOGLE_TOKEN_URI

    def token(self) -> Token:
        """Currently held access token (may be empty or expired)."""
        expiry = self.token_expiry
        if expiry is not None and expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=UTC)
        return Token(value=self.access_token, expiry=expiry)

    def token_source(self, oauth_context: "OAuthContext") -> "OAuthTokenSource":
        """Token source that refreshes this credential against the OAuth endpoint."""
        from .store import OAuthTokenSource

        return OAuthTokenSource(self, oauth_context)


class ResolvedCredential(NamedTuple):
    """Username/secret pair handed back to the host tooling."""

    username: str
    secret: str
