"""Protocol definitions for dependency injection and interface contracts."""

from collections.abc import Sequence
from typing import Protocol

from .models import PersistedCredential, Token


class TokenSource(Protocol):
    """One configured place a registry token can come from."""

    def resolve(self) -> str:
        """Produce a usable access token.

        Raises:
            TokenSourceError: If this source cannot produce a token.
        """
        ...


class AmbientCredential(Protocol):
    """Credential found by ambient detection."""

    def token(self) -> Token:
        """Fetch (refreshing if necessary) the current token."""
        ...


class AmbientDetector(Protocol):
    """Application-default credential discovery."""

    def detect_default(
        self, scopes: Sequence[str], use_self_signed_jwt: bool
    ) -> AmbientCredential:
        """Locate credentials from env vars, well-known files or the metadata server."""
        ...


class Command(Protocol):
    """External executable invoked synchronously."""

    def exec(self, *args: str) -> bytes:
        """Run the command and return its stdout.

        Raises:
            ExternalToolError: If the process cannot be run or exits non-zero.
        """
        ...


class CredentialStore(Protocol):
    """Durable home of the persisted OAuth credential."""

    def get_auth(self) -> PersistedCredential:
        """Raises StoreReadError if nothing usable is stored."""
        ...

    def set_auth(self, credential: PersistedCredential) -> None:
        """Raises StoreWriteError if the credential cannot be saved."""
        ...

    def delete_auth(self) -> None: ...


class LoginAgent(Protocol):
    """Interactive user login."""

    def perform_login(self) -> PersistedCredential:
        """Block until the user completes (or abandons) the login flow.

        Raises:
            LoginError: If the flow does not yield a credential.
        """
        ...
