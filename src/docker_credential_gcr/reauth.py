"""Recovery from a revoked OAuth grant through interactive login."""

import logging
import sys
from collections.abc import Sequence
from typing import TextIO

from .exceptions import (
    AuthenticationFailedError,
    CredentialHelperError,
    PersistError,
    RevokedGrantError,
    TokenRetrievalError,
)
from .protocols import CredentialStore, LoginAgent
from .resolver import TokenResolver

logger = logging.getLogger("docker-credential-gcr.reauth")

REAUTH_REQUIRED_MESSAGE = "Reauth required; opening a browser to proceed..."
REAUTH_SUCCESS_MESSAGE = "Reauth successful!"


class ReauthCoordinator:
    """Wraps token resolution with a single login-and-retry on a revoked grant.

    Only the last error of an exhausted resolution is inspected. Whatever the
    retry after login produces is final; a second revoked grant is not retried.
    """

    def __init__(
        self,
        resolver: TokenResolver,
        login_agent: LoginAgent,
        store: CredentialStore,
        status_stream: TextIO | None = None,
    ):
        """Initialize ReauthCoordinator.

        Args:
            resolver: Resolver to run (and re-run once after login).
            login_agent: Interactive login collaborator.
            store: Where the freshly obtained credential is persisted.
            status_stream: User-visible status output, defaults to stderr.
        """
        self.resolver = resolver
        self.login_agent = login_agent
        self.store = store
        self.status_stream = status_stream

    def resolve(self, ordered_sources: Sequence[str]) -> str | None:
        """Resolve a token, reauthenticating once if the grant was revoked.

        Raises:
            TokenRetrievalError: Resolution failed for a non-recoverable reason.
            AuthenticationFailedError: The interactive login failed.
            PersistError: The new credential could not be saved.
            CredentialHelperError: Whatever the post-login retry raised.
        """
        try:
            return self.resolver.resolve(ordered_sources)
        except RevokedGrantError as e:
            logger.info(f"Revoked grant detected: {e.error}/{e.error_subtype}")
        except CredentialHelperError as e:
            raise TokenRetrievalError(
                "could not retrieve GCR's access token",
                cause=e,
                suggestions=e.suggestions,
                context=e.context,
            ) from e

        self._reauthenticate()
        # exactly one retry
        return self.resolver.resolve(ordered_sources)

    def _reauthenticate(self) -> None:
        self._status(REAUTH_REQUIRED_MESSAGE)
        try:
            credential = self.login_agent.perform_login()
        except CredentialHelperError as e:
            raise AuthenticationFailedError("unable to authenticate user", cause=e) from e

        try:
            self.store.set_auth(credential)
        except CredentialHelperError as e:
            raise PersistError("unable to persist access token", cause=e) from e

        self._status(REAUTH_SUCCESS_MESSAGE)

    def _status(self, message: str) -> None:
        print(message, file=self.status_stream or sys.stderr, flush=True)
