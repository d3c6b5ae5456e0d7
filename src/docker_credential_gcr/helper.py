"""Credential helper facade handed to the Docker credential-helper protocol."""

import logging
from collections.abc import Sequence
from typing import Any

from .config import GCRConfig, get_config
from .consts import GCR_OAUTH2_USERNAME, GCR_SCOPES
from .exceptions import TokenRetrievalError, UnimplementedError
from .login import BrowserLoginAgent
from .models import ResolvedCredential, TokenSourceKind
from .protocols import AmbientDetector, Command, CredentialStore, LoginAgent
from .reauth import ReauthCoordinator
from .resolver import TokenResolver
from .sources import (
    AmbientTokenSource,
    GcloudSDKTokenSource,
    GoogleAuthDetector,
    StoreTokenSource,
    SubprocessCommand,
)
from .store import JsonFileCredentialStore, OAuthContext

logger = logging.getLogger("docker-credential-gcr.helper")


class GCRCredentialHelper:
    """Resolve-only credential helper for GCR-style registries.

    Every registry host shares one canonical identity, so the server URL is
    not consulted. Nothing is cached: each ``get`` resolves afresh.
    """

    def __init__(
        self,
        coordinator: ReauthCoordinator,
        token_sources: Sequence[str],
        username: str = GCR_OAUTH2_USERNAME,
    ):
        """Initialize GCRCredentialHelper.

        Args:
            coordinator: Resolution pipeline with reauthentication.
            token_sources: Ordered token source identifiers.
            username: Username reported alongside every token.
        """
        self.coordinator = coordinator
        self.token_sources = list(token_sources)
        self.username = username

    def get(self, server_url: str) -> ResolvedCredential:
        """Return the username and secret to use for a registry.

        Raises:
            CredentialHelperError: If no token could be obtained.
        """
        logger.debug(f"Credentials requested for {server_url}")
        token = self.coordinator.resolve(self.token_sources)
        if token is None:
            raise TokenRetrievalError(
                "could not retrieve GCR's access token: no token sources configured",
                suggestions=["Run `docker-credential-gcr config --token-source=...`"],
            )
        return ResolvedCredential(username=self.username, secret=token)

    def list(self) -> dict[str, str]:
        raise UnimplementedError("list is unimplemented")

    def add(self, credential: Any) -> None:
        raise UnimplementedError("add is unimplemented")

    def delete(self, server_url: str) -> None:
        raise UnimplementedError("delete is unimplemented")


def create_helper(
    config: GCRConfig | None = None,
    *,
    store: CredentialStore | None = None,
    detector: AmbientDetector | None = None,
    gcloud: Command | None = None,
    login_agent: LoginAgent | None = None,
    oauth_context: OAuthContext | None = None,
) -> GCRCredentialHelper:
    """Wire a helper from configuration; any collaborator may be substituted.

    Args:
        config: GCRConfig instance. If None, uses get_config().
        store: Credential store. If None, uses the configured JSON file.
        detector: Ambient detector. If None, uses google-auth.
        gcloud: gcloud command. If None, runs the configured executable.
        login_agent: Login collaborator. If None, uses the browser flow.
        oauth_context: HTTP context for refreshes. If None, builds one.
    """
    config = config or get_config()
    store = store or JsonFileCredentialStore(config.store_path)
    oauth_context = oauth_context or OAuthContext.from_config(config)

    resolver = TokenResolver(
        {
            TokenSourceKind.ENV: AmbientTokenSource(
                detector or GoogleAuthDetector(), scopes=GCR_SCOPES
            ),
            TokenSourceKind.GCLOUD: GcloudSDKTokenSource(
                gcloud
                or SubprocessCommand(
                    config.gcloud_command, timeout_seconds=config.command_timeout_seconds
                )
            ),
            TokenSourceKind.STORE: StoreTokenSource(store, oauth_context),
        }
    )
    coordinator = ReauthCoordinator(
        resolver, login_agent or BrowserLoginAgent.from_config(config), store
    )
    logger.debug(f"Credential helper created with {config!r}")
    return GCRCredentialHelper(coordinator, config.token_sources)

