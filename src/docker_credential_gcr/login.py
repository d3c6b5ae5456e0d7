"""Interactive browser login through the installed-app OAuth flow."""

import logging
from collections.abc import Sequence

from google_auth_oauthlib.flow import InstalledAppFlow

from .config import GCRConfig
from .consts import GCR_SCOPES
from .exceptions import LoginError
from .models import PersistedCredential
from .utils import as_utc

logger = logging.getLogger("docker-credential-gcr.login")


class BrowserLoginAgent:
    """Runs google-auth-oauthlib's local-server flow and returns the credential."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        auth_uri: str,
        token_uri: str,
        scopes: Sequence[str] = GCR_SCOPES,
        timeout_seconds: int | None = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.auth_uri = auth_uri
        self.token_uri = token_uri
        self.scopes = list(scopes)
        self.timeout_seconds = timeout_seconds

    @classmethod
    def from_config(cls, config: GCRConfig) -> "BrowserLoginAgent":
        return cls(
            client_id=config.oauth_client_id,
            client_secret=config.oauth_client_secret,
            auth_uri=config.auth_uri,
            token_uri=config.token_uri,
            timeout_seconds=config.login_timeout_seconds,
        )

    def client_config(self) -> dict:
        """OAuth client description in the ``client_secrets.json`` layout."""
        return {
            "installed": {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "auth_uri": self.auth_uri,
                "token_uri": self.token_uri,
                "redirect_uris": ["http://localhost"],
            }
        }

    def perform_login(self) -> PersistedCredential:
        """Open a browser and block until the user grants access.

        Raises:
            LoginError: If no OAuth client is configured, the flow fails or
                times out, or no refresh token is granted.
        """
        if not (self.client_id and self.client_secret):
            raise LoginError(
                "no OAuth client configured for interactive login",
                suggestions=[
                    "Set GCR_HELPER_OAUTH_CLIENT_ID and GCR_HELPER_OAUTH_CLIENT_SECRET"
                ],
            )

        flow = InstalledAppFlow.from_client_config(
            self.client_config(), scopes=self.scopes
        )
        logger.debug("Starting local-server OAuth flow")
        try:
            # empty prompt: stdout belongs to the credential-helper protocol
            credentials = flow.run_local_server(
                port=0,
                authorization_prompt_message="",
                timeout_seconds=self.timeout_seconds,
            )
        except Exception as e:
            raise LoginError("login flow did not complete", cause=e) from e

        if not credentials.refresh_token:
            raise LoginError(
                "login did not grant a refresh token",
                suggestions=["Revoke the helper's access in your Google account and retry"],
            )

        logger.info("Interactive login completed")
        return PersistedCredential(
            access_token=credentials.token or "",
            refresh_token=credentials.refresh_token,
            token_expiry=as_utc(credentials.expiry) if credentials.expiry else None,
            client_id=self.client_id,
            client_secret=self.client_secret,
            token_uri=self.token_uri,
        )
