"""Token source adapters and the collaborators they wrap."""

import logging
import subprocess
from collections.abc import Sequence

import google.auth
from google.auth import exceptions as google_exceptions
from google.auth.credentials import Credentials as GoogleCredentials
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from .consts import (
    BEARER_TOKEN_TYPE,
    GCLOUD_TOKEN_ARGS,
    GCR_SCOPES,
    REVOKED_GRANT_ERROR,
    REVOKED_GRANT_SUBTYPE,
)
from .exceptions import (
    EmptyTokenError,
    ExternalToolError,
    InvalidCredentialsError,
    InvalidTokenError,
    RevokedGrantError,
    UnexpectedTokenTypeError,
    UpstreamError,
)
from .models import Token
from .protocols import AmbientDetector, Command, CredentialStore
from .store import OAuthContext, classify_oauth_error, decode_oauth_error
from .utils import as_utc
from .validation import is_live_oauth_token, is_valid_token

logger = logging.getLogger("docker-credential-gcr.sources")


# ===== COLLABORATORS =====


class GoogleAuthCredential:
    """Ambient credential backed by google-auth."""

    def __init__(self, credentials: GoogleCredentials):
        self.credentials = credentials

    def token(self) -> Token:
        self.credentials.refresh(Request())
        expiry = self.credentials.expiry
        return Token(
            value=self.credentials.token or "",
            token_type=BEARER_TOKEN_TYPE,
            expiry=as_utc(expiry) if expiry else None,
        )


class GoogleAuthDetector:
    """Application Default Credentials lookup.

    Looks, in order, at GOOGLE_APPLICATION_CREDENTIALS, the gcloud well-known
    file, and the GCE/GKE metadata server.
    """

    def detect_default(
        self, scopes: Sequence[str], use_self_signed_jwt: bool
    ) -> GoogleAuthCredential:
        credentials, _ = google.auth.default(scopes=list(scopes))
        if use_self_signed_jwt and isinstance(credentials, service_account.Credentials):
            credentials = credentials.with_always_use_jwt_access(True)
        return GoogleAuthCredential(credentials)


class SubprocessCommand:
    """Runs an external executable, bounded by a timeout."""

    def __init__(self, command: str, timeout_seconds: float | None = None):
        self.command = command
        self.timeout_seconds = timeout_seconds

    def exec(self, *args: str) -> bytes:
        argv = [self.command, *args]
        logger.debug(f"Running {' '.join(argv)}")
        try:
            completed = subprocess.run(
                argv, capture_output=True, check=True, timeout=self.timeout_seconds
            )
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or b"").decode(errors="replace").strip()
            raise ExternalToolError(
                f"{self.command} exited with status {e.returncode}",
                cause=e,
                context={"stderr": stderr},
            ) from e
        except subprocess.TimeoutExpired as e:
            raise ExternalToolError(
                f"{self.command} timed out after {self.timeout_seconds}s", cause=e
            ) from e
        except OSError as e:
            raise ExternalToolError(
                f"unable to run {self.command}",
                cause=e,
                suggestions=["Install the Google Cloud SDK or drop 'gcloud' from token sources"],
            ) from e
        return completed.stdout


# ===== ADAPTERS =====


class AmbientTokenSource:
    """``env`` source: application default credentials."""

    def __init__(
        self, detector: AmbientDetector, scopes: Sequence[str] = GCR_SCOPES
    ):
        self.detector = detector
        self.scopes = tuple(scopes)

    def resolve(self) -> str:
        try:
            credential = self.detector.detect_default(
                self.scopes, use_self_signed_jwt=True
            )
        except google_exceptions.DefaultCredentialsError as e:
            raise InvalidCredentialsError(
                "failed to detect default credentials", cause=e
            ) from e

        try:
            token = credential.token()
        except google_exceptions.RefreshError as e:
            raise _refresh_failure(e) from e
        except google_exceptions.GoogleAuthError as e:
            raise UpstreamError("unable to fetch default credentials token", cause=e) from e

        if not is_valid_token(token):
            raise InvalidTokenError("token was invalid")
        if token.token_type != BEARER_TOKEN_TYPE:
            raise UnexpectedTokenTypeError(
                f'expected token type "{BEARER_TOKEN_TYPE}" but got "{token.token_type}"'
            )
        return token.value


# google.oauth2.reauth raises this, without the response body, when the token
# endpoint answers invalid_grant/invalid_rapt for user credentials
GOOGLE_AUTH_REAUTH_NEEDED = "Reauthentication is needed"


def _refresh_failure(error: google_exceptions.RefreshError) -> UpstreamError:
    message = "unable to fetch default credentials token"
    if any(
        isinstance(arg, str) and arg.startswith(GOOGLE_AUTH_REAUTH_NEEDED)
        for arg in error.args
    ):
        return RevokedGrantError(
            message,
            error=REVOKED_GRANT_ERROR,
            error_subtype=REVOKED_GRANT_SUBTYPE,
            cause=error,
        )
    # otherwise google-auth passes the decoded response as an extra arg
    body = next(
        (arg for arg in error.args if decode_oauth_error(arg) is not None), None
    )
    return classify_oauth_error(message, body, error, UpstreamError)


class GcloudSDKTokenSource:
    """``gcloud`` source: shells out to ``gcloud config config-helper``."""

    def __init__(self, command: Command):
        self.command = command

    def resolve(self) -> str:
        try:
            stdout = self.command.exec(*GCLOUD_TOKEN_ARGS)
        except ExternalToolError as e:
            raise ExternalToolError("`gcloud config config-helper` failed", cause=e) from e

        token = stdout.decode(errors="replace").strip()
        if not token:
            raise EmptyTokenError(
                "`gcloud config config-helper` returned an empty access_token",
                suggestions=["Run `gcloud auth login`"],
            )
        return token


class StoreTokenSource:
    """``store`` source: the helper's own persisted OAuth credential."""

    def __init__(self, store: CredentialStore, oauth_context: OAuthContext):
        self.store = store
        self.oauth_context = oauth_context

    def resolve(self) -> str:
        credential = self.store.get_auth()
        token = credential.token_source(self.oauth_context).token()
        if not is_live_oauth_token(token):
            raise InvalidTokenError("token was invalid")
        return token.value
