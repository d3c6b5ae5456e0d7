"""Persisted OAuth credential and its refreshing token source."""

import json
import logging
import os
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

import httpx
from pydantic import ValidationError

from .config import GCRConfig
from .consts import REVOKED_GRANT_ERROR, REVOKED_GRANT_SUBTYPE, USER_AGENT
from .exceptions import (
    CredentialHelperError,
    RevokedGrantError,
    StoreReadError,
    StoreWriteError,
    TokenRefreshError,
)
from .models import PersistedCredential, Token
from .utils import utcnow
from .validation import is_live_oauth_token

logger = logging.getLogger("docker-credential-gcr.store")

STORE_KEY = "gcrOAuth2Token"
LOGIN_SUGGESTION = "Run `docker-credential-gcr auth login` to store a credential"


def decode_oauth_error(body: Any) -> dict[str, Any] | None:
    """Decode an OAuth error response body into a dict, if it is one."""
    if isinstance(body, dict):
        return body
    if isinstance(body, (str, bytes, bytearray)):
        try:
            decoded = json.loads(body)
        except ValueError:
            return None
        return decoded if isinstance(decoded, dict) else None
    return None


def classify_oauth_error(
    message: str,
    body: Any,
    cause: BaseException,
    fallback: type[CredentialHelperError],
) -> CredentialHelperError:
    """Turn a token endpoint failure into RevokedGrantError or ``fallback``.

    Only an exact ``invalid_grant`` / ``invalid_rapt`` pair is a revoked grant.
    """
    payload = decode_oauth_error(body)
    if (
        payload is not None
        and payload.get("error") == REVOKED_GRANT_ERROR
        and payload.get("error_subtype") == REVOKED_GRANT_SUBTYPE
    ):
        return RevokedGrantError(
            message,
            error=payload["error"],
            error_subtype=payload["error_subtype"],
            cause=cause,
        )
    return fallback(message, cause=cause, context={"response": payload or {}})


@dataclass(frozen=True)
class OAuthContext:
    """Fixed HTTP context every OAuth refresh runs in."""

    http_client: httpx.Client

    @classmethod
    def from_config(cls, config: GCRConfig) -> "OAuthContext":
        return cls(
            http_client=httpx.Client(
                headers={"User-Agent": USER_AGENT},
                timeout=config.http_timeout_seconds,
            )
        )

    def close(self) -> None:
        """Release pooled HTTP connections."""
        self.http_client.close()


class OAuthTokenSource:
    """Refresh-token grant against the credential's token endpoint.

    Reuses the stored access token while it is still valid.
    """

    def __init__(self, credential: PersistedCredential, oauth_context: OAuthContext):
        self.credential = credential
        self.oauth_context = oauth_context

    def token(self) -> Token:
        """Return a current token, refreshing over the network if needed.

        Raises:
            TokenRefreshError: If the refresh cannot be performed.
            RevokedGrantError: If the refresh token has been revoked.
        """
        current = self.credential.token()
        if is_live_oauth_token(current):
            logger.debug("Stored access token still valid")
            return current

        if not self.credential.refresh_token:
            raise TokenRefreshError(
                "no refresh token available", suggestions=[LOGIN_SUGGESTION]
            )

        token_uri = self.credential.token_uri
        logger.debug(f"Refreshing stored credential against {token_uri}")
        try:
            response = self.oauth_context.http_client.post(
                token_uri,
                data={
                    "grant_type": "refresh_token",
                    "refresh_token": self.credential.refresh_token,
                    "client_id": self.credential.client_id,
                    "client_secret": self.credential.client_secret,
                },
            )
            response.raise_for_status()
            token_data = response.json()
        except httpx.HTTPStatusError as e:
            logger.warning(f"Token refresh rejected with {e.response.status_code}")
            raise classify_oauth_error(
                "oauth2: cannot fetch token", e.response.content, e, TokenRefreshError
            ) from e
        except (httpx.RequestError, ValueError) as e:
            raise TokenRefreshError(
                "oauth2: cannot fetch token",
                cause=e,
                context={"token_uri": token_uri},
            ) from e

        try:
            access_token = token_data["access_token"]
        except (KeyError, TypeError) as e:
            raise TokenRefreshError(
                "oauth2: server response missing access_token",
                context={"token_uri": token_uri},
            ) from e

        expiry = None
        if token_data.get("expires_in"):
            try:
                expires_in = int(token_data["expires_in"])
            except (TypeError, ValueError) as e:
                raise TokenRefreshError(
                    "oauth2: server response has invalid expires_in",
                    cause=e,
                    context={"token_uri": token_uri},
                ) from e
            expiry = utcnow() + timedelta(seconds=expires_in)
        logger.info("Stored credential refreshed")
        return Token(
            value=access_token,
            token_type=token_data.get("token_type", "Bearer"),
            expiry=expiry,
        )


class JsonFileCredentialStore:
    """Credential store backed by an owner-only JSON file.

    The file may hold other top-level keys, which are preserved on write.
    Concurrent writers are last-writer-wins.
    """

    def __init__(self, path: str):
        self.path = os.path.expanduser(path)

    def get_auth(self) -> PersistedCredential:
        """Load the persisted credential.

        Raises:
            StoreReadError: If the file is missing, unreadable or malformed.
        """
        logger.debug(f"Loading credential from {self.path}")
        payload = self._read()
        if STORE_KEY not in payload:
            raise StoreReadError(
                "no credential stored",
                suggestions=[LOGIN_SUGGESTION],
                context={"path": self.path},
            )
        try:
            return PersistedCredential.model_validate(payload[STORE_KEY])
        except ValidationError as e:
            raise StoreReadError(
                f"malformed credential in {self.path}",
                cause=e,
                context={"path": self.path},
            ) from e

    def set_auth(self, credential: PersistedCredential) -> None:
        """Persist the credential, replacing any previous one.

        Raises:
            StoreWriteError: If the file cannot be written.
        """
        try:
            payload = self._read()
        except StoreReadError:
            payload = {}
        payload[STORE_KEY] = credential.model_dump(mode="json")
        self._write(payload)
        logger.info(f"Credential saved to {self.path}")

    def delete_auth(self) -> None:
        """Remove the persisted credential; a missing one is not an error."""
        try:
            payload = self._read()
        except StoreReadError:
            return
        if payload.pop(STORE_KEY, None) is None:
            return
        self._write(payload)
        logger.info(f"Credential removed from {self.path}")

    def _read(self) -> dict[str, Any]:
        try:
            with open(self.path) as f:
                payload = json.load(f)
        except FileNotFoundError as e:
            raise StoreReadError(
                "no credential stored",
                cause=e,
                suggestions=[LOGIN_SUGGESTION],
                context={"path": self.path},
            ) from e
        except (OSError, json.JSONDecodeError) as e:
            raise StoreReadError(
                f"unable to read credential store {self.path}",
                cause=e,
                suggestions=["Check file permissions or remove the corrupt file"],
                context={"path": self.path},
            ) from e
        if not isinstance(payload, dict):
            raise StoreReadError(
                f"unexpected content in credential store {self.path}",
                context={"path": self.path},
            )
        return payload

    def _write(self, payload: dict[str, Any]) -> None:
        tmp_path = f"{self.path}.tmp"
        try:
            os.makedirs(os.path.dirname(self.path) or ".", mode=0o700, exist_ok=True)
            fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w") as f:
                json.dump(payload, f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise StoreWriteError(
                f"unable to write credential store {self.path}",
                cause=e,
                context={"path": self.path},
            ) from e
