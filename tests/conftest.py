"""Pytest configuration and shared fixtures"""

import os
from datetime import timedelta

import httpx
import pytest

from docker_credential_gcr.config import GCRConfig, get_config
from docker_credential_gcr.exceptions import ExternalToolError, StoreReadError
from docker_credential_gcr.models import PersistedCredential, Token
from docker_credential_gcr.store import OAuthContext
from docker_credential_gcr.utils import utcnow


def make_token(value="ya29.token", expires_in=3600, token_type="Bearer"):
    """Token expiring ``expires_in`` seconds from now"""
    return Token(
        value=value,
        token_type=token_type,
        expiry=utcnow() + timedelta(seconds=expires_in),
    )


def make_credential(access_token="", expires_in=None, refresh_token="1//refresh"):
    """PersistedCredential, optionally holding a live access token"""
    expiry = utcnow() + timedelta(seconds=expires_in) if expires_in is not None else None
    return PersistedCredential(
        access_token=access_token,
        refresh_token=refresh_token,
        token_expiry=expiry,
        client_id="client-id",
        client_secret="client-secret",
    )


class FakeSource:
    """Spy token source returning a token or raising an error"""

    def __init__(self, token=None, error=None):
        self.token = token
        self.error = error
        self.calls = 0

    def resolve(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.token


class SequenceSource:
    """Spy token source replaying one outcome per call"""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    def resolve(self):
        outcome = self.outcomes[min(self.calls, len(self.outcomes) - 1)]
        self.calls += 1
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeStore:
    """In-memory credential store"""

    def __init__(self, credential=None, write_error=None):
        self.credential = credential
        self.write_error = write_error
        self.saved = []

    def get_auth(self):
        if self.credential is None:
            raise StoreReadError("no credential stored")
        return self.credential

    def set_auth(self, credential):
        if self.write_error is not None:
            raise self.write_error
        self.saved.append(credential)
        self.credential = credential

    def delete_auth(self):
        self.credential = None


class FakeLoginAgent:
    """Login agent returning a fixed credential or raising"""

    def __init__(self, credential=None, error=None):
        self.credential = credential
        self.error = error
        self.calls = 0

    def perform_login(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.credential


class FakeCommand:
    """gcloud stand-in recording its arguments"""

    def __init__(self, stdout=b"", error=None):
        self.stdout = stdout
        self.error = error
        self.calls = []

    def exec(self, *args):
        self.calls.append(args)
        if self.error is not None:
            raise self.error
        return self.stdout


class FakeAmbientCredential:
    def __init__(self, token=None, error=None):
        self._token = token
        self.error = error

    def token(self):
        if self.error is not None:
            raise self.error
        return self._token


class FakeDetector:
    """Ambient detector returning a canned credential"""

    def __init__(self, credential=None, error=None):
        self.credential = credential
        self.error = error
        self.calls = []

    def detect_default(self, scopes, use_self_signed_jwt):
        self.calls.append((tuple(scopes), use_self_signed_jwt))
        if self.error is not None:
            raise self.error
        return self.credential


def oauth_context_for(handler):
    """OAuthContext whose HTTP client is served by ``handler``"""
    return OAuthContext(http_client=httpx.Client(transport=httpx.MockTransport(handler)))


def no_network(request):
    raise AssertionError(f"unexpected request to {request.url}")


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep the user's real config file and GCR_HELPER_* variables out of tests."""
    for key in list(os.environ):
        if key.startswith("GCR_HELPER_"):
            monkeypatch.delenv(key)
    config_file = tmp_path / "docker_credential_gcr_config.json"
    monkeypatch.setenv("GCR_HELPER_CONFIG_FILE", str(config_file))
    get_config.cache_clear()
    yield config_file
    get_config.cache_clear()


@pytest.fixture
def config(tmp_path):
    """Config with the credential store in a temp directory"""
    return GCRConfig(
        credential_store_file=str(tmp_path / "credentials.json"),
        oauth_client_id="client-id",
        oauth_client_secret="client-secret",
        log_level="DEBUG",
    )


@pytest.fixture
def offline_context():
    """OAuthContext that fails the test on any HTTP request"""
    return oauth_context_for(no_network)


@pytest.fixture
def failing_gcloud():
    return FakeCommand(error=ExternalToolError("gcloud exited with status 1"))
