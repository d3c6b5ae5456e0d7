"""Tests for the data model"""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from docker_credential_gcr.exceptions import ConfigError, UnknownSourceKindError
from docker_credential_gcr.models import (
    PersistedCredential,
    ResolvedCredential,
    Token,
    TokenSourceKind,
)
from docker_credential_gcr.store import OAuthTokenSource
from tests.conftest import no_network, oauth_context_for


class TestTokenSourceKind:
    """Test parsing configured source identifiers"""

    @pytest.mark.parametrize(
        "identifier,expected",
        [
            ("env", TokenSourceKind.ENV),
            ("gcloud", TokenSourceKind.GCLOUD),
            ("gcloud_sdk", TokenSourceKind.GCLOUD),
            ("store", TokenSourceKind.STORE),
        ],
    )
    def test_parse(self, identifier, expected):
        assert TokenSourceKind.parse(identifier) is expected

    def test_unknown(self):
        with pytest.raises(UnknownSourceKindError) as exc_info:
            TokenSourceKind.parse("stor")

        assert isinstance(exc_info.value, ConfigError)
        assert exc_info.value.suggestions == ["Did you mean 'store'?"]
        assert str(exc_info.value) == (
            "docker-credential-gcr/helper: unknown token source: stor"
        )

    def test_unknown_without_close_match_lists_valid_sources(self):
        with pytest.raises(UnknownSourceKindError) as exc_info:
            TokenSourceKind.parse("keychain")

        assert exc_info.value.suggestions == [
            "Valid token sources: env, gcloud, store, gcloud_sdk"
        ]

    def test_parsing_is_case_sensitive(self):
        with pytest.raises(UnknownSourceKindError):
            TokenSourceKind.parse("ENV")


class TestToken:
    def test_defaults_to_bearer(self):
        assert Token(value="abc").token_type == "Bearer"

    def test_is_immutable(self):
        token = Token(value="abc")
        with pytest.raises(ValidationError):
            token.value = "changed"


class TestPersistedCredential:
    def test_token_treats_naive_expiry_as_utc(self):
        credential = PersistedCredential(
            access_token="ya29.a", token_expiry=datetime(2030, 1, 1, 0, 0)
        )

        token = credential.token()

        assert token.value == "ya29.a"
        assert token.expiry == datetime(2030, 1, 1, 0, 0, tzinfo=UTC)

    def test_token_source(self):
        credential = PersistedCredential(refresh_token="1//r")
        context = oauth_context_for(no_network)

        source = credential.token_source(context)

        assert isinstance(source, OAuthTokenSource)
        assert source.credential is credential
        assert source.oauth_context is context


class TestResolvedCredential:
    def test_unpacks_as_pair(self):
        username, secret = ResolvedCredential("user", "secret")
        assert (username, secret) == ("user", "secret")

    def test_is_immutable(self):
        credential = ResolvedCredential("user", "secret")
        with pytest.raises(AttributeError):
            credential.secret = "other"
