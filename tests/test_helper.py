"""End-to-end tests for the credential helper facade"""

import httpx
import pytest
from google.auth import exceptions as google_exceptions

from docker_credential_gcr.consts import GCR_OAUTH2_USERNAME
from docker_credential_gcr.exceptions import (
    CredentialHelperError,
    TokenRetrievalError,
    UnimplementedError,
)
from docker_credential_gcr.helper import GCRCredentialHelper, create_helper
from docker_credential_gcr.models import ResolvedCredential
from docker_credential_gcr.reauth import REAUTH_REQUIRED_MESSAGE, REAUTH_SUCCESS_MESSAGE
from tests.conftest import (
    FakeAmbientCredential,
    FakeCommand,
    FakeDetector,
    FakeLoginAgent,
    FakeStore,
    make_credential,
    make_token,
    no_network,
    oauth_context_for,
)

REVOKED_BODY = {"error": "invalid_grant", "error_subtype": "invalid_rapt"}


def helper_for(config, sources, **collaborators):
    collaborators.setdefault("store", FakeStore())
    collaborators.setdefault(
        "detector",
        FakeDetector(error=google_exceptions.DefaultCredentialsError("no ADC")),
    )
    collaborators.setdefault("gcloud", FakeCommand(stdout=b""))
    collaborators.setdefault("login_agent", FakeLoginAgent())
    collaborators.setdefault("oauth_context", oauth_context_for(no_network))
    return create_helper(config.model_copy(update={"token_sources": sources}), **collaborators)


class TestGet:
    """Test GCRCredentialHelper.get"""

    def test_ambient_token(self, config):
        """sources=[env] with a valid Bearer token"""
        detector = FakeDetector(credential=FakeAmbientCredential(token=make_token("abc")))
        helper = helper_for(config, ["env"], detector=detector)

        result = helper.get("any-host")

        assert result == ResolvedCredential(GCR_OAUTH2_USERNAME, "abc")
        username, secret = result
        assert (username, secret) == (GCR_OAUTH2_USERNAME, "abc")

    def test_server_url_is_ignored(self, config):
        helper = helper_for(config, ["gcloud"], gcloud=FakeCommand(stdout=b"tok\n"))

        assert helper.get("gcr.io") == helper.get("us-docker.pkg.dev")

    def test_empty_gcloud_token(self, config):
        """sources=[gcloud] with empty gcloud output"""
        helper = helper_for(config, ["gcloud"], gcloud=FakeCommand(stdout=b""))

        with pytest.raises(TokenRetrievalError) as exc_info:
            helper.get("gcr.io")

        message = str(exc_info.value)
        assert message.startswith("docker-credential-gcr/helper: could not retrieve")
        assert "config-helper" in message
        assert "empty access_token" in message

    def test_reauth_then_store(self, config, capsys):
        """sources=[env, store]; revoked grant, login, persist, retry via store"""
        refreshes = []

        def token_endpoint(request):
            refreshes.append(request)
            return httpx.Response(400, json=REVOKED_BODY)

        detector = FakeDetector(
            credential=FakeAmbientCredential(
                error=google_exceptions.RefreshError("invalid_grant", REVOKED_BODY)
            )
        )
        store = FakeStore(make_credential(access_token="ya29.old", expires_in=-60))
        login = FakeLoginAgent(
            credential=make_credential(access_token="ya29.reauthed", expires_in=3600)
        )
        helper = helper_for(
            config,
            ["env", "store"],
            detector=detector,
            store=store,
            login_agent=login,
            oauth_context=oauth_context_for(token_endpoint),
        )

        result = helper.get("gcr.io")

        assert result == (GCR_OAUTH2_USERNAME, "ya29.reauthed")
        assert login.calls == 1
        assert store.saved == [login.credential]
        assert len(refreshes) == 1
        status_lines = [
            line
            for line in capsys.readouterr().err.splitlines()
            if line.startswith("Reauth")
        ]
        assert status_lines == [REAUTH_REQUIRED_MESSAGE, REAUTH_SUCCESS_MESSAGE]

    def test_non_revoked_invalid_grant_does_not_login(self, config):
        detector = FakeDetector(
            credential=FakeAmbientCredential(
                error=google_exceptions.RefreshError(
                    "invalid_grant", {"error": "invalid_grant", "error_subtype": "other"}
                )
            )
        )
        login = FakeLoginAgent(credential=make_credential())
        helper = helper_for(config, ["env"], detector=detector, login_agent=login)

        with pytest.raises(TokenRetrievalError):
            helper.get("gcr.io")
        assert login.calls == 0

    def test_unknown_source(self, config):
        helper = helper_for(config, ["env", "keychain"])

        with pytest.raises(TokenRetrievalError, match="unknown token source: keychain"):
            helper.get("gcr.io")

    def test_no_sources_configured(self, config):
        helper = helper_for(config, [])

        with pytest.raises(TokenRetrievalError, match="no token sources configured"):
            helper.get("gcr.io")

    def test_malformed_refresh_response_falls_through(self, config):
        def token_endpoint(request):
            return httpx.Response(200, json={"access_token": "x", "expires_in": "soon"})

        gcloud = FakeCommand(stdout=b"ya29.gcloud\n")
        helper = helper_for(
            config,
            ["store", "gcloud"],
            store=FakeStore(make_credential(access_token="ya29.old", expires_in=-60)),
            gcloud=gcloud,
            oauth_context=oauth_context_for(token_endpoint),
        )

        assert helper.get("gcr.io").secret == "ya29.gcloud"
        assert len(gcloud.calls) == 1

    def test_fresh_credential_every_call(self, config):
        gcloud = FakeCommand(stdout=b"tok\n")
        helper = helper_for(config, ["gcloud"], gcloud=gcloud)

        helper.get("gcr.io")
        helper.get("gcr.io")

        assert len(gcloud.calls) == 2


class TestUnimplemented:
    """Test the read-only operations"""

    @pytest.fixture
    def helper(self, config):
        return helper_for(config, ["env"])

    def test_list(self, helper):
        with pytest.raises(UnimplementedError, match="list is unimplemented"):
            helper.list()

    def test_add(self, helper):
        with pytest.raises(UnimplementedError, match="add is unimplemented"):
            helper.add({"ServerURL": "gcr.io", "Username": "u", "Secret": "s"})

    def test_delete(self, helper):
        with pytest.raises(UnimplementedError, match="delete is unimplemented"):
            helper.delete("gcr.io")

    def test_errors_share_base(self, helper):
        with pytest.raises(CredentialHelperError):
            helper.list()


class TestCreateHelper:
    """Test wiring from configuration"""

    def test_uses_config(self, config):
        helper = create_helper(config.model_copy(update={"token_sources": ["store"]}))

        assert isinstance(helper, GCRCredentialHelper)
        assert helper.token_sources == ["store"]
        assert helper.username == GCR_OAUTH2_USERNAME
