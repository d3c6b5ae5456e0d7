"""docker-credential-gcr

A Docker credential helper for Google Container Registry style registries.
Resolves one bearer token from an ordered list of sources (application
default credentials, the gcloud SDK, the helper's own credential store) and
reauthenticates interactively when the stored OAuth grant has been revoked.
"""

from .config import GCRConfig, get_config
from .consts import GCR_OAUTH2_USERNAME, PACKAGE_VERSION
from .exceptions import (
    AuthenticationFailedError,
    CredentialHelperError,
    PersistError,
    RevokedGrantError,
    TokenRetrievalError,
    TokenSourceError,
    UnimplementedError,
    UnknownSourceKindError,
)
from .helper import GCRCredentialHelper, create_helper
from .models import PersistedCredential, ResolvedCredential, Token, TokenSourceKind
from .reauth import ReauthCoordinator
from .resolver import TokenResolver
from .validation import is_valid_token

__version__ = PACKAGE_VERSION

__all__ = [
    "__version__",
    "GCR_OAUTH2_USERNAME",
    "get_config",
    "create_helper",
    "is_valid_token",
    "GCRConfig",
    "GCRCredentialHelper",
    "TokenResolver",
    "ReauthCoordinator",
    "Token",
    "TokenSourceKind",
    "PersistedCredential",
    "ResolvedCredential",
    "CredentialHelperError",
    "TokenSourceError",
    "RevokedGrantError",
    "UnknownSourceKindError",
    "TokenRetrievalError",
    "AuthenticationFailedError",
    "PersistError",
    "UnimplementedError",
]
