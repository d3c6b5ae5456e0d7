"""High-value constants for the docker-credential-gcr package."""

# Package metadata
PACKAGE_VERSION = "2.1.0"
HELPER_NAME = "docker-credential-gcr"
USER_AGENT = f"{HELPER_NAME}/{PACKAGE_VERSION}"
ERROR_PREFIX = f"{HELPER_NAME}/helper"

# Canonical identity presented to the registry for every host
GCR_OAUTH2_USERNAME = f"_dcgcr_{PACKAGE_VERSION.replace('.', '_')}_token"

# External API contract consts
GCR_SCOPES = ("https://www.googleapis.com/auth/cloud-platform",)
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"
GOOGLE_AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
GCLOUD_COMMAND = "gcloud"
GCLOUD_TOKEN_ARGS = (
    "config",
    "config-helper",
    "--force-auth-refresh",
    "--format=value(credential.access_token)",
)

# Business logic consts
TOKEN_EXPIRY_SKEW_SECONDS = 10  # tokens expiring within 10s are unusable
BEARER_TOKEN_TYPE = "Bearer"
DEFAULT_TOKEN_SOURCES = ("store", "gcloud", "env")

# Revoked-grant signature returned by Google's token endpoint
REVOKED_GRANT_ERROR = "invalid_grant"
REVOKED_GRANT_SUBTYPE = "invalid_rapt"

# Default locations
DEFAULT_CONFIG_FILE = "~/.config/gcloud/docker_credential_gcr_config.json"
DEFAULT_CREDENTIAL_STORE_FILE = "~/.config/gcloud/docker_credentials.json"
