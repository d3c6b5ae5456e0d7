"""Configuration management with Pydantic v2"""

import os
from functools import cache

from pydantic import ConfigDict, Field, computed_field
from pydantic_settings import (
    BaseSettings,
    JsonConfigSettingsSource,
    PydanticBaseSettingsSource,
)

from ..consts import (
    DEFAULT_CONFIG_FILE,
    DEFAULT_CREDENTIAL_STORE_FILE,
    DEFAULT_TOKEN_SOURCES,
    GCLOUD_COMMAND,
    GOOGLE_AUTH_URI,
    GOOGLE_TOKEN_URI,
)

ENV_PREFIX = "GCR_HELPER_"
CONFIG_FILE_ENV = f"{ENV_PREFIX}CONFIG_FILE"


def user_config_path() -> str:
    """Path of the user JSON config file (env override or the gcloud default)."""
    return os.path.expanduser(os.environ.get(CONFIG_FILE_ENV, DEFAULT_CONFIG_FILE))


class GCRConfig(BaseSettings):
    """Type-safe helper configuration.

    Precedence: init kwargs, then ``GCR_HELPER_*`` environment variables, then
    the user config file written by ``docker-credential-gcr config``.
    """

    model_config = ConfigDict(
        env_prefix=ENV_PREFIX, case_sensitive=False, extra="ignore"
    )

    # Token resolution
    token_sources: list[str] = Field(
        default_factory=lambda: list(DEFAULT_TOKEN_SOURCES),
        description="Ordered token source identifiers (env, gcloud, gcloud_sdk, store)",
    )
    credential_store_file: str = Field(
        default=DEFAULT_CREDENTIAL_STORE_FILE,
        description="Path to the persisted OAuth credential",
    )

    # External gcloud SDK
    gcloud_command: str = Field(
        default=GCLOUD_COMMAND, description="gcloud executable name or path"
    )
    command_timeout_seconds: int = Field(
        default=60, gt=0, le=600, description="gcloud invocation timeout in seconds"
    )

    # OAuth settings
    token_uri: str = Field(
        default=GOOGLE_TOKEN_URI, description="OAuth2 token endpoint"
    )
    auth_uri: str = Field(
        default=GOOGLE_AUTH_URI, description="OAuth2 authorization endpoint"
    )
    oauth_client_id: str = Field(
        default="", description="OAuth client id used for interactive login"
    )
    oauth_client_secret: str = Field(
        default="", description="OAuth client secret used for interactive login"
    )
    login_timeout_seconds: int = Field(
        default=300, gt=0, le=3600, description="Interactive login timeout in seconds"
    )
    http_timeout_seconds: int = Field(
        default=30, gt=0, le=300, description="HTTP request timeout in seconds"
    )

    log_level: str = Field(
        default="WARNING",
        pattern=r"^(DEBUG|INFO|WARNING|ERROR)$",
        description="Logging level",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            JsonConfigSettingsSource(settings_cls, json_file=user_config_path()),
        )

    @computed_field
    @property
    def store_path(self) -> str:
        """Expanded credential store path"""
        return os.path.expanduser(self.credential_store_file)

    def __repr__(self) -> str:
        """String representation of the configuration"""
        return (
            f"GCRConfig(token_sources={self.token_sources!r}, "
            f"log_level='{self.log_level}')"
        )


@cache
def get_config() -> GCRConfig:
    """Get a cached GCRConfig instance."""
    return GCRConfig()
