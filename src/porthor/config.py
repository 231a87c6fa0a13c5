"""Configuration for Porthor.

Porthor is configured by a YAML file, normally mounted into the container
from a configuration map. Secrets and a few deployment-specific settings may
instead be injected via environment variables.

Every part of the configuration that accepts environment variables uses the
same ``PORTHOR_`` prefix. Only the settings with explicit ``validation_alias``
settings support configuration via environment variable.
"""

from __future__ import annotations

from ipaddress import IPv4Network, IPv6Network
from pathlib import Path
from typing import Self, override

import yaml
from pydantic import AliasChoices, Field, SecretStr, model_validator
from pydantic.alias_generators import to_camel
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)
from safir.logging import LogLevel, Profile, configure_logging
from safir.pydantic import HumanTimedelta

from .constants import NONCE_LIFETIME, NONCE_PURGE_INTERVAL, NONCE_RETENTION

__all__ = [
    "CamelCaseSettings",
    "Config",
    "EnvFirstSettings",
]


class CamelCaseSettings(BaseSettings):
    """Base class for Pydantic settings supporting camel-case.

    This base class also forbids all extra attributes.
    """

    model_config = SettingsConfigDict(
        alias_generator=to_camel, extra="forbid", populate_by_name=True
    )


class EnvFirstSettings(CamelCaseSettings):
    """Base class for Pydantic settings with environment overrides.

    Classes that inherit from this base class will prioritize environment
    variables over arguments to the class constructor.
    """

    @override
    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Override the sources of settings.

        Deactivate :file:`.env` and secret file support. Allow environment
        variables to override init parameters, since init parameters come
        from the YAML configuration file and we want environment variables to
        take precedence.
        """
        return (env_settings, init_settings)


class Config(EnvFirstSettings):
    """Configuration for Porthor."""

    realm: str = Field(
        "porthor",
        title="Authentication realm",
        description="Realm to put in ``WWW-Authenticate`` challenges",
    )

    issuers: dict[str, SecretStr] = Field(
        {},
        title="Issuer secrets",
        description=(
            "Mapping of issuer names (the ``iss`` claim of tokens) to the"
            " shared secret used to sign tokens from that issuer. Each"
            " issuer has exactly one secret."
        ),
        validation_alias=AliasChoices("PORTHOR_ISSUERS", "issuers"),
    )

    secrets_path: Path | None = Field(
        None,
        title="Issuer secrets file",
        description=(
            "YAML file of additional issuer secrets, in the same format as"
            " ``issuers``. The file is reread whenever it changes. An issuer"
            " may not be defined both here and in ``issuers``."
        ),
        validation_alias=AliasChoices(
            "PORTHOR_SECRETS_PATH", "secretsPath"
        ),
    )

    log_level: LogLevel = Field(
        LogLevel.INFO,
        title="Logging level",
        description="Python logging level",
        validation_alias=AliasChoices("PORTHOR_LOG_LEVEL", "logLevel"),
    )

    log_profile: Profile = Field(
        Profile.production,
        title="Logging profile",
        description=(
            "Logging profile: ``production`` for JSON logs or"
            " ``development`` for human-readable logs"
        ),
        validation_alias=AliasChoices("PORTHOR_LOG_PROFILE", "logProfile"),
    )

    nonce_lifetime: HumanTimedelta = Field(
        NONCE_LIFETIME,
        title="Nonce lifetime",
        description="How long an issued nonce may remain unused",
    )

    nonce_retention: HumanTimedelta = Field(
        NONCE_RETENTION,
        title="Nonce retention",
        description=(
            "How long after issue to remember a nonce. Must be at least as"
            " long as the nonce lifetime."
        ),
    )

    nonce_purge_interval: HumanTimedelta = Field(
        NONCE_PURGE_INTERVAL,
        title="Nonce purge interval",
        description="How frequently to purge stale nonces",
    )

    proxies: list[IPv4Network | IPv6Network] | None = Field(
        None,
        title="Trusted incoming proxy netblocks",
        description=(
            "If this is set to a non-empty list, it will be used as the"
            " trusted list of proxies when parsing the ``X-Forwarded-For``"
            " HTTP header in incoming requests, allowing logging of accurate"
            " client IP addresses."
        ),
    )

    @model_validator(mode="after")
    def _validate_issuers(self) -> Self:
        if not self.issuers and not self.secrets_path:
            raise ValueError("No issuers or secretsPath configured")
        return self

    @model_validator(mode="after")
    def _validate_nonce_times(self) -> Self:
        if self.nonce_lifetime.total_seconds() <= 0:
            raise ValueError("nonceLifetime must be positive")
        if self.nonce_retention < self.nonce_lifetime:
            msg = "nonceRetention must be at least as long as nonceLifetime"
            raise ValueError(msg)
        if self.nonce_purge_interval.total_seconds() <= 0:
            raise ValueError("noncePurgeInterval must be positive")
        return self

    @classmethod
    def from_file(cls, path: Path) -> Self:
        """Construct a Config object from a configuration file.

        Parameters
        ----------
        path
            Path to the configuration file in YAML.

        Returns
        -------
        Config
            The corresponding `Config` object.
        """
        with path.open("r") as f:
            return cls.model_validate(yaml.safe_load(f) or {})

    def configure_logging(self) -> None:
        """Configure logging based on the Porthor configuration."""
        configure_logging(
            name="porthor",
            profile=self.log_profile,
            log_level=self.log_level,
        )
