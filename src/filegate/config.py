"""filegate configuration loader with Pydantic v2 validation.

Loads a ``filegate.yaml`` file into a typed :class:`FileGateConfig` and
builds the runtime objects (key pair, identity directory) from it.

Example
-------
::

    version: "1"
    cookie_name: fm_session
    max_age_seconds: 36000
    digest: sha256
    signing_keys:
      algorithm: RS256
    users:
      - name: alice
        password_digest: "2bb80d53..."
        capabilities: [file:view]
        allow_paths: ["/public"]
        block_paths: ["/public/secret"]

>>> config = ConfigLoader().load(Path("filegate.yaml"))
>>> config.users[0].name
'alice'
"""
from __future__ import annotations

import logging
from datetime import timedelta
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from filegate.errors import ConfigError
from filegate.identity.credentials import DEFAULT_DIGEST, available_digests
from filegate.identity.directory import IdentityDirectory
from filegate.identity.models import GUEST_NAME, Identity, guest_identity
from filegate.permissions.capability import GUEST_CAPABILITIES, Capability, Role
from filegate.session.keys import (
    DEFAULT_ALGORITHM,
    DEFAULT_RSA_KEY_SIZE,
    SUPPORTED_ALGORITHMS,
    KeyPair,
)
from filegate.session.token_codec import MIN_LIFETIME

logger = logging.getLogger(__name__)

_HEX_DIGITS = frozenset("0123456789abcdef")


def _validate_capabilities(values: list[str]) -> list[str]:
    return [Capability.parse(v).value for v in values]


class KeyConfig(BaseModel):
    """Signing key material.  Generated at startup when no paths are set."""

    model_config = {"extra": "forbid"}

    algorithm: str = Field(default=DEFAULT_ALGORITHM)
    private_key_path: Path | None = Field(default=None)
    public_key_path: Path | None = Field(default=None)
    key_size: int = Field(default=DEFAULT_RSA_KEY_SIZE, ge=2048)

    @field_validator("algorithm")
    @classmethod
    def validate_algorithm(cls, value: str) -> str:
        if value not in SUPPORTED_ALGORITHMS:
            raise ValueError(
                f"Unsupported algorithm '{value}'. Valid: {sorted(SUPPORTED_ALGORITHMS)}"
            )
        return value

    @model_validator(mode="after")
    def validate_paths(self) -> "KeyConfig":
        if self.private_key_path is not None and self.public_key_path is None:
            raise ValueError("signing_keys.private_key_path requires signing_keys.public_key_path")
        return self

    def build(self) -> KeyPair:
        """Load the configured key pair, or generate one when no paths are set."""
        if self.public_key_path is None:
            return KeyPair.generate(self.algorithm, self.key_size)
        return KeyPair.load(self.private_key_path, self.public_key_path, self.algorithm)


class GuestConfig(BaseModel):
    """Capabilities and path scope of the unauthenticated guest."""

    model_config = {"extra": "forbid"}

    capabilities: list[str] = Field(
        default_factory=lambda: sorted(c.value for c in GUEST_CAPABILITIES)
    )
    allow_paths: list[str] = Field(default_factory=lambda: ["/"])
    block_paths: list[str] = Field(default_factory=list)

    @field_validator("capabilities")
    @classmethod
    def validate_capabilities(cls, values: list[str]) -> list[str]:
        return _validate_capabilities(values)

    def build(self) -> Identity:
        return guest_identity(
            capabilities=self.capabilities,
            allow_paths=self.allow_paths,
            block_paths=self.block_paths,
        )


class UserConfig(BaseModel):
    """One registered identity."""

    model_config = {"extra": "forbid"}

    name: str = Field(min_length=1)
    password_digest: str = Field(min_length=1)
    role: str = Field(default=Role.USER.value)
    capabilities: list[str] = Field(default_factory=list)
    allow_paths: list[str] = Field(default_factory=list)
    block_paths: list[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("User name must not be blank")
        if value == GUEST_NAME:
            raise ValueError(f"User name '{GUEST_NAME}' is reserved")
        return value

    @field_validator("password_digest")
    @classmethod
    def validate_password_digest(cls, value: str) -> str:
        value = value.strip().lower()
        if not value or any(ch not in _HEX_DIGITS for ch in value):
            raise ValueError("password_digest must be a hex digest (see 'filegate hash-password')")
        return value

    @field_validator("role")
    @classmethod
    def validate_role(cls, value: str) -> str:
        return Role.parse(value).value

    @field_validator("capabilities")
    @classmethod
    def validate_capabilities(cls, values: list[str]) -> list[str]:
        return _validate_capabilities(values)

    def build(self) -> Identity:
        return Identity.build(
            self.name,
            credential_digest=self.password_digest,
            role=self.role,
            capabilities=self.capabilities,
            allow_paths=self.allow_paths,
            block_paths=self.block_paths,
        )


class FileGateConfig(BaseModel):
    """Top-level filegate configuration schema.

    All sections are optional.  Defaults: cookie ``fm_session``, 36000 s
    cookie max-age, 24 h token lifetime, SHA-256 digests and a freshly
    generated RSA key.
    """

    model_config = {"extra": "allow"}

    version: str = Field(default="1")
    cookie_name: str = Field(default="fm_session", min_length=1)
    max_age_seconds: int = Field(default=36000, ge=1)
    secure_cookie: bool = Field(default=False)
    token_lifetime_hours: float = Field(default=24.0, gt=0)
    token_query_param: str = Field(default="token", min_length=1)
    issuer: str | None = Field(default=None)
    digest: str = Field(default=DEFAULT_DIGEST)
    signing_keys: KeyConfig = Field(default_factory=KeyConfig)
    guest: GuestConfig = Field(default_factory=GuestConfig)
    users: list[UserConfig] = Field(default_factory=list)

    @field_validator("token_lifetime_hours")
    @classmethod
    def validate_token_lifetime(cls, value: float) -> float:
        if timedelta(hours=value) < MIN_LIFETIME:
            raise ValueError("token_lifetime_hours must amount to at least one second")
        return value

    @field_validator("digest")
    @classmethod
    def validate_digest(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in available_digests():
            raise ValueError(f"Unknown digest '{value}'. Valid: {available_digests()}")
        return value

    @model_validator(mode="after")
    def validate_unique_users(self) -> "FileGateConfig":
        seen: set[str] = set()
        for user in self.users:
            if user.name in seen:
                raise ValueError(f"Duplicate user name '{user.name}'")
            seen.add(user.name)
        return self

    @property
    def effective_issuer(self) -> str:
        """Configured issuer, or ``"<cookie_name>-jwt"``."""
        return self.issuer or f"{self.cookie_name}-jwt"

    @property
    def token_lifetime(self) -> timedelta:
        return timedelta(hours=self.token_lifetime_hours)

    def build_directory(self) -> IdentityDirectory:
        return IdentityDirectory(
            (user.build() for user in self.users),
            guest=self.guest.build(),
        )


class ConfigLoader:
    """Loads and validates filegate YAML configuration.

    Example
    -------
    >>> loader = ConfigLoader()
    >>> config = loader.load(Path("filegate.yaml"))
    """

    def load(self, config_path: Path) -> FileGateConfig:
        """Load and validate a filegate YAML file.

        Relative key paths are resolved against the config file's directory.

        Raises
        ------
        FileNotFoundError:
            When the config file does not exist.
        ConfigError:
            When the YAML cannot be parsed or fails validation.
        """
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"filegate config not found: {config_path}")

        with config_path.open("r", encoding="utf-8") as fh:
            config = self._parse(fh.read(), str(config_path))

        base = config_path.parent
        keys = config.signing_keys
        if keys.public_key_path is not None and not keys.public_key_path.is_absolute():
            keys.public_key_path = base / keys.public_key_path
        if keys.private_key_path is not None and not keys.private_key_path.is_absolute():
            keys.private_key_path = base / keys.private_key_path

        logger.info(
            "Loaded filegate config from %s (%d users)", config_path, len(config.users)
        )
        return config

    def load_string(self, yaml_content: str) -> FileGateConfig:
        """Load and validate a YAML string directly."""
        return self._parse(yaml_content, None)

    def load_dict(self, raw: dict[str, object]) -> FileGateConfig:
        """Validate an already-parsed configuration mapping."""
        try:
            return FileGateConfig.model_validate(raw)
        except ValidationError as exc:
            raise ConfigError(str(exc)) from exc

    def defaults(self) -> FileGateConfig:
        """Return a default configuration with all defaults applied."""
        return FileGateConfig()

    def _parse(self, yaml_content: str, config_path: str | None) -> FileGateConfig:
        try:
            raw = yaml.safe_load(yaml_content) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse YAML: {exc}", config_path) from exc
        if not isinstance(raw, dict):
            raise ConfigError("filegate config must be a YAML mapping.", config_path)
        try:
            return FileGateConfig.model_validate(raw)
        except ValidationError as exc:
            raise ConfigError(str(exc), config_path) from exc
