"""Configuration management for s3deploy.

Supports YAML profiles, environment variable overrides, and process
properties for the worker-pool tunables.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from s3deploy.core.exceptions import ConfigurationError, ProfileNotFoundError
from s3deploy.core.properties import (
    PROP_DIVISOR,
    PROP_MAX_THREADS,
    PROP_MIN_THREADS,
    PROP_PROTOCOL,
    system_properties,
)
from s3deploy.core.timeouts import DEFAULT_READ_TIMEOUT_SECONDS
from s3deploy.models.task import (
    DEFAULT_DIVISOR,
    DEFAULT_MAX_WORKERS,
    DEFAULT_MIN_WORKERS,
    PoolSizingConfig,
)

# =============================================================================
# Constants
# =============================================================================

CONFIG_DIR = Path.home() / ".config" / "s3deploy"
CONFIG_FILE = CONFIG_DIR / "config.yaml"

DEFAULT_ACL = "public-read"
PROTOCOL_HTTPS = "https"
PROTOCOL_HTTP = "http"

# Environment variable names
ENV_URL = "S3DEPLOY_URL"
ENV_PROFILE = "S3DEPLOY_PROFILE"
ENV_REGION = "S3DEPLOY_REGION"
ENV_TIMEOUT = "S3DEPLOY_TIMEOUT"


# =============================================================================
# Profile
# =============================================================================


@dataclass
class Profile:
    """Configuration profile for one deployment target."""

    url: str
    region: Optional[str] = None
    endpoint_url: Optional[str] = None
    acl: Optional[str] = None
    timeout: int = DEFAULT_READ_TIMEOUT_SECONDS
    min_workers: int = DEFAULT_MIN_WORKERS
    max_workers: int = DEFAULT_MAX_WORKERS
    divisor: int = DEFAULT_DIVISOR
    username: Optional[str] = None
    password: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization (credentials only when set)."""
        data: dict[str, Any] = {
            "url": self.url,
            "region": self.region,
            "endpoint_url": self.endpoint_url,
            "acl": self.acl,
            "timeout": self.timeout,
            "min_workers": self.min_workers,
            "max_workers": self.max_workers,
            "divisor": self.divisor,
        }
        if self.username:
            data["username"] = self.username
        if self.password:
            data["password"] = self.password
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Profile":
        """Create from dictionary."""
        return cls(
            url=data.get("url", ""),
            region=data.get("region"),
            endpoint_url=data.get("endpoint_url"),
            acl=data.get("acl"),
            timeout=int(data.get("timeout", DEFAULT_READ_TIMEOUT_SECONDS)),
            min_workers=int(data.get("min_workers", DEFAULT_MIN_WORKERS)),
            max_workers=int(data.get("max_workers", DEFAULT_MAX_WORKERS)),
            divisor=int(data.get("divisor", DEFAULT_DIVISOR)),
            username=data.get("username"),
            password=data.get("password"),
        )

    @property
    def explicit_auth(self) -> Optional[tuple[Optional[str], Optional[str]]]:
        """Username/password pair when either is configured."""
        if self.username is None and self.password is None:
            return None
        return self.username, self.password

    def pool_sizing(self, properties: Optional[Mapping[str, str]] = None) -> PoolSizingConfig:
        """Worker-pool sizing, with process properties taking precedence.

        Raises:
            ConfigurationError: If a property is not an integer or the
                resulting sizing is invalid.
        """
        props = system_properties if properties is None else properties
        return PoolSizingConfig(
            min_workers=_int_property(props, PROP_MIN_THREADS, self.min_workers),
            max_workers=_int_property(props, PROP_MAX_THREADS, self.max_workers),
            divisor=_int_property(props, PROP_DIVISOR, self.divisor),
        )

    def protocol(self, properties: Optional[Mapping[str, str]] = None) -> str:
        """``http`` or ``https`` (the default)."""
        props = system_properties if properties is None else properties
        value = (props.get(PROP_PROTOCOL) or "").strip().lower()
        if not value:
            return PROTOCOL_HTTPS
        if value not in (PROTOCOL_HTTP, PROTOCOL_HTTPS):
            raise ConfigurationError("Unsupported protocol", field=PROP_PROTOCOL, value=value)
        return value

    @property
    def effective_acl(self) -> str:
        """Configured ACL, or the default when blank."""
        if self.acl and self.acl.strip():
            return self.acl.strip()
        return DEFAULT_ACL


def _int_property(props: Mapping[str, str], key: str, default: int) -> int:
    value = props.get(key)
    if value is None or not value.strip():
        return default
    try:
        return int(value.strip())
    except ValueError:
        raise ConfigurationError(
            f"Property {key} must be an integer", field=key, value=value
        ) from None


# =============================================================================
# Config
# =============================================================================


@dataclass
class Config:
    """Application configuration."""

    default_profile: str = "default"
    output_format: str = "table"
    profiles: dict[str, Profile] = field(default_factory=dict)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Config":
        """Load config from file with environment variable overrides.

        Priority (highest to lowest):
        1. Environment variables
        2. Config file
        3. Defaults

        Args:
            config_path: Optional path to config file.

        Returns:
            Loaded configuration.
        """
        path = config_path or CONFIG_FILE
        config = cls()

        if path.exists():
            try:
                with open(path) as f:
                    data = yaml.safe_load(f) or {}

                config.default_profile = data.get("default_profile", "default")
                config.output_format = data.get("output_format", "table")

                for name, pdata in (data.get("profiles") or {}).items():
                    config.profiles[name] = Profile.from_dict(pdata or {})
            except (OSError, yaml.YAMLError, AttributeError, TypeError, ValueError) as e:
                raise ConfigurationError(f"Failed to load config: {e}") from e

        if url := os.getenv(ENV_URL):
            existing = config.profiles.get("default")
            profile = Profile.from_dict(existing.to_dict()) if existing else Profile(url=url)
            profile.url = url
            config.profiles["default"] = profile

        if region := os.getenv(ENV_REGION):
            for profile in config.profiles.values():
                profile.region = region

        if timeout := os.getenv(ENV_TIMEOUT):
            try:
                seconds = int(timeout)
            except ValueError:
                raise ConfigurationError(
                    "Timeout must be an integer", field=ENV_TIMEOUT, value=timeout
                ) from None
            for profile in config.profiles.values():
                profile.timeout = seconds

        if profile_name := os.getenv(ENV_PROFILE):
            config.default_profile = profile_name

        return config

    def save(self, config_path: Optional[Path] = None) -> None:
        """Save config to file.

        Args:
            config_path: Optional path to config file.
        """
        path = config_path or CONFIG_FILE
        path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "default_profile": self.default_profile,
            "output_format": self.output_format,
            "profiles": {name: p.to_dict() for name, p in self.profiles.items()},
        }

        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

        # Profiles may carry secret keys
        try:
            os.chmod(path, 0o600)
        except OSError:
            pass

    def get_profile(self, name: Optional[str] = None) -> Profile:
        """Get profile by name or default.

        Raises:
            ProfileNotFoundError: If profile doesn't exist.
        """
        name = name or self.default_profile
        if name not in self.profiles:
            raise ProfileNotFoundError(name)
        return self.profiles[name]

    def has_profile(self, name: str) -> bool:
        """Check if profile exists."""
        return name in self.profiles

    def add_profile(self, name: str, url: str, **settings: Any) -> Profile:
        """Add or update a profile.

        Args:
            name: Profile name.
            url: Repository URL (``s3://bucket[/path]``).
            **settings: Other Profile fields.

        Returns:
            Created profile.
        """
        profile = Profile(url=url, **settings)
        self.profiles[name] = profile
        return profile
