"""Credential resolution for s3deploy.

Credentials are looked up in a fixed order, first match wins:

1. Process properties (``aws.accessKeyId`` / ``aws.secretAccessKey``)
2. Environment variables (``AWS_ACCESS_KEY_ID`` / ``AWS_SECRET_ACCESS_KEY``)
3. Explicit username/password from the repository profile, if supplied
4. The EC2 instance metadata service

Sources are evaluated lazily and nothing is cached; resolving again is
always safe.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Optional, Union

import httpx

from s3deploy.core.exceptions import AuthenticationError
from s3deploy.core.properties import (
    PROP_ACCESS_KEY_ID,
    PROP_SECRET_ACCESS_KEY,
    PROP_SESSION_TOKEN,
    system_properties,
)

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

ENV_ACCESS_KEY_ID = "AWS_ACCESS_KEY_ID"
ENV_SECRET_ACCESS_KEY = "AWS_SECRET_ACCESS_KEY"
ENV_SESSION_TOKEN = "AWS_SESSION_TOKEN"
ENV_METADATA_DISABLED = "AWS_EC2_METADATA_DISABLED"

METADATA_ENDPOINT = "http://169.254.169.254"
METADATA_TOKEN_PATH = "/latest/api/token"
METADATA_ROLES_PATH = "/latest/meta-data/iam/security-credentials/"
METADATA_TOKEN_TTL_HEADER = "X-aws-ec2-metadata-token-ttl-seconds"
METADATA_TOKEN_HEADER = "X-aws-ec2-metadata-token"
METADATA_TOKEN_TTL_SECONDS = 21600
METADATA_TIMEOUT = 1.0

EXPLICIT_AUTH_HINT = (
    "s3deploy needs the AWS Access Key ID as the username and the AWS Secret "
    "Access Key as the password, e.g. in ~/.config/s3deploy/config.yaml:\n"
    "  profiles:\n"
    "    default:\n"
    "      url: s3://my-bucket\n"
    "      username: <AWS Access Key ID>\n"
    "      password: <AWS Secret Access Key>\n"
)


# =============================================================================
# Credentials
# =============================================================================


@dataclass(frozen=True)
class Credentials:
    """Resolved access credentials."""

    access_key_id: str
    secret_access_key: str = field(repr=False)
    session_token: Optional[str] = field(default=None, repr=False)
    source: str = ""

    @property
    def masked_key_id(self) -> str:
        """Access key id with all but the last four characters hidden."""
        return "*" * max(len(self.access_key_id) - 4, 0) + self.access_key_id[-4:]


def _credentials_from(
    key_id: Optional[str],
    secret: Optional[str],
    token: Optional[str],
    source: str,
) -> Optional[Credentials]:
    key_id = (key_id or "").strip()
    secret = (secret or "").strip()
    if not key_id or not secret:
        return None
    return Credentials(
        access_key_id=key_id,
        secret_access_key=secret,
        session_token=(token or "").strip() or None,
        source=source,
    )


# =============================================================================
# Sources
# =============================================================================


@dataclass(frozen=True)
class SystemPropertySource:
    """Credentials from process properties."""

    properties: Optional[Mapping[str, str]] = None
    name: str = "system properties"

    def load(self) -> Optional[Credentials]:
        props = system_properties if self.properties is None else self.properties
        return _credentials_from(
            props.get(PROP_ACCESS_KEY_ID),
            props.get(PROP_SECRET_ACCESS_KEY),
            props.get(PROP_SESSION_TOKEN),
            self.name,
        )


@dataclass(frozen=True)
class EnvironmentVariableSource:
    """Credentials from environment variables."""

    environ: Optional[Mapping[str, str]] = None
    name: str = "environment"

    def load(self) -> Optional[Credentials]:
        env = os.environ if self.environ is None else self.environ
        return _credentials_from(
            env.get(ENV_ACCESS_KEY_ID),
            env.get(ENV_SECRET_ACCESS_KEY),
            env.get(ENV_SESSION_TOKEN),
            self.name,
        )


@dataclass(frozen=True)
class ExplicitAuthSource:
    """Username/password configured for the repository."""

    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    name: str = "repository profile"

    def load(self) -> Optional[Credentials]:
        return _credentials_from(self.username, self.password, None, self.name)


@dataclass(frozen=True)
class InstanceMetadataSource:
    """Role credentials from the EC2 instance metadata service (IMDSv2).

    Any transport or protocol failure means "no credentials here".
    """

    endpoint: str = METADATA_ENDPOINT
    timeout: float = METADATA_TIMEOUT
    transport: Optional[httpx.BaseTransport] = field(default=None, repr=False)
    environ: Optional[Mapping[str, str]] = field(default=None, repr=False)
    name: str = "instance metadata"

    def _disabled(self) -> bool:
        env = os.environ if self.environ is None else self.environ
        return env.get(ENV_METADATA_DISABLED, "").strip().lower() in ("true", "1", "yes")

    def load(self) -> Optional[Credentials]:
        if self._disabled():
            return None

        try:
            with httpx.Client(
                base_url=self.endpoint,
                timeout=self.timeout,
                transport=self.transport,
            ) as client:
                headers: dict[str, str] = {}
                token_resp = client.put(
                    METADATA_TOKEN_PATH,
                    headers={METADATA_TOKEN_TTL_HEADER: str(METADATA_TOKEN_TTL_SECONDS)},
                )
                if token_resp.status_code == 200:
                    headers[METADATA_TOKEN_HEADER] = token_resp.text.strip()

                roles_resp = client.get(METADATA_ROLES_PATH, headers=headers)
                if roles_resp.status_code != 200:
                    return None
                roles = roles_resp.text.split()
                if not roles:
                    return None

                creds_resp = client.get(f"{METADATA_ROLES_PATH}{roles[0]}", headers=headers)
                if creds_resp.status_code != 200:
                    return None
                data = creds_resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.debug("Instance metadata unavailable: %s", e)
            return None

        if not isinstance(data, dict):
            return None
        return _credentials_from(
            data.get("AccessKeyId"),
            data.get("SecretAccessKey"),
            data.get("Token"),
            self.name,
        )


CredentialSource = Union[
    SystemPropertySource,
    EnvironmentVariableSource,
    ExplicitAuthSource,
    InstanceMetadataSource,
]


# =============================================================================
# Chain
# =============================================================================


class CredentialChain:
    """Ordered credential sources, first match wins."""

    def __init__(self, sources: Sequence[CredentialSource]) -> None:
        self.sources = list(sources)

    @classmethod
    def default(
        cls,
        explicit_auth: Optional[tuple[Optional[str], Optional[str]]] = None,
        *,
        properties: Optional[Mapping[str, str]] = None,
        environ: Optional[Mapping[str, str]] = None,
        metadata: Optional[InstanceMetadataSource] = None,
    ) -> CredentialChain:
        """Build the standard chain.

        Args:
            explicit_auth: Optional (username, password) from the repository.
            properties: Properties to read instead of the process properties.
            environ: Environment to read instead of ``os.environ``.
            metadata: Instance-metadata source override.
        """
        sources: list[CredentialSource] = [
            SystemPropertySource(properties),
            EnvironmentVariableSource(environ),
        ]
        if explicit_auth is not None:
            username, password = explicit_auth
            sources.append(ExplicitAuthSource(username, password))
        sources.append(metadata or InstanceMetadataSource(environ=environ))
        return cls(sources)

    def resolve(self) -> Credentials:
        """Return credentials from the first source that has them.

        Raises:
            AuthenticationError: If no source yields credentials.
        """
        last = len(self.sources) - 1
        for index, source in enumerate(self.sources):
            credentials = source.load()
            if credentials is not None:
                logger.debug("Using credentials from %s", source.name)
                return credentials
            if isinstance(source, ExplicitAuthSource) and index == last:
                raise AuthenticationError(reason=EXPLICIT_AUTH_HINT)
            logger.debug("No credentials from %s", source.name)

        tried = ", ".join(source.name for source in self.sources)
        raise AuthenticationError(reason=f"Unable to load credentials from any source ({tried})")


def resolve_credentials(
    explicit_auth: Optional[tuple[Optional[str], Optional[str]]] = None,
    *,
    properties: Optional[Mapping[str, str]] = None,
    environ: Optional[Mapping[str, str]] = None,
    metadata: Optional[InstanceMetadataSource] = None,
) -> Credentials:
    """Resolve credentials through the standard chain.

    Raises:
        AuthenticationError: If no source yields credentials.
    """
    chain = CredentialChain.default(
        explicit_auth,
        properties=properties,
        environ=environ,
        metadata=metadata,
    )
    return chain.resolve()
