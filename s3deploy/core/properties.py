"""Process-wide properties.

A small key/value registry that plays the role of JVM-style system
properties: values are set once per process (``-D key=value`` on the command
line) and read by the credential chain and the pool-sizing configuration.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Iterator, Mapping

from s3deploy.core.exceptions import ConfigurationError

# =============================================================================
# Well-known keys
# =============================================================================

PROP_ACCESS_KEY_ID = "aws.accessKeyId"
PROP_SECRET_ACCESS_KEY = "aws.secretAccessKey"
PROP_SESSION_TOKEN = "aws.sessionToken"

PROP_MIN_THREADS = "s3deploy.threads.min"
PROP_MAX_THREADS = "s3deploy.threads.max"
PROP_DIVISOR = "s3deploy.threads.divisor"
PROP_PROTOCOL = "s3deploy.protocol"


class Properties(Mapping[str, str]):
    """Thread-safe string properties."""

    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        self._lock = threading.Lock()
        self._values: dict[str, str] = dict(initial or {})

    def __getitem__(self, key: str) -> str:
        with self._lock:
            return self._values[key]

    def __iter__(self) -> Iterator[str]:
        with self._lock:
            return iter(list(self._values))

    def __len__(self) -> int:
        with self._lock:
            return len(self._values)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._values[key] = value

    def update(self, values: Mapping[str, str]) -> None:
        with self._lock:
            self._values.update(values)

    def clear(self) -> None:
        with self._lock:
            self._values.clear()


def parse_definitions(definitions: Iterable[str]) -> dict[str, str]:
    """Parse ``key=value`` strings as given to ``-D``.

    A bare ``key`` is stored with an empty value.

    Raises:
        ConfigurationError: If a definition has an empty key.
    """
    parsed: dict[str, str] = {}
    for definition in definitions:
        key, _, value = definition.partition("=")
        key = key.strip()
        if not key:
            raise ConfigurationError("Property definition needs a key", value=definition)
        parsed[key] = value
    return parsed


# Process-wide instance
system_properties = Properties()
