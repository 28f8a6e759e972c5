"""Shared timeout defaults (seconds)."""

# Per-request read timeout for storage calls
DEFAULT_READ_TIMEOUT_SECONDS = 60

# Connection establishment timeout for storage calls
DEFAULT_CONNECT_TIMEOUT_SECONDS = 10
