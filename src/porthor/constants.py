"""Constants for Porthor."""

from datetime import timedelta

__all__ = [
    "ALGORITHM",
    "CONFIG_PATH",
    "NONCE_BYTES",
    "NONCE_CACHE_SIZE",
    "NONCE_LIFETIME",
    "NONCE_PURGE_INTERVAL",
    "NONCE_RETENTION",
    "TOKEN_TYPE",
]

ALGORITHM = "HS256"
"""JWT algorithm accepted for all tokens."""

CONFIG_PATH = "/etc/porthor/porthor.yaml"
"""Default configuration path."""

NONCE_BYTES = 32
"""Number of random bytes in an issued nonce (256 bits of entropy)."""

NONCE_CACHE_SIZE = 100000
"""Maximum number of nonce records held in memory.

If this is exceeded, the least recently used records are evicted. An evicted
nonce can no longer be consumed, so eviction only ever causes a token to be
rejected, never accepted twice.
"""

NONCE_LIFETIME = timedelta(minutes=5)
"""Default time an issued nonce may remain unconsumed before it expires."""

NONCE_PURGE_INTERVAL = timedelta(minutes=1)
"""Default interval between background purges of stale nonce records."""

NONCE_RETENTION = timedelta(hours=1)
"""Default time after issue for which nonce records are retained."""

TOKEN_TYPE = "JWT"
"""Required value of the ``typ`` header. Compared case-insensitively."""
