"""A bearer token gate for HMAC-signed JWTs with single-use nonces."""

from importlib.metadata import PackageNotFoundError, version

__all__ = ["__version__"]

__version__: str
"""The version string of Porthor (PEP 440 / SemVer compatible)."""

try:
    __version__ = version("porthor")
except PackageNotFoundError:
    # package is not installed
    __version__ = "0.0.0"
