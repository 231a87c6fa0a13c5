"""Models for bearer tokens and the identities they authenticate."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

__all__ = [
    "AuthenticatedIdentity",
    "TokenClaims",
    "TokenHeader",
]


class TokenHeader(BaseModel):
    """The decoded JOSE header of a token.

    Only the fields Porthor cares about are modeled. Any other header fields
    are ignored.
    """

    model_config = ConfigDict(extra="ignore")

    alg: str
    """Signing algorithm."""

    typ: str
    """Token type, which must be ``JWT`` (compared case-insensitively)."""


class TokenClaims(BaseModel):
    """The claims of a token whose signature has been verified.

    Unrecognized claims are ignored rather than rejected so that clients may
    add claims of their own (``iat`` or ``jti``, for instance).
    """

    model_config = ConfigDict(extra="ignore")

    iss: str = Field(..., min_length=1)
    """Issuer, which selects the shared secret used to verify the token."""

    exp: datetime | None = None
    """Expiration time, if any."""

    nonce: str | None = None
    """Single-use nonce previously obtained from Porthor, if any."""

    @field_validator("exp", mode="before")
    @classmethod
    def _validate_exp(cls, v: Any) -> datetime | None:
        # Always integer seconds since epoch. Pydantic would otherwise also
        # accept ISO 8601 strings and treat very large numbers as
        # milliseconds.
        if v is None:
            return v
        if isinstance(v, bool) or not isinstance(v, int):
            raise ValueError("exp must be an integer timestamp")
        try:
            return datetime.fromtimestamp(v, tz=UTC)
        except (OverflowError, OSError, ValueError) as e:
            raise ValueError("exp is out of range") from e


class AuthenticatedIdentity(BaseModel):
    """The identity established by a verified token.

    Attached to the request for use by downstream handlers, which may use it
    for their own authorization decisions.
    """

    issuer: str = Field(
        ...,
        title="Issuer",
        description="Verified ``iss`` claim of the token",
        examples=["acme"],
    )

    expires: datetime | None = Field(
        None,
        title="Expiration",
        description="When the token expires, or null if it does not expire",
        examples=["2026-10-19T12:00:00Z"],
    )

    nonce: str | None = Field(
        None,
        title="Nonce",
        description="Nonce consumed by this token, if it contained one",
    )
