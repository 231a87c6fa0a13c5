"""Models for single-use nonces."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, Field

__all__ = [
    "NonceRecord",
    "NonceResponse",
]


@dataclass(slots=True)
class NonceRecord:
    """Server-side state of an issued nonce."""

    nonce: str
    """The opaque nonce string."""

    issued_at: datetime
    """When the nonce was issued."""

    consumed_at: datetime | None = None
    """When the nonce was used in a verified token, if it has been."""

    @property
    def consumed(self) -> bool:
        """Whether the nonce has already been used."""
        return self.consumed_at is not None


class NonceResponse(BaseModel):
    """A newly-issued nonce returned to a client."""

    nonce: str = Field(
        ...,
        title="Nonce",
        description="Opaque single-use value to put in the ``nonce`` claim",
        examples=["Wq6mP1wXzGx3bU5b0q3xZ7J1V9o8y2k4L6n0cQmTt0A"],
    )

    expires: datetime = Field(
        ...,
        title="Expiration",
        description="Time after which the nonce can no longer be used",
        examples=["2026-10-19T12:05:00Z"],
    )
