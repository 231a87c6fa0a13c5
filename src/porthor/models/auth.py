"""Representation of ``WWW-Authenticate`` challenges."""

from __future__ import annotations

import re
from dataclasses import dataclass

__all__ = ["BearerChallenge"]

_INVALID_QUOTED_CHARS = re.compile(r'["\\]')
"""Characters that may not appear unescaped in a quoted-string."""


@dataclass
class BearerChallenge:
    """A Bearer ``WWW-Authenticate`` challenge, as defined in RFC 6750.

    Without an error, this is the challenge sent when no token was provided.
    """

    realm: str
    """The value of the realm attribute."""

    error: str | None = None
    """RFC 6750 error code, such as ``invalid_token``."""

    error_description: str | None = None
    """Human-readable error description."""

    def to_header(self) -> str:
        """Construct the WWW-Authenticate header for this challenge.

        Returns
        -------
        str
            Contents of the WWW-Authenticate header.
        """
        attributes = {"realm": self.realm}
        if self.error:
            attributes["error"] = self.error
            if self.error_description is not None:
                attributes["error_description"] = self.error_description
        info = ", ".join(
            f'{k}="{_INVALID_QUOTED_CHARS.sub("", v)}"'
            for k, v in attributes.items()
        )
        return f"Bearer {info}"
