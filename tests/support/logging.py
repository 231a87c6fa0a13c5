"""Helper functions for testing logging."""

from __future__ import annotations

import json
from typing import Any

import pytest

__all__ = ["parse_log"]


def parse_log(caplog: pytest.LogCaptureFixture) -> list[dict[str, Any]]:
    """Parse the accumulated logs as JSON.

    Checks and strips off common log attributes and returns the rest as a list
    of dictionaries holding the parsed JSON of the log message.

    Parameters
    ----------
    caplog
        The log capture fixture.

    Returns
    -------
    list of dict
        List of parsed JSON dictionaries with the common log attributes
        removed (after validation).
    """
    messages = []
    for logger, _, text in caplog.record_tuples:
        if logger != "porthor":
            continue
        message = json.loads(text)
        assert message["logger"] == "porthor"
        del message["logger"]
        message.pop("timestamp", None)
        if "request_id" in message:
            del message["request_id"]
            assert "userAgent" in message["httpRequest"]
            del message["httpRequest"]
        messages.append(message)
    return messages
