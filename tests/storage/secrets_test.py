"""Tests for the storage of issuer secrets."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import pytest
import structlog
from pydantic import SecretStr

from porthor.exceptions import SecretStoreError
from porthor.storage.secrets import SecretResolver


def write_secrets(path: Path, contents: str) -> None:
    """Write a secrets file and make sure its modification time changes."""
    old_mtime = path.stat().st_mtime_ns if path.exists() else 0
    path.write_text(contents)
    new_mtime = max(path.stat().st_mtime_ns, old_mtime + 1_000_000_000)
    os.utime(path, ns=(new_mtime, new_mtime))


def test_resolve() -> None:
    logger = structlog.get_logger("porthor")
    resolver = SecretResolver({"acme": SecretStr("s3cr3t")}, logger)
    assert resolver.resolve("acme") == b"s3cr3t"
    assert resolver.resolve("globex") is None
    assert resolver.resolve("ACME") is None
    assert resolver.resolve("") is None


def test_no_file_io(monkeypatch: pytest.MonkeyPatch) -> None:
    logger = structlog.get_logger("porthor")
    resolver = SecretResolver({"acme": SecretStr("s3cr3t")}, logger)

    stat = Path.stat
    stat_calls: list[Path] = []

    def counting_stat(
        self: Path, *args: Any, **kwargs: Any
    ) -> os.stat_result:
        stat_calls.append(self)
        return stat(self, *args, **kwargs)

    monkeypatch.setattr(Path, "stat", counting_stat)
    secret = resolver.resolve("acme")
    monkeypatch.undo()
    assert secret == b"s3cr3t"
    assert stat_calls == []


def test_file(tmp_path: Path) -> None:
    logger = structlog.get_logger("porthor")
    path = tmp_path / "issuers.yaml"
    write_secrets(path, "globex: first-secret\n")
    resolver = SecretResolver(
        {"acme": SecretStr("s3cr3t")}, logger, path=path
    )
    assert resolver.resolve("acme") == b"s3cr3t"
    assert resolver.resolve("globex") == b"first-secret"
    assert resolver.resolve("initech") is None

    # Changes to the file are picked up without restarting.
    write_secrets(path, "globex: second-secret\ninitech: new-secret\n")
    assert resolver.resolve("globex") == b"second-secret"
    assert resolver.resolve("initech") == b"new-secret"
    assert resolver.resolve("acme") == b"s3cr3t"

    # Removing an issuer from the file revokes it.
    write_secrets(path, "initech: new-secret\n")
    assert resolver.resolve("globex") is None


def test_empty_file(tmp_path: Path) -> None:
    logger = structlog.get_logger("porthor")
    path = tmp_path / "issuers.yaml"
    write_secrets(path, "")
    resolver = SecretResolver({}, logger, path=path)
    assert resolver.resolve("acme") is None


def test_duplicate(tmp_path: Path) -> None:
    logger = structlog.get_logger("porthor")
    path = tmp_path / "issuers.yaml"
    write_secrets(path, "acme: other-secret\n")
    with pytest.raises(SecretStoreError):
        SecretResolver({"acme": SecretStr("s3cr3t")}, logger, path=path)

    write_secrets(path, "globex: other-secret\n")
    resolver = SecretResolver(
        {"acme": SecretStr("s3cr3t")}, logger, path=path
    )
    write_secrets(path, "acme: other-secret\n")
    with pytest.raises(SecretStoreError):
        resolver.resolve("acme")


def test_invalid_file(tmp_path: Path) -> None:
    logger = structlog.get_logger("porthor")
    path = tmp_path / "issuers.yaml"

    with pytest.raises(SecretStoreError):
        SecretResolver({}, logger, path=path)

    write_secrets(path, "- acme\n- globex\n")
    with pytest.raises(SecretStoreError):
        SecretResolver({}, logger, path=path)

    write_secrets(path, "acme: [\n")
    with pytest.raises(SecretStoreError):
        SecretResolver({}, logger, path=path)


def test_file_removed(tmp_path: Path) -> None:
    logger = structlog.get_logger("porthor")
    path = tmp_path / "issuers.yaml"
    write_secrets(path, "globex: some-secret\n")
    resolver = SecretResolver({}, logger, path=path)
    assert resolver.resolve("globex") == b"some-secret"

    path.unlink()
    with pytest.raises(SecretStoreError):
        resolver.resolve("globex")
