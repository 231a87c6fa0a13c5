"""Tests for the command-line interface.

Be careful when writing tests in this framework because the click command
handling code spawns its own async worker pools when needed.  None of these
tests can therefore be async.
"""

from __future__ import annotations

import json
from pathlib import Path

import jwt
from click.testing import CliRunner

from porthor.cli import main

from .support.constants import TEST_ISSUER, TEST_SECRET


def test_help() -> None:
    runner = CliRunner()
    result = runner.invoke(main, ["help"], catch_exceptions=False)
    assert result.exit_code == 0
    assert "Commands:" in result.output

    result = runner.invoke(
        main, ["help", "generate-token"], catch_exceptions=False
    )
    assert result.exit_code == 0
    assert "--issuer" in result.output

    result = runner.invoke(main, ["help", "unknown-command"])
    assert result.exit_code != 0


def test_generate_secret() -> None:
    runner = CliRunner()
    result = runner.invoke(main, ["generate-secret"], catch_exceptions=False)
    assert result.exit_code == 0
    secret = result.output.rstrip("\n")
    assert len(secret) == 43

    result = runner.invoke(main, ["generate-secret"], catch_exceptions=False)
    assert result.output.rstrip("\n") != secret


def test_generate_token() -> None:
    runner = CliRunner()
    result = runner.invoke(
        main,
        [
            "generate-token",
            "--issuer",
            TEST_ISSUER,
            "--secret",
            TEST_SECRET,
            "--lifetime",
            "60",
            "--nonce",
            "some-nonce",
        ],
        catch_exceptions=False,
    )
    assert result.exit_code == 0
    token = result.output.rstrip("\n")
    assert jwt.get_unverified_header(token) == {"alg": "HS256", "typ": "JWT"}
    claims = jwt.decode(token, TEST_SECRET, algorithms=["HS256"])
    assert claims["iss"] == TEST_ISSUER
    assert claims["nonce"] == "some-nonce"
    assert claims["exp"] - claims["iat"] == 60


def test_generate_token_env() -> None:
    runner = CliRunner()
    result = runner.invoke(
        main,
        ["generate-token", "--issuer", TEST_ISSUER],
        env={"PORTHOR_SECRET": TEST_SECRET},
        catch_exceptions=False,
    )
    assert result.exit_code == 0
    token = result.output.rstrip("\n")
    claims = jwt.decode(token, TEST_SECRET, algorithms=["HS256"])
    assert claims["iss"] == TEST_ISSUER
    assert "exp" not in claims
    assert "nonce" not in claims

    result = runner.invoke(main, ["generate-token", "--issuer", TEST_ISSUER])
    assert result.exit_code != 0


def test_openapi_schema(tmp_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(main, ["openapi-schema"], catch_exceptions=False)
    assert result.exit_code == 0
    schema = json.loads(result.output)
    assert "/api/v1/nonce" in schema["paths"]
    assert "/api/v1/whoami" in schema["paths"]

    output = tmp_path / "openapi.json"
    result = runner.invoke(
        main,
        ["openapi-schema", "--output", str(output)],
        catch_exceptions=False,
    )
    assert result.exit_code == 0
    assert json.loads(output.read_text()) == schema
