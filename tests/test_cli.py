"""CLI tests using click's CliRunner (no server needed)."""

import json

from click.testing import CliRunner

from gameshelf.cli.main import cli
from gameshelf.config import settings
from gameshelf.main import build_token_codec


def test_gen_secret_is_long_enough():
    result = CliRunner().invoke(cli, ["gen-secret"])
    assert result.exit_code == 0
    assert len(result.output.strip()) >= 32


def test_check_token_valid():
    token = build_token_codec(settings).issue_access("17", "cli@example.com").token

    result = CliRunner().invoke(cli, ["check-token", token])

    assert result.exit_code == 0
    payload = json.loads(result.output)
    assert payload["subject"] == "17"
    assert payload["type"] == "access"
    assert payload["email"] == "cli@example.com"


def test_check_token_invalid():
    result = CliRunner().invoke(cli, ["check-token", "garbage"])
    assert result.exit_code == 1
