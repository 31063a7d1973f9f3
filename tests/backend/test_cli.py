"""
Tests for the command line entry point.
"""

import json
from unittest.mock import AsyncMock, patch

import pytest

from mongo_rest import cli
from mongo_rest.config import Settings
from mongo_rest.core.errors import MongoRestError


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "server": {"port": 3100, "address": "127.0.0.1"},
        "logLevel": "WARNING",
    }))
    return path


def test_serve_is_the_default_command(config_file):
    with patch("uvicorn.run") as run:
        assert cli.main(["--config", str(config_file)]) == 0

    _, kwargs = run.call_args
    assert kwargs["host"] == "127.0.0.1"
    assert kwargs["port"] == 3100


def test_serve_overrides(config_file):
    with patch("uvicorn.run") as run:
        cli.main(["--config", str(config_file), "serve", "--host", "0.0.0.0", "--port", "8080"])

    _, kwargs = run.call_args
    assert kwargs["host"] == "0.0.0.0"
    assert kwargs["port"] == 8080


def test_create_user(config_file):
    with patch.object(cli, "create_user", AsyncMock(return_value="abc")) as create_user:
        code = cli.main(["--config", str(config_file), "create-user", "--email", "a@example.com", "--password", "pw"])

    assert code == 0
    settings, email, password = create_user.call_args.args
    assert isinstance(settings, Settings)
    assert (email, password) == ("a@example.com", "pw")


def test_create_user_failure(config_file, capsys):
    failing = AsyncMock(side_effect=MongoRestError("User already exists"))
    with patch.object(cli, "create_user", failing):
        code = cli.main(["--config", str(config_file), "create-user", "--email", "a@example.com", "--password", "pw"])

    assert code == 1
    assert "User already exists" in capsys.readouterr().err


def test_create_user_password_mismatch(config_file):
    with patch("getpass.getpass", side_effect=["one", "two"]):
        code = cli.main(["--config", str(config_file), "create-user", "--email", "a@example.com"])

    assert code == 1


@pytest.mark.asyncio
async def test_create_user_requires_auth_section():
    with pytest.raises(MongoRestError):
        await cli.create_user(Settings(), "a@example.com", "pw")
