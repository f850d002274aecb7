"""Integration tests for the `voter-card-api db` migration commands."""

from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from voter_card_api.cli.app import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def _env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    monkeypatch.setenv("JWT_SECRET_KEY", "test-secret-key-not-for-production")


class TestDbCommands:
    def test_upgrade_defaults_to_head(self) -> None:
        with patch("alembic.command.upgrade") as mock_upgrade:
            result = runner.invoke(app, ["db", "upgrade"])
        assert result.exit_code == 0, result.output
        config, revision = mock_upgrade.call_args.args
        assert revision == "head"
        assert config.config_file_name == "alembic.ini"

    def test_downgrade_custom_config(self) -> None:
        with patch("alembic.command.downgrade") as mock_downgrade:
            result = runner.invoke(app, ["db", "downgrade", "base", "--config", "deploy/alembic.ini"])
        assert result.exit_code == 0, result.output
        config, revision = mock_downgrade.call_args.args
        assert revision == "base"
        assert config.config_file_name == "deploy/alembic.ini"

    def test_current(self) -> None:
        with patch("alembic.command.current") as mock_current:
            result = runner.invoke(app, ["db", "current"])
        assert result.exit_code == 0, result.output
        assert mock_current.call_args.kwargs == {"verbose": True}
