"""Integration tests for `voter-card-api serve`."""

from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from voter_card_api.cli.app import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def _env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    monkeypatch.setenv("JWT_SECRET_KEY", "test-secret-key-not-for-production")


class TestServe:
    def test_runs_app_factory(self) -> None:
        with patch("uvicorn.run") as mock_run:
            result = runner.invoke(app, ["serve", "--port", "9000", "--workers", "2"])
        assert result.exit_code == 0, result.output
        mock_run.assert_called_once_with(
            "voter_card_api.main:create_app", factory=True, host="0.0.0.0", port=9000, workers=2, reload=False
        )

    def test_reload_uses_single_process(self) -> None:
        with patch("uvicorn.run") as mock_run:
            result = runner.invoke(app, ["serve", "--reload"])
        assert result.exit_code == 0, result.output
        assert mock_run.call_args.kwargs["workers"] is None
        assert mock_run.call_args.kwargs["reload"] is True
