"""Fixtures for CLI testing."""

import pytest
from typer.testing import CliRunner

from climbing_kb_cli.main import app


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def invoke(cli_runner, settings):
    """Run the CLI against the temporary library.

    Logging is limited to errors so stdout holds only command output.
    """

    def _invoke(*args: str):
        return cli_runner.invoke(
            app,
            [
                "--books-dir",
                str(settings.books_dir),
                "--cache-dir",
                str(settings.cache_dir),
                *args,
            ],
            env={"CLIMBING_KB_LOG_LEVEL": "ERROR", "CLIMBING_KB_MIN_TEXT_CHARS": "20"},
        )

    return _invoke
