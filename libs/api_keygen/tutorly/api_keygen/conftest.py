import os
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner
from loguru import logger

from tutorly.api_keygen.testing import SAMPLE_PROPERTIES_LINES
from tutorly.api_keygen.testing import write_properties_lines


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Click CLI runner for testing CLI commands."""
    return CliRunner()


@pytest.fixture(autouse=True)
def isolate_keygen_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep TUTORLY_KEYGEN_* settings from the developer's shell out of the tests."""
    for name in [env_name for env_name in os.environ if env_name.startswith("TUTORLY_KEYGEN_")]:
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def properties_path(tmp_path: Path) -> Path:
    """An application.properties file with a single api.security.keys=abc line."""
    return write_properties_lines(tmp_path / "application.properties", SAMPLE_PROPERTIES_LINES)


@pytest.fixture
def captured_logs() -> Generator[list[tuple[str, str]], None, None]:
    """Collect (level name, message) pairs for every loguru record emitted during the test."""
    records: list[tuple[str, str]] = []

    def sink(message: Any) -> None:
        record = message.record
        records.append((record["level"].name, record["message"]))

    handler_id = logger.add(sink, level="TRACE", format="{message}")
    try:
        yield records
    finally:
        logger.remove(handler_id)
