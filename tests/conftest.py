"""Shared test fixtures for specgraph.

Provides reusable fixtures for loading document fixtures, building parsers,
creating isolated config environments, and managing output state. These
fixtures are automatically discovered by pytest and available to all test
modules without explicit imports.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from specgraph.output import OutputFormat, OutputManager, reset_output, set_output
from specgraph.parser import SpecParser


FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").  Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Raw document fixtures (plain dicts loaded from JSON files)
# ---------------------------------------------------------------------------


@pytest.fixture
def petstore_30_raw() -> dict[str, Any]:
    """Load raw petstore 3.0 document dict."""
    with open(FIXTURES_DIR / "petstore_3.0.json") as f:
        return json.load(f)


@pytest.fixture
def swagger_20_raw() -> dict[str, Any]:
    """Load raw Swagger 2.0 document dict."""
    with open(FIXTURES_DIR / "swagger_2.0.json") as f:
        return json.load(f)


@pytest.fixture
def minimal_31() -> dict[str, Any]:
    """A minimal valid OpenAPI 3.1 document with no paths."""
    return {
        "openapi": "3.1.0",
        "info": {"title": "Minimal", "version": "1.0.0"},
        "paths": {},
    }


# ---------------------------------------------------------------------------
# Parser fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def petstore_parser(petstore_30_raw: dict[str, Any]) -> SpecParser:
    """Parser over the petstore 3.0 document."""
    return SpecParser(petstore_30_raw, document_uri="https://petstore.example.com/openapi.json")


@pytest.fixture
def swagger_parser(swagger_20_raw: dict[str, Any]) -> SpecParser:
    """Parser over the Swagger 2.0 document."""
    return SpecParser(swagger_20_raw)


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of tmp_path so
    that tests never touch real user config. Clears all SPECGRAPH_*
    environment variables and changes the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setattr("specgraph.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in ["SPECGRAPH_INPUT", "SPECGRAPH_DATE_TYPE", "SPECGRAPH_CONFIG"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def json_output() -> OutputManager:
    """Install a JSON-format OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.JSON)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
