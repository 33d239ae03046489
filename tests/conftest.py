"""Shared test fixtures for specport.

Provides reusable fixtures for loading document fixtures, creating isolated
config environments, managing output state, and running CLI commands.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import pytest

from specport.output import OutputFormat, OutputManager, reset_output, set_output


FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-reset global state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager and the specport logger after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time; CliRunner swaps those streams per invocation, so a stale
    manager would write to a closed file. The CLI callback also installs a
    handler on the ``specport`` logger, which must not leak into ``caplog``
    based tests.
    """
    yield
    reset_output()
    logger = logging.getLogger("specport")
    for handler in list(logger.handlers):
        if getattr(handler, "_specport_handler", False):
            logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Document fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def petstore_text() -> str:
    """Raw text of the OpenAPI 3.0 petstore (tags, $ref parameters, cycles)."""
    return (FIXTURES_DIR / "petstore_openapi3.json").read_text(encoding="utf-8")


@pytest.fixture
def petstore_raw(petstore_text: str) -> dict[str, Any]:
    return json.loads(petstore_text)


@pytest.fixture
def swagger2_text() -> str:
    """Raw text of the Swagger 2.0 document (host/basePath, body parameter)."""
    return (FIXTURES_DIR / "legacy_swagger2.json").read_text(encoding="utf-8")


@pytest.fixture
def swagger2_raw(swagger2_text: str) -> dict[str, Any]:
    return json.loads(swagger2_text)


@pytest.fixture
def mutual_refs_raw() -> dict[str, Any]:
    """Two schemas referencing each other plus a self-referencing one."""
    return {
        "openapi": "3.0.0",
        "info": {"title": "Cycles"},
        "paths": {},
        "components": {
            "schemas": {
                "A": {
                    "type": "object",
                    "properties": {
                        "name": {"type": "string"},
                        "b": {"$ref": "#/components/schemas/B"},
                    },
                },
                "B": {
                    "type": "object",
                    "properties": {
                        "count": {"type": "integer"},
                        "a": {"$ref": "#/components/schemas/A"},
                    },
                },
                "Node": {
                    "type": "object",
                    "properties": {
                        "value": {"type": "string"},
                        "child": {"$ref": "#/components/schemas/Node"},
                    },
                },
            }
        },
    }


@pytest.fixture
def minimal_openapi() -> dict[str, Any]:
    """The smallest document the importer accepts with one operation."""
    return {
        "openapi": "3.0.0",
        "info": {"title": "Minimal"},
        "paths": {"/ping": {"get": {"responses": {"200": {"description": "pong"}}}}},
    }


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points XDG_CONFIG_HOME and XDG_DATA_HOME at subdirectories of tmp_path,
    clears all SPECPORT_* environment variables and changes the working
    directory to tmp_path.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr("specport.config._is_xdg_platform", lambda: True)

    for var in [
        "SPECPORT_TIMEOUT",
        "SPECPORT_VERIFY_SSL",
        "SPECPORT_BODY_MAX_DEPTH",
        "SPECPORT_PARAMETER_MAX_DEPTH",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def json_output() -> OutputManager:
    """Install a JSON-format OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.JSON)
    set_output(output)
    yield output
    reset_output()
