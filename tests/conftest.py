"""
Test configuration - ensures repo root is in sys.path + determinism guards.

This allows tests to import from top-level packages (cli, lib).
Enforces determinism by ignoring any thresholds file configured in the
environment: every test runs against the bundled thresholds unless it
points somewhere else explicitly.
"""

import sys
from pathlib import Path

import pytest

# Add repo root to sys.path so tests can import cli.*, lib.*
REPO_ROOT = Path(__file__).parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from lib.kpi.thresholds import DEFAULT_THRESHOLDS  # noqa: E402

FIXTURES_DIR = Path(__file__).parent / "fixtures"


# =============================================================================
# DETERMINISM GUARD: Ignore environment threshold overrides
# =============================================================================


@pytest.fixture(autouse=True)
def isolate_threshold_env(monkeypatch):
    """Automatically detach tests from KPI_THRESHOLDS_PATH."""
    monkeypatch.delenv("KPI_THRESHOLDS_PATH", raising=False)
    monkeypatch.setattr("lib.config.THRESHOLDS_PATH", None)


# =============================================================================
# SHARED FIXTURES
# =============================================================================


@pytest.fixture
def thresholds():
    """Reference threshold configuration."""
    return DEFAULT_THRESHOLDS


@pytest.fixture
def snapshot_path():
    """Path to the sample snapshot document."""
    return FIXTURES_DIR / "snapshot.yaml"


@pytest.fixture
def write_yaml(tmp_path):
    """Write text to a YAML file under tmp_path and return its path."""

    def _write(text: str, name: str = "doc.yaml") -> Path:
        path = tmp_path / name
        path.write_text(text)
        return path

    return _write
