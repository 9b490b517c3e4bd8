"""
Centralized configuration for the KPI health engine.

All values that vary by deployment belong here.
Override via environment variables where marked.
"""

import os

# ============================================================
# Thresholds
# ============================================================

THRESHOLDS_PATH: str | None = os.environ.get("KPI_THRESHOLDS_PATH") or None
"""YAML file with threshold overrides. Unset = lib/kpi/thresholds.yaml."""

# ============================================================
# Logging
# ============================================================

LOG_LEVEL: str = os.environ.get("KPI_LOG_LEVEL", "INFO")
"""Root log level for the CLI."""


def _parse_flag(raw: str | None) -> bool | None:
    if raw is None or raw == "":
        return None
    return raw.strip().lower() in ("1", "true", "yes", "on")


LOG_JSON: bool | None = _parse_flag(os.environ.get("KPI_LOG_JSON"))
"""Force JSON (True) or human (False) log output. Unset = auto-detect from TTY."""
