"""
Threshold configuration for KPI classification.

Every tunable boundary used by the classifier, the composite health scorer
and the alert aggregator lives here as a named value. Defaults match the
reference dashboard; overrides come from thresholds.yaml (next to this
module) or from the file named by KPI_THRESHOLDS_PATH.
"""

import logging
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import yaml

from lib import config

logger = logging.getLogger(__name__)

THRESHOLDS_PATH = Path(__file__).parent / "thresholds.yaml"


class ThresholdConfigError(ValueError):
    """Raised when a thresholds file cannot be read or fails validation."""


# =============================================================================
# THRESHOLD GROUPS
# =============================================================================


@dataclass(frozen=True)
class ProgressThresholds:
    """Progress-percent boundaries for higher_is_better metrics."""

    green_at: float = 100.0  # progress >= green_at -> GREEN
    yellow_at: float = 90.0  # yellow_at <= progress < green_at -> YELLOW


@dataclass(frozen=True)
class OvershootThresholds:
    """Overshoot-percent boundaries for lower_is_better metrics."""

    yellow_max: float = 10.0  # 0 < overshoot <= yellow_max -> YELLOW


@dataclass(frozen=True)
class TrendThresholds:
    """Trend detection parameters."""

    noise_floor: float = 0.5  # absolute units, not percent
    window: int = 3  # points per recent/previous window


@dataclass(frozen=True)
class BandThresholds:
    """Composite health score display tiers."""

    excellent_at: float = 80.0
    attention_at: float = 50.0


@dataclass(frozen=True)
class CollaboratorWeights:
    """
    Weight table for the collaborator (employee) health score.

    Tier tuples are (bound, points), checked in order. Survey tiers are
    minimum scores, meeting tiers are maximum days since the last meeting,
    pending-action tiers are maximum open items.
    """

    survey: float = 30.0
    survey_tiers: tuple = ((9, 30.0), (7, 20.0), (5, 10.0))
    meeting_recency: float = 25.0
    meeting_tiers: tuple = ((14, 25.0), (30, 15.0), (45, 8.0))
    plan_completion: float = 25.0
    pending_actions: float = 20.0
    pending_tiers: tuple = ((0, 20.0), (2, 15.0), (5, 10.0), (8, 5.0))


@dataclass(frozen=True)
class CompanyWeights:
    """Weight table for the company-level OKR health score."""

    mrr: float = 25.0
    revenue: float = 20.0
    ebitda: float = 20.0
    clients: float = 15.0
    delinquency: float = 10.0
    churn: float = 10.0
    delinquency_penalty_per_point: float = 10.0
    churn_penalty_per_point: float = 5.0


@dataclass(frozen=True)
class KpiThresholds:
    """All tunable KPI boundaries, passed explicitly into each component."""

    progress: ProgressThresholds = field(default_factory=ProgressThresholds)
    overshoot: OvershootThresholds = field(default_factory=OvershootThresholds)
    trend: TrendThresholds = field(default_factory=TrendThresholds)
    bands: BandThresholds = field(default_factory=BandThresholds)
    collaborator: CollaboratorWeights = field(default_factory=CollaboratorWeights)
    company: CompanyWeights = field(default_factory=CompanyWeights)

    def with_overrides(self, overrides: dict[str, Any] | None) -> "KpiThresholds":
        """
        Return a copy with overrides applied.

        Overrides are nested by group, e.g. {"progress": {"yellow_at": 85}}.
        Unknown groups and keys are logged and ignored.
        """
        if not overrides:
            return self

        updated = {}
        for group_name, values in overrides.items():
            if group_name not in _GROUP_NAMES:
                logger.warning("Ignoring unknown threshold group %r", group_name)
                continue
            current = getattr(self, group_name)
            if not isinstance(values, dict):
                raise ThresholdConfigError(
                    f"Threshold group {group_name!r} must be a mapping, got {type(values).__name__}"
                )

            known = {f.name for f in fields(current)}
            changes = {}
            for key, value in values.items():
                if key not in known:
                    logger.warning("Ignoring unknown threshold %s.%s", group_name, key)
                    continue
                changes[key] = _coerce(group_name, key, value)
            updated[group_name] = replace(current, **changes)

        return replace(self, **updated)

    def to_dict(self) -> dict:
        return asdict(self)


_GROUP_NAMES = {f.name for f in fields(KpiThresholds)}

DEFAULT_THRESHOLDS = KpiThresholds()


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _coerce(group_name: str, key: str, value: Any) -> Any:
    """Normalize YAML values: tier lists become tuples of (bound, points)."""
    if key.endswith("_tiers"):
        if not isinstance(value, list | tuple):
            raise ThresholdConfigError(f"{group_name}.{key} must be a list of [bound, points] pairs")
        tiers = []
        for tier in value:
            if not isinstance(tier, list | tuple) or len(tier) != 2:
                raise ThresholdConfigError(f"{group_name}.{key}: bad tier {tier!r}")
            bound, points = tier
            if not (_is_number(bound) and _is_number(points)):
                raise ThresholdConfigError(f"{group_name}.{key}: tier {tier!r} must be numeric")
            tiers.append((bound, float(points)))
        return tuple(tiers)
    if key == "window":
        if not _is_number(value) or not float(value).is_integer():
            raise ThresholdConfigError(f"{group_name}.{key} must be an integer, got {value!r}")
        return int(value)
    if not _is_number(value):
        raise ThresholdConfigError(f"{group_name}.{key} must be numeric, got {value!r}")
    return float(value)


# =============================================================================
# VALIDATION
# =============================================================================


def validate_thresholds(cfg: KpiThresholds) -> list[str]:
    """
    Check that a threshold configuration is internally consistent.

    Returns list of error messages (empty if valid).
    """
    errors = []

    if cfg.progress.yellow_at > cfg.progress.green_at:
        errors.append(
            f"progress: yellow_at ({cfg.progress.yellow_at}) exceeds green_at ({cfg.progress.green_at})"
        )
    if cfg.overshoot.yellow_max < 0:
        errors.append(f"overshoot: yellow_max must be >= 0, got {cfg.overshoot.yellow_max}")
    if cfg.trend.noise_floor < 0:
        errors.append(f"trend: noise_floor must be >= 0, got {cfg.trend.noise_floor}")
    if cfg.trend.window < 1:
        errors.append(f"trend: window must be >= 1, got {cfg.trend.window}")
    if cfg.bands.attention_at > cfg.bands.excellent_at:
        errors.append(
            f"bands: attention_at ({cfg.bands.attention_at}) exceeds excellent_at ({cfg.bands.excellent_at})"
        )

    collab = cfg.collaborator
    for name in ("survey", "meeting_recency", "plan_completion", "pending_actions"):
        if getattr(collab, name) <= 0:
            errors.append(f"collaborator: weight {name} must be > 0")
    for name, weight in (
        ("survey_tiers", collab.survey),
        ("meeting_tiers", collab.meeting_recency),
        ("pending_tiers", collab.pending_actions),
    ):
        for bound, points in getattr(collab, name):
            if not 0 <= points <= weight:
                errors.append(f"collaborator: {name} tier {bound} awards {points}, outside 0..{weight}")

    company = cfg.company
    for name in ("mrr", "revenue", "ebitda", "clients", "delinquency", "churn"):
        if getattr(company, name) <= 0:
            errors.append(f"company: weight {name} must be > 0")

    return errors


# =============================================================================
# LOADING
# =============================================================================


def resolve_thresholds_path(path: str | Path | None = None) -> Path:
    """Explicit path, then KPI_THRESHOLDS_PATH, then the bundled file."""
    if path:
        return Path(path).expanduser()
    if config.THRESHOLDS_PATH:
        return Path(config.THRESHOLDS_PATH).expanduser()
    return THRESHOLDS_PATH


def load_thresholds(path: str | Path | None = None) -> KpiThresholds:
    """
    Load threshold configuration from YAML.

    A missing file yields DEFAULT_THRESHOLDS. Unreadable YAML or a config
    that fails validate_thresholds() raises ThresholdConfigError.
    """
    resolved = resolve_thresholds_path(path)
    if not resolved.exists():
        logger.debug("No thresholds file at %s, using defaults", resolved)
        return DEFAULT_THRESHOLDS

    try:
        with open(resolved) as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ThresholdConfigError(f"Failed to load {resolved}: {e}") from e

    if not isinstance(raw, dict):
        raise ThresholdConfigError(f"{resolved}: top level must be a mapping")

    cfg = DEFAULT_THRESHOLDS.with_overrides(raw.get("thresholds", raw))
    errors = validate_thresholds(cfg)
    if errors:
        raise ThresholdConfigError(f"{resolved}: " + "; ".join(errors))

    logger.debug("Loaded thresholds from %s", resolved)
    return cfg
