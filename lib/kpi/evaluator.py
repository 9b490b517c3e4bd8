"""
Evaluation of complete KPI documents.

Loads a YAML or JSON snapshot document, validates it against the schemas,
and runs every section through the classifier, health scorer and alert
aggregator. The result is a plain dict ready for JSON output.
"""

import json
import logging
from datetime import datetime
from pathlib import Path

import yaml

from lib.kpi.alerts import compute_alerts
from lib.kpi.classifier import classify_many, classify_trend
from lib.kpi.health_score import collaborator_indicators, score, score_company
from lib.kpi.rulesets import metric_color
from lib.kpi.schemas import EvaluationDocument
from lib.kpi.thresholds import (
    KpiThresholds,
    ThresholdConfigError,
    load_thresholds,
    validate_thresholds,
)

logger = logging.getLogger(__name__)


class DocumentError(ValueError):
    """Raised when a snapshot document cannot be read or parsed."""


def load_document(path: str | Path) -> EvaluationDocument:
    """
    Read and validate a snapshot document.

    .json files are parsed as JSON, everything else as YAML.
    Raises DocumentError for unreadable files and pydantic.ValidationError
    for documents that do not match the schema.
    """
    path = Path(path)
    try:
        text = path.read_text()
    except OSError as e:
        raise DocumentError(f"Cannot read {path}: {e}") from e

    try:
        raw = json.loads(text) if path.suffix.lower() == ".json" else yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise DocumentError(f"Cannot parse {path}: {e}") from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise DocumentError(f"{path}: top level must be a mapping")

    return EvaluationDocument.model_validate(raw)


def resolve_config(doc: EvaluationDocument, base: KpiThresholds | None = None) -> KpiThresholds:
    """Apply a document's threshold overrides on top of the base config."""
    cfg = (base or load_thresholds()).with_overrides(doc.thresholds)
    errors = validate_thresholds(cfg)
    if errors:
        raise ThresholdConfigError("; ".join(errors))
    return cfg


def evaluate_document(doc: EvaluationDocument, config: KpiThresholds | None = None) -> dict:
    """
    Evaluate every section of a document.

    Returns:
        {
            "computed_at": ISO timestamp,
            "metrics": [classified metric dicts (+ "color" when a ruleset applies)],
            "alerts": [alert dicts, ranked],
            "trends": {key: trend dict},
            "collaborators": {name: health score dict},
            "company": health score dict or None,
        }
    """
    cfg = resolve_config(doc, config)
    rulesets = [r.to_domain() for r in doc.rulesets]

    classified = classify_many((m.to_snapshot() for m in doc.metrics), cfg)
    metrics_out = []
    for metric in classified:
        entry = metric.to_dict()
        if rulesets:
            entry["color"] = metric_color(metric.snapshot.current_value, rulesets, metric.key)
        metrics_out.append(entry)

    alerts = compute_alerts((m.to_alert_input() for m in doc.metrics), cfg)

    trends = {t.key: classify_trend(t.to_points(), cfg).to_dict() for t in doc.trends}

    collaborators = {
        c.name: score(collaborator_indicators(config=cfg, **c.indicator_values()), cfg).to_dict()
        for c in doc.collaborators
    }

    company = None
    if doc.company is not None:
        metrics, targets = doc.company.to_domain()
        company = score_company(metrics, targets, cfg).to_dict()

    logger.info(
        "Evaluated %d metrics, %d alerts, %d trends, %d collaborators",
        len(metrics_out),
        len(alerts),
        len(trends),
        len(collaborators),
    )

    return {
        "computed_at": datetime.now().isoformat(),
        "metrics": metrics_out,
        "alerts": [a.to_dict() for a in alerts],
        "trends": trends,
        "collaborators": collaborators,
        "company": company,
    }
