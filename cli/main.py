#!/usr/bin/env python3
"""
KPI Health CLI - evaluate metric snapshot documents.

Usage:
    python -m cli.main evaluate snapshot.yaml         # Everything
    python -m cli.main classify snapshot.yaml         # Metric statuses
    python -m cli.main alerts snapshot.yaml           # Ranked alerts
    python -m cli.main health snapshot.yaml           # Collaborator + company scores
    python -m cli.main thresholds                     # Effective thresholds

Common options:
    --json                 Print JSON instead of tables
    --thresholds PATH      Threshold YAML (default: KPI_THRESHOLDS_PATH or bundled file)
"""

import argparse
import json
import sys

import yaml
from pydantic import ValidationError

from lib import config
from lib.kpi.evaluator import DocumentError, evaluate_document, load_document
from lib.kpi.thresholds import ThresholdConfigError, load_thresholds
from lib.observability import RunContext, configure_logging, get_logger

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_INPUT_ERROR = 2

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

STATUS_ICONS = {"green": "🟢", "yellow": "🟡", "red": "🔴", "gray": "⚪"}
SEVERITY_ICONS = {"critical": "🔴", "warning": "⚠️ "}


def print_header(text: str):
    """Print a section header."""
    print(f"\n{'═' * 50}")
    print(f"  {text}")
    print(f"{'═' * 50}")


def print_table(headers: list, rows: list, widths: list = None):
    """Print a simple table."""
    if not widths:
        widths = [
            max(len(str(row[i])) for row in [headers] + rows)
            for i in range(len(headers))
        ]

    header_str = " │ ".join(str(h).ljust(w) for h, w in zip(headers, widths))
    print(header_str)
    print("─" * len(header_str))

    for row in rows:
        print(" │ ".join(str(c)[:w].ljust(w) for c, w in zip(row, widths)))


def _pct(value) -> str:
    return "-" if value is None else f"{value:.1f}%"


# =============================================================================
# RENDERERS
# =============================================================================


def render_metrics(result: dict):
    print_header("METRICS")
    metrics = result["metrics"]
    if not metrics:
        print("No metrics.")
        return

    rows = []
    for m in metrics:
        rows.append(
            [
                STATUS_ICONS.get(m["status"], "?"),
                m["key"],
                m["current_value"] if m["current_value"] is not None else "-",
                m["target"] if m["target"] is not None else "-",
                _pct(m["progress_percent"]),
                m["direction"],
            ]
        )
    print_table(["", "Metric", "Current", "Target", "Progress", "Direction"], rows)


def render_alerts(result: dict):
    print_header("ALERTS")
    alerts = result["alerts"]
    if not alerts:
        print("No alerts. All metrics on target.")
        return

    for i, a in enumerate(alerts, 1):
        icon = SEVERITY_ICONS.get(a["severity"], "?")
        print(
            f"  {i}. {icon} {a['name']}: {a['current_display']} vs {a['target_display']} "
            f"({a['percent_of_target']:.1f}% of target)"
        )


def render_trends(result: dict):
    trends = result["trends"]
    if not trends:
        return
    print_header("TRENDS")
    arrows = {"improving": "↑", "declining": "↓", "stable": "→"}
    for key, t in trends.items():
        delta = "" if t["delta"] is None else f" (Δ {t['delta']:+.2f})"
        print(f"  {arrows.get(t['direction'], '?')} {key}: {t['direction']}{delta}")


def render_health(result: dict):
    collaborators = result["collaborators"]
    company = result["company"]

    if collaborators:
        print_header("COLLABORATOR HEALTH")
        rows = []
        for name, h in collaborators.items():
            shown = h["score"] if h["has_data"] else "n/a"
            rows.append([name, shown, h["band"] if h["has_data"] else "no data"])
        print_table(["Collaborator", "Score", "Band"], rows)

    if company is not None:
        print_header("COMPANY HEALTH")
        if not company["has_data"]:
            print("No company data.")
        else:
            print(f"  Score: {company['score']} ({company['band']})")
            for ind in company["indicators"]:
                earned = "-" if ind["earned"] is None else f"{ind['earned']:.1f}"
                print(f"    {ind['name']:<12} {earned:>6} / {ind['weight']:g}")

    if not collaborators and company is None:
        print_header("HEALTH")
        print("No health inputs.")


# =============================================================================
# COMMANDS
# =============================================================================


def _evaluate(args) -> dict:
    base = load_thresholds(args.thresholds)
    doc = load_document(args.document)
    return evaluate_document(doc, base)


def _emit(args, result: dict, renderers: list, keys: list | None = None):
    if args.json:
        payload = result if keys is None else {k: result[k] for k in keys}
        print(json.dumps(payload, indent=2, default=str))
        return
    for render in renderers:
        render(result)


def cmd_evaluate(args):
    """Full evaluation."""
    result = _evaluate(args)
    _emit(args, result, [render_metrics, render_alerts, render_trends, render_health])
    return EXIT_OK


def cmd_classify(args):
    """Metric statuses only."""
    result = _evaluate(args)
    _emit(args, result, [render_metrics], ["metrics"])
    return EXIT_OK


def cmd_alerts(args):
    """Ranked alerts only."""
    result = _evaluate(args)
    _emit(args, result, [render_alerts], ["alerts"])
    return EXIT_OK


def cmd_health(args):
    """Composite health scores only."""
    result = _evaluate(args)
    _emit(args, result, [render_health], ["collaborators", "company"])
    return EXIT_OK


def cmd_thresholds(args):
    """Show effective thresholds."""
    cfg = load_thresholds(args.thresholds)
    data = cfg.to_dict()
    if args.json:
        print(json.dumps(data, indent=2))
    else:
        print(yaml.safe_dump(_plain(data), sort_keys=False), end="")
    return EXIT_OK


def _plain(value):
    """Tuples -> lists so safe_dump emits plain YAML."""
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [_plain(v) for v in value]
    return value


COMMANDS = {
    "evaluate": cmd_evaluate,
    "classify": cmd_classify,
    "alerts": cmd_alerts,
    "health": cmd_health,
    "thresholds": cmd_thresholds,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="KPI Health CLI")
    parser.add_argument(
        "--log-level",
        default=config.LOG_LEVEL,
        type=str.upper,
        choices=LOG_LEVELS,
        help="Log level (default: INFO)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("evaluate", "Classify metrics, rank alerts, score health"),
        ("classify", "Metric statuses"),
        ("alerts", "Ranked alerts"),
        ("health", "Collaborator and company health scores"),
    ):
        p = subparsers.add_parser(name, help=help_text)
        p.add_argument("document", help="Snapshot document (YAML or JSON)")
        p.add_argument("--json", action="store_true", help="Output JSON")
        p.add_argument("--thresholds", help="Threshold YAML file")

    p = subparsers.add_parser("thresholds", help="Show effective thresholds")
    p.add_argument("--json", action="store_true", help="Output JSON")
    p.add_argument("--thresholds", help="Threshold YAML file")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level, json_format=config.LOG_JSON)

    with RunContext():
        try:
            return COMMANDS[args.command](args)
        except (DocumentError, ThresholdConfigError) as e:
            logger.error("%s", e)
            print(f"❌ {e}", file=sys.stderr)
            return EXIT_INPUT_ERROR
        except ValidationError as e:
            logger.error("Invalid document: %s", e)
            print(f"❌ Invalid document:\n{e}", file=sys.stderr)
            return EXIT_INPUT_ERROR


if __name__ == "__main__":
    sys.exit(main())
