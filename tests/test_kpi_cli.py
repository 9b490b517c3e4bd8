"""
Tests for the KPI command line.
"""

import json
import logging
from pathlib import Path

import pytest

from cli.main import EXIT_INPUT_ERROR, EXIT_OK, main

STRICT = str(Path(__file__).parent / "fixtures" / "thresholds_strict.yaml")


@pytest.fixture(autouse=True)
def restore_root_logger():
    """main() reconfigures the root logger; put it back afterwards."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def run_json(capsys, *argv):
    code = main(list(argv))
    out = capsys.readouterr().out
    return code, json.loads(out)


class TestEvaluate:
    def test_json_output(self, capsys, snapshot_path):
        code, result = run_json(capsys, "evaluate", str(snapshot_path), "--json")
        assert code == EXIT_OK
        assert set(result) == {"computed_at", "metrics", "alerts", "trends", "collaborators", "company"}
        assert result["collaborators"]["Ana"]["score"] == 75

    def test_table_output(self, capsys, snapshot_path):
        assert main(["evaluate", str(snapshot_path)]) == EXIT_OK
        out = capsys.readouterr().out
        assert "METRICS" in out
        assert "ALERTS" in out
        assert "mrr" in out
        assert "R$ 85.000,00" in out
        assert "COMPANY HEALTH" in out

    def test_strict_thresholds_escalate_delinquency(self, capsys, snapshot_path):
        code, result = run_json(capsys, "alerts", str(snapshot_path), "--json", "--thresholds", STRICT)
        assert code == EXIT_OK
        assert [(a["name"], a["severity"]) for a in result["alerts"]] == [
            ("mrr", "critical"),
            ("delinquency", "critical"),
        ]

    def test_thresholds_from_environment(self, capsys, snapshot_path, monkeypatch):
        monkeypatch.setattr("lib.config.THRESHOLDS_PATH", STRICT)
        _, result = run_json(capsys, "alerts", str(snapshot_path), "--json")
        assert result["alerts"][1]["severity"] == "critical"


class TestSubcommands:
    def test_classify(self, capsys, snapshot_path):
        _, result = run_json(capsys, "classify", str(snapshot_path), "--json")
        assert list(result) == ["metrics"]
        assert result["metrics"][0]["status"] == "red"

    def test_health(self, capsys, snapshot_path):
        _, result = run_json(capsys, "health", str(snapshot_path), "--json")
        assert list(result) == ["collaborators", "company"]
        assert result["company"]["band"] == "Attention"

    def test_health_table_marks_missing_data(self, capsys, snapshot_path):
        main(["health", str(snapshot_path)])
        out = capsys.readouterr().out
        assert "Bruno" in out
        assert "no data" in out

    def test_thresholds_yaml(self, capsys):
        assert main(["thresholds"]) == EXIT_OK
        out = capsys.readouterr().out
        assert "progress:" in out
        assert "yellow_max:" in out

    def test_thresholds_json(self, capsys):
        _, data = run_json(capsys, "thresholds", "--json", "--thresholds", STRICT)
        assert data["progress"]["yellow_at"] == 99
        assert data["bands"]["excellent_at"] == 90


class TestInputErrors:
    def test_missing_document(self, capsys, tmp_path):
        code = main(["evaluate", str(tmp_path / "nope.yaml")])
        assert code == EXIT_INPUT_ERROR
        assert "❌" in capsys.readouterr().err

    def test_invalid_document(self, capsys, write_yaml):
        path = write_yaml("collaborators:\n  - name: X\n    pending_actions: -1\n")
        assert main(["health", str(path)]) == EXIT_INPUT_ERROR
        assert "Invalid document" in capsys.readouterr().err

    def test_bad_thresholds_file(self, capsys, snapshot_path, write_yaml):
        bad = write_yaml("thresholds:\n  bands:\n    excellent_at: 10\n", name="bad.yaml")
        code = main(["evaluate", str(snapshot_path), "--thresholds", str(bad)])
        assert code == EXIT_INPUT_ERROR

    def test_unknown_command_exits(self):
        with pytest.raises(SystemExit):
            main(["explode"])

    def test_non_integer_window_in_thresholds_file(self, capsys, snapshot_path, write_yaml):
        bad = write_yaml("trend:\n  window: abc\n", name="bad.yaml")
        code = main(["classify", str(snapshot_path), "--thresholds", str(bad)])
        assert code == EXIT_INPUT_ERROR
        assert "window" in capsys.readouterr().err

    @pytest.mark.parametrize("tier", ["[high, 30]", "[9, lots]"])
    def test_non_numeric_tier_in_document(self, capsys, write_yaml, tier):
        doc = write_yaml(
            "thresholds:\n"
            "  collaborator:\n"
            f"    survey_tiers: [{tier}]\n"
            "collaborators:\n"
            "  - {name: Ana, survey_score: 9}\n"
        )
        assert main(["health", str(doc)]) == EXIT_INPUT_ERROR
        assert "survey_tiers" in capsys.readouterr().err

    def test_duplicate_collaborators(self, capsys, write_yaml):
        doc = write_yaml("collaborators:\n  - {name: Ana}\n  - {name: Ana}\n")
        assert main(["health", str(doc)]) == EXIT_INPUT_ERROR
        assert "duplicate collaborator name" in capsys.readouterr().err

    def test_unknown_log_level_rejected(self, snapshot_path):
        with pytest.raises(SystemExit) as exc:
            main(["--log-level", "bogus", "classify", str(snapshot_path)])
        assert exc.value.code == 2

    def test_log_level_case_insensitive(self, capsys, snapshot_path):
        assert main(["--log-level", "debug", "classify", str(snapshot_path)]) == EXIT_OK
        assert logging.getLogger().level == logging.DEBUG
