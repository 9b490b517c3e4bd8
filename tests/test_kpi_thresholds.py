"""
Tests for KPI threshold configuration.

Covers:
- Reference defaults
- Overrides (known, unknown, malformed)
- Validation of ordering constraints
- YAML loading: bundled file, explicit path, env override, bad files
"""

import pytest

from lib.kpi.thresholds import (
    DEFAULT_THRESHOLDS,
    THRESHOLDS_PATH,
    ThresholdConfigError,
    load_thresholds,
    resolve_thresholds_path,
    validate_thresholds,
)


class TestDefaults:
    def test_reference_values(self):
        cfg = DEFAULT_THRESHOLDS
        assert cfg.progress.green_at == 100
        assert cfg.progress.yellow_at == 90
        assert cfg.overshoot.yellow_max == 10
        assert cfg.trend.noise_floor == 0.5
        assert cfg.trend.window == 3
        assert cfg.bands.excellent_at == 80
        assert cfg.bands.attention_at == 50

    def test_collaborator_weights_sum_to_100(self):
        c = DEFAULT_THRESHOLDS.collaborator
        assert c.survey + c.meeting_recency + c.plan_completion + c.pending_actions == 100

    def test_company_weights_sum_to_100(self):
        c = DEFAULT_THRESHOLDS.company
        assert c.mrr + c.revenue + c.ebitda + c.clients + c.delinquency + c.churn == 100

    def test_defaults_validate(self):
        assert validate_thresholds(DEFAULT_THRESHOLDS) == []


class TestOverrides:
    def test_override_returns_new_config(self):
        cfg = DEFAULT_THRESHOLDS.with_overrides({"progress": {"yellow_at": 80}})
        assert cfg.progress.yellow_at == 80
        assert cfg.progress.green_at == 100
        assert DEFAULT_THRESHOLDS.progress.yellow_at == 90

    def test_empty_override_is_identity(self):
        assert DEFAULT_THRESHOLDS.with_overrides({}) is DEFAULT_THRESHOLDS
        assert DEFAULT_THRESHOLDS.with_overrides(None) is DEFAULT_THRESHOLDS

    def test_unknown_group_and_key_ignored(self, caplog):
        with caplog.at_level("WARNING"):
            cfg = DEFAULT_THRESHOLDS.with_overrides(
                {"nonsense": {"a": 1}, "progress": {"bogus": 3, "green_at": 105}}
            )
        assert cfg.progress.green_at == 105
        assert "nonsense" in caplog.text
        assert "bogus" in caplog.text

    def test_tiers_become_tuples(self):
        cfg = DEFAULT_THRESHOLDS.with_overrides(
            {"collaborator": {"pending_tiers": [[0, 20], [3, 10]]}}
        )
        assert cfg.collaborator.pending_tiers == ((0, 20.0), (3, 10.0))

    def test_window_is_int(self):
        cfg = DEFAULT_THRESHOLDS.with_overrides({"trend": {"window": 4.0}})
        assert cfg.trend.window == 4
        assert isinstance(cfg.trend.window, int)

    def test_non_numeric_value_rejected(self):
        with pytest.raises(ThresholdConfigError):
            DEFAULT_THRESHOLDS.with_overrides({"progress": {"green_at": "high"}})

    def test_group_must_be_mapping(self):
        with pytest.raises(ThresholdConfigError):
            DEFAULT_THRESHOLDS.with_overrides({"progress": 95})

    def test_bad_tier_rejected(self):
        with pytest.raises(ThresholdConfigError):
            DEFAULT_THRESHOLDS.with_overrides({"collaborator": {"survey_tiers": [[9, 30, 1]]}})

    @pytest.mark.parametrize("window", ["abc", 2.7, True, None])
    def test_window_must_be_integer(self, window):
        with pytest.raises(ThresholdConfigError):
            DEFAULT_THRESHOLDS.with_overrides({"trend": {"window": window}})

    @pytest.mark.parametrize("tier", [["high", 30], [9, "lots"], [9, True]])
    def test_tier_values_must_be_numeric(self, tier):
        with pytest.raises(ThresholdConfigError):
            DEFAULT_THRESHOLDS.with_overrides({"collaborator": {"survey_tiers": [tier]}})


class TestValidation:
    def test_inverted_progress_bands(self):
        cfg = DEFAULT_THRESHOLDS.with_overrides({"progress": {"yellow_at": 120}})
        errors = validate_thresholds(cfg)
        assert any("yellow_at" in e for e in errors)

    def test_inverted_bands(self):
        cfg = DEFAULT_THRESHOLDS.with_overrides({"bands": {"attention_at": 90}})
        assert any("attention_at" in e for e in validate_thresholds(cfg))

    def test_negative_noise_floor(self):
        cfg = DEFAULT_THRESHOLDS.with_overrides({"trend": {"noise_floor": -1}})
        assert validate_thresholds(cfg)

    def test_tier_exceeding_weight(self):
        cfg = DEFAULT_THRESHOLDS.with_overrides({"collaborator": {"survey_tiers": [[9, 40]]}})
        assert any("survey_tiers" in e for e in validate_thresholds(cfg))

    def test_zero_weight(self):
        cfg = DEFAULT_THRESHOLDS.with_overrides({"company": {"churn": 0}})
        assert any("churn" in e for e in validate_thresholds(cfg))


class TestLoading:
    def test_bundled_file_matches_defaults(self):
        assert THRESHOLDS_PATH.exists()
        assert load_thresholds() == DEFAULT_THRESHOLDS

    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_thresholds(tmp_path / "absent.yaml") is DEFAULT_THRESHOLDS

    def test_explicit_file(self, write_yaml):
        path = write_yaml("thresholds:\n  progress:\n    yellow_at: 85\n")
        assert load_thresholds(path).progress.yellow_at == 85

    def test_top_level_groups_without_wrapper(self, write_yaml):
        path = write_yaml("overshoot:\n  yellow_max: 20\n")
        assert load_thresholds(path).overshoot.yellow_max == 20

    def test_empty_file_gives_defaults(self, write_yaml):
        assert load_thresholds(write_yaml("")) == DEFAULT_THRESHOLDS

    def test_env_override(self, write_yaml, monkeypatch):
        path = write_yaml("bands:\n  excellent_at: 85\n")
        monkeypatch.setattr("lib.config.THRESHOLDS_PATH", str(path))
        assert resolve_thresholds_path() == path
        assert load_thresholds().bands.excellent_at == 85

    def test_explicit_path_beats_env(self, write_yaml, monkeypatch, tmp_path):
        monkeypatch.setattr("lib.config.THRESHOLDS_PATH", str(tmp_path / "env.yaml"))
        explicit = write_yaml("trend:\n  window: 2\n", name="explicit.yaml")
        assert load_thresholds(explicit).trend.window == 2

    def test_invalid_yaml(self, write_yaml):
        with pytest.raises(ThresholdConfigError):
            load_thresholds(write_yaml("progress: [unclosed\n"))

    def test_non_mapping(self, write_yaml):
        with pytest.raises(ThresholdConfigError):
            load_thresholds(write_yaml("- 1\n- 2\n"))

    def test_inconsistent_file_rejected(self, write_yaml):
        path = write_yaml("progress:\n  yellow_at: 150\n")
        with pytest.raises(ThresholdConfigError, match="yellow_at"):
            load_thresholds(path)
