"""Unit tests for glmsparsenet.config module.

Tests cover:
    - Config default values and type safety
    - Property range clamping (alpha, n_lambda, nfolds, n_jobs)
    - Config validation (methods, families, measures, parameters)
    - ConfigValidationError
    - Config.summary() / fit_kwargs() / cv_kwargs()
    - _deep_merge()
    - load_yaml() error handling
    - load_config() with layered YAML
"""
import pytest
import yaml
from pathlib import Path

from glmsparsenet.config import (
    Config,
    ConfigValidationError,
    _deep_merge,
    load_yaml,
    load_config,
    ensure_dir,
)


# ===== Config defaults =====

class TestConfigDefaults:
    def test_empty_config(self):
        cfg = Config(raw={})
        assert cfg.method == "pearson"
        assert cfg.family == "gaussian"
        assert cfg.trans_fun == "identity"
        assert isinstance(cfg.output_dir, Path)

    def test_default_network_settings(self):
        cfg = Config(raw={})
        assert cfg.cutoff == 0.0
        assert cfg.min_degree == 0.0
        assert cfg.n_largest is None
        assert cfg.consider_unweighted is False

    def test_default_fit_settings(self):
        cfg = Config(raw={})
        assert cfg.alpha == 1.0
        assert cfg.n_lambda == 100
        assert cfg.lambda_min_ratio is None
        assert cfg.standardize is True

    def test_default_cv_settings(self):
        cfg = Config(raw={})
        assert cfg.nfolds == 10
        assert cfg.type_measure == "default"
        assert cfg.seed is None
        assert cfg.n_jobs == 1

    def test_normalization(self):
        cfg = Config(raw={"fit": {"family": " Binomial "}, "network": {"trans_fun": "HUB"}})
        assert cfg.family == "binomial"
        assert cfg.trans_fun == "hub"

    def test_null_section(self):
        cfg = Config(raw={"network": None})
        assert cfg.method == "pearson"


# ===== Range clamping =====

class TestRangeClamping:
    def test_alpha_clamped_high(self):
        assert Config(raw={"fit": {"alpha": 3}}).alpha == 1.0

    def test_alpha_clamped_low(self):
        assert Config(raw={"fit": {"alpha": -1}}).alpha == 0.0

    def test_n_lambda_clamped(self):
        assert Config(raw={"fit": {"n_lambda": 100000}}).n_lambda == 1000

    def test_nfolds_clamped(self):
        assert Config(raw={"cv": {"nfolds": 1}}).nfolds == 3

    def test_n_jobs_clamped(self):
        assert Config(raw={"cv": {"n_jobs": 1000}}).n_jobs == 64

    def test_min_degree_non_negative(self):
        assert Config(raw={"network": {"min_degree": -0.5}}).min_degree == 0.0

    def test_n_largest_at_least_one(self):
        assert Config(raw={"network": {"n_largest": 0}}).n_largest == 1


# ===== Validation =====

class TestConfigValidation:
    def test_valid_config(self):
        cfg = Config(raw={"network": {"trans_fun": "hub"}, "fit": {"family": "binomial"}})
        assert cfg.validate() == []

    def test_invalid_method(self):
        errors = Config(raw={"network": {"method": "euclid"}}).validate()
        assert any("method" in e for e in errors)

    def test_invalid_transform(self):
        errors = Config(raw={"network": {"trans_fun": "sqrt"}}).validate()
        assert any("trans_fun" in e for e in errors)

    def test_invalid_family(self):
        errors = Config(raw={"fit": {"family": "cox"}}).validate()
        assert any("family" in e for e in errors)

    def test_invalid_measure(self):
        errors = Config(raw={"cv": {"type_measure": "r2"}}).validate()
        assert any("type_measure" in e for e in errors)

    def test_negative_cutoff(self):
        errors = Config(raw={"network": {"cutoff": -1}}).validate()
        assert any("cutoff" in e for e in errors)

    def test_alpha_out_of_range(self):
        errors = Config(raw={"fit": {"alpha": 1.5}}).validate()
        assert any("alpha" in e for e in errors)

    def test_unparsable_alpha(self):
        errors = Config(raw={"fit": {"alpha": "lots"}}).validate()
        assert any("alpha" in e for e in errors)

    def test_too_few_folds(self):
        errors = Config(raw={"cv": {"nfolds": 2}}).validate()
        assert any("nfolds" in e for e in errors)

    def test_validate_or_raise(self):
        cfg = Config(raw={"fit": {"family": "cox"}})
        with pytest.raises(ConfigValidationError) as exc_info:
            cfg.validate_or_raise()
        assert len(exc_info.value.errors) >= 1


# ===== summary / kwargs =====

class TestConfigSummary:
    def test_summary_keys(self):
        summary = Config(raw={}).summary()
        for key in ("method", "min_degree", "trans_fun", "family", "alpha", "nfolds"):
            assert key in summary

    def test_fit_kwargs(self):
        cfg = Config(raw={"fit": {"family": "binomial", "alpha": 0.5, "lambda_min_ratio": 0.01}})
        kwargs = cfg.fit_kwargs()
        assert kwargs["family"] == "binomial"
        assert kwargs["alpha"] == 0.5
        assert kwargs["lambda_min_ratio"] == 0.01

    def test_fit_kwargs_omits_unset_ratio(self):
        assert "lambda_min_ratio" not in Config(raw={}).fit_kwargs()

    def test_cv_kwargs(self):
        kwargs = Config(raw={"cv": {"nfolds": 5, "seed": 7}}).cv_kwargs()
        assert kwargs == {"nfolds": 5, "type_measure": "default", "seed": 7, "n_jobs": 1}


# ===== _deep_merge =====

class TestDeepMerge:
    def test_simple_merge(self):
        assert _deep_merge({"a": 1}, {"b": 2}) == {"a": 1, "b": 2}

    def test_override(self):
        assert _deep_merge({"a": 1}, {"a": 2}) == {"a": 2}

    def test_nested_merge(self):
        base = {"x": {"a": 1, "b": 2}}
        override = {"x": {"b": 3, "c": 4}}
        assert _deep_merge(base, override) == {"x": {"a": 1, "b": 3, "c": 4}}

    def test_non_dict_override(self):
        assert _deep_merge({"a": {"x": 1}}, {"a": "replaced"}) == {"a": "replaced"}


# ===== load_yaml =====

class TestLoadYaml:
    def test_valid_yaml(self, tmp_path):
        p = tmp_path / "test.yaml"
        p.write_text("key: value\n")
        assert load_yaml(p) == {"key": "value"}

    def test_empty_yaml(self, tmp_path):
        p = tmp_path / "empty.yaml"
        p.write_text("")
        assert load_yaml(p) == {}

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_yaml(tmp_path / "missing.yaml")

    def test_non_dict_top_level(self, tmp_path):
        p = tmp_path / "list.yaml"
        p.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="字典"):
            load_yaml(p)

    def test_invalid_yaml(self, tmp_path):
        p = tmp_path / "bad.yaml"
        p.write_text("key: [unclosed\n")
        with pytest.raises(yaml.YAMLError):
            load_yaml(p)


# ===== load_config =====

class TestLoadConfig:
    def test_layered(self, tmp_path):
        base = tmp_path / "base.yaml"
        base.write_text(yaml.safe_dump({
            "network": {"min_degree": 0.2, "trans_fun": "hub"},
            "fit": {"family": "gaussian"},
        }))
        override = tmp_path / "override.yaml"
        override.write_text(yaml.safe_dump({"network": {"trans_fun": "orphan"}}))
        cfg = load_config(str(base), str(override))
        assert cfg.trans_fun == "orphan"
        assert cfg.min_degree == 0.2
        assert cfg.family == "gaussian"

    def test_warnings_logged(self, tmp_path, caplog):
        base = tmp_path / "base.yaml"
        base.write_text(yaml.safe_dump({"fit": {"family": "cox"}}))
        with caplog.at_level("WARNING", logger="glmsparsenet.config"):
            load_config(str(base))
        assert any("family" in r.getMessage() for r in caplog.records)

    def test_repo_base_config_is_valid(self):
        base = Path(__file__).resolve().parent.parent / "configs" / "base.yaml"
        assert load_config(str(base)).validate() == []


class TestEnsureDir:
    def test_creates_nested(self, tmp_path):
        p = ensure_dir(tmp_path / "a" / "b")
        assert p.is_dir()
