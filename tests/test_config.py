"""Tests for evaluator configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from gridcalc.config import DEFAULT_CONFIG, EvaluatorConfig, get_config, load_config
from gridcalc.formulas import evaluate
from gridcalc.grid import Grid


def _write_config(d: Path, data: dict) -> None:
    (d / "gridcalc.yaml").write_text(yaml.dump(data, default_flow_style=False))


class TestLoadConfig:
    def test_defaults_without_file(self, tmp_path: Path) -> None:
        assert load_config(tmp_path) == DEFAULT_CONFIG

    def test_defaults_model(self) -> None:
        cfg = get_config()
        assert cfg.shape == (3, 3)
        assert cfg.precision == 2
        assert cfg.operators == ("+", "-", "*", "/")

    def test_yaml_override(self, tmp_path: Path) -> None:
        _write_config(tmp_path, {"rows": 5, "cols": 4, "precision": 3})
        cfg = get_config(tmp_path)
        assert cfg.shape == (5, 4)
        assert cfg.precision == 3
        assert cfg.operators == ("+", "-", "*", "/")

    def test_nested_grid_block(self, tmp_path: Path) -> None:
        _write_config(tmp_path, {"grid": {"rows": 6, "cols": 2}})
        cfg = get_config(tmp_path)
        assert cfg.shape == (6, 2)

    def test_flat_keys_win_over_grid_block(self, tmp_path: Path) -> None:
        _write_config(tmp_path, {"rows": 2, "grid": {"rows": 6}})
        assert get_config(tmp_path).rows == 2

    def test_empty_file(self, tmp_path: Path) -> None:
        (tmp_path / "gridcalc.yaml").write_text("")
        assert get_config(tmp_path) == get_config()

    def test_unknown_keys_ignored(self, tmp_path: Path) -> None:
        _write_config(tmp_path, {"theme": "dark"})
        assert get_config(tmp_path).shape == (3, 3)


class TestValidation:
    @pytest.mark.parametrize("settings", [
        {"cols": 27},
        {"cols": 0},
        {"rows": 0},
        {"precision": -1},
        {"operators": []},
        {"operators": ["^"]},
        {"operators": ["+", "%"]},
    ])
    def test_invalid(self, settings: dict) -> None:
        with pytest.raises(ValidationError):
            EvaluatorConfig(**settings)

    def test_invalid_yaml_config(self, tmp_path: Path) -> None:
        _write_config(tmp_path, {"cols": 30})
        with pytest.raises(ValidationError):
            get_config(tmp_path)

    def test_operators_deduped(self) -> None:
        cfg = EvaluatorConfig(operators=["+", "+", "-"])
        assert cfg.operators == ("+", "-")


class TestConfiguredGrid:
    def test_reference_bounds_follow_config(self, tmp_path: Path) -> None:
        _write_config(tmp_path, {"rows": 5, "cols": 5})
        cfg = get_config(tmp_path)
        grid = Grid.from_config(cfg)
        grid.commit(4, 4, "7")
        assert grid.commit(0, 0, "=E5*2").value == 14
        assert grid.commit(0, 1, "=F1").value == "#REF!"

    def test_operator_subset_from_yaml(self, tmp_path: Path) -> None:
        _write_config(tmp_path, {"operators": ["+"]})
        cfg = get_config(tmp_path)
        snap = Grid.from_config(cfg).snapshot()
        assert evaluate("=1+2", snap, cfg).value == 3
        assert evaluate("=1-2", snap, cfg).error_kind == "lexical_error"
