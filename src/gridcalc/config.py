"""Evaluator configuration, with defaults and optional ``gridcalc.yaml``."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from gridcalc.logging.events import EventType, emit_info

CONFIG_FILENAME = "gridcalc.yaml"

SUPPORTED_OPERATORS = ("+", "-", "*", "/")

DEFAULT_CONFIG: dict[str, Any] = {
    "rows": 3,
    "cols": 3,
    "precision": 2,
    "operators": list(SUPPORTED_OPERATORS),
    "logging_fsync": False,
    "logging_tail_bytes": 2_097_152,  # 2 MB
}


class EvaluatorConfig(BaseModel):
    """Validated evaluator settings.

    ``cols`` is capped at 26 because a reference names its column with a
    single letter.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    rows: int = Field(default=3, ge=1)
    cols: int = Field(default=3, ge=1, le=26)
    precision: int = Field(default=2, ge=0)
    operators: tuple[str, ...] = SUPPORTED_OPERATORS
    logging_fsync: bool = False
    logging_tail_bytes: int = Field(default=2_097_152, gt=0)

    @field_validator("operators")
    @classmethod
    def _check_operators(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if not value:
            raise ValueError("at least one operator must be enabled")
        unknown = [op for op in value if op not in SUPPORTED_OPERATORS]
        if unknown:
            raise ValueError(
                f"unsupported operators {unknown}; choose from {list(SUPPORTED_OPERATORS)}"
            )
        # Dedupe, keep declaration order
        return tuple(dict.fromkeys(value))

    @property
    def shape(self) -> tuple[int, int]:
        return self.rows, self.cols


def load_config(config_dir: Path) -> dict[str, Any]:
    """Load configuration from ``gridcalc.yaml``, with defaults.

    Args:
        config_dir: Directory that may contain ``gridcalc.yaml``.

    Returns:
        Merged configuration dict.
    """
    config = dict(DEFAULT_CONFIG)
    config_path = config_dir / CONFIG_FILENAME
    if config_path.exists():
        user_config = yaml.safe_load(config_path.read_text()) or {}
        # A nested ``grid:`` block is accepted as shorthand for rows/cols
        grid = user_config.pop("grid", None)
        if isinstance(grid, dict):
            for key in ("rows", "cols"):
                if key in grid:
                    user_config.setdefault(key, grid[key])
        config.update(user_config)
    return config


def get_config(config_dir: Path | None = None) -> EvaluatorConfig:
    """Return a validated config, from defaults alone when *config_dir* is None.

    Raises:
        pydantic.ValidationError: If the merged settings are invalid.
    """
    if config_dir is None:
        return EvaluatorConfig(**DEFAULT_CONFIG)
    config = EvaluatorConfig(**load_config(Path(config_dir)))
    emit_info(
        EventType.config_loaded,
        f"Loaded config for a {config.rows}x{config.cols} grid",
        {"config_dir": str(config_dir), "operators": list(config.operators)},
    )
    return config
