"""gridcalc -- arithmetic formulas over a small grid of cells."""

__version__ = "0.1.0"

from gridcalc.config import EvaluatorConfig, get_config, load_config
from gridcalc.formulas import EvaluationResult, evaluate, resolve
from gridcalc.grid import Cell, CellFormula, Grid, GridSnapshot

__all__ = [
    "Cell",
    "CellFormula",
    "EvaluationResult",
    "EvaluatorConfig",
    "Grid",
    "GridSnapshot",
    "__version__",
    "evaluate",
    "get_config",
    "load_config",
    "resolve",
]
