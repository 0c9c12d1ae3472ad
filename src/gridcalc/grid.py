"""Grid data model: cells, immutable snapshots and the consumer-owned grid.

The evaluator only ever reads a :class:`GridSnapshot`.  :class:`Grid` is
the mutable state a UI keeps between edits; ``Grid.commit`` is where a
formula gets evaluated and its result written back.
"""

from __future__ import annotations

import math
from typing import Any, Protocol, Sequence, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    model_validator,
)

from gridcalc.config import EvaluatorConfig

# Booleans stay booleans and numeric strings stay strings
CellValue = Union[StrictStr, StrictBool, StrictInt, StrictFloat]


# ---------------------------------------------------------------------------
# Address helpers
# ---------------------------------------------------------------------------


def col_letter_to_index(letter: str) -> int:
    """Convert a column letter to 0-based index.  A=0, B=1, ..., Z=25."""
    return ord(letter.upper()) - ord("A")


def index_to_col_letter(idx: int) -> str:
    """Convert 0-based column index to its letter.  0=A, 25=Z."""
    if not 0 <= idx < 26:
        raise ValueError(f"Column index out of range: {idx}")
    return chr(65 + idx)


def make_addr(row: int, col: int) -> str:
    """Build cell address from 0-based row/col."""
    return f"{index_to_col_letter(col)}{row + 1}"


# ---------------------------------------------------------------------------
# Cells
# ---------------------------------------------------------------------------


class CellFormula(BaseModel):
    """Raw formula text plus its last computed value (None after a failure)."""

    model_config = ConfigDict(frozen=True)

    raw: str
    value: float | None = None


class Cell(BaseModel):
    """A single grid cell.

    ``value`` is what the grid displays: the user's raw entry, a number, or
    an error code.  When ``formula`` is set, ``value`` mirrors the outcome
    of its last evaluation.
    """

    model_config = ConfigDict(frozen=True)

    value: CellValue = ""
    formula: CellFormula | None = None


def _as_cell(item: Any) -> Cell:
    if isinstance(item, Cell):
        return item
    if isinstance(item, dict):
        return Cell(**item)
    return Cell(value=item)


class ReadonlyGrid(Protocol):
    """What the resolver needs from a grid."""

    @property
    def shape(self) -> tuple[int, int]:
        ...

    def cell(self, row: int, col: int) -> Cell:
        ...


class GridSnapshot(BaseModel):
    """Immutable R x C view of all cells at one moment."""

    model_config = ConfigDict(frozen=True)

    cells: tuple[tuple[Cell, ...], ...]

    @model_validator(mode="after")
    def _check_rectangular(self) -> "GridSnapshot":
        if not self.cells or not self.cells[0]:
            raise ValueError("grid must have at least one row and one column")
        width = len(self.cells[0])
        for i, row in enumerate(self.cells):
            if len(row) != width:
                raise ValueError(
                    f"row {i} has {len(row)} cells, expected {width}"
                )
        return self

    @classmethod
    def from_values(cls, rows: Sequence[Sequence[Any]]) -> "GridSnapshot":
        """Build a snapshot from nested sequences of cells or plain values.

        Example::

            GridSnapshot.from_values([[2, 3, ""], ["", "", ""], ["", "", ""]])
        """
        return cls(cells=tuple(tuple(_as_cell(v) for v in row) for row in rows))

    @property
    def shape(self) -> tuple[int, int]:
        return len(self.cells), len(self.cells[0])

    def cell(self, row: int, col: int) -> Cell:
        return self.cells[row][col]


# ---------------------------------------------------------------------------
# Consumer-owned grid
# ---------------------------------------------------------------------------


def format_display(value: CellValue) -> str:
    """Render a cell value the way the grid shows it."""
    if isinstance(value, float) and math.isfinite(value):
        if value == int(value):
            return str(int(value))
        return f"{value:.10g}"
    return str(value)


class Grid:
    """Mutable grid state owned by the consumer (the UI).

    Usage::

        grid = Grid(3, 3)
        grid.commit(0, 0, "2")
        grid.commit(0, 1, "=A1*10")
        grid.display_value(0, 1)   # "20"

    Every write replaces one :class:`Cell` object, so a snapshot taken
    before a commit never observes a half-written cell.
    """

    def __init__(self, rows: int, cols: int, config: EvaluatorConfig | None = None) -> None:
        settings = config.model_dump() if config is not None else {}
        settings.update(rows=rows, cols=cols)
        self._config = EvaluatorConfig(**settings)
        self._cells: list[list[Cell]] = [
            [Cell() for _ in range(cols)] for _ in range(rows)
        ]

    @classmethod
    def from_config(cls, config: EvaluatorConfig) -> "Grid":
        return cls(config.rows, config.cols, config)

    @property
    def config(self) -> EvaluatorConfig:
        return self._config

    @property
    def shape(self) -> tuple[int, int]:
        return self._config.shape

    def cell(self, row: int, col: int) -> Cell:
        self._check_bounds(row, col)
        return self._cells[row][col]

    def column_labels(self) -> list[str]:
        return [index_to_col_letter(c) for c in range(self._config.cols)]

    def snapshot(self) -> GridSnapshot:
        return GridSnapshot(cells=tuple(tuple(row) for row in self._cells))

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def set_value(self, row: int, col: int, value: CellValue) -> None:
        """Record an uncommitted edit; any formula on the cell is kept."""
        current = self.cell(row, col)
        self._cells[row][col] = Cell(value=value, formula=current.formula)

    def commit(self, row: int, col: int, text: str) -> Cell:
        """Commit an edit to a cell and return the new cell state.

        Text starting with ``=`` is evaluated against the grid as it was
        before this commit; the result (or ``#REF!``) becomes the display
        value and the raw text is stored as the cell's formula.  Any other
        text replaces the cell with a plain value.
        """
        from gridcalc.formulas.evaluator import evaluate

        self._check_bounds(row, col)
        if text.startswith("="):
            result = evaluate(text, self.snapshot(), self._config)
            new_cell = Cell(
                value=result.value if result.ok else result.error_code,
                formula=CellFormula(raw=text, value=result.value),
            )
        else:
            new_cell = Cell(value=text)
        self._cells[row][col] = new_cell
        return new_cell

    def display_value(self, row: int, col: int, editing: tuple[int, int] | None = None) -> str:
        """Text to show for a cell.

        While *editing* names this cell and it holds a formula, the raw
        formula is shown instead of its result.
        """
        cell = self.cell(row, col)
        if editing == (row, col) and cell.formula is not None:
            return cell.formula.raw
        return format_display(cell.value)

    def _check_bounds(self, row: int, col: int) -> None:
        rows, cols = self.shape
        if not (0 <= row < rows and 0 <= col < cols):
            raise IndexError(f"Cell ({row}, {col}) is outside the {rows}x{cols} grid")
