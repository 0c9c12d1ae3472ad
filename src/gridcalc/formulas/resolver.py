"""Cell reference resolution against a grid snapshot.

A reference is one letter followed by a row number (``B2``, ``c3``).  The
letter must name one of the grid's columns and the row must exist; an
address beyond the grid is reported as :class:`OutOfRange`, which is a
kind of :class:`InvalidReferenceSyntax` because the grid's reference
alphabet is derived from its dimensions.

Resolution never re-evaluates formulas: a formula cell contributes the
value cached by its last evaluation.
"""

from __future__ import annotations

import math
import re

from pydantic import BaseModel, ConfigDict

from gridcalc.formulas.errors import (
    InvalidReferenceSyntax,
    NonNumericCell,
    OutOfRange,
    ResolutionError,
)
from gridcalc.grid import ReadonlyGrid, col_letter_to_index

REF_RE = re.compile(r"^([A-Za-z])([0-9]+)$")

NUMBER_RE = re.compile(r"^[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?$")


class Resolution(BaseModel):
    """Outcome of :func:`try_resolve`.

    ``ok`` is the success flag; a zero ``value`` is a valid result.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    ok: bool
    value: float | None
    error: ResolutionError | None = None


def parse_ref(ref: str, shape: tuple[int, int]) -> tuple[int, int]:
    """Parse *ref* into zero-based ``(row, col)`` within a grid of *shape*.

    Raises:
        InvalidReferenceSyntax: If *ref* is not a letter followed by digits.
        OutOfRange: If the address lies outside the grid.
    """
    m = REF_RE.match(ref)
    if not m:
        raise InvalidReferenceSyntax(ref)
    col = col_letter_to_index(m.group(1))
    row = int(m.group(2)) - 1
    rows, cols = shape
    if not (0 <= row < rows and 0 <= col < cols):
        raise OutOfRange(ref, row, col, shape)
    return row, col


def coerce_number(value: object) -> float | None:
    """Return *value* as a finite float, or None if it holds no number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        raw: object = value
    elif isinstance(value, str):
        raw = value.strip()
        if not NUMBER_RE.match(raw):
            return None
    else:
        return None
    try:
        number = float(raw)
    except (ValueError, OverflowError):
        return None
    if not math.isfinite(number):
        return None
    return number


def resolve(ref: str, grid: ReadonlyGrid) -> float:
    """Return the numeric value of the cell named by *ref*.

    Args:
        ref: Reference text, e.g. ``"B2"``.
        grid: Snapshot to read from.

    Raises:
        InvalidReferenceSyntax: Malformed reference.
        OutOfRange: Reference outside the grid.
        NonNumericCell: Cell is empty, non-numeric, or its formula failed.
    """
    row, col = parse_ref(ref, grid.shape)
    cell = grid.cell(row, col)

    if cell.formula is not None:
        cached = cell.formula.value
        if cached is None:
            raise NonNumericCell(ref, cell.value)
        return cached

    number = coerce_number(cell.value)
    if number is None:
        raise NonNumericCell(ref, cell.value)
    return number


def try_resolve(ref: str, grid: ReadonlyGrid) -> Resolution:
    """Like :func:`resolve`, but report failure through the result."""
    try:
        return Resolution(ok=True, value=resolve(ref, grid))
    except ResolutionError as exc:
        return Resolution(ok=False, value=None, error=exc)
