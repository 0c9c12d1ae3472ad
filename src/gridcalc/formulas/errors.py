"""Error types for cell resolution and formula evaluation.

Every error carries the user-visible ``code`` (always ``#REF!``) and a
machine-readable ``kind`` used for event logging.  The public
``evaluate()`` boundary collapses all of them to the code; the subclasses
exist for diagnostics and tests.
"""

from __future__ import annotations

ERROR_REF = "#REF!"


class FormulaError(Exception):
    """Base class for all formula-related errors."""

    code: str = ERROR_REF
    kind: str = "formula_error"


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


class ResolutionError(FormulaError):
    """A cell reference could not be turned into a number.

    Attributes:
        ref: The reference text as written in the formula.
    """

    kind = "resolution_error"

    def __init__(self, ref: str, message: str | None = None) -> None:
        self.ref = ref
        super().__init__(message or f"Cannot resolve reference: {ref!r}")


class InvalidReferenceSyntax(ResolutionError):
    """Reference text does not match the grid's reference grammar."""

    kind = "invalid_reference_syntax"

    def __init__(self, ref: str, message: str | None = None) -> None:
        super().__init__(ref, message or f"Invalid cell reference: {ref!r}")


class OutOfRange(InvalidReferenceSyntax):
    """Reference is well-formed but addresses a cell outside the grid.

    Attributes:
        row: Zero-based row the reference points at.
        col: Zero-based column the reference points at.
        shape: ``(rows, cols)`` of the grid it was resolved against.
    """

    kind = "out_of_range"

    def __init__(self, ref: str, row: int, col: int, shape: tuple[int, int]) -> None:
        self.row = row
        self.col = col
        self.shape = shape
        super().__init__(
            ref,
            f"Cell reference {ref!r} is outside the {shape[0]}x{shape[1]} grid",
        )


class NonNumericCell(ResolutionError):
    """Referenced cell holds no usable number."""

    kind = "non_numeric_cell"

    def __init__(self, ref: str, value: object = None) -> None:
        self.value = value
        super().__init__(ref, f"Invalid cell value at {ref}: {value!r}")


# ---------------------------------------------------------------------------
# Expression
# ---------------------------------------------------------------------------


class LexicalError(FormulaError):
    """A piece of the expression is not a number, reference or operator.

    Attributes:
        text: The offending piece.
        position: Character offset within the expression.
    """

    kind = "lexical_error"

    def __init__(self, text: str, position: int | None = None) -> None:
        self.text = text
        self.position = position
        msg = f"Unrecognized token: {text!r}"
        if position is not None:
            msg += f" (at position {position})"
        super().__init__(msg)


class ParseError(FormulaError):
    """Malformed expression structure.

    Attributes:
        position: Character position where the error was detected.
    """

    kind = "parse_error"

    def __init__(self, message: str, position: int | None = None) -> None:
        self.position = position
        full = f"Formula parse error: {message}"
        if position is not None:
            full += f" (at position {position})"
        super().__init__(full)


class DivisionByZero(FormulaError):
    kind = "division_by_zero"

    def __init__(self) -> None:
        super().__init__("Division by zero in formula")


class NumericOverflow(FormulaError):
    kind = "numeric_overflow"

    def __init__(self, value: float) -> None:
        self.value = value
        super().__init__(f"Formula result is not a finite number: {value!r}")


ENGINE_ERRORS: tuple[type[FormulaError], ...] = (
    InvalidReferenceSyntax,
    OutOfRange,
    NonNumericCell,
    LexicalError,
    ParseError,
    DivisionByZero,
    NumericOverflow,
)
