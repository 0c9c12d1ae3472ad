"""Formula evaluation: tokenize, substitute references, parse, compute.

Pipeline for ``=A1 + 2 * B1``::

    tokenize        CELL_REF(A1) _PLUS NUMBER(2) _STAR CELL_REF(B1)
    substitute      NUMBER(2.0)  _PLUS NUMBER(2) _STAR NUMBER(3.0)
    parse_tokens    add(number, mul(number, number))
    evaluate_tree   8.0

Every reference is resolved before any arithmetic happens; one bad
reference fails the whole formula.  Nothing here executes formula text.
"""

from __future__ import annotations

import math
from typing import Any, Sequence

from lark import Token, Tree
from pydantic import BaseModel, ConfigDict

from gridcalc.config import EvaluatorConfig, get_config
from gridcalc.formulas.errors import (
    DivisionByZero,
    FormulaError,
    NumericOverflow,
    ResolutionError,
)
from gridcalc.formulas.lexer import strip_formula, tokenize
from gridcalc.formulas.parser import parse_tokens
from gridcalc.formulas.resolver import resolve
from gridcalc.grid import ReadonlyGrid
from gridcalc.logging.events import (
    EventType,
    emit_info,
    emit_warning,
    truncate_context,
)


class EvaluationResult(BaseModel):
    """Outcome of :func:`evaluate`.

    On success ``value`` holds the rounded number.  On failure
    ``error_code`` is ``#REF!`` and ``error_kind`` names the internal
    cause (``division_by_zero``, ``out_of_range``, ...).
    """

    model_config = ConfigDict(frozen=True)

    value: float | None = None
    error_code: str | None = None
    error_kind: str | None = None
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.error_code is None

    @classmethod
    def failure(cls, exc: FormulaError) -> "EvaluationResult":
        return cls(error_code=exc.code, error_kind=exc.kind, message=str(exc))


# ---------------------------------------------------------------------------
# Substitution
# ---------------------------------------------------------------------------


def substitute_refs(tokens: Sequence[Token], grid: ReadonlyGrid) -> list[Token]:
    """Replace every CELL_REF token with a NUMBER token holding its value.

    Raises:
        ResolutionError: On the first reference that cannot be resolved.
    """
    out: list[Token] = []
    for tok in tokens:
        if tok.type == "CELL_REF":
            value = resolve(str(tok), grid)
            out.append(Token.new_borrow_pos("NUMBER", repr(value), tok))
        else:
            out.append(tok)
    return out


# ---------------------------------------------------------------------------
# Tree walking
# ---------------------------------------------------------------------------


def evaluate_tree(tree: Tree) -> float:
    """Compute the value of a parse tree from ``parse_tokens()``."""
    return _eval(tree)


def _eval(node: Tree | Token) -> Any:
    if isinstance(node, Token):
        return _parse_number(node)

    rule = node.data

    if rule == "start":
        return _eval(node.children[0])

    if rule == "add":
        return _eval(node.children[0]) + _eval(node.children[1])
    if rule == "sub":
        return _eval(node.children[0]) - _eval(node.children[1])
    if rule == "mul":
        return _eval(node.children[0]) * _eval(node.children[1])
    if rule == "div":
        left = _eval(node.children[0])
        right = _eval(node.children[1])
        if right == 0:
            raise DivisionByZero()
        return left / right
    if rule == "neg":
        return -_eval(node.children[0])
    if rule == "pos":
        return _eval(node.children[0])

    if rule == "number":
        return _parse_number(node.children[0])

    raise FormulaError(f"Unknown node type: {rule}")


def _parse_number(token: Token) -> float:
    """Parse a NUMBER token to float.

    All arithmetic runs in floats so that huge literals or products
    overflow to ``inf`` instead of growing unbounded ints.
    """
    try:
        return float(str(token))
    except (ValueError, OverflowError) as exc:
        raise NumericOverflow(math.inf) from exc


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def evaluate_formula(
    formula: str,
    grid: ReadonlyGrid,
    config: EvaluatorConfig | None = None,
) -> float:
    """Evaluate *formula* against *grid* and return the rounded number.

    Args:
        formula: Formula text starting with ``=``, e.g. ``"=A1 + B1"``.
        grid: Snapshot supplying referenced cell values.
        config: Operator set and precision; defaults when omitted.

    Returns:
        The result rounded to ``config.precision`` decimal places.

    Raises:
        ValueError: If *formula* does not start with ``=``.
        FormulaError: Any resolution, lexical, parse or arithmetic failure.
    """
    config = config or get_config()
    expression = strip_formula(formula)
    tokens = tokenize(expression, config.operators)
    tree = parse_tokens(substitute_refs(tokens, grid))
    try:
        value = evaluate_tree(tree)
    except (ValueError, OverflowError) as exc:
        raise NumericOverflow(math.inf) from exc
    if not math.isfinite(value):
        raise NumericOverflow(value)
    return round(value, config.precision)


def evaluate(
    formula: str,
    grid: ReadonlyGrid,
    config: EvaluatorConfig | None = None,
) -> EvaluationResult:
    """Evaluate *formula*, reporting any failure as ``#REF!``.

    This is the consumer-facing entry point: it never raises for bad
    formula content.  The internal error kind is kept on the result and
    emitted as a structured event.

    Raises:
        ValueError: If *formula* does not start with ``=`` (caller bug).
    """
    try:
        value = evaluate_formula(formula, grid, config)
    except FormulaError as exc:
        event_type = (
            EventType.reference_error
            if isinstance(exc, ResolutionError)
            else EventType.formula_error
        )
        emit_warning(
            event_type,
            str(exc),
            truncate_context({"formula": formula}),
            error_code=exc.kind,
        )
        return EvaluationResult.failure(exc)

    emit_info(
        EventType.formula_evaluated,
        "Formula evaluated",
        truncate_context({"formula": formula, "value": value}),
    )
    return EvaluationResult(value=value)

