"""Cell reference resolution and safe arithmetic formula evaluation.

Public API::

    from gridcalc.formulas import evaluate, resolve
"""

from gridcalc.formulas.errors import (
    ENGINE_ERRORS,
    ERROR_REF,
    DivisionByZero,
    FormulaError,
    InvalidReferenceSyntax,
    LexicalError,
    NonNumericCell,
    NumericOverflow,
    OutOfRange,
    ParseError,
    ResolutionError,
)
from gridcalc.formulas.evaluator import (
    EvaluationResult,
    evaluate,
    evaluate_formula,
    evaluate_tree,
    substitute_refs,
)
from gridcalc.formulas.lexer import strip_formula, tokenize
from gridcalc.formulas.parser import parse_tokens
from gridcalc.formulas.resolver import Resolution, parse_ref, resolve, try_resolve

__all__ = [
    "ENGINE_ERRORS",
    "ERROR_REF",
    "DivisionByZero",
    "EvaluationResult",
    "FormulaError",
    "InvalidReferenceSyntax",
    "LexicalError",
    "NonNumericCell",
    "NumericOverflow",
    "OutOfRange",
    "ParseError",
    "Resolution",
    "ResolutionError",
    "evaluate",
    "evaluate_formula",
    "evaluate_tree",
    "parse_ref",
    "parse_tokens",
    "resolve",
    "strip_formula",
    "substitute_refs",
    "tokenize",
    "try_resolve",
]
