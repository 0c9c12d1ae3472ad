"""Tokenizer for formula expressions.

The expression is cut at every enabled operator and parenthesis; the
pieces in between must each be a number literal or a cell reference.
Tokens are produced as Lark ``Token`` objects so they can be fed
straight into the parser after reference substitution.
"""

from __future__ import annotations

import re
from typing import Iterable

from lark import Token

from gridcalc.config import SUPPORTED_OPERATORS
from gridcalc.formulas.errors import LexicalError
from gridcalc.formulas.resolver import REF_RE

# Terminal names, shared with the grammar in parser.py
OPERATOR_TERMINALS = {
    "+": "_PLUS",
    "-": "_MINUS",
    "*": "_STAR",
    "/": "_SLASH",
    "(": "_LPAR",
    ")": "_RPAR",
}

# Unsigned literal; a sign is a separate operator token
LITERAL_RE = re.compile(r"^(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][0-9]+)?$")


def strip_formula(text: str) -> str:
    """Return the expression part of a formula: no ``=``, no outer whitespace.

    Raises:
        ValueError: If *text* does not start with ``=``.
    """
    text = text.strip()
    if not text.startswith("="):
        raise ValueError(f"Formula must start with '=': {text!r}")
    return text[1:].strip()


def _piece_re(operators: Iterable[str]) -> re.Pattern[str]:
    delims = "".join(re.escape(op) for op in operators) + r"()"
    return re.compile(rf"\s+|[{delims}]|[^\s{delims}]+")


def tokenize(expression: str, operators: Iterable[str] = SUPPORTED_OPERATORS) -> list[Token]:
    """Split *expression* into NUMBER, CELL_REF, operator and paren tokens.

    Args:
        expression: Formula text without the leading ``=``.
        operators: Enabled binary/unary operators.  A disabled operator is
            not a delimiter, so it surfaces as part of an unrecognized piece.

    Returns:
        Tokens in source order, whitespace discarded.

    Raises:
        LexicalError: If a piece is neither a number nor a cell reference.
    """
    tokens: list[Token] = []
    for m in _piece_re(operators).finditer(expression):
        piece = m.group(0)
        pos = m.start()
        if piece.isspace():
            continue
        if piece in OPERATOR_TERMINALS:
            type_ = OPERATOR_TERMINALS[piece]
        elif LITERAL_RE.match(piece):
            type_ = "NUMBER"
        elif REF_RE.match(piece):
            type_ = "CELL_REF"
        else:
            raise LexicalError(piece, position=pos)
        tokens.append(Token(type_, piece, start_pos=pos, line=1, column=pos + 1))
    return tokens

