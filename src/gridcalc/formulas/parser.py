"""Lark LALR(1) parser for numeric formula expressions.

The parser never sees raw formula text.  It is driven through Lark's
interactive interface with the token stream produced by ``lexer.tokenize``
after every cell reference has been replaced by a NUMBER token, so the
grammar below is purely arithmetic.
"""

from __future__ import annotations

from typing import Sequence

from lark import Lark, Token, Tree
from lark.exceptions import UnexpectedInput

from gridcalc.formulas.errors import ParseError

# Operator precedence (lowest to highest):
#   1. Addition/subtraction: + -   (left-associative)
#   2. Multiplication/division: * /   (left-associative)
#   3. Unary plus/minus: + -
#   4. Atoms: number, parenthesized expr
# Terminal patterns only matter for error messages; tokens are fed directly.
GRAMMAR = r"""
start: sum

?sum: product
    | sum _PLUS product    -> add
    | sum _MINUS product   -> sub

?product: unary
    | product _STAR unary  -> mul
    | product _SLASH unary -> div

?unary: atom
    | _MINUS unary  -> neg
    | _PLUS unary   -> pos

?atom: NUMBER            -> number
    | _LPAR sum _RPAR

NUMBER: /-?[0-9][0-9.eE+-]*/
_PLUS: "+"
_MINUS: "-"
_STAR: "*"
_SLASH: "/"
_LPAR: "("
_RPAR: ")"
"""

_parser = Lark(GRAMMAR, parser="lalr", lexer="basic", start="start")


def parse_tokens(tokens: Sequence[Token]) -> Tree:
    """Parse a substituted token stream into a Lark Tree.

    Args:
        tokens: NUMBER and operator/paren tokens; no CELL_REF tokens.

    Returns:
        A Lark parse tree rooted at ``start``.

    Raises:
        ParseError: On an empty expression or malformed structure.
    """
    if not tokens:
        raise ParseError("Empty expression", position=0)
    interactive = _parser.parse_interactive("")
    try:
        for tok in tokens:
            if tok.type == "CELL_REF":
                raise ParseError(f"Unresolved reference {tok!s}", position=tok.start_pos)
            interactive.feed_token(tok)
        return interactive.feed_eof(tokens[-1])
    except UnexpectedInput as exc:
        token = getattr(exc, "token", None)
        pos = getattr(token, "start_pos", None)
        if token is not None and token.type == "$END":
            message = "Unexpected end of expression"
        else:
            message = f"Unexpected token {str(token)!r}"
        raise ParseError(message, position=pos) from exc
