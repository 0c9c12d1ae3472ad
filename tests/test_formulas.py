"""Tests for formula tokenizing, parsing and evaluation."""

from __future__ import annotations

import pytest

from gridcalc.config import EvaluatorConfig
from gridcalc.formulas import (
    ERROR_REF,
    DivisionByZero,
    LexicalError,
    NonNumericCell,
    NumericOverflow,
    OutOfRange,
    ParseError,
    evaluate,
    evaluate_formula,
    evaluate_tree,
    parse_tokens,
    strip_formula,
    substitute_refs,
    tokenize,
)
from gridcalc.grid import GridSnapshot


# ────────────────────────────────────────────────────────────────
# Fixtures
# ────────────────────────────────────────────────────────────────


@pytest.fixture
def empty() -> GridSnapshot:
    return GridSnapshot.from_values([[""] * 3 for _ in range(3)])


@pytest.fixture
def grid() -> GridSnapshot:
    return GridSnapshot.from_values(
        [
            [2, 3, 5],
            ["", 2, 0],
            ["text", "", 3],
        ]
    )


def _num(formula: str, grid: GridSnapshot, config: EvaluatorConfig | None = None):
    result = evaluate(formula, grid, config)
    assert result.ok, result.message
    return result.value


def _err(formula: str, grid: GridSnapshot, config: EvaluatorConfig | None = None) -> str:
    result = evaluate(formula, grid, config)
    assert not result.ok
    assert result.error_code == ERROR_REF
    assert result.value is None
    return result.error_kind


# ────────────────────────────────────────────────────────────────
# Tokenizer
# ────────────────────────────────────────────────────────────────


class TestTokenize:
    def test_token_types(self) -> None:
        tokens = tokenize("A1 + 2.5*(b2)")
        assert [t.type for t in tokens] == [
            "CELL_REF", "_PLUS", "NUMBER", "_STAR", "_LPAR", "CELL_REF", "_RPAR",
        ]
        assert [str(t) for t in tokens] == ["A1", "+", "2.5", "*", "(", "b2", ")"]

    def test_positions(self) -> None:
        tokens = tokenize("A1 + 2.5")
        assert [t.start_pos for t in tokens] == [0, 3, 5]

    def test_whitespace_discarded(self) -> None:
        assert [str(t) for t in tokenize("  1 \t-  2 ")] == ["1", "-", "2"]

    def test_number_forms(self) -> None:
        tokens = tokenize("1 + 2. + .5 + 1e3")
        assert [str(t) for t in tokens if t.type == "NUMBER"] == ["1", "2.", ".5", "1e3"]

    @pytest.mark.parametrize("expr,bad", [
        ("2 $ 3", "$"),
        ("foo + 1", "foo"),
        ("1A", "1A"),
        ("AA1", "AA1"),
        ("1.2.3", "1.2.3"),
        ("2^3", "2^3"),
    ])
    def test_lexical_errors(self, expr: str, bad: str) -> None:
        with pytest.raises(LexicalError) as exc_info:
            tokenize(expr)
        assert exc_info.value.text == bad

    def test_lexical_error_position(self) -> None:
        with pytest.raises(LexicalError) as exc_info:
            tokenize("1 + x")
        assert exc_info.value.position == 4

    def test_disabled_operator_is_lexical_error(self) -> None:
        with pytest.raises(LexicalError):
            tokenize("2*3", operators=("+", "-"))

    def test_out_of_grid_ref_still_tokenizes(self) -> None:
        """Bounds are the resolver's job; D1 is a well-formed token."""
        assert tokenize("D1")[0].type == "CELL_REF"


class TestStripFormula:
    def test_strips_equals_and_whitespace(self) -> None:
        assert strip_formula("  = 1 + 2  ") == "1 + 2"

    def test_only_one_equals_removed(self) -> None:
        assert strip_formula("==1") == "=1"

    def test_requires_equals(self) -> None:
        with pytest.raises(ValueError):
            strip_formula("1+2")


# ────────────────────────────────────────────────────────────────
# Parser
# ────────────────────────────────────────────────────────────────


class TestParser:
    def test_precedence_shape(self) -> None:
        tree = parse_tokens(tokenize("2+3*4"))
        top = tree.children[0]
        assert top.data == "add"
        assert top.children[1].data == "mul"

    def test_parentheses_shape(self) -> None:
        tree = parse_tokens(tokenize("(2+3)*4"))
        top = tree.children[0]
        assert top.data == "mul"
        assert top.children[0].data == "add"

    def test_unary(self) -> None:
        tree = parse_tokens(tokenize("-2"))
        assert tree.children[0].data == "neg"

    @pytest.mark.parametrize("expr", ["(2+3", "2+3)", "2+", "*2", "2 3", ")(", "()", "2(3)"])
    def test_malformed(self, expr: str) -> None:
        with pytest.raises(ParseError):
            parse_tokens(tokenize(expr))

    def test_empty(self) -> None:
        with pytest.raises(ParseError):
            parse_tokens([])

    def test_unresolved_reference_rejected(self) -> None:
        with pytest.raises(ParseError):
            parse_tokens(tokenize("A1+1"))


class TestSubstitution:
    def test_refs_become_numbers(self, grid: GridSnapshot) -> None:
        tokens = substitute_refs(tokenize("A1*2"), grid)
        assert tokens[0].type == "NUMBER"
        assert str(tokens[0]) == "2.0"
        assert tokens[0].start_pos == 0
        assert evaluate_tree(parse_tokens(tokens)) == 4.0

    def test_first_bad_ref_fails(self, grid: GridSnapshot) -> None:
        with pytest.raises(NonNumericCell):
            substitute_refs(tokenize("A1 + A2"), grid)


# ────────────────────────────────────────────────────────────────
# evaluate()
# ────────────────────────────────────────────────────────────────


class TestArithmetic:
    @pytest.mark.parametrize("formula,expected", [
        ("=2+3*4", 14),
        ("=(2+3)*4", 20),
        ("=10-4-3", 3),
        ("=8/4/2", 1.0),
        ("=2*3+4*5", 26),
        ("=-3+5", 2),
        ("=2*-3", -6),
        ("=-(1+2)", -3),
        ("=+4", 4),
        ("=((7))", 7),
        ("=1/3", 0.33),
        ("=2/3", 0.67),
        ("=0.1+0.2", 0.3),
        ("=1.5e2/3", 50.0),
    ])
    def test_literals(self, empty: GridSnapshot, formula: str, expected: float) -> None:
        assert _num(formula, empty) == expected

    def test_whitespace_tolerated(self, empty: GridSnapshot) -> None:
        assert _num("  = 1 +   2 ", empty) == 3

    def test_division_by_zero(self, empty: GridSnapshot) -> None:
        assert _err("=1/0", empty) == "division_by_zero"
        assert _err("=1/(2-2)", empty) == "division_by_zero"

    def test_overflow(self, empty: GridSnapshot) -> None:
        assert _err("=1e308*10", empty) == "numeric_overflow"

    def test_very_long_literal(self, empty: GridSnapshot) -> None:
        assert _err("=" + "9" * 5000, empty) == "numeric_overflow"
        assert _err("=" + "9" * 5000 + "-1", empty) == "numeric_overflow"

    def test_large_integer_product(self, empty: GridSnapshot) -> None:
        assert _err("=" + "*".join(["99999999999"] * 40), empty) == "numeric_overflow"

    def test_integer_results_are_floats(self, empty: GridSnapshot) -> None:
        value = _num("=2+3*4", empty)
        assert isinstance(value, float)
        assert value == 14.0

    def test_lexical(self, empty: GridSnapshot) -> None:
        assert _err("=2 $ 3", empty) == "lexical_error"

    def test_no_code_execution(self, empty: GridSnapshot) -> None:
        assert _err("=__import__('os').getcwd()", empty) == "lexical_error"

    @pytest.mark.parametrize("formula", ["=", "=(1+2", "=1+", "=1 2"])
    def test_parse_errors(self, empty: GridSnapshot, formula: str) -> None:
        assert _err(formula, empty) == "parse_error"

    def test_requires_leading_equals(self, empty: GridSnapshot) -> None:
        with pytest.raises(ValueError):
            evaluate("1+2", empty)


class TestReferences:
    def test_sum_of_refs(self) -> None:
        grid = GridSnapshot.from_values([[2, 3, ""], ["", "", ""], ["", "", ""]])
        assert _num("=A1+B1", grid) == 5

    def test_chained_refs(self) -> None:
        grid = GridSnapshot.from_values([[1, "", ""], ["", 2, ""], ["", "", 3]])
        assert _num("=A1+B2+C3", grid) == 6

    def test_lowercase_refs(self, grid: GridSnapshot) -> None:
        assert _num("=a1*c1", grid) == 10

    def test_zero_cell_is_not_an_error(self, grid: GridSnapshot) -> None:
        assert _num("=C2+1", grid) == 1

    def test_division_by_zero_cell(self) -> None:
        grid = GridSnapshot.from_values([[5, "", ""], ["", "", ""], ["", "", ""]])
        assert _err("=A1/0", grid) == "division_by_zero"

    def test_out_of_range_ref(self, grid: GridSnapshot) -> None:
        assert _err("=D1+A1", grid) == "out_of_range"

    def test_row_out_of_range(self, grid: GridSnapshot) -> None:
        assert _err("=A4", grid) == "out_of_range"

    def test_empty_cell(self) -> None:
        grid = GridSnapshot.from_values([["", "", ""], ["", "", ""], ["", "", ""]])
        assert _err("=A1+1", grid) == "non_numeric_cell"

    def test_text_cell(self, grid: GridSnapshot) -> None:
        assert _err("=A3*2", grid) == "non_numeric_cell"

    def test_huge_integer_cell(self) -> None:
        grid = GridSnapshot.from_values([[10**400, "", ""]])
        assert _err("=A1+1", grid) == "non_numeric_cell"

    def test_boolean_cell(self) -> None:
        grid = GridSnapshot.from_values([[True, False, ""]])
        assert _err("=A1+1", grid) == "non_numeric_cell"
        assert _err("=B1*2", grid) == "non_numeric_cell"

    def test_one_bad_ref_fails_whole_formula(self, grid: GridSnapshot) -> None:
        assert _err("=A1+B1+C1+A2", grid) == "non_numeric_cell"

    def test_idempotent(self, grid: GridSnapshot) -> None:
        before = grid.model_dump()
        first = evaluate("=A1*B1+C1/B2", grid)
        second = evaluate("=A1*B1+C1/B2", grid)
        assert first == second
        assert first.value == 8.5
        assert grid.model_dump() == before

    def test_bigger_grid(self) -> None:
        values = [[r * 10 + c for c in range(5)] for r in range(4)]
        grid = GridSnapshot.from_values(values)
        assert _num("=E4-A1", grid) == 34


class TestConfig:
    def test_precision(self, empty: GridSnapshot) -> None:
        cfg = EvaluatorConfig(precision=3)
        assert _num("=10/3", empty, cfg) == 3.333

    def test_precision_zero(self, empty: GridSnapshot) -> None:
        cfg = EvaluatorConfig(precision=0)
        assert _num("=10/4", empty, cfg) == 2.0

    def test_operator_subset(self, empty: GridSnapshot) -> None:
        cfg = EvaluatorConfig(operators=["+", "-"])
        assert _num("=2+3-1", empty, cfg) == 4
        assert _err("=2*3", empty, cfg) == "lexical_error"


# ────────────────────────────────────────────────────────────────
# evaluate_formula(): typed errors
# ────────────────────────────────────────────────────────────────


class TestTypedErrors:
    def test_division(self, empty: GridSnapshot) -> None:
        with pytest.raises(DivisionByZero):
            evaluate_formula("=1/0", empty)

    def test_out_of_range(self, grid: GridSnapshot) -> None:
        with pytest.raises(OutOfRange):
            evaluate_formula("=D1", grid)

    def test_overflow(self, empty: GridSnapshot) -> None:
        with pytest.raises(NumericOverflow):
            evaluate_formula("=1e308+1e308", empty)

    def test_long_literal_overflows(self, empty: GridSnapshot) -> None:
        with pytest.raises(NumericOverflow):
            evaluate_formula("=" + "1" * 4400, empty)

    def test_every_error_carries_ref_code(self, empty: GridSnapshot) -> None:
        for formula in ("=1/0", "=D1", "=A1", "=(", "=x"):
            result = evaluate(formula, empty)
            assert result.error_code == "#REF!"
            assert result.message
