import pytest

from sushell.arith.elements import (
    BinaryOp,
    Float,
    InParen,
    Increment,
    Integer,
    Ternary,
    UnaryOp,
    Word,
)
from sushell.arith.evaluator import (
    ArithmeticExpr,
    calculate,
    format_in_base,
    str_to_num,
)
from sushell.arith.numbers import ArithError, parse_int
from sushell.data import Data


class Name:
    """A word that expands to its own text."""

    def __init__(self, text):
        self.text = text

    def eval_as_value(self, core):
        return self.text


class Broken:
    def __init__(self, text):
        self.text = text

    def eval_as_value(self, core):
        return None


class Core:
    def __init__(self):
        self.data = Data()


@pytest.fixture
def core():
    return Core()


def var(name, inc=0):
    return Word(Name(name), inc)


def test_empty_calculation_is_zero(core):
    assert calculate([], core) == Integer(0)


def test_empty_expression_evaluates_to_zero(core):
    assert ArithmeticExpr().eval(core) == "0"


def test_empty_expression_rejected_when_not_permitted(core):
    with pytest.raises(ArithError):
        ArithmeticExpr().eval_elems(core, False)


def test_precedence(core):
    expr = ArithmeticExpr(
        "1+2*3",
        [Integer(1), BinaryOp("+"), Integer(2), BinaryOp("*"), Integer(3)],
    )
    assert expr.eval(core) == "7"


def test_float_result_text(core):
    expr = ArithmeticExpr("1.5+1", [Float(1.5), BinaryOp("+"), Integer(1)])
    assert expr.eval(core) == "2.5"


def test_comma_keeps_right(core):
    assert calculate([Integer(1), BinaryOp(","), Integer(2)], core) == Integer(2)


def test_division_by_zero(core):
    expr = ArithmeticExpr("1/0", [Integer(1), BinaryOp("/"), Integer(0)])
    with pytest.raises(ArithError, match="divided by 0"):
        expr.eval(core)


def test_variable_read(core):
    core.data.set_param("x", "12")
    assert calculate([var("x")], core) == Integer(12)


def test_assignment_sets_variable(core):
    result = calculate([var("x"), BinaryOp("="), Integer(5)], core)
    assert result == Integer(5)
    assert core.data.get_param("x") == "5"


def test_compound_assignment_round_trip(core):
    core.data.set_param("x", "5")
    calculate([var("x"), BinaryOp("+="), Integer(3)], core)
    assert core.data.get_param("x") != "5"
    calculate([var("x"), BinaryOp("-="), Integer(3)], core)
    assert core.data.get_param("x") == "5"


def test_post_increment_then_pre_decrement(core):
    core.data.set_param("x", "4")
    assert calculate([var("x", 1)], core) == Integer(4)
    assert core.data.get_param("x") != "4"
    expr = ArithmeticExpr("--x", [Increment(-1), var("x")])
    assert expr.eval(core) == "4"
    assert core.data.get_param("x") == "4"


def test_assignment_to_non_variable(core):
    with pytest.raises(ArithError):
        calculate([Integer(1), BinaryOp("="), Integer(2)], core)


def test_quoted_word_is_syntax_error(core):
    with pytest.raises(ArithError):
        calculate([var("'x'")], core)


def test_wrong_substitution(core):
    with pytest.raises(ArithError, match="wrong substitution"):
        calculate([Word(Broken("$x"))], core)


def test_short_circuit_and_leaves_variable_alone(core):
    assert calculate([Integer(0), BinaryOp("&&"), var("y")], core) == Integer(0)
    assert core.data.get_value("y") is None


def test_short_circuit_or_leaves_variable_alone(core):
    assert calculate([Integer(1), BinaryOp("||"), var("y")], core) == Integer(1)
    assert core.data.get_value("y") is None


def test_ternary_chooses_branch(core):
    left = ArithmeticExpr("10", [Integer(10)])
    right = ArithmeticExpr("20", [Integer(20)])
    assert calculate([Integer(0), Ternary(left, right)], core) == Integer(20)
    assert calculate([Integer(3), Ternary(left, right)], core) == Integer(10)


def test_ternary_with_float_condition(core):
    left = ArithmeticExpr("1", [Integer(1)])
    right = ArithmeticExpr("2", [Integer(2)])
    with pytest.raises(ArithError, match="float condition"):
        calculate([Float(0.5), Ternary(left, right)], core)


def test_ternary_without_branch(core):
    left = ArithmeticExpr("1", [Integer(1)])
    with pytest.raises(ArithError, match="expr not found"):
        calculate([Integer(1), Ternary(left, None)], core)


def test_paren_matches_inner(core):
    inner = ArithmeticExpr(
        "2*3+1", [Integer(2), BinaryOp("*"), Integer(3), BinaryOp("+"), Integer(1)]
    )
    assert calculate([InParen(inner)], core) == inner.eval_elems(core, True)


def test_double_unary_from_pre_decrement(core):
    expr = ArithmeticExpr("--5", [Increment(-1), Integer(5)])
    assert expr.eval(core) == "5"


def test_dangling_increment_is_error(core):
    expr = ArithmeticExpr("1++", [Integer(1), Increment(1)])
    with pytest.raises(ArithError, match=r"\+\+"):
        expr.eval(core)


def test_unary_minus(core):
    assert calculate([UnaryOp("-"), Integer(9)], core) == Integer(-9)


def test_str_to_num_follows_names(core):
    core.data.set_param("a", "b")
    core.data.set_param("b", "7")
    assert str_to_num("a", core) == Integer(7)


def test_str_to_num_empty_is_zero(core):
    assert str_to_num("", core) == Integer(0)


def test_str_to_num_float(core):
    assert str_to_num("1.5", core) == Float(1.5)


def test_str_to_num_recursion(core):
    core.data.set_param("a", "a")
    with pytest.raises(ArithError, match="recursion"):
        str_to_num("a", core)


def test_str_to_num_garbage(core):
    with pytest.raises(ArithError):
        str_to_num("$%", core)


def test_format_hex():
    assert format_in_base(255, "16", False) == "16#FF"


@pytest.mark.parametrize("base", ["2", "8", "16", "36", "64"])
@pytest.mark.parametrize("num", [1, 7, 100, 4095, 123456789])
def test_format_round_trip(num, base):
    assert parse_int(format_in_base(num, base, False)) == num
    assert parse_int(f"{base}#" + format_in_base(num, base, True)) == num


def test_format_negative():
    assert format_in_base(-42, "8", False) == "-" + format_in_base(42, "8", False)


def test_format_decimal_is_plain():
    assert format_in_base(-31, "10", False) == str(-31)


@pytest.mark.parametrize("base", ["1", "65", "abc"])
def test_format_invalid_base(base):
    with pytest.raises(ArithError, match="invalid arithmetic base"):
        format_in_base(5, base, False)


def test_output_base_on_expression(core):
    expr = ArithmeticExpr("2#x", [Integer(13)], output_base="2", hide_base=True)
    assert int(expr.eval(core), 2) == 13