import math

import pytest

from sushell.arith.numbers import (
    ArithError,
    float_binary,
    float_substitute,
    float_unary,
    get_sign,
    int_binary,
    int_substitute,
    int_unary,
    parse_float,
    parse_int,
)

I64_MAX = (1 << 63) - 1


def test_get_sign_strips_and_splits():
    assert get_sign("  -  5 ") == ("-", "5")
    assert get_sign("+x") == ("+", "x")
    assert get_sign("7") == ("+", "7")


def test_parse_int_empty_is_zero():
    assert parse_int("") == 0


@pytest.mark.parametrize("text", ["'a'", "1.5", "0x", "2#2", "09", "65#1", "abc", "1 2"])
def test_parse_int_rejects(text):
    assert parse_int(text) is None


@pytest.mark.parametrize("n", range(-40, 41))
def test_parse_int_decimal_round_trip(n):
    assert parse_int(str(n)) == n


@pytest.mark.parametrize("n", [1, 15, 255, 4096, 123456])
def test_parse_int_hex_and_octal(n):
    assert parse_int(hex(n)) == n
    assert parse_int(hex(n).upper().replace("0X", "0x")) == n
    assert parse_int("0" + format(n, "o")) == n


@pytest.mark.parametrize("base,digits", [(2, "1011"), (7, "666"), (16, "ff"), (36, "zz")])
def test_parse_int_with_base(base, digits):
    assert parse_int(f"{base}#{digits}") == int(digits, base)


def test_parse_int_upper_case_below_36_equals_lower():
    assert parse_int("16#FF") == parse_int("16#ff")


def test_parse_int_base_64_digits():
    assert parse_int("64#@") == 62
    assert parse_int("64#_") == 63
    assert parse_int("64#A") == 36


def test_parse_int_sign():
    assert parse_int("-16#ff") == -parse_int("16#ff")
    assert parse_int(" + 12") == 12


def test_parse_float():
    assert parse_float("1.5") == 1.5
    assert parse_float("-2.5") == -2.5
    assert parse_float(".25") == 0.25
    assert parse_float("inf") == math.inf
    assert parse_float("abc") is None
    assert parse_float("1_0") is None
    assert parse_float("1e") is None


def test_int_unary():
    assert int_unary("-", 9) == -9
    assert int_unary("+", 9) == 9
    assert int_unary("!", 0) == 1
    assert int_unary("!", 5) == 0
    for x in (-3, 0, 17):
        assert int_unary("~", int_unary("~", x)) == x
    with pytest.raises(ValueError):
        int_unary("?", 1)


@pytest.mark.parametrize("a", [-7, -6, 7, 6, 0])
@pytest.mark.parametrize("b", [-2, 2, 3, -3])
def test_int_division_truncates(a, b):
    q = int_binary("/", a, b)
    r = int_binary("%", a, b)
    assert q * b + r == a
    assert abs(r) < abs(b)
    assert r == 0 or (r < 0) == (a < 0)


@pytest.mark.parametrize("op", ["/", "%"])
def test_int_division_by_zero(op):
    with pytest.raises(ArithError, match="divided by 0"):
        int_binary(op, 1, 0)


def test_int_power():
    assert int_binary("**", 3, 4) == 3**4
    with pytest.raises(ArithError):
        int_binary("**", 2, -1)


@pytest.mark.parametrize(
    "op,left,right,expected",
    [
        ("<", 1, 2, 1),
        (">", 1, 2, 0),
        ("<=", 2, 2, 1),
        (">=", 1, 2, 0),
        ("==", 3, 3, 1),
        ("!=", 3, 3, 0),
        ("&&", 1, 0, 0),
        ("||", 1, 0, 1),
    ],
)
def test_int_comparisons(op, left, right, expected):
    assert int_binary(op, left, right) == expected


def test_int_shift_by_negative_is_zero():
    assert int_binary("<<", 5, -1) == 0
    assert int_binary(">>", 5, -1) == 0
    assert int_binary(">>", int_binary("<<", 5, 3), 3) == 5


def test_int_overflow_wraps():
    wrapped = int_binary("+", I64_MAX, 1)
    assert wrapped < 0
    assert int_binary("-", wrapped, 1) == I64_MAX


def test_int_unknown_binary():
    with pytest.raises(ValueError):
        int_binary("?", 1, 2)


def test_int_substitute_matches_binary():
    for sub, op in [("+=", "+"), ("-=", "-"), ("*=", "*"), ("&=", "&"), ("|=", "|")]:
        assert int_substitute(sub, 12, 5) == int_binary(op, 12, 5)
    with pytest.raises(ArithError, match="divided by 0"):
        int_substitute("/=", 1, 0)
    with pytest.raises(ArithError, match="Not supprted"):
        int_substitute("=", 1, 2)


def test_float_unary():
    assert float_unary("-", 1.5) == -1.5
    with pytest.raises(ArithError):
        float_unary("!", 1.5)


def test_float_binary():
    assert float_binary("<", 1.0, 2.0) == 1
    assert float_binary("==", 1.0, 2.0) == 0
    assert float_binary("+", 1.5, 1.5) == 1.5 * 2
    with pytest.raises(ArithError, match="divided by 0"):
        float_binary("/", 1.0, 0.0)
    with pytest.raises(ArithError):
        float_binary("**", 2.0, -1.0)
    with pytest.raises(ArithError, match="not supported operator for float numbers"):
        float_binary("%", 1.0, 2.0)
    assert math.isnan(float_binary("**", -8.0, 0.5))


def test_float_substitute():
    assert float_substitute("+=", 1.5, 1.5) == float_binary("+", 1.5, 1.5)
    with pytest.raises(ArithError, match="divided by 0"):
        float_substitute("/=", 1.0, 0.0)
    with pytest.raises(ArithError):
        float_substitute("%=", 1.0, 2.0)