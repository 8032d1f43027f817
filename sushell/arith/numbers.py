"""Integer and floating point arithmetic of the shell's ``((...))`` expressions.

Integers behave as signed 64-bit values: results wrap around, division
truncates toward zero and the remainder takes the sign of the dividend.
"""

from __future__ import annotations

import math
import re
from typing import Optional, Union

_BITS = 64
_MASK = (1 << _BITS) - 1
_SHIFT_MASK = _BITS - 1

_I64_TEXT = re.compile(r"[+-]?[0-9]+")
_FLOAT_TEXT = re.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:e[+-]?[0-9]+)?|inf|infinity|nan)",
    re.IGNORECASE,
)


class ArithError(Exception):
    """An error in evaluating an arithmetic expression."""


def _wrap(n: int) -> int:
    """Reduce ``n`` to a signed 64-bit integer."""
    n &= _MASK
    return n - (1 << _BITS) if n >> (_BITS - 1) else n


def _div(left: int, right: int) -> int:
    quotient = abs(left) // abs(right)
    return -quotient if (left < 0) != (right < 0) else quotient


def _rem(left: int, right: int) -> int:
    return left - right * _div(left, right)


def _shift_left(value: int, amount: int) -> int:
    return 0 if amount < 0 else _wrap(value << (amount & _SHIFT_MASK))


def _shift_right(value: int, amount: int) -> int:
    return 0 if amount < 0 else value >> (amount & _SHIFT_MASK)


def _exponent_error(right) -> ArithError:
    return ArithError(f'exponent less than 0 (error token is "{right}")')


def get_sign(text: str) -> tuple[str, str]:
    """Split a leading ``+`` or ``-`` from ``text``.

    Returns the sign (``+`` when there is none) and the rest, both
    stripped of surrounding whitespace.
    """
    text = text.strip()
    if text.startswith(("+", "-")):
        return text[0], text[1:].strip()
    return "+", text


def _parse_i64(text: str) -> Optional[int]:
    if not _I64_TEXT.fullmatch(text):
        return None
    n = int(text)
    return n if -(1 << 63) <= n < (1 << 63) else None


def _get_base(text: str) -> tuple[Optional[int], str]:
    if text.startswith(("0x", "0X")):
        return 16, text[2:]
    if text.startswith("0") and len(text) > 1:
        return 8, text[1:]
    if "#" in text:
        base_text, _, rest = text.partition("#")
        base = _parse_i64(base_text)
        if base is None or base > 64:
            return None, rest
        return base, rest
    return 10, text


def _digit_value(ch: str, base: int) -> Optional[int]:
    if "0" <= ch <= "9":
        return ord(ch) - ord("0")
    if "a" <= ch <= "z":
        return ord(ch) - ord("a") + 10
    if "A" <= ch <= "Z":
        offset = 10 if base <= 36 else 36
        return ord(ch) - ord("A") + offset
    if ch == "@":
        return 62
    if ch == "_":
        return 63
    return None


def _parse_with_base(base: int, text: str) -> Optional[int]:
    if not text:
        return None
    ans = 0
    for ch in text:
        num = _digit_value(ch, base)
        if num is None or num >= base:
            return None
        ans = ans * base + num
    return _wrap(ans)


def parse_int(text: str) -> Optional[int]:
    """Parse a shell integer literal: decimal, ``0x`` hex, ``0`` octal or ``BASE#DIGITS``.

    An empty string is 0. Returns None for anything that is not an integer.
    """
    if "'" in text or "." in text:
        return None
    if not text:
        return 0

    sign, rest = get_sign(text)
    base, digits = _get_base(rest)
    if base is None:
        return None

    n = _parse_with_base(base, digits)
    if n is None:
        return None
    return _wrap(-n) if sign == "-" else n


def parse_float(text: str) -> Optional[float]:
    """Parse a floating point literal with an optional sign, or return None."""
    sign, rest = get_sign(text)
    if not _FLOAT_TEXT.fullmatch(rest):
        return None
    value = float(rest)
    return -value if sign == "-" else value


def int_unary(op: str, num: int) -> int:
    """Apply a unary operator (``+ - ! ~``) to an integer."""
    if op == "+":
        return num
    if op == "-":
        return _wrap(-num)
    if op == "!":
        return 1 if num == 0 else 0
    if op == "~":
        return ~num
    raise ValueError(f"unknown unary operator: {op}")


def int_binary(op: str, left: int, right: int) -> int:
    """Apply a binary operator to two integers."""
    if op == "+":
        return _wrap(left + right)
    if op == "-":
        return _wrap(left - right)
    if op == "*":
        return _wrap(left * right)
    if op == "&":
        return left & right
    if op == "^":
        return left ^ right
    if op == "|":
        return left | right
    if op == "&&":
        return int(left != 0 and right != 0)
    if op == "||":
        return int(left != 0 or right != 0)
    if op == "<<":
        return _shift_left(left, right)
    if op == ">>":
        return _shift_right(left, right)
    if op == "<=":
        return int(left <= right)
    if op == ">=":
        return int(left >= right)
    if op == "<":
        return int(left < right)
    if op == ">":
        return int(left > right)
    if op == "==":
        return int(left == right)
    if op == "!=":
        return int(left != right)
    if op in ("%", "/"):
        if right == 0:
            raise ArithError("divided by 0")
        return _wrap(_rem(left, right) if op == "%" else _div(left, right))
    if op == "**":
        if right < 0:
            raise _exponent_error(right)
        return _wrap(pow(left, right, 1 << _BITS))
    raise ValueError(f"unknown binary operator: {op}")


def int_substitute(op: str, cur: int, right: int) -> int:
    """The new value of a variable holding ``cur`` after ``op`` (``+=`` etc.) with ``right``."""
    if op == "+=":
        return _wrap(cur + right)
    if op == "-=":
        return _wrap(cur - right)
    if op == "*=":
        return _wrap(cur * right)
    if op == "&=":
        return cur & right
    if op == "^=":
        return cur ^ right
    if op == "|=":
        return cur | right
    if op == "<<=":
        return _shift_left(cur, right)
    if op == ">>=":
        return _shift_right(cur, right)
    if op in ("/=", "%="):
        if right == 0:
            raise ArithError("divided by 0")
        return _wrap(_rem(cur, right) if op == "%=" else _div(cur, right))
    raise ArithError("Not supprted operation for integer numbers")


def float_unary(op: str, num: float) -> float:
    """Apply ``+`` or ``-`` to a float."""
    if op == "+":
        return num
    if op == "-":
        return -num
    raise ArithError("not supported operator for float number")


def _float_pow(left: float, right: float) -> float:
    try:
        return math.pow(left, right)
    except ValueError:
        return math.nan
    except OverflowError:
        odd = right.is_integer() and int(right) % 2 == 1
        return math.copysign(math.inf, left) if odd else math.inf


def float_binary(op: str, left: float, right: float) -> Union[int, float]:
    """Apply a binary operator to two floats; comparisons give the integer 0 or 1."""
    if op == "+":
        return left + right
    if op == "-":
        return left - right
    if op == "*":
        return left * right
    if op == "<=":
        return int(left <= right)
    if op == ">=":
        return int(left >= right)
    if op == "<":
        return int(left < right)
    if op == ">":
        return int(left > right)
    if op == "==":
        return int(left == right)
    if op == "!=":
        return int(left != right)
    if op == "/":
        if right == 0.0:
            raise ArithError("divided by 0")
        return left / right
    if op == "**":
        if right >= 0.0:
            return _float_pow(left, right)
        raise _exponent_error(right)
    raise ArithError("not supported operator for float numbers")


def float_substitute(op: str, cur: float, right: float) -> float:
    """The new value of a float variable after ``+=``, ``-=``, ``*=`` or ``/=``."""
    if op == "+=":
        return cur + right
    if op == "-=":
        return cur - right
    if op == "*=":
        return cur * right
    if op == "/=":
        if right == 0.0:
            raise ArithError("divided by 0")
        return cur / right
    raise ArithError("Not supprted operation for float numbers")