"""Elements of an arithmetic expression and their reordering into postfix form."""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional, Union


@dataclass(frozen=True)
class UnaryOp:
    op: str


@dataclass(frozen=True)
class BinaryOp:
    op: str


@dataclass(frozen=True)
class Integer:
    value: int

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Float:
    value: float

    def __str__(self) -> str:
        f = self.value
        if math.isnan(f):
            return "NaN"
        if math.isinf(f):
            return "inf" if f > 0 else "-inf"
        if f.is_integer():
            if f == 0 and math.copysign(1.0, f) < 0:
                return "-0"
            return str(int(f))
        return format(Decimal(repr(f)), "f")


@dataclass
class Ternary:
    """The ``? left : right`` part of a conditional expression."""

    left: Optional[Any] = None
    right: Optional[Any] = None


@dataclass
class Word:
    """A variable reference, with a post increment (1), decrement (-1) or none (0)."""

    word: Any
    increment: int = 0


@dataclass
class InParen:
    expr: Any


@dataclass(frozen=True)
class Increment:
    """A pre increment (1) or decrement (-1)."""

    step: int


@dataclass(frozen=True)
class Delimiter:
    """Marks the end of the left operand of ``&&`` or ``||``."""

    op: str


ArithElem = Union[
    UnaryOp, BinaryOp, Integer, Float, Ternary, Word, InParen, Increment, Delimiter
]

_BINARY_ORDER = {
    "**": 17,
    "*": 16,
    "/": 16,
    "%": 16,
    "+": 15,
    "-": 15,
    "<<": 14,
    ">>": 14,
    "<=": 13,
    ">=": 13,
    ">": 13,
    "<": 13,
    "==": 12,
    "!=": 12,
    "&": 11,
    "^": 10,
    "|": 9,
    "&&": 8,
    "||": 7,
    ",": 0,
}
_SUBSTITUTION_ORDER = 2


def op_order(elem: ArithElem) -> int:
    """Precedence of an element; higher binds tighter."""
    match elem:
        case Increment():
            return 20
        case UnaryOp(op=op):
            return 19 if op in ("-", "+") else 18
        case BinaryOp(op=op):
            return _BINARY_ORDER.get(op, _SUBSTITUTION_ORDER)
        case Ternary():
            return 3
        case _:
            return 1


def to_text(elem: ArithElem) -> str:
    """The text an element stands for, as used in error messages."""
    match elem:
        case InParen(expr=expr):
            return expr.text
        case Integer() | Float():
            return str(elem)
        case Word(word=word, increment=inc):
            suffix = {1: "++", -1: "--"}.get(inc, "")
            return word.text + suffix
        case UnaryOp(op=op) | BinaryOp(op=op):
            return op
        case Increment(step=1):
            return "++"
        case Increment(step=-1):
            return "--"
        case _:
            return ""


_OPERANDS = (Float, Integer, Word, InParen)


def rearrange(elements: list) -> list:
    """Reorder infix elements into reverse Polish order.

    A ``Delimiter`` is placed before the right operand of every ``&&``
    and ``||`` so that evaluation can short-circuit.
    """
    ans: list = []
    stack: list = []

    for elem in elements:
        if isinstance(elem, BinaryOp) and elem.op in ("&&", "||"):
            ans.append(Delimiter(elem.op))

        if isinstance(elem, _OPERANDS):
            ans.append(elem)
            continue

        while stack and op_order(stack[-1]) > op_order(elem):
            ans.append(stack.pop())
        stack.append(elem)

    ans.extend(reversed(stack))
    return ans