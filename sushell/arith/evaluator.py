"""Evaluation of arithmetic expressions: variables, assignments and the postfix calculator.

Word elements wrap an object with a ``text`` attribute and an
``eval_as_value(core)`` method that returns the expanded text of the
word, or None when the expansion fails.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional, Union

from .elements import (
    BinaryOp,
    Delimiter,
    Float,
    InParen,
    Increment,
    Integer,
    Ternary,
    UnaryOp,
    Word,
    rearrange,
)
from .numbers import (
    ArithError,
    float_binary,
    float_substitute,
    float_unary,
    int_binary,
    int_substitute,
    int_unary,
    parse_float,
    parse_int,
)

Number = Union[Integer, Float]

_RESOLVE_LIMIT = 10000
_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_BASE_TEXT = re.compile(r"\+?[0-9]+")
_SUBSTITUTIONS = frozenset(
    ["=", "*=", "/=", "%=", "+=", "-=", "<<=", ">>=", "&=", "^=", "|="]
)


def _syntax_error(token: str) -> ArithError:
    return ArithError(f'syntax error: operand expected (error token is "{token}")')


def _assignment_error(op: str) -> ArithError:
    return ArithError(f'attempted assignment to non-variable (error token is "{op}")')


def _recursion_error(name: str) -> ArithError:
    return ArithError(f'expression recursion level exceeded (error token is "{name}")')


def _is_name(text: str) -> bool:
    return bool(_NAME.fullmatch(text))


def _expand(word, core) -> str:
    value = word.eval_as_value(core)
    if value is None:
        raise ArithError(f"{word.text}: wrong substitution")
    return value


def str_to_num(name: str, core) -> Number:
    """Resolve a variable name (following chains of names) to a number."""
    for i in range(_RESOLVE_LIMIT):
        if not _is_name(name):
            break
        name = core.data.get_param(name)
        if i == _RESOLVE_LIMIT - 1:
            raise _recursion_error(name)

    n = parse_int(name)
    if n is not None:
        return Integer(n)
    if _is_name(name):
        return Integer(0)
    f = parse_float(name)
    if f is not None:
        return Float(f)
    raise _syntax_error(name)


def _change_variable(name: str, core, inc: int, pre: bool) -> Number:
    if not _is_name(name):
        if inc != 0 and not pre:
            raise _syntax_error(name)
        return str_to_num(name, core)

    current = str_to_num(name, core)
    if isinstance(current, Integer):
        new = int_binary("+", current.value, inc)
        core.data.set_param(name, str(new))
        return Integer(new) if pre else current
    new_float = Float(current.value + inc)
    core.data.set_param(name, str(new_float))
    return new_float if pre else current


def _to_operand(word, pre_increment: int, post_increment: int, core) -> Number:
    if (pre_increment != 0 and post_increment != 0) or "'" in word.text:
        raise _syntax_error(word.text)
    name = _expand(word, core)
    if pre_increment == 0:
        return _change_variable(name, core, post_increment, False)
    return _change_variable(name, core, pre_increment, True)


def _to_num(word, core) -> Number:
    if "'" in word.text:
        raise _syntax_error(word.text)
    return str_to_num(_expand(word, core), core)


def _assign(op: str, word, right: Number, core) -> Number:
    if "'" in word.text:
        raise _syntax_error(word.text)
    name = _expand(word, core)

    if not isinstance(right, (Integer, Float)):
        raise RuntimeError("not a value")

    if op == "=":
        core.data.set_param(name, str(right))
        return right

    current = _to_num(word, core)
    if isinstance(current, Integer) and isinstance(right, Integer):
        result: Number = Integer(int_substitute(op, current.value, right.value))
    else:
        result = Float(float_substitute(op, float(current.value), float(right.value)))
    core.data.set_param(name, str(result))
    return result


def _substitution(op: str, stack: list, core) -> None:
    if not stack:
        raise _syntax_error(op)
    right = stack.pop()
    left = stack.pop() if stack else None
    if not isinstance(left, Word) or left.increment != 0:
        raise _assignment_error(op)
    stack.append(_assign(op, left.word, right, core))


def _pop_operand(stack: list, core) -> Number:
    if not stack:
        raise ArithError("no operand")
    elem = stack.pop()
    if isinstance(elem, Word):
        return _to_operand(elem.word, 0, elem.increment, core)
    if isinstance(elem, InParen):
        return elem.expr.eval_elems(core, False)
    return elem


def _bin_operation(op: str, stack: list, core) -> None:
    if op in _SUBSTITUTIONS:
        _substitution(op, stack, core)
        return

    right = _pop_operand(stack, core)
    left = _pop_operand(stack, core)
    if op == ",":
        stack.append(right)
        return

    if isinstance(left, Integer) and isinstance(right, Integer):
        stack.append(Integer(int_binary(op, left.value, right.value)))
    elif isinstance(left, (Integer, Float)) and isinstance(right, (Integer, Float)):
        result = float_binary(op, float(left.value), float(right.value))
        stack.append(Float(result) if isinstance(result, float) else Integer(result))
    else:
        raise RuntimeError("invalid operand")


def _unary_operation(op: str, stack: list, core) -> None:
    operand = _pop_operand(stack, core)
    if isinstance(operand, Float):
        stack.append(Float(float_unary(op, operand.value)))
    elif isinstance(operand, Integer):
        stack.append(Integer(int_unary(op, operand.value)))
    else:
        raise RuntimeError("unknown operand")


def _increment(step: int, stack: list, core) -> None:
    elem = stack.pop() if stack else None
    if not isinstance(elem, Word):
        raise ArithError("invalid increment")
    stack.append(_to_operand(elem.word, step, elem.increment, core))


def _ternary(ternary: Ternary, stack: list, core) -> None:
    condition = _pop_operand(stack, core)
    if ternary.left is None or ternary.right is None:
        raise ArithError("expr not found")

    if isinstance(condition, Integer) and condition.value == 0:
        stack.append(ternary.right._eval_in_cond(core))
    elif isinstance(condition, Float):
        raise ArithError("float condition is not permitted")
    else:
        stack.append(ternary.left._eval_in_cond(core))


def _check_skip(op: str, stack: list, core) -> str:
    last = _pop_operand(stack, core)
    result = 0 if isinstance(last, Integer) and last.value == 0 else 1
    stack.append(Integer(result))
    if result == 1 and op == "||":
        return "||"
    if result == 0 and op == "&&":
        return "&&"
    return ""


def calculate(elements: list, core) -> Number:
    """Evaluate a list of infix elements (pre increments already resolved)."""
    if not elements:
        return Integer(0)

    stack: list = []
    skip_until = ""
    for elem in rearrange(elements):
        if isinstance(elem, BinaryOp):
            if elem.op == skip_until:
                skip_until = ""
                continue
        elif skip_until:
            continue

        if isinstance(elem, (Integer, Float, Word, InParen)):
            stack.append(elem)
        elif isinstance(elem, BinaryOp):
            _bin_operation(elem.op, stack, core)
        elif isinstance(elem, UnaryOp):
            _unary_operation(elem.op, stack, core)
        elif isinstance(elem, Increment):
            _increment(elem.step, stack, core)
        elif isinstance(elem, Ternary):
            _ternary(elem, stack, core)
        elif isinstance(elem, Delimiter):
            skip_until = _check_skip(elem.op, stack, core)

    if len(stack) != 1:
        raise ArithError("unknown syntax error_message (stack inconsistency)")
    return _pop_operand(stack, core)


def _digit_char(n: int, base: int) -> str:
    if n < 10:
        return chr(ord("0") + n)
    if base <= 36:
        return chr(ord("A") + n - 10)
    if n < 36:
        return chr(ord("a") + n - 10)
    if n < 62:
        return chr(ord("A") + n - 36)
    return "@" if n == 62 else "_"


def format_in_base(num: int, base: str, hide_base: bool) -> str:
    """Write ``num`` in the given base (2 to 64), as ``BASE#DIGITS`` unless hidden."""
    if base == "10":
        return str(num)

    invalid = ArithError(
        f'{base}: invalid arithmetic base (error_message token is "{base}")'
    )
    if not _BASE_TEXT.fullmatch(base):
        raise invalid
    radix = int(base)
    if radix <= 1 or radix > 64:
        raise invalid

    digits: list[str] = []
    rest = abs(num)
    while rest:
        rest, d = divmod(rest, radix)
        digits.append(_digit_char(d, radix))
    text = "".join(reversed(digits))

    if not hide_base:
        text = f"{base}#{text}"
    if num < 0:
        text = "-" + text
    return text


@dataclass
class ArithmeticExpr:
    """A parsed arithmetic expression with its output base."""

    text: str = ""
    elements: list = field(default_factory=list)
    output_base: str = "10"
    hide_base: bool = False

    def eval(self, core) -> str:
        """Evaluate to the text of the result; raises ArithError on failure."""
        try:
            result = self.eval_elems(core, True)
            if isinstance(result, Integer):
                return format_in_base(result.value, self.output_base, self.hide_base)
        except ArithError as err:
            raise ArithError(f"{self.text}: {err}") from err
        return str(result)

    def eval_elems(self, core, permit_empty: bool) -> Number:
        """Evaluate to an Integer or Float element."""
        if not self.elements and not permit_empty:
            raise ArithError('operand expexted (error token: ")")')
        return calculate(self._decompose_increments(), core)

    def _eval_in_cond(self, core) -> Number:
        return calculate(self._decompose_increments(), core)

    def _preinc_to_unarys(self, ans: list, pos: int, step: int) -> int:
        if step == 1:
            sign = "+"
        elif step == -1:
            sign = "-"
        else:
            return 0

        following = self.elements[pos + 1] if pos + 1 < len(self.elements) else None
        if following is None or isinstance(following, Word):
            return step
        if ans and isinstance(ans[-1], (Integer, Float)):
            ans.append(BinaryOp(sign))
        else:
            ans.append(UnaryOp(sign))
        ans.append(UnaryOp(sign))
        return 0

    def _decompose_increments(self) -> list:
        ans: list = []
        pending = 0
        for pos, elem in enumerate(self.elements):
            if isinstance(elem, Word):
                if pending != 0:
                    ans.append(Increment(pending))
                ans.append(elem)
                pending = 0
            elif isinstance(elem, Increment):
                pending = self._preinc_to_unarys(ans, pos, elem.step)
            else:
                ans.append(elem)
                pending = 0

        if pending == 1:
            raise _syntax_error("++")
        if pending == -1:
            raise _syntax_error("--")
        return ans