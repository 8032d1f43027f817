"""Shell variables, positional parameters, aliases and functions."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from typing import Any, Optional, Union

Value = Union[str, list[str]]

_INDEX = re.compile(r"\+?[0-9]+")
_DIGITS = "0123456789"


def _parse_index(text: str) -> Optional[int]:
    if _INDEX.fullmatch(text):
        return int(text)
    return None


@dataclass
class Data:
    """Layered variable storage of a shell.

    Layer 0 holds globals; each pushed layer holds function locals.
    A value is either a string or a list of strings (an array).
    """

    flags: str = ""
    parameters: list[dict[str, Value]] = field(default_factory=lambda: [{}])
    position_parameters: list[list[str]] = field(default_factory=lambda: [[]])
    aliases: dict[str, str] = field(default_factory=dict)
    functions: dict[str, Any] = field(default_factory=dict)
    alias_memo: list[tuple[str, str]] = field(default_factory=list)

    def get_param(self, key: str) -> str:
        """Return the string value of a parameter, or an empty string."""
        if key == "-":
            return self.flags

        if key in ("@", "*"):
            if not self.position_parameters:
                return ""
            return " ".join(self.position_parameters[-1][1:])

        pos = self._position_index(key)
        if pos is not None:
            return self.position_parameters[-1][pos]

        value = self.get_value(key)
        if isinstance(value, str):
            return value
        if isinstance(value, list):
            return value[0] if value else ""

        env = os.environ.get(key)
        if env is not None:
            self.set_layer_param(key, env, 0)
            return env
        return ""

    def get_array(self, key: str, pos: str) -> str:
        """Return one element of an array, or all of them joined for ``@``."""
        value = self.get_value(key)
        if isinstance(value, list):
            if pos == "@":
                return " ".join(value)
            n = _parse_index(pos)
            if n is not None and n < len(value):
                return value[n]
        elif isinstance(value, str):
            n = _parse_index(pos)
            if n is None or n == 0:
                return value
            return ""
        return ""

    def get_value(self, key: str) -> Optional[Value]:
        """Return the innermost value of a variable, or None."""
        for layer in reversed(self.parameters):
            if key in layer:
                value = layer[key]
                return list(value) if isinstance(value, list) else value
        return None

    def get_array_len(self, key: str) -> int:
        value = self.get_value(key)
        return len(value) if isinstance(value, list) else 0

    def get_array_all(self, key: str) -> list[str]:
        value = self.get_value(key)
        return value if isinstance(value, list) else []

    def get_position_params(self) -> list[str]:
        """The current positional parameters, without ``$0``."""
        if not self.position_parameters:
            return []
        return list(self.position_parameters[-1][1:])

    def _position_index(self, key: str) -> Optional[int]:
        if len(key) != 1 or key not in _DIGITS:
            return None
        n = int(key)
        return n if n < len(self.position_parameters[-1]) else None

    def set_layer_param(self, key: str, val: str, layer: int) -> None:
        """Set a string variable in a layer, updating the environment if exported."""
        if key in os.environ:
            os.environ[key] = val
        self.parameters[layer][key] = val

    def set_param(self, key: str, val: str) -> None:
        self.set_layer_param(key, val, 0)

    def set_local_param(self, key: str, val: str) -> None:
        self.set_layer_param(key, val, len(self.parameters) - 1)

    def set_layer_array(self, key: str, vals: list[str], layer: int) -> None:
        self.parameters[layer][key] = list(vals)

    def set_array(self, key: str, vals: list[str]) -> None:
        self.set_layer_array(key, vals, 0)

    def set_local_array(self, key: str, vals: list[str]) -> None:
        self.set_layer_array(key, vals, len(self.parameters) - 1)

    def push_local(self) -> None:
        self.parameters.append({})

    def pop_local(self) -> None:
        self.parameters.pop()

    def layer_count(self) -> int:
        return len(self.parameters)

    def keys(self) -> list[str]:
        """Sorted names of all variables in every layer."""
        return sorted({k for layer in self.parameters for k in layer})

    def replace_alias(self, word: str) -> Optional[str]:
        """Expand aliases at the head of ``word``.

        Returns the expanded text, or None when no alias applied.
        Aliases are only expanded in an interactive shell.
        """
        replaced = self._replace_alias_core(word)
        if replaced is None:
            return None
        self.alias_memo.append((word, replaced))
        return replaced

    def _replace_alias_core(self, word: str) -> Optional[str]:
        if "i" not in self.flags:
            return None

        changed = False
        prev_head = ""
        while True:
            head = word.replace("\n", " ").split(" ")[0]
            if head == prev_head:
                return word if changed else None
            value = self.aliases.get(head)
            if value is not None:
                word = word.replace(head, value, 1)
                changed = True
            prev_head = head

    def unset_var(self, key: str) -> None:
        for layer in self.parameters:
            layer.pop(key, None)

    def unset_function(self, key: str) -> None:
        self.functions.pop(key, None)

    def unset(self, key: str) -> None:
        self.unset_var(key)
        self.unset_function(key)