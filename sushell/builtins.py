"""Simple builtin commands: true, false, alias, exit, cd, pwd, read,
return, break, unset and history."""

from __future__ import annotations

import re
import sys
from pathlib import Path
from typing import Optional

from .paths import make_canonical_path

_I32 = re.compile(r"[+-]?[0-9]+")
_I32_MIN = -(2**31)
_I32_MAX = 2**31 - 1


def _err(message: str) -> None:
    print(message, file=sys.stderr)


def _parse_i32(text: str) -> Optional[int]:
    if not _I32.fullmatch(text):
        return None
    n = int(text)
    if _I32_MIN <= n <= _I32_MAX:
        return n
    return None


def _truncated_mod(n: int, m: int) -> int:
    """Remainder whose sign follows the dividend."""
    r = abs(n) % m
    return -r if n < 0 else r


def true_(core, args: list[str]) -> int:
    return 0


def false_(core, args: list[str]) -> int:
    return 1


def alias(core, args: list[str]) -> int:
    """List aliases, or define one given as ``name=value``."""
    if len(args) == 1:
        for name, value in core.data.aliases.items():
            print(f"alias {name}='{value}'")
        return 0

    if len(args) == 2 and "=" in args[1]:
        name, _, value = args[1].partition("=")
        core.data.aliases[name] = value
    return 0


def exit_(core, args: list[str]) -> int:
    """Leave the shell, with the given status or the last one."""
    _err("exit")
    if len(args) > 1:
        core.data.set_layer_param("?", args[1], 0)
    return core.exit()


def _set_oldpwd(core) -> None:
    old = core.get_current_directory()
    if old is not None:
        core.data.set_layer_param("OLDPWD", str(old), 0)


def _change_directory(core, target: str) -> int:
    path = make_canonical_path(core, target)
    if path is None:
        _err(f'sush: cd: "{target}": No such file or directory')
        return 1
    try:
        core.set_current_directory(path)
    except OSError:
        _err(f'sush: cd: "{path}": No such file or directory')
        return 1
    core.data.set_layer_param("PWD", str(path), 0)
    return 0


def cd(core, args: list[str]) -> int:
    """Change the current directory; ``cd -`` returns to ``$OLDPWD``."""
    if len(args) > 2:
        _err("sush: cd: too many arguments")
        return 1

    if len(args) == 1:
        _set_oldpwd(core)
        return _change_directory(core, "~")

    if args[1] == "-":
        old = core.data.get_param("OLDPWD")
        if not old:
            _err("sush: cd: OLDPWD not set")
            return 1
        print(old)
        _set_oldpwd(core)
        return _change_directory(core, old)

    _set_oldpwd(core)
    return _change_directory(core, args[1])


def _show_pwd(core, physical: bool) -> int:
    path = core.get_current_directory()
    if path is None:
        return 1
    path = Path(path)
    if physical and path.is_symlink():
        try:
            path = path.resolve(strict=True)
        except OSError:
            pass
    print(path)
    return 0


def pwd(core, args: list[str]) -> int:
    """Print the current directory; ``-P`` resolves a symbolic link."""
    if len(args) == 1 or not args[1].startswith("-"):
        return _show_pwd(core, False)

    if args[1] == "-P":
        return _show_pwd(core, True)
    if args[1] == "-L":
        return _show_pwd(core, False)

    _err(f"sush: pwd: {args[1]}: invalid option")
    _err("pwd: usage: pwd [-LP]")
    return 1


_NAME_CHARS = frozenset(
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_"
)


def is_varname(name: str) -> bool:
    """Whether ``name`` may name a shell variable."""
    if not name or name[0].isdigit():
        return False
    return all(c in _NAME_CHARS for c in name)


def read(core, args: list[str]) -> int:
    """Read a line from standard input into the named variables."""
    if len(args) <= 1:
        return 0

    names = args[1:]
    for name in names:
        if not is_varname(name):
            _err(f"bash: read: `{name}': not a valid identifier")
            return 1
        core.data.set_param(name, "")

    line = sys.stdin.readline()

    last = len(names) - 1
    overflow: list[str] = []
    for index, word in enumerate(line.rstrip().split(" ")):
        if index < last:
            core.data.set_param(names[index], word)
        else:
            overflow.append(word)
            core.data.set_param(names[last], " ".join(overflow))

    return 1 if not line else 0


def return_(core, args: list[str]) -> int:
    """Return from a function or sourced script."""
    if core.source_function_level <= 0:
        _err("sush: return: can only `return' from a function or sourced script")
        return 2
    core.return_flag = True

    if len(args) < 2:
        return 0

    n = _parse_i32(args[1])
    if n is None:
        _err(f"sush: return: {args[1]}: numeric argument required")
        return 2
    return _truncated_mod(n, 256)


def break_(core, args: list[str]) -> int:
    """Leave one or more enclosing loops."""
    if core.loop_level <= 0:
        _err("sush: break: only meaningful in a `for', `while', or `until' loop")
        return 0

    core.break_counter += 1
    if len(args) < 2:
        return 0

    n = _parse_i32(args[1])
    if n is None:
        _err(f"sush: break: {args[1]}: numeric argument required")
        return 128
    if n <= 0:
        _err(f"sush: break: {args[1]}: loop count out of range")
        return 1
    core.break_counter += n - 1
    return 0


def unset(core, args: list[str]) -> int:
    """Remove a variable (``-v``), a function (``-f``) or both."""
    if len(args) < 2:
        return 0

    option = args[1]
    if option == "-f":
        if len(args) > 2:
            core.data.unset_function(args[2])
    elif option == "-v":
        if len(args) > 2:
            core.data.unset_var(args[2])
    else:
        core.data.unset(option)
    return 0


def history(core, args: list[str]) -> int:
    """Print the history file followed by this session's history, numbered."""
    filename = core.data.get_param("HISTFILE")
    if not filename:
        return 0

    try:
        with open(filename, encoding="utf-8", errors="replace") as f:
            saved = f.read().splitlines()
    except OSError:
        return 0

    entries = saved + list(reversed(core.history))
    for number, entry in enumerate(entries, start=1):
        print(f"{number:5} {entry}")
    return 0