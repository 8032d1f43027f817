"""The ``set`` and ``shopt`` builtins."""

from __future__ import annotations

import sys

from .options import InvalidOptionError

_SET_FLAGS = "xve"


def _err(message: str) -> None:
    print(message, file=sys.stderr)


def format_variable(key: str, value) -> str:
    """Format a variable the way ``set`` with no arguments lists it."""
    if isinstance(value, list):
        inner = " ".join(f'[{i}]="{v}"' for i, v in enumerate(value))
        return f"{key}=({inner})"
    return f"{key}={value}"


def _print_variables(core) -> int:
    for key in core.data.keys():
        value = core.data.get_value(key)
        if value is not None:
            print(format_variable(key, value))
    return 0


def set_parameters(core, args: list[str]) -> int:
    """Replace the current positional parameters; ``args[0]`` becomes ``$0``."""
    if not core.data.position_parameters:
        raise RuntimeError("empty param stack")
    core.data.position_parameters.pop()
    core.data.position_parameters.append(list(args))
    return 0


def _set_flag(core, flag: str, sign: str) -> None:
    flags = core.data.flags
    if sign == "+":
        core.data.flags = flags.replace(flag, "")
    elif flag not in flags:
        core.data.flags = flags + flag


def _set_flags(core, args: list[str]) -> int:
    for arg in args:
        if arg.startswith("--"):
            return 0
        sign = arg[0]
        for flag in arg[1:]:
            if flag not in _SET_FLAGS:
                _err(f"sush: set: {sign}{flag}: invalid option")
                return 2
            _set_flag(core, flag, sign)
    return 0


def _set_named_option(core, args: list[str], on: bool) -> int:
    if len(args) == 2:
        lines = core.options.listing() if on else core.options.set_listing()
        for line in lines:
            print(line)
        return 0
    try:
        core.options.set(args[2], on)
    except InvalidOptionError as err:
        _err(f"sush: shopt: {err}")
        return 2
    return 0


def set_(core, args: list[str]) -> int:
    """Show variables, set flags and named options, or set positional parameters."""
    if not args:
        raise ValueError("set needs at least the command name")

    if len(args) == 1:
        if args[0] == "set":
            return _print_variables(core)
        return set_parameters(core, args)

    first = args[1]
    if first.startswith("--"):
        return set_parameters(core, args[1:])
    if first == "-o":
        return _set_named_option(core, args, True)
    if first == "+o":
        return _set_named_option(core, args, False)
    if first.startswith(("-", "+")):
        return _set_flags(core, args[1:])
    return set_parameters(core, args)


def shopt_print(core, args: list[str], all: bool) -> int:
    """Print all shell options, those in one state, or a single one."""
    if all:
        for line in core.shopts.listing():
            print(line)
        return 0

    arg = args[1]
    if arg in ("-s", "-u"):
        for line in core.shopts.listing_if(arg == "-s"):
            print(line)
        return 0

    try:
        print(core.shopts.describe(arg))
    except InvalidOptionError as err:
        _err(f"sush: shopt: {err}")
        return 1
    return 0


def shopt(core, args: list[str]) -> int:
    """Show or change shell options."""
    if len(args) < 3:
        return shopt_print(core, args, len(args) < 2)

    mode = args[1]
    if mode not in ("-s", "-u"):
        _err(f"sush: shopt: {mode}: invalid shell option name")
        _err("shopt: usage: shopt [-su] [optname ...]")
        return 1

    try:
        core.shopts.set(args[2], mode == "-s")
    except InvalidOptionError as err:
        _err(f"sush: shopt: {err}")
        return 1
    return 0