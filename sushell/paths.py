"""Resolution of ``cd`` arguments into absolute and canonical paths."""

from __future__ import annotations

from pathlib import Path
from typing import Optional


def make_absolute_path(core, path: str) -> Optional[Path]:
    """Turn ``path`` into an absolute path.

    A leading ``~`` component is replaced by ``$HOME``; other relative
    paths are joined to the shell's current directory. Returns None when
    the needed base (home or current directory) is unknown.
    """
    candidate = Path(path)
    if candidate.is_absolute():
        return candidate

    if candidate.parts and candidate.parts[0] == "~":
        home = core.data.get_param("HOME")
        if not home:
            return None
        rest = path[2:] if path.startswith("~/") else path[1:]
        return Path(home) / rest

    cwd = core.get_current_directory()
    if cwd is None:
        return None
    return Path(cwd) / candidate


def make_canonical_path(core, path: str) -> Optional[Path]:
    """Absolute path with ``.`` and ``..`` components resolved lexically."""
    absolute = make_absolute_path(core, path)
    if absolute is None:
        return None

    anchor = absolute.anchor
    parts = absolute.parts[1:] if anchor else absolute.parts
    names: list[str] = []
    for part in parts:
        if part == "..":
            if names:
                names.pop()
        elif part != ".":
            names.append(part)

    if anchor:
        return Path(anchor, *names)
    return Path(*names)