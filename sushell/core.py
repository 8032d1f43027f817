"""The shell's central state: variables, options, jobs, history and process waiting."""

from __future__ import annotations

import fcntl
import os
import resource
import signal
import sys
import threading
import time
from pathlib import Path
from typing import Callable, Optional

from .builtins import (
    alias,
    break_,
    cd,
    exit_,
    false_,
    history,
    pwd,
    read,
    return_,
    true_,
    unset,
)
from .data import Data
from .jobs import JobEntry, StatusKind, WaitStatus, bg, fg, jobs, wait
from .options import Options
from .setcmd import set_, shopt

_VERSION = "0.1.0"

Builtin = Callable[["ShellCore", list], int]


def _err(message: str) -> None:
    print(message, file=sys.stderr)


def _ignore_signal(sig: int) -> None:
    signal.signal(sig, signal.SIG_IGN)


def _restore_signal(sig: int) -> None:
    signal.signal(sig, signal.SIG_DFL)


def _parse_int(text: str) -> Optional[int]:
    stripped = text[1:] if text[:1] in "+-" else text
    if not stripped or not stripped.isascii() or not stripped.isdigit():
        return None
    return int(text)


def _truncated_mod(n: int, m: int) -> int:
    r = abs(n) % m
    return -r if n < 0 else r


def _format_duration(label: str, seconds: float) -> str:
    micros = max(0, round(seconds * 1_000_000))
    whole, frac = divmod(micros, 1_000_000)
    return f"{label}\t{whole // 60}m{whole % 60}.{frac:06}s"


def _rusage_times() -> tuple[float, float]:
    own = resource.getrusage(resource.RUSAGE_SELF)
    children = resource.getrusage(resource.RUSAGE_CHILDREN)
    return own.ru_utime + children.ru_utime, own.ru_stime + children.ru_stime


class ShellCore:
    """Everything a running shell keeps between commands."""

    def __init__(self) -> None:
        self.data = Data()
        self._rewritten_history: dict[int, str] = {}
        self.history: list[str] = []
        self.builtins: dict[str, Builtin] = {}
        self.sigint = threading.Event()
        self.read_stdin = True
        self.word_eval_error = False
        self.is_subshell = False
        self.source_function_level = 0
        self.source_level = 0
        self.eval_level = 0
        self.loop_level = 0
        self.break_counter = 0
        self.return_flag = False
        self.tty_fd: Optional[int] = None
        self.job_table: list[JobEntry] = []
        self.job_table_priority: list[int] = []
        self._current_dir: Optional[Path] = None
        self.completion_functions: dict[str, str] = {}
        self.real_time = 0.0
        self.user_time = 0.0
        self.sys_time = 0.0
        self.options = Options.basic()
        self.shopts = Options.shopts()
        self.suspend_e_option = False
        self.script_name = "-"

        self._init_current_directory()
        self._set_initial_parameters()
        self._set_builtins()
        _ignore_signal(signal.SIGPIPE)
        _ignore_signal(signal.SIGTSTP)

        self.data.set_param("PS4", "+ ")

        if os.isatty(0):
            _err(f"Rusty Bash (a.k.a. Sushi shell), version {_VERSION}")
            self.data.flags += "i"
            self.read_stdin = False
            self.data.set_param("PS1", "🍣 ")
            self.data.set_param("PS2", "> ")
            self.tty_fd = fcntl.fcntl(2, fcntl.F_DUPFD_CLOEXEC, 255)

        home = self.data.get_param("HOME")
        self.data.set_param("HISTFILE", home + "/.sush_history")
        self.data.set_param("HISTFILESIZE", "2000")

    def _set_initial_parameters(self) -> None:
        pid = str(os.getpid())
        self.data.set_param("$", pid)
        self.data.set_param("BASHPID", pid)
        self.data.set_param("BASH_SUBSHELL", "0")
        self.data.set_param("BASH_VERSION", _VERSION + "-rusty_bash")
        self.data.set_param("?", "0")
        self.data.set_param("HOME", os.environ.get("HOME", "/"))

    def _set_builtins(self) -> None:
        self.builtins.update(
            {
                ":": true_,
                "alias": alias,
                "bg": bg,
                "break": break_,
                "cd": cd,
                "exit": exit_,
                "false": false_,
                "fg": fg,
                "history": history,
                "jobs": jobs,
                "pwd": pwd,
                "read": read,
                "return": return_,
                "set": set_,
                "shopt": shopt,
                "unset": unset,
                "true": true_,
                "wait": wait,
            }
        )

    # ---- processes -------------------------------------------------------

    def wait_process(self, pid: Optional[int]) -> WaitStatus:
        """Wait for a child, store its exit status in ``$?`` and return its state."""
        if pid is None:
            raise RuntimeError("no pid to wait for")
        flags = 0 if self.is_subshell else os.WUNTRACED | os.WCONTINUED
        try:
            got, raw = os.waitpid(pid, flags)
        except OSError as err:
            raise RuntimeError(f"Error: {err!r}") from err
        status = WaitStatus.from_raw(got, raw)

        if status.kind is StatusKind.EXITED:
            exit_status = status.code
        elif status.kind is StatusKind.SIGNALED:
            suffix = " (core dumped)" if status.coredump else ""
            _err(f"Pid: {status.pid}, Signal: {status.code}{suffix}")
            exit_status = 128 + status.code
        elif status.kind is StatusKind.STOPPED:
            _err(f"Stopped Pid: {status.pid}, Signal: {status.code}")
            exit_status = 148
        else:
            _err(f"sush: Unsupported wait status: {status}")
            exit_status = 1

        if exit_status == 130:
            self.sigint.set()
        self.data.set_layer_param("?", str(exit_status), 0)
        return status

    def _set_foreground(self) -> None:
        fd = self.tty_fd
        if fd is None:
            return
        pgid = os.getpgid(0)
        try:
            if os.tcgetpgrp(fd) == pgid:
                return
        except OSError:
            pass
        _ignore_signal(signal.SIGTTOU)
        try:
            os.tcsetpgrp(fd, pgid)
        finally:
            _restore_signal(signal.SIGTTOU)

    def _flip_exit_status(self) -> None:
        self.data.set_param("?", "1" if self.data.get_param("?") == "0" else "0")

    def _show_time(self) -> None:
        real = time.monotonic() - self.real_time
        user, system = _rusage_times()
        _err("\n" + _format_duration("real", real))
        _err(_format_duration("user", user - self.user_time))
        _err(_format_duration("sys ", system - self.sys_time))

    def _check_e_option(self) -> None:
        if (
            self.data.get_param("?") != "0"
            and "e" in self.data.flags
            and not self.suspend_e_option
        ):
            self.exit()

    def wait_pipeline(
        self, pids: list, exclamation: bool, time: bool
    ) -> list[WaitStatus]:
        """Wait for every process of a pipeline and settle ``$?`` and ``PIPESTATUS``."""
        if len(pids) == 1 and pids[0] is None:
            if time:
                self._show_time()
            if exclamation:
                self._flip_exit_status()
            self._check_e_option()
            return []

        statuses = []
        pipestatus = []
        for pid in pids:
            statuses.append(self.wait_process(pid))
            pipestatus.append(self.data.get_param("?"))

        if time:
            self._show_time()
        self._set_foreground()
        self.data.set_layer_array("PIPESTATUS", pipestatus, 0)

        if self.options.query("pipefail"):
            failed = [s for s in pipestatus if s != "0"]
            if failed:
                self.data.set_param("?", failed[-1])

        if exclamation:
            self._flip_exit_status()
        self._check_e_option()
        return statuses

    def run_builtin(self, args: list[str], special_args: list[str]) -> bool:
        """Run ``args[0]`` as a builtin if it is one; return whether it was."""
        if not args:
            raise RuntimeError("no arg for builtins")
        func = self.builtins.get(args[0])
        if func is None:
            return False
        status = func(self, args + special_args)
        self.data.set_layer_param("?", str(status), 0)
        return True

    def exit(self):
        """Save history and leave with the status in ``$?``."""
        self.write_history_to_file()
        text = self.data.get_param("?")
        n = _parse_int(text)
        if n is None or not -(2**31) <= n < 2**31:
            _err(f"sush: exit: {text}: numeric argument required")
            code = 2
        else:
            code = _truncated_mod(n, 256)
        raise SystemExit(code)

    def _set_subshell_parameters(self) -> None:
        self.data.set_layer_param("BASHPID", str(os.getpid()), 0)
        level = self.data.get_param("BASH_SUBSHELL")
        if level.isascii() and level.isdigit():
            self.data.set_layer_param("BASH_SUBSHELL", str(int(level) + 1), 0)
        else:
            self.data.set_layer_param("BASH_SUBSHELL", "0", 0)

    def set_pgid(self, pid: int, pgid: int) -> None:
        """Put ``pid`` into process group ``pgid``; take the terminal for a new group."""
        try:
            os.setpgid(pid, pgid)
        except OSError:
            pass
        if pid == 0 and pgid == 0:
            self._set_foreground()

    def initialize_as_subshell(self, pid: int, pgid: int) -> None:
        """Turn this state into that of a forked subshell."""
        _restore_signal(signal.SIGINT)
        _restore_signal(signal.SIGTSTP)
        _restore_signal(signal.SIGPIPE)

        self.is_subshell = True
        self.set_pgid(pid, pgid)
        self._set_subshell_parameters()
        self.job_table.clear()

    # ---- directories -----------------------------------------------------

    def _init_current_directory(self) -> None:
        try:
            self._current_dir = Path(os.getcwd())
        except OSError as err:
            _err(f"sush: pwd: error retrieving current directory: {err!r}")

    def get_current_directory(self) -> Optional[Path]:
        """The shell's idea of its working directory, or None if unknown."""
        if self._current_dir is None:
            self._init_current_directory()
        return self._current_dir

    def set_current_directory(self, path) -> None:
        """Change directory; raises OSError if that fails."""
        os.chdir(path)
        self._current_dir = Path(path)

    def get_ps4(self) -> str:
        """The ``set -x`` prefix, repeated once more per source or eval level."""
        ps4 = self.data.get_param("PS4").rstrip()
        return ps4 * (1 + self.source_level + self.eval_level)

    # ---- history ---------------------------------------------------------

    def fetch_history(self, pos: int, prev: int, prev_str: str) -> str:
        """Store the edited entry at ``prev`` and return the entry at ``pos``."""
        if prev < len(self.history):
            self.history[prev] = prev_str
        else:
            self._rewritten_history[prev + 1 - len(self.history)] = prev_str

        if pos < len(self.history):
            return self.history[pos]
        return self.fetch_history_file(pos + 1 - len(self.history))

    def fetch_history_file(self, pos: int) -> str:
        """Entry ``pos`` counted back from the end of the history file (1 is the last)."""
        if pos in self._rewritten_history:
            return self._rewritten_history[pos]
        if pos == 0:
            return ""

        line = pos - 1
        size = self.data.get_param("HISTFILESIZE")
        if size.isascii() and size.isdigit() and int(size) > 0:
            line %= int(size)

        try:
            with open(
                self.data.get_param("HISTFILE"), encoding="utf-8", errors="replace"
            ) as f:
                lines = f.read().splitlines()
        except OSError:
            return ""

        lines.reverse()
        return lines[line] if line < len(lines) else ""

    def write_history_to_file(self) -> None:
        """Append this session's history to ``$HISTFILE`` in an interactive shell."""
        if "i" not in self.data.flags or self.is_subshell:
            return
        filename = self.data.get_param("HISTFILE")
        if not filename:
            _err("sush: HISTFILE is not set")
            return
        try:
            with open(filename, "a", encoding="utf-8") as f:
                for entry in reversed(self.history):
                    if entry:
                        f.write(entry + "\n")
        except OSError:
            _err("sush: invalid history file")