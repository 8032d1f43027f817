"""Job table entries and the job control builtins bg, fg, jobs and wait."""

from __future__ import annotations

import os
import re
import signal
import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class StatusKind(Enum):
    """What ``waitpid`` reported about a process."""

    STILL_ALIVE = "still_alive"
    EXITED = "exited"
    SIGNALED = "signaled"
    STOPPED = "stopped"
    CONTINUED = "continued"


@dataclass(frozen=True)
class WaitStatus:
    """State of one process; ``code`` is an exit status or a signal number."""

    kind: StatusKind
    pid: int = 0
    code: int = 0
    coredump: bool = False

    @classmethod
    def still_alive(cls) -> WaitStatus:
        return cls(StatusKind.STILL_ALIVE)

    @classmethod
    def exited(cls, pid: int, code: int) -> WaitStatus:
        return cls(StatusKind.EXITED, pid, code)

    @classmethod
    def signaled(cls, pid: int, sig: int, coredump: bool = False) -> WaitStatus:
        return cls(StatusKind.SIGNALED, pid, int(sig), coredump)

    @classmethod
    def stopped(cls, pid: int, sig: int) -> WaitStatus:
        return cls(StatusKind.STOPPED, pid, int(sig))

    @classmethod
    def continued(cls, pid: int) -> WaitStatus:
        return cls(StatusKind.CONTINUED, pid)

    @classmethod
    def from_raw(cls, pid: int, status: int) -> WaitStatus:
        """Decode a ``(pid, status)`` pair as returned by ``os.waitpid``."""
        if pid == 0:
            return cls.still_alive()
        if os.WIFEXITED(status):
            return cls.exited(pid, os.WEXITSTATUS(status))
        if os.WIFSIGNALED(status):
            return cls.signaled(pid, os.WTERMSIG(status), os.WCOREDUMP(status))
        if os.WIFSTOPPED(status):
            return cls.stopped(pid, os.WSTOPSIG(status))
        if os.WIFCONTINUED(status):
            return cls.continued(pid)
        return cls.still_alive()

    @property
    def still(self) -> bool:
        """Whether the process may still change state."""
        return self.kind in (
            StatusKind.STILL_ALIVE,
            StatusKind.STOPPED,
            StatusKind.CONTINUED,
        )


_SIGNAL_NAMES = [
    ("SIGHUP", "Hangup"),
    ("SIGINT", "Interrupt"),
    ("SIGQUIT", "Quit"),
    ("SIGILL", "Illeagal instruction"),
    ("SIGTRAP", "Trace/breakpoint trap"),
    ("SIGABRT", "Aborted"),
    ("SIGBUS", "Bus error"),
    ("SIGFPE", "Floating point exception"),
    ("SIGKILL", "Killed"),
    ("SIGUSR1", "User defined signal 1"),
    ("SIGSEGV", "Segmentation fault"),
    ("SIGUSR2", "User defined signal 2"),
    ("SIGPIPE", "Broken pipe"),
    ("SIGALRM", "Alarm clock"),
    ("SIGTERM", "Terminated"),
    ("SIGXCPU", "CPU time limit exceeded"),
    ("SIGXFSZ", "File size limit exceeded"),
    ("SIGVTALRM", "Virtual timer expired"),
    ("SIGPROF", "Profiling timer expired"),
    ("SIGSYS", "Bad system call"),
]

_SIGNAL_MESSAGES = {
    int(getattr(signal, name)): message
    for name, message in _SIGNAL_NAMES
    if hasattr(signal, name)
}


def signal_description(sig: int, coredump: bool) -> str:
    """Text that ``jobs`` shows for a job killed by ``sig``."""
    message = _SIGNAL_MESSAGES.get(int(sig), "")
    if coredump:
        message += "    (core dumped)"
    return message


def _waitpid(pid: int, flags: int) -> WaitStatus:
    try:
        got, status = os.waitpid(pid, flags)
    except OSError as err:
        raise RuntimeError(f"wrong pid wait: {pid}") from err
    return WaitStatus.from_raw(got, status)


def _wait_nonblock(pid: int, status: WaitStatus) -> WaitStatus:
    flags = os.WNOHANG | os.WUNTRACED | os.WCONTINUED
    new = _waitpid(pid, flags)
    if new.kind is StatusKind.STILL_ALIVE and status.still:
        return status
    return new


def _wait_block(pid: int) -> tuple[WaitStatus, int]:
    new = _waitpid(pid, os.WUNTRACED)
    if new.kind is StatusKind.EXITED:
        return new, new.code
    if new.kind is StatusKind.STOPPED:
        return new, 148
    if new.kind is StatusKind.SIGNALED:
        return new, new.code + 128
    return new, 1


@dataclass
class JobEntry:
    """One job of the job table: the processes of a background pipeline."""

    id: int
    pids: list
    proc_statuses: list
    display_status: str
    text: str
    change: bool = False

    def __post_init__(self) -> None:
        self.pids = [p for p in self.pids if p is not None]
        self.proc_statuses = list(self.proc_statuses)

    def update_status(self, wait: bool) -> int:
        """Poll (or wait for) the job's processes and refresh its display status."""
        exit_status = 0
        before = self.proc_statuses[0]
        for index, pid in enumerate(self.pids[: len(self.proc_statuses)]):
            status = self.proc_statuses[index]
            if not status.still:
                continue
            if wait:
                self.proc_statuses[index], exit_status = _wait_block(pid)
            else:
                self.proc_statuses[index] = _wait_nonblock(pid, status)
        self.change |= before != self.proc_statuses[0]

        if any(s.kind is StatusKind.STOPPED for s in self.proc_statuses):
            self.display_status = "Stopped"
            return 148

        if self.display_status == "Stopped" or self.change:
            self._change_display_status(self.proc_statuses[0])

        return exit_status

    def _change_display_status(self, after: WaitStatus) -> None:
        if after.kind is StatusKind.EXITED:
            self.display_status = "Done"
        elif after.kind is StatusKind.STOPPED:
            self.display_status = "Stopped"
        elif after.kind is StatusKind.CONTINUED:
            self.display_status = "Running"
        elif after.kind is StatusKind.SIGNALED:
            self.display_status = signal_description(after.code, after.coredump)

    def format(self, priority: list) -> str:
        """The line ``jobs`` prints; ``+`` marks the current job, ``-`` the previous."""
        if priority and priority[0] == self.id:
            mark = "+"
        elif len(priority) > 1 and priority[1] == self.id:
            mark = "-"
        else:
            mark = " "
        return f"[{self.id}]{mark}  {self.display_status}     {self.text}"

    def send_cont(self) -> None:
        """Send SIGCONT to the process group of every process of the job."""
        for pid in self.pids:
            try:
                os.kill(-pid, signal.SIGCONT)
            except OSError:
                pass

    def solve_pgid(self) -> int:
        """The process group of the job, or 0 when none can be found."""
        for pid in self.pids:
            try:
                return os.getpgid(pid)
            except OSError:
                continue
        return 0


def check_status(core) -> None:
    """Poll every job without blocking."""
    for job in core.job_table:
        job.update_status(False)


def print_status_change(core) -> None:
    """Report jobs whose state changed and drop those that have finished."""
    for job in core.job_table:
        if job.change:
            print(job.format(core.job_table_priority))
            job.change = False

    core.job_table[:] = [
        job
        for job in core.job_table
        if job.proc_statuses[0].still or job.display_status == "Stopped"
    ]
    ids = {job.id for job in core.job_table}
    core.job_table_priority[:] = [i for i in core.job_table_priority if i in ids]


def new_job_id(core) -> int:
    """The id for the next job: one more than the last job's."""
    if not core.job_table:
        return 1
    return core.job_table[-1].id + 1


_JOB_NUMBER = re.compile(r"\+?[0-9]+")


def arg_to_id(arg: str, priority: list) -> int:
    """Resolve ``%+``, ``%-`` or ``%N`` to a job id; 0 when it names none."""
    if arg == "%+":
        return priority[0] if priority else 0
    if arg == "%-":
        return priority[1] if len(priority) > 1 else 0
    if arg.startswith("%"):
        number = arg[1:]
        return int(number) if _JOB_NUMBER.fullmatch(number) else 0
    return 0


def _find_job(job_id: int, jobs: list) -> Optional[JobEntry]:
    return next((job for job in jobs if job.id == job_id), None)


def _target_id(core, args: list[str]) -> Optional[int]:
    if len(args) == 1:
        if not core.job_table_priority:
            return None
        return core.job_table_priority[0]
    if len(args) == 2:
        return arg_to_id(args[1], core.job_table_priority)
    return None


def bg(core, args: list[str]) -> int:
    """Let a stopped job continue in the background."""
    job_id = _target_id(core, args)
    if job_id is None:
        return 1
    job = _find_job(job_id, core.job_table)
    if job is None:
        return 1
    job.send_cont()
    return 0


def fg(core, args: list[str]) -> int:
    """Bring a job to the foreground and wait for it."""
    fd = core.tty_fd
    if fd is None:
        return 1

    job_id = _target_id(core, args)
    if job_id is None:
        return 1
    job = _find_job(job_id, core.job_table)
    if job is None:
        return 1

    pgid = job.solve_pgid()
    if pgid == 0:
        return 1

    signal.signal(signal.SIGTTOU, signal.SIG_IGN)
    exit_status = 1
    try:
        try:
            os.tcsetpgrp(fd, pgid)
        except OSError:
            return exit_status
        print(job.text, file=sys.stderr)
        job.send_cont()
        exit_status = job.update_status(True)
        try:
            os.tcsetpgrp(fd, os.getpgid(0))
        except OSError:
            pass
    finally:
        signal.signal(signal.SIGTTOU, signal.SIG_DFL)
    return exit_status


def jobs(core, args: list[str]) -> int:
    """List the job table."""
    for job in core.job_table:
        print(job.format(core.job_table_priority))
    return 0


def wait(core, args: list[str]) -> int:
    """Wait for all jobs, or for the one named by the argument."""
    if len(args) <= 1:
        for job in core.job_table:
            job.update_status(True)
        return 0

    job = _find_job(arg_to_id(args[1], core.job_table_priority), core.job_table)
    if job is None:
        return 1
    job.update_status(True)
    return 0