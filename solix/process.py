"""
Process spawning for the launcher.

Spawner is the only place that creates OS processes. The executor talks to it
through resolve/spawn/fork and gets back handles whose wait() yields an
ExitOutcome, so tests can swap in a fake spawner and never fork.
"""
import logging
import os
import shutil
import subprocess
import sys
from dataclasses import dataclass
from typing import Optional

from solix import config
from solix.signals import reset_child_signals

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExitOutcome:
    """How a child ended: a normal exit code or the signal that killed it."""

    code: Optional[int] = None
    signal: Optional[int] = None

    @classmethod
    def exited(cls, code):
        return cls(code=code)

    @classmethod
    def signaled(cls, signum):
        return cls(signal=signum)

    @classmethod
    def from_returncode(cls, returncode):
        # subprocess reports death by signal N as -N
        if returncode < 0:
            return cls.signaled(-returncode)
        return cls.exited(returncode)

    @property
    def status(self):
        if self.signal is not None:
            return config.STATUS_SIGNAL_BASE + self.signal
        return self.code


class PopenProcess:
    def __init__(self, popen):
        self.popen = popen
        self.pid = popen.pid

    def wait(self):
        return ExitOutcome.from_returncode(self.popen.wait())


class ForkedProcess:
    def __init__(self, pid):
        self.pid = pid

    def wait(self):
        _, status = os.waitpid(self.pid, 0)
        return ExitOutcome.from_returncode(os.waitstatus_to_exitcode(status))


class FinishedProcess:
    """A stage that never started; wait() returns the outcome decided up front."""

    pid = None

    def __init__(self, outcome):
        self.outcome = outcome

    def wait(self):
        return self.outcome


def _flush_std_streams():
    for stream in (sys.stdout, sys.stderr):
        try:
            stream.flush()
        except (OSError, ValueError):
            pass


class Spawner:
    """Creates real child processes."""

    def resolve(self, name):
        """PATH lookup; None when no executable matches."""
        return shutil.which(name, path=config.search_path())

    def spawn(self, path, argv, stdin=None, stdout=None):
        """
        Start an external program.
        stdin/stdout are file descriptors to install as fd 0/1, or None to inherit.
        """
        _flush_std_streams()
        popen = subprocess.Popen(
            argv,
            executable=path,
            stdin=stdin,
            stdout=stdout,
            preexec_fn=reset_child_signals
        )
        logger.debug("spawned %s as pid %d", argv, popen.pid)
        return PopenProcess(popen)

    def fork(self, func, argv, stdin=None, stdout=None, close=()):
        """
        Run func() in a forked child whose exit status is func's return value.
        Used for builtins that need their own stdout, e.g. a pipeline stage.
        """
        _flush_std_streams()
        pid = os.fork()
        if pid == 0:
            status = 1
            try:
                status = _run_forked(func, stdin, stdout, close)
            finally:
                os._exit(status)
        logger.debug("forked %s as pid %d", argv, pid)
        return ForkedProcess(pid)


def _run_forked(func, stdin, stdout, close):
    status = 1
    try:
        reset_child_signals()
        if stdin is not None:
            os.dup2(stdin, 0)
        if stdout is not None:
            os.dup2(stdout, 1)
        for fd in {stdin, stdout, *close} - {None, 0, 1, 2}:
            os.close(fd)
        # print() must reach the new fd 0/1 even when sys.std* were replaced
        sys.stdin = open(0, closefd=False)
        sys.stdout = open(1, "w", closefd=False)
        sys.stderr = open(2, "w", closefd=False)
        status = func()
    except Exception as e:
        print(f"solix: {e}", file=sys.stderr)
    finally:
        _flush_std_streams()
    return status & 0xFF
