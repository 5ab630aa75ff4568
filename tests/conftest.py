"""Shared fixtures for the Solix tests."""

import os
from typing import List, NamedTuple, Optional

import pytest

from solix.context import ShellContext
from solix.history import HistoryBuffer
from solix.process import ExitOutcome


class SpawnCall(NamedTuple):
    kind: str
    path: Optional[str]
    argv: List[str]
    stdin: Optional[int]
    stdout: Optional[int]


class FakeProcess:
    def __init__(self, outcome, pid):
        self.outcome = outcome
        self.pid = pid

    def wait(self):
        return self.outcome


class FakeSpawner:
    """Records what would have been started instead of forking.

    Every name resolves to /fake/bin/<name> unless listed in `missing`;
    `outcomes` maps a program name to the ExitOutcome it reports.
    """

    def __init__(self, outcomes=None, missing=()):
        self.outcomes = dict(outcomes or {})
        self.missing = set(missing)
        self.calls: List[SpawnCall] = []

    def resolve(self, name):
        if name in self.missing:
            return None
        return f"/fake/bin/{name}"

    def _finish(self, argv):
        return FakeProcess(self.outcomes.get(argv[0], ExitOutcome.exited(0)), 1000 + len(self.calls))

    def spawn(self, path, argv, stdin=None, stdout=None):
        self.calls.append(SpawnCall("spawn", path, list(argv), stdin, stdout))
        return self._finish(argv)

    def fork(self, func, argv, stdin=None, stdout=None, close=()):
        self.calls.append(SpawnCall("fork", None, list(argv), stdin, stdout))
        return self._finish(argv)

    def argvs(self):
        return [call.argv for call in self.calls]


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep HOME, the history file and the working directory inside tmp_path."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("SOLIX_HISTFILE", raising=False)
    monkeypatch.delenv("SOLIX_HISTSIZE", raising=False)
    monkeypatch.chdir(tmp_path)
    saved = dict(os.environ)
    yield home
    # builtins such as export and cd write straight into os.environ
    os.environ.clear()
    os.environ.update(saved)


@pytest.fixture
def make_ctx():
    """Build a context around a FakeSpawner with scripted outcomes."""
    def factory(outcomes=None, missing=()):
        return ShellContext(
            history=HistoryBuffer(capacity=10),
            spawner=FakeSpawner(outcomes, missing)
        )
    return factory


@pytest.fixture
def ctx(make_ctx):
    """A shell context whose external commands go to the fake spawner."""
    return make_ctx()


@pytest.fixture
def real_ctx():
    """A shell context that starts real processes."""
    return ShellContext(history=HistoryBuffer(capacity=10))


@pytest.fixture
def history_file(tmp_path):
    return tmp_path / "history.txt"


@pytest.fixture
def sh_path():
    for candidate in ("/bin/sh", "/usr/bin/sh"):
        if os.access(candidate, os.X_OK):
            return candidate
    pytest.skip("no /bin/sh available")
