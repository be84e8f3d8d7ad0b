"""
Pytest configuration and fixtures for devrun tests.
"""

import sys
from pathlib import Path

import pytest
import structlog

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from devrun.supervisor.models import ChildExited, ChildFailed, LaunchCommand
from devrun.supervisor.timer import ExitTimer


SUPERVISOR_ENV_VARS = (
    "npm_execpath",
    "npm_node_execpath",
    "NODE",
    "DEVRUN_TASKS",
    "DEVRUN_GRACE_PERIOD_MS",
    "DEVRUN_LOG_LEVEL",
    "DEVRUN_LOG_FORMAT",
)


@pytest.fixture(autouse=True)
def clean_supervisor_env(monkeypatch):
    """
    Remove npm and devrun variables so every test starts from a bare environment.
    
    Tests that need one of them set it again with monkeypatch.setenv().
    """
    for name in SUPERVISOR_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield
    structlog.contextvars.clear_contextvars()


class FakeProcess:
    """Stands in for asyncio.subprocess.Process."""
    
    def __init__(self, pid: int, gone: bool = False):
        self.pid = pid
        self.returncode = None
        self.terminate_calls = 0
        self._gone = gone
        
    def terminate(self):
        if self._gone:
            raise ProcessLookupError(self.pid)
        self.terminate_calls += 1


class FakeProcessSource:
    """Records spawns and lets tests drive child lifecycle events by hand."""
    
    def __init__(self, fail_tasks=()):
        self.fail_tasks = set(fail_tasks)
        self.launches = []
        self.processes = []
        self.watched = []
        
    async def spawn(self, launch: LaunchCommand):
        self.launches.append(launch)
        if launch.args[-1] in self.fail_tasks:
            raise FileNotFoundError(2, "No such file or directory", launch.command)
        proc = FakeProcess(pid=1000 + len(self.processes))
        self.processes.append(proc)
        return proc
        
    def watch(self, child, callback):
        self.watched.append((child, callback))
        
    def exit(self, index: int, returncode: int):
        """Simulate the index-th watched child exiting."""
        child, callback = self.watched[index]
        child.returncode = returncode
        callback(ChildExited.from_returncode(child.task, returncode))
        
    def fail(self, index: int, error: BaseException):
        child, callback = self.watched[index]
        callback(ChildFailed(task=child.task, error=error))


class FakeScheduler:
    """Exit scheduler whose timers only fire when a test says so."""
    
    def __init__(self):
        self.timers = []
        
    def schedule(self, code, delay, callback):
        timer = ExitTimer(code, delay, callback)
        self.timers.append(timer)
        return timer
        
    @property
    def codes(self):
        return [timer.code for timer in self.timers]
        
    def fire_all(self):
        for timer in list(self.timers):
            timer.fire()


@pytest.fixture
def process_source():
    return FakeProcessSource()


@pytest.fixture
def scheduler():
    return FakeScheduler()
