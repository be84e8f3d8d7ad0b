"""Data models for the process supervisor."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Union


class SupervisorState(Enum):
    """Lifecycle of the supervisor."""
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class Task:
    """A named package script the supervisor runs as a child process."""
    
    name: str


@dataclass(frozen=True)
class LaunchCommand:
    """Executable plus arguments used to start a task."""
    
    command: str
    args: List[str] = field(default_factory=list)
    
    @property
    def argv(self) -> List[str]:
        return [self.command, *self.args]
    
    def __str__(self) -> str:
        return " ".join(self.argv)


@dataclass
class ChildHandle:
    """The supervisor's record of one spawned OS process."""
    
    task: Task
    launch: LaunchCommand
    process: Any
    killed: bool = False
    returncode: Optional[int] = None
    
    @property
    def pid(self) -> Optional[int]:
        return getattr(self.process, "pid", None)
    
    @property
    def is_running(self) -> bool:
        """Not known to be dead: no exit observed and no kill delivered."""
        return self.returncode is None and not self.killed


@dataclass(frozen=True)
class ChildExited:
    """A child process exited, normally or from a signal."""
    
    task: Task
    returncode: Optional[int]
    signal: Optional[int] = None
    
    @classmethod
    def from_returncode(cls, task: Task, returncode: int) -> "ChildExited":
        """Build from a subprocess return code (negative means killed by signal)."""
        if returncode < 0:
            return cls(task=task, returncode=None, signal=-returncode)
        return cls(task=task, returncode=returncode)
    
    @property
    def exit_code(self) -> int:
        if self.returncode is not None:
            return self.returncode
        return 1 if self.signal else 0


@dataclass(frozen=True)
class ChildFailed:
    """A child could not be launched, or errored at runtime."""
    
    task: Task
    error: BaseException


@dataclass(frozen=True)
class SignalReceived:
    """The supervisor itself was asked to terminate."""
    
    signum: int


Event = Union[ChildExited, ChildFailed, SignalReceived]
