"""Process supervision: run a fixed set of tasks and stop them together."""

from .supervisor import Supervisor
from .process_manager import ProcessManager
from .launcher import resolve_launch_command

__all__ = ["Supervisor", "ProcessManager", "resolve_launch_command"]
