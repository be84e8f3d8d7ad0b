"""Process management for supervised tasks."""

import asyncio
import os
from typing import Callable, Mapping, Optional, Set

import structlog

from devrun.core.exceptions import SpawnError
from .models import ChildExited, ChildFailed, ChildHandle, Event, LaunchCommand

logger = structlog.get_logger()

EventCallback = Callable[[Event], None]


class ProcessManager:
    """Spawns task processes and reports their lifecycle as events.
    
    Children share the supervisor's stdin, stdout and stderr and receive
    the full environment. No shell is involved.
    """
    
    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self.environ = os.environ if environ is None else environ
        self._watchers: Set[asyncio.Task] = set()
        
    async def spawn(self, launch: LaunchCommand) -> asyncio.subprocess.Process:
        """Start a child process. Raises ``SpawnError`` if it cannot be created."""
        try:
            proc = await asyncio.create_subprocess_exec(
                launch.command,
                *launch.args,
                stdin=None,
                stdout=None,
                stderr=None,
                env=dict(self.environ),
            )
        except OSError as e:
            raise SpawnError(launch.command, e) from e
        logger.debug("Process spawned", command=str(launch), pid=proc.pid)
        return proc
        
    def watch(self, child: ChildHandle, callback: EventCallback) -> asyncio.Task:
        """Report the child's exit (or a wait error) to ``callback``."""
        watcher = asyncio.create_task(self._wait(child, callback))
        self._watchers.add(watcher)
        watcher.add_done_callback(self._watchers.discard)
        return watcher
        
    async def _wait(self, child: ChildHandle, callback: EventCallback) -> None:
        try:
            returncode = await child.process.wait()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            callback(ChildFailed(task=child.task, error=e))
            return
            
        child.returncode = returncode
        callback(ChildExited.from_returncode(child.task, returncode))
        
    async def stop(self) -> None:
        """Cancel outstanding exit watchers."""
        for watcher in list(self._watchers):
            watcher.cancel()
        if self._watchers:
            await asyncio.gather(*self._watchers, return_exceptions=True)
