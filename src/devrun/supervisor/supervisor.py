"""Main process supervisor implementation."""

import asyncio
import signal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import structlog

from devrun.core.exceptions import ConfigurationError, SpawnError
from .launcher import resolve_launch_command
from .models import (
    ChildExited,
    ChildFailed,
    ChildHandle,
    Event,
    SignalReceived,
    SupervisorState,
    Task,
)
from .process_manager import ProcessManager
from .timer import ExitTimer, LoopExitScheduler

logger = structlog.get_logger()

DEFAULT_GRACE_PERIOD = 0.1
SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class Supervisor:
    """Runs a fixed list of tasks and tears them all down together.
    
    The first child exit, spawn error or termination signal starts the
    shutdown: every live child gets a termination request and the
    supervisor exits after a short grace period with a single code.
    
    All state transitions go through :meth:`handle`, which runs on the
    event loop thread only.
    """
    
    def __init__(
        self,
        tasks: Iterable[Union[str, Task]],
        process_source=None,
        scheduler=None,
        grace_period: float = DEFAULT_GRACE_PERIOD,
        environ: Optional[Mapping[str, str]] = None,
        platform: Optional[str] = None,
    ):
        self.tasks: List[Task] = [t if isinstance(t, Task) else Task(t) for t in tasks]
        if not self.tasks:
            raise ConfigurationError("No tasks to run", code="no_tasks")
            
        self.process_source = process_source or ProcessManager(environ)
        self.scheduler = scheduler or LoopExitScheduler()
        self.grace_period = grace_period
        self.environ = environ
        self.platform = platform
        
        self.children: List[ChildHandle] = []
        self.shutting_down = False
        self.state = SupervisorState.RUNNING
        self.exit_code: Optional[int] = None
        self.exit_timers: List[ExitTimer] = []
        self._exited: Optional[asyncio.Future] = None
        self._previous_handlers: Dict[int, Any] = {}

    async def start(self, task: Union[str, Task]) -> Optional[ChildHandle]:
        """Spawn ``task`` and watch it. Returns None if nothing was started."""
        if not isinstance(task, Task):
            task = Task(task)
        if self.shutting_down:
            logger.debug("Shutdown in progress, not starting task", task=task.name)
            return None
            
        launch = resolve_launch_command(task, self.environ, self.platform)
        logger.info("Starting task", task=task.name, command=str(launch))
        
        try:
            process = await self.process_source.spawn(launch)
        except (SpawnError, OSError) as e:
            self.handle(ChildFailed(task=task, error=e))
            return None
            
        child = ChildHandle(task=task, launch=launch, process=process)
        self.children.append(child)
        
        # A signal may have arrived while the spawn was in flight.
        if self.shutting_down:
            self._terminate(child)
            
        self.process_source.watch(child, self.handle)
        return child
        
    def handle(self, event: Event) -> None:
        """Apply one lifecycle event to the supervisor."""
        if isinstance(event, ChildExited):
            logger.info(
                "Task exited",
                task=event.task.name,
                returncode=event.returncode,
                signal=event.signal,
            )
            if not self.shutting_down:
                self.shutdown(event.exit_code)
                
        elif isinstance(event, ChildFailed):
            logger.error("Failed to run task", task=event.task.name, error=str(event.error))
            if not self.shutting_down:
                self.shutdown(1)
                
        elif isinstance(event, SignalReceived):
            logger.info("Received shutdown signal", signal=_signal_name(event.signum))
            self.shutdown(0)
            
        else:
            raise TypeError(f"Unknown supervisor event: {event!r}")
            
    def shutdown(self, code: int = 0) -> ExitTimer:
        """Terminate all children (once) and schedule exit with ``code``."""
        if not self.shutting_down:
            self.shutting_down = True
            self.state = SupervisorState.SHUTTING_DOWN
            logger.info("Shutting down", exit_code=code, children=len(self.children))
            for child in self.children:
                if child.is_running:
                    self._terminate(child)
                    
        timer = self.scheduler.schedule(code, self.grace_period, self._exit)
        self.exit_timers.append(timer)
        return timer
        
    def _terminate(self, child: ChildHandle) -> None:
        try:
            child.process.terminate()
        except ProcessLookupError:
            logger.debug("Task already gone", task=child.task.name, pid=child.pid)
            return
        child.killed = True
        logger.debug("Sent termination request", task=child.task.name, pid=child.pid)
        
    def _exit(self, code: int) -> None:
        if self.state is SupervisorState.TERMINATED:
            return
        self.state = SupervisorState.TERMINATED
        self.exit_code = code
        for timer in self.exit_timers:
            timer.cancel()
        logger.debug("Supervisor exiting", exit_code=code)
        if self._exited is not None and not self._exited.done():
            self._exited.set_result(code)
            
    def _on_signal(self, signum: int) -> None:
        self.handle(SignalReceived(signum))
        
    def install_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        """Route SIGINT and SIGTERM into the event loop."""
        for sig in SHUTDOWN_SIGNALS:
            try:
                loop.add_signal_handler(sig, self._on_signal, sig)
            except (NotImplementedError, RuntimeError):
                # Windows event loops cannot install handlers themselves
                self._previous_handlers[sig] = signal.signal(
                    sig,
                    lambda signum, _frame: loop.call_soon_threadsafe(self._on_signal, signum),
                )

    def remove_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        for sig in SHUTDOWN_SIGNALS:
            if sig in self._previous_handlers:
                signal.signal(sig, self._previous_handlers.pop(sig))
            else:
                loop.remove_signal_handler(sig)
                
    async def run(self) -> int:
        """Start every task in order and wait for the consolidated exit code."""
        loop = asyncio.get_running_loop()
        self._exited = loop.create_future()
        if self.state is SupervisorState.TERMINATED:
            self._exited.set_result(self.exit_code)
            
        self.install_signal_handlers(loop)
        try:
            for task in self.tasks:
                await self.start(task)
            return await self._exited
        finally:
            self.remove_signal_handlers(loop)
            stop = getattr(self.process_source, "stop", None)
            if stop is not None:
                await stop()


def _signal_name(signum: int) -> str:
    try:
        return signal.Signals(signum).name
    except ValueError:
        return str(signum)
