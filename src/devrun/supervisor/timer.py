"""Cancellable delayed-exit timers."""

import asyncio
from typing import Callable, Optional

import structlog

logger = structlog.get_logger()

ExitCallback = Callable[[int], None]


class ExitTimer:
    """Calls ``callback(code)`` once, unless cancelled first."""
    
    def __init__(self, code: int, delay: float, callback: ExitCallback):
        self.code = code
        self.delay = delay
        self._callback = callback
        self._handle: Optional[asyncio.TimerHandle] = None
        self.fired = False
        self.cancelled = False
        
    @property
    def pending(self) -> bool:
        return not (self.fired or self.cancelled)
        
    def start(self, loop: asyncio.AbstractEventLoop) -> "ExitTimer":
        """Arm the timer on ``loop``."""
        self._handle = loop.call_later(self.delay, self.fire)
        return self
        
    def fire(self) -> None:
        """Run the callback now, if still pending."""
        if not self.pending:
            return
        self.fired = True
        self._handle = None
        self._callback(self.code)
        
    def cancel(self) -> None:
        if not self.pending:
            return
        self.cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class LoopExitScheduler:
    """Schedules exit timers on the running event loop."""
    
    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop
        
    def schedule(self, code: int, delay: float, callback: ExitCallback) -> ExitTimer:
        loop = self._loop or asyncio.get_running_loop()
        logger.debug("Scheduling exit", exit_code=code, delay_seconds=delay)
        return ExitTimer(code, delay, callback).start(loop)
