"""
Countdown for a running attempt.

The timer only counts down locally between resumes; the authoritative
remaining time is recomputed from the attempt's start timestamp on every load.
"""
import asyncio
import logging
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger(__name__)

# Alert thresholds for the countdown display
CRITICAL_SECONDS = 300
WARNING_SECONDS = 600


class TimerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    EXPIRED = "expired"


class Timer:
    """
    idle -> running -> expired state machine driven by one asyncio tick task.

    on_expire fires exactly once, on the tick that would take remaining below 1.
    """

    def __init__(
        self,
        on_expire: Callable[[], None],
        on_tick: Optional[Callable[[int], None]] = None,
        interval: float = 1.0,
    ):
        self.on_expire = on_expire
        self.on_tick = on_tick
        self.interval = interval
        self.state = TimerState.IDLE
        self.remaining = 0
        self._task: Optional[asyncio.Task] = None

    def start(self, remaining: int) -> bool:
        """Start counting down from remaining seconds. Must be called on the event loop."""
        self._cancel_task()
        if self.state is TimerState.EXPIRED:
            return False
        self.remaining = max(0, int(remaining))
        if self.remaining <= 0:
            self.state = TimerState.IDLE
            return False
        self.state = TimerState.RUNNING
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.debug(f"Timer started at {self.remaining}s")
        return True

    def tick(self) -> None:
        if self.state is not TimerState.RUNNING:
            return
        if self.remaining <= 1:
            self.remaining = 0
            self.state = TimerState.EXPIRED
            if self._task is not None and self._task is not asyncio.current_task():
                self._task.cancel()
            self._task = None
            logger.info("Timer expired")
            self.on_expire()
            return
        self.remaining -= 1
        if self.on_tick is not None:
            self.on_tick(self.remaining)

    def cancel(self) -> None:
        """Stop the tick task. A running timer goes back to idle."""
        self._cancel_task()
        if self.state is TimerState.RUNNING:
            self.state = TimerState.IDLE
            logger.debug(f"Timer cancelled at {self.remaining}s")

    async def _run(self) -> None:
        while self.state is TimerState.RUNNING:
            await asyncio.sleep(self.interval)
            self.tick()

    def _cancel_task(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None


def format_time(seconds: int) -> str:
    """Render seconds as m:ss."""
    mins, secs = divmod(max(0, int(seconds)), 60)
    return f"{mins}:{secs:02d}"


def time_alert(seconds: int) -> str:
    if seconds < CRITICAL_SECONDS:
        return "critical"
    if seconds < WARNING_SECONDS:
        return "warning"
    return "normal"
