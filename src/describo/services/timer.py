"""Round countdown timer."""
import asyncio
import logging
from typing import Callable, Optional

from describo.models.game_models import TimerState, TimerStatus

logger = logging.getLogger(__name__)


def format_seconds(seconds: int) -> str:
    """Format seconds as M:SS."""
    minutes, secs = divmod(max(seconds, 0), 60)
    return f"{minutes}:{secs:02d}"


class CountdownTimer:
    """Countdown state machine: idle, running, paused, expired.

    The timer does not keep time itself. Something has to call tick() once
    per second, see TimerTicker.
    """

    def __init__(
        self,
        on_update: Optional[Callable[[str], None]] = None,
        on_expire: Optional[Callable[[], None]] = None,
    ):
        self.state = TimerState()
        self.on_update = on_update
        self.on_expire = on_expire

    @property
    def status(self) -> TimerStatus:
        return self.state.status

    @property
    def remaining(self) -> int:
        return self.state.remaining_seconds

    @property
    def running(self) -> bool:
        return self.state.running

    def display(self) -> str:
        """Get the timer text, empty when idle."""
        if self.state.status is TimerStatus.IDLE:
            return ""
        return format_seconds(self.state.remaining_seconds)

    def _emit(self, callback: Optional[Callable], *args) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception as e:
            logger.error("Timer callback %s failed: %s", getattr(callback, "__name__", callback), str(e))

    def _expire(self) -> None:
        self.state.remaining_seconds = 0
        self.state.status = TimerStatus.EXPIRED
        logger.info("Timer expired after %d seconds", self.state.total_seconds)
        self._emit(self.on_expire)

    def start(self, seconds: int) -> None:
        """Start counting down from seconds, whatever the current state."""
        if seconds < 0:
            raise ValueError(f"Timer duration must not be negative, got {seconds}")

        self.state = TimerState(
            total_seconds=seconds,
            remaining_seconds=seconds,
            status=TimerStatus.RUNNING,
        )
        self._emit(self.on_update, self.display())
        if seconds == 0:
            self._expire()

    def tick(self) -> bool:
        """Count down one second. Returns False if the tick was ignored."""
        if self.state.status is not TimerStatus.RUNNING:
            return False

        self.state.remaining_seconds = max(self.state.remaining_seconds - 1, 0)
        self._emit(self.on_update, self.display())
        if self.state.remaining_seconds == 0:
            self._expire()
        return True

    def pause(self) -> bool:
        if self.state.status is not TimerStatus.RUNNING:
            return False
        self.state.status = TimerStatus.PAUSED
        return True

    def resume(self) -> bool:
        if self.state.status is not TimerStatus.PAUSED:
            return False
        self.state.status = TimerStatus.RUNNING
        return True

    def reset(self) -> None:
        """Stop the countdown and clear the display.

        An idle timer stays silent.
        """
        if self.state.status is TimerStatus.IDLE:
            return
        self.state = TimerState()
        self._emit(self.on_update, "")


class TimerTicker:
    """Asyncio task that ticks a CountdownTimer until it expires or is reset."""

    def __init__(self, timer: CountdownTimer, interval: float = 1.0):
        self.timer = timer
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Replace any running tick task with a fresh one."""
        self.cancel()
        self._task = asyncio.create_task(self._run())

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self.timer.tick()
            # Paused timers keep the task alive and ignore ticks
            if self.timer.status in (TimerStatus.EXPIRED, TimerStatus.IDLE):
                break

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def close(self) -> None:
        """Cancel the tick task and wait for it to finish."""
        task = self._task
        self.cancel()
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)
