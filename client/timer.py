import asyncio
import math
import time
from typing import Awaitable, Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from core.logger import logger

CHALLENGE_DURATION_SECONDS = 30 * 60
WARNING_THRESHOLD_SECONDS = 5 * 60
DANGER_THRESHOLD_SECONDS = 60
TIMER_JOB_ID = "challenge_timer"


def format_time(seconds: int) -> str:
    minutes, secs = divmod(max(0, int(seconds)), 60)
    return f"{minutes:02d}:{secs:02d}"


def urgency(seconds: int) -> str:
    if seconds <= DANGER_THRESHOLD_SECONDS:
        return "danger"
    if seconds <= WARNING_THRESHOLD_SECONDS:
        return "warning"
    return "normal"


class ChallengeTimer:
    """
    Fixed-duration countdown.

    Time left is always recomputed from the start instant on a monotonic
    clock, so delayed or skipped ticks (suspended host, hidden tab) never
    make it drift. ``refresh()`` runs on every scheduler tick and right
    away whenever the host becomes visible again. Reaching zero schedules
    ``on_expire`` exactly once, as its own task.
    """

    def __init__(
        self,
        duration: int = CHALLENGE_DURATION_SECONDS,
        on_expire: Optional[Callable[[], Awaitable[None]]] = None,
        on_tick: Optional[Callable[[int], None]] = None,
        clock: Callable[[], float] = time.monotonic,
        tick_seconds: float = 1.0,
    ):
        self.duration = duration
        self.on_expire = on_expire
        self.on_tick = on_tick
        self.clock = clock
        self.tick_seconds = tick_seconds
        self.displayed = duration
        self.expire_task: Optional[asyncio.Task] = None

        self._started_at: Optional[float] = None
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._hidden = False
        self._expired = False
        self._cancelled = False

    @property
    def started(self) -> bool:
        return self._started_at is not None

    @property
    def expired(self) -> bool:
        return self._expired

    @property
    def active(self) -> bool:
        return self.started and not self._cancelled

    def start(self, schedule: bool = True):
        """Record the start instant and begin periodic refreshes. Must run inside the event loop."""
        if self.started:
            return
        self._started_at = self.clock()
        if schedule:
            self._scheduler = AsyncIOScheduler()
            self._scheduler.add_job(
                self._tick,
                trigger="interval",
                seconds=self.tick_seconds,
                id=TIMER_JOB_ID,
                max_instances=1,
                coalesce=True,
                replace_existing=True,
            )
            self._scheduler.start()
        logger.info("Challenge timer started", duration=self.duration)

    def elapsed(self) -> int:
        if self._started_at is None:
            return 0
        return math.floor(self.clock() - self._started_at)

    def time_left(self) -> int:
        if self._started_at is None:
            return self.duration
        return max(0, self.duration - self.elapsed())

    def time_taken(self) -> int:
        return self.duration - self.time_left()

    async def _tick(self):
        self.refresh()

    def refresh(self) -> int:
        if not self.active:
            return self.displayed

        left = self.time_left()
        self.displayed = left
        if self.on_tick:
            self.on_tick(left)

        if left <= 0 and not self._expired:
            self._expired = True
            logger.info("Challenge time is up")
            if self.on_expire:
                self.expire_task = asyncio.ensure_future(self.on_expire())
        return left

    def on_visibility_change(self, hidden: bool):
        """Host visibility listener; catches up at once on hidden -> visible."""
        was_hidden = self._hidden
        self._hidden = hidden
        if was_hidden and not hidden and self.active:
            self.refresh()

    def cancel(self):
        """Stop ticking and ignore further visibility events. Idempotent."""
        if self._cancelled:
            return
        self._cancelled = True
        if self._scheduler is not None and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.debug("Challenge timer cancelled")
