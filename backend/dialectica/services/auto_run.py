"""Auto-run Scheduler — repeatedly advances the orchestrator on a fixed cadence.

Invariants:
    - start() triggers one advance() immediately, then one per interval
      (measured from tick start) until stopped
    - Stops on its own when the target reaches IterativeAnalysisComplete or a
      step of the live session raises ReaderError
    - A failure from a session that was replaced mid-tick never stops ticking
      for its replacement
    - Every tick reads the live target; nothing is captured at start time
    - stop() only prevents future ticks; an in-flight call is never cancelled
    - Ticks never overlap: the next tick starts after the previous step returns

Design Decisions:
    - asyncio task + Event over a timer callback: the wait is interruptible by
      stop() and a slow step simply delays the next tick
    - start() while stopping resumes the same task instead of spawning a second
      one that would trip the phase gate
"""

import asyncio
import logging

from dialectica.core.boundary_protocols import Steppable
from dialectica.core.domain_types import AUTO_RUN_INTERVAL_SECONDS, Phase
from dialectica.core.errors import ReaderError

logger = logging.getLogger(__name__)


class AutoRunScheduler:
    """Drives Steppable.advance() at a fixed interval until told to stop."""

    def __init__(
        self, target: Steppable, interval_seconds: float = AUTO_RUN_INTERVAL_SECONDS,
    ):
        self._target = target
        self.interval_seconds = interval_seconds
        self._task: asyncio.Task | None = None
        self._stop_event: asyncio.Event | None = None

    @property
    def is_running(self) -> bool:
        """True while ticking (a stop request in progress counts as not running)."""
        return (
            self._task is not None
            and not self._task.done()
            and self._stop_event is not None
            and not self._stop_event.is_set()
        )

    def start(self) -> bool:
        """Begin ticking. Returns False if already running. Needs a running loop."""
        if self._task is not None and not self._task.done():
            if self._stop_event is not None and self._stop_event.is_set():
                self._stop_event.clear()
                logger.info("Auto-run resumed")
                return True
            return False
        self._stop_event = asyncio.Event()
        self._task = asyncio.get_running_loop().create_task(
            self._run(self._stop_event),
        )
        logger.info(
            "Auto-run started",
            extra={"interval_seconds": self.interval_seconds},
        )
        return True

    def stop(self) -> None:
        """Prevent future ticks. Idempotent."""
        if self._stop_event is not None and not self._stop_event.is_set():
            self._stop_event.set()
            logger.info("Auto-run stop requested")

    async def wait(self) -> None:
        """Wait until the ticking task has finished."""
        if self._task is not None:
            await self._task

    async def _run(self, stop_event: asyncio.Event) -> None:
        loop = asyncio.get_running_loop()
        while not stop_event.is_set():
            tick_started = loop.time()
            generation = self._target.generation
            try:
                await self._target.advance()
            except ReaderError as e:
                if self._target.generation == generation:
                    logger.warning(
                        f"Auto-run stopped after failed step: {e.message}",
                        extra={"error_code": e.code},
                    )
                    break
                logger.info(
                    f"Ignoring failure from a replaced session: {e.message}",
                    extra={"error_code": e.code},
                )
            if self._target.phase == Phase.ITERATIVE_ANALYSIS_COMPLETE:
                logger.info("Auto-run finished: all chunks analyzed")
                break
            remaining = self.interval_seconds - (loop.time() - tick_started)
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=max(0.0, remaining))
            except asyncio.TimeoutError:
                continue
        stop_event.set()
