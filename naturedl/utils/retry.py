"""Retry controller for per-article download attempts.

Runs an attempt a bounded number of times with a fixed interval between
trials. Unlike a retry decorator it never raises: the last failure is
reported as an error through the run context and the caller moves on to
the next article.
"""

import asyncio
from typing import TYPE_CHECKING, Awaitable, Callable, Optional

import structlog

from naturedl.models.progress import Progress

if TYPE_CHECKING:
    from naturedl.orchestration.context import DownloadContext

logger = structlog.get_logger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]
AttemptFunc = Callable[[Progress], Awaitable[None]]


class RetryController:
    """Fixed-interval retry loop bound to a download context.

    Every failed trial except the last emits a warning, the last one emits
    an error. Both go through the context so the outcome counters stay in
    step with what was logged.
    """

    def __init__(
        self,
        context: "DownloadContext",
        sleep: Optional[SleepFunc] = None,
    ) -> None:
        """Initialize retry controller.

        Args:
            context: Run context receiving warnings and errors
            sleep: Coroutine used to suspend between trials
                (defaults to asyncio.sleep)
        """
        self.context = context
        self._sleep = sleep or asyncio.sleep

    async def run(
        self,
        max_trials: int,
        interval_seconds: float,
        attempt: AttemptFunc,
        count: int,
        total: int,
    ) -> bool:
        """Run attempt up to max_trials times.

        Args:
            max_trials: Total number of trials (1 + configured retries)
            interval_seconds: Delay between trials, 0 retries immediately
            attempt: Coroutine function called with the trial's Progress
            count: 1-based index of the item being attempted
            total: Number of items in the current journal

        Returns:
            True if a trial succeeded, False if all trials failed
        """
        for trial in range(max_trials):
            progress = Progress(count, total, trial + 1, max_trials)
            try:
                await attempt(progress)
                return True
            except Exception as e:
                reason = str(e) or type(e).__name__
                if trial + 1 < max_trials:
                    if interval_seconds > 0:
                        self.context.warn(
                            f"Retry after {interval_seconds:g}s: {reason}", progress
                        )
                        await self._sleep(interval_seconds)
                    else:
                        self.context.warn(f"Retry: {reason}", progress)
                else:
                    self.context.error(f"Failed: {reason}", progress)
                    logger.debug(
                        "retry_exhausted",
                        count=count,
                        max_trials=max_trials,
                        error_type=type(e).__name__,
                    )
        return False
