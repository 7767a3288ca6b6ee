"""Adaptive polling loop.

One round walks IDLE -> FETCHING -> CLASSIFYING -> NOTIFYING ->
COOLING_DOWN -> IDLE. When a round finishes, the next one is scheduled as
a one-shot APScheduler job. The delay shrinks to the fast interval after
a busy round (enough tier alerts sent) and returns to the default
interval otherwise.
"""

import asyncio
from datetime import timedelta

import structlog
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.date import DateTrigger

from pumpalert.constants.polling import (
    DEFAULT_INTERVAL_SECONDS,
    FAST_INTERVAL_SECONDS,
    FAST_THRESHOLD,
)
from pumpalert.core.clock import Clock, utc_now
from pumpalert.models.tier import RoundPhase, RoundResult
from pumpalert.services.alerts.pipeline import AlertPipeline

log = structlog.get_logger(__name__)

# Job ID constants
JOB_ID_POLL_ROUND = "poll_round"


class PollScheduler:
    """Runs alert rounds back to back with an adaptive delay.

    Example:
        poller = PollScheduler(pipeline, scheduler=get_scheduler())
        poller.start()
    """

    def __init__(
        self,
        pipeline: AlertPipeline,
        scheduler: BaseScheduler | None = None,
        default_interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        fast_interval_seconds: float = FAST_INTERVAL_SECONDS,
        fast_threshold: int = FAST_THRESHOLD,
        clock: Clock = utc_now,
    ) -> None:
        """Initialize the poller.

        Args:
            pipeline: Stages executed by each round.
            scheduler: APScheduler instance used for rescheduling. Without
                one, rounds only run when ``run_round`` is called.
            default_interval_seconds: Delay after a quiet round.
            fast_interval_seconds: Delay after a busy round.
            fast_threshold: Tier alerts per round that make it busy.
            clock: Time source.
        """
        self.pipeline = pipeline
        self.scheduler = scheduler
        self.default_interval_seconds = default_interval_seconds
        self.fast_interval_seconds = fast_interval_seconds
        self.fast_threshold = fast_threshold
        self._clock = clock
        self._lock = asyncio.Lock()
        self._phase = RoundPhase.IDLE
        self._running = False
        self.last_result: RoundResult | None = None

    @property
    def phase(self) -> RoundPhase:
        """Current round phase."""
        return self._phase

    @property
    def is_running(self) -> bool:
        """Whether rounds are being rescheduled."""
        return self._running

    def next_delay(self, notified: int) -> float:
        """Seconds until the next round given this round's tier alert count."""
        if notified >= self.fast_threshold:
            return self.fast_interval_seconds
        return self.default_interval_seconds

    async def run_round(self) -> RoundResult | None:
        """Run one full round.

        Returns:
            The round result, or None if a round was already in progress.
        """
        if self._lock.locked():
            log.warning("round_already_running", phase=self._phase.value)
            return None

        async with self._lock:
            return await self._execute_round()

    async def _execute_round(self) -> RoundResult:
        pipeline = self.pipeline
        now = self._clock()
        result = RoundResult()

        try:
            self._phase = RoundPhase.FETCHING
            candidates = await pipeline.fetch_candidates()
            listings = await pipeline.fetch_listings(now, result)
            result.candidates = len(candidates)

            self._phase = RoundPhase.CLASSIFYING
            rechecks = pipeline.recheck_addresses(candidates, now)
            evaluations = await pipeline.evaluate_all(candidates, rechecks, now, result)

            self._phase = RoundPhase.NOTIFYING
            await pipeline.deliver_all(evaluations, listings, result)
        except Exception:
            log.exception("round_failed", phase=self._phase.value)
            # Treated as an empty round
            result = RoundResult(errors=result.errors + 1)

        self._phase = RoundPhase.COOLING_DOWN
        swept = pipeline.sweep(self._clock())
        result.next_delay_seconds = self.next_delay(result.notified)
        self.last_result = result

        log.info(
            "round_completed",
            checked=result.candidates,
            skipped=result.skipped,
            sent=result.notified,
            mid=result.mid_notified,
            high=result.high_notified,
            listings=result.listings_notified,
            failed=result.delivery_failures,
            errors=result.errors,
            swept=swept,
            ledger=self.pipeline.ledger.get_stats(),
            next_poll_seconds=result.next_delay_seconds,
        )

        self._phase = RoundPhase.IDLE
        return result

    async def _tick(self) -> None:
        """Scheduled job body: run a round, then book the next one."""
        if not self._running:
            log.debug("poll_round_dropped_after_stop")
            return
        result = await self.run_round()
        if result is None:
            # The round in progress schedules its own successor
            return
        self._schedule_next(result.next_delay_seconds)

    def _schedule_next(self, delay_seconds: float) -> None:
        if self.scheduler is None or not self._running:
            return

        run_date = self._clock() + timedelta(seconds=delay_seconds)
        self.scheduler.add_job(
            self._tick,
            trigger=DateTrigger(run_date=run_date),
            id=JOB_ID_POLL_ROUND,
            name="Poll Round",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=None,
        )
        log.debug(
            "poll_round_scheduled",
            job_id=JOB_ID_POLL_ROUND,
            run_date=run_date.isoformat(),
            delay_seconds=delay_seconds,
        )

    def start(self) -> None:
        """Schedule the first round to run immediately.

        Raises:
            RuntimeError: If no scheduler was given.
        """
        if self.scheduler is None:
            raise RuntimeError("PollScheduler.start() requires a scheduler")
        if self._running:
            return

        self._running = True
        self._schedule_next(0)
        log.info(
            "poller_started",
            default_interval_seconds=self.default_interval_seconds,
            fast_interval_seconds=self.fast_interval_seconds,
            fast_threshold=self.fast_threshold,
        )

    def stop(self) -> None:
        """Stop rescheduling and drop the pending round.

        Safe to call when not started.
        """
        was_running = self._running
        self._running = False
        if self.scheduler is not None and self.scheduler.get_job(JOB_ID_POLL_ROUND):
            self.scheduler.remove_job(JOB_ID_POLL_ROUND)
        if was_running:
            log.info("poller_stopped")

    async def wait_idle(self) -> None:
        """Wait for an in-flight round to finish."""
        async with self._lock:
            pass
