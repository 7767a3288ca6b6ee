"""Process-wide APScheduler instance.

Poll rounds run as coroutine jobs on the asyncio event loop. The instance
is built on first use and dropped on shutdown, so starting again later
gets a clean scheduler with no leftover jobs.
"""

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler

log = structlog.get_logger(__name__)

_scheduler: AsyncIOScheduler | None = None


def get_scheduler() -> AsyncIOScheduler:
    """Return the shared scheduler, creating it (stopped) if needed.

    Run dates are UTC, matching every timestamp the pipeline handles.
    """
    global _scheduler
    if _scheduler is None:
        _scheduler = AsyncIOScheduler(timezone="UTC")
        log.debug("scheduler_created")
    return _scheduler


async def start_scheduler() -> None:
    """Start the shared scheduler; a no-op when already running."""
    scheduler = get_scheduler()
    if scheduler.running:
        return
    scheduler.start()
    log.info("scheduler_started", jobs=len(scheduler.get_jobs()))


async def shutdown_scheduler() -> None:
    """Stop without waiting for running jobs and forget the instance."""
    global _scheduler
    if _scheduler is None:
        return
    if _scheduler.running:
        _scheduler.shutdown(wait=False)
        log.info("scheduler_shutdown")
    _scheduler = None
