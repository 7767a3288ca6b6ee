"""Unit tests for scheduler module.

Tests the APScheduler singleton pattern, startup, and shutdown.
"""

from unittest.mock import patch

import pytest

import pumpalert.scheduler.scheduler as scheduler_module
from pumpalert.scheduler.scheduler import get_scheduler, shutdown_scheduler, start_scheduler


class TestSchedulerSingleton:
    """Tests for scheduler singleton pattern."""

    def test_get_scheduler_singleton(self) -> None:
        """Scheduler should be a singleton - same instance returned."""
        with patch.object(scheduler_module, "_scheduler", None):
            assert get_scheduler() is get_scheduler()

    def test_scheduler_runs_in_utc(self) -> None:
        with patch.object(scheduler_module, "_scheduler", None):
            assert str(get_scheduler().timezone) == "UTC"


class TestSchedulerLifecycle:
    """Tests for scheduler start/shutdown."""

    @pytest.mark.asyncio
    async def test_start_scheduler_idempotent(self) -> None:
        """Start scheduler should be safe to call multiple times."""
        with patch.object(scheduler_module, "_scheduler", None):
            await start_scheduler()
            await start_scheduler()  # Should not raise
            scheduler = get_scheduler()
            assert scheduler.running
            # Cleanup
            scheduler.shutdown(wait=False)

    @pytest.mark.asyncio
    async def test_shutdown_scheduler_clears_singleton(self) -> None:
        with patch.object(scheduler_module, "_scheduler", None):
            await start_scheduler()
            await shutdown_scheduler()

            assert scheduler_module._scheduler is None

    @pytest.mark.asyncio
    async def test_shutdown_scheduler_when_not_running(self) -> None:
        """Shutdown should be safe when scheduler not running."""
        with patch.object(scheduler_module, "_scheduler", None):
            await shutdown_scheduler()
