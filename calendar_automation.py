#!/usr/bin/env python3
"""
Automatic Academic Year Maintenance
Keeps the current and upcoming academic years generated, on start-up and on a fixed interval.
"""

import asyncio
import logging
import os
import threading
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Deque, Dict, Optional

from academic_year_generator import AcademicYearGenerator

# Configure logging
logger = logging.getLogger(__name__)


class TriggerReason(Enum):
    """Reasons for running a maintenance cycle."""
    SYSTEM_STARTUP = "system_startup"
    SCHEDULED_MAINTENANCE = "scheduled_maintenance"
    MANUAL_TRIGGER = "manual_trigger"


@dataclass
class MaintenanceRun:
    """Outcome of one maintenance cycle."""
    trigger_reason: TriggerReason
    started_at: datetime
    finished_at: datetime
    success: bool

    @property
    def duration_seconds(self) -> float:
        return (self.finished_at - self.started_at).total_seconds()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'trigger_reason': self.trigger_reason.value,
            'started_at': self.started_at.isoformat(),
            'finished_at': self.finished_at.isoformat(),
            'duration_seconds': round(self.duration_seconds, 3),
            'success': self.success,
        }


class CalendarAutomationSystem:
    """
    Runs auto-generation of future academic years in the background.
    Failures are logged by the generator and counted here; they never stop the loop.
    """

    def __init__(self,
                 generator: AcademicYearGenerator,
                 check_interval_hours: Optional[float] = None,
                 history_size: int = 20):
        """
        Initialize the automation system.

        Args:
            generator: Generator bound to the persistent store
            check_interval_hours: Hours between cycles. Defaults to
                                  CALENDAR_AUTOMATION_INTERVAL_HOURS or 24.
            history_size: Number of recent runs to keep
        """
        self.generator = generator
        if check_interval_hours is None:
            check_interval_hours = float(os.getenv('CALENDAR_AUTOMATION_INTERVAL_HOURS', '24'))
        self.check_interval_hours = check_interval_hours
        self.check_interval_seconds = check_interval_hours * 3600
        self.history_size = history_size

        self.recent_runs: Deque[MaintenanceRun] = deque(maxlen=history_size)
        self.stats = {
            'total_runs': 0,
            'successful_runs': 0,
            'failed_runs': 0,
            'last_run': None,
            'last_trigger': None
        }
        self._stats_lock = threading.Lock()

        self._monitoring_active = False
        self._monitoring_thread: Optional[threading.Thread] = None
        self._shutdown_event = threading.Event()

        logger.info(f"🤖 Calendar automation initialized (interval: {check_interval_hours}h)")

    async def run_maintenance_cycle(self,
                                    trigger_reason: TriggerReason = TriggerReason.MANUAL_TRIGGER) -> Dict[str, Any]:
        """
        Generate the current and upcoming academic years if missing.

        Returns:
            Dictionary describing the run
        """
        logger.info(f"🔍 Running academic year maintenance ({trigger_reason.value})...")
        started_at = datetime.now()

        success = await self.generator.auto_generate_future_years()

        run = MaintenanceRun(
            trigger_reason=trigger_reason,
            started_at=started_at,
            finished_at=datetime.now(),
            success=success,
        )
        self._record_run(run)

        if success:
            logger.info(f"✅ Maintenance completed in {run.duration_seconds:.2f}s")
        else:
            logger.warning("⚠️ Maintenance cycle failed, will retry at next interval")

        return run.to_dict()

    def _record_run(self, run: MaintenanceRun) -> None:
        with self._stats_lock:
            self.stats['total_runs'] += 1
            if run.success:
                self.stats['successful_runs'] += 1
            else:
                self.stats['failed_runs'] += 1
            self.stats['last_run'] = run.finished_at
            self.stats['last_trigger'] = run.trigger_reason.value

            self.recent_runs.append(run)

    def start_background_monitoring(self) -> None:
        """Start the background maintenance thread."""
        if self._monitoring_active:
            logger.warning("Background monitoring is already active")
            return

        logger.info("🚀 Starting background academic year maintenance...")

        self._monitoring_active = True
        self._shutdown_event.clear()
        self._monitoring_thread = threading.Thread(
            target=self._background_monitoring_loop,
            name="CalendarAutomationMonitor",
            daemon=True
        )
        self._monitoring_thread.start()

    def stop_background_monitoring(self, timeout: float = 10) -> None:
        """Stop the background maintenance thread."""
        if not self._monitoring_active:
            return

        logger.info("🛑 Stopping background academic year maintenance...")

        self._monitoring_active = False
        self._shutdown_event.set()

        if self._monitoring_thread and self._monitoring_thread.is_alive():
            self._monitoring_thread.join(timeout=timeout)

        logger.info("✅ Background academic year maintenance stopped")

    @property
    def is_running(self) -> bool:
        return self._monitoring_active

    def wait(self) -> None:
        """Block until the background thread exits."""
        if self._monitoring_thread:
            self._monitoring_thread.join()

    def _background_monitoring_loop(self) -> None:
        logger.info(f"🔄 Background maintenance loop started (every {self.check_interval_hours}h)")

        trigger_reason = TriggerReason.SYSTEM_STARTUP
        while self._monitoring_active and not self._shutdown_event.is_set():
            asyncio.run(self.run_maintenance_cycle(trigger_reason))
            trigger_reason = TriggerReason.SCHEDULED_MAINTENANCE
            self._shutdown_event.wait(timeout=self.check_interval_seconds)

        logger.info("🏁 Background maintenance loop ended")

    def get_status(self) -> Dict[str, Any]:
        """
        Current automation status.

        Returns:
            Dictionary with configuration, counters and recent runs
        """
        with self._stats_lock:
            stats = dict(self.stats)
            recent = [run.to_dict() for run in self.recent_runs]

        if stats['last_run']:
            stats['last_run'] = stats['last_run'].isoformat()

        return {
            'monitoring_active': self._monitoring_active,
            'check_interval_hours': self.check_interval_hours,
            'stats': stats,
            'recent_runs': recent,
        }
