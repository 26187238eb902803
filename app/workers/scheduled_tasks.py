"""
Scheduled Tasks: background task definitions for the UnifiedScheduler.

Tasks are organized by namespace:
- irrigation.*: due-soon / overdue reminder scan

Usage:
    from app.workers.scheduled_tasks import configure_scheduler

    configure_scheduler(container.scheduler, container)
"""

from __future__ import annotations

import logging
from functools import wraps
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from app.config import AppConfig
    from app.services.container import ServiceContainer
    from app.workers.unified_scheduler import UnifiedScheduler

logger = logging.getLogger(__name__)

REMINDER_SCAN_TASK = "irrigation.reminder_scan"


# ==================== Irrigation Namespace Tasks ====================


def irrigation_reminder_scan_task(container: "ServiceContainer") -> dict[str, Any]:
    """Classify active schedules and emit due-soon / overdue reminders."""
    result = container.irrigation_reminder_service.scan()
    return result.to_dict()


# ==================== Registration ====================


def register_all_tasks(scheduler: "UnifiedScheduler", container: "ServiceContainer") -> None:
    """
    Register all tasks with the unified scheduler.

    Args:
        scheduler: UnifiedScheduler instance
        container: ServiceContainer with all services
    """

    def bind(task_fn):
        @wraps(task_fn)
        def bound_task():
            try:
                return task_fn(container)
            except Exception as e:
                logger.exception("Scheduled task %s raised: %s", task_fn.__name__, e)
                # Re-raise to let scheduler record failure in history as well
                raise

        return bound_task

    scheduler.register_task(REMINDER_SCAN_TASK, bind(irrigation_reminder_scan_task))
    logger.info("Registered scheduled tasks")


def schedule_default_jobs(scheduler: "UnifiedScheduler", config: "AppConfig") -> None:
    """Reminder scan every ``scan_interval_seconds`` plus one shortly after startup."""
    scheduler.schedule_interval(
        REMINDER_SCAN_TASK,
        interval_seconds=config.scan_interval_seconds,
        job_id="irrigation_reminder_scan",
    )
    scheduler.schedule_after(
        REMINDER_SCAN_TASK,
        config.startup_scan_delay_seconds,
        job_id="irrigation_reminder_startup_scan",
    )


def configure_scheduler(
    scheduler: "UnifiedScheduler",
    container: "ServiceContainer",
    *,
    reset_jobs: bool = True,
    start: bool = True,
) -> None:
    """Register tasks, apply default schedules, and optionally start the scheduler."""
    if reset_jobs:
        scheduler.clear_jobs()

    register_all_tasks(scheduler, container)
    schedule_default_jobs(scheduler, container.config)

    if start:
        scheduler.start()
