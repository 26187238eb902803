"""
Workers module for background services and scheduled tasks.

This module contains:
- unified_scheduler: heap-based interval/one-shot job scheduler
- scheduled_tasks: task definitions organized by namespace (irrigation.*)
- scheduler_cli: run the scheduler without the web server
"""

__all__ = [
    "UnifiedScheduler",
    "configure_scheduler",
    "register_all_tasks",
    "schedule_default_jobs",
]

from app.workers.unified_scheduler import UnifiedScheduler
from app.workers.scheduled_tasks import configure_scheduler, register_all_tasks, schedule_default_jobs
