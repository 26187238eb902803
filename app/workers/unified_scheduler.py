"""
Centralized scheduling service for background tasks.

All recurring work (the irrigation reminder scan, notification pruning) goes
through one scheduler instance that is built by the service container and
passed to whoever registers jobs.

Design Principles:
- Single scheduler loop thread
- Bounded worker pool for job execution (prevents unbounded thread creation)
- Named tasks registered once, scheduled as interval or one-time jobs
- Fixed-rate intervals that skip (never pile up) missed runs

Stopping the scheduler prevents new runs; a job already executing on the
worker pool is allowed to finish.
"""

from __future__ import annotations

import heapq
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable

from app.utils.time import Clock, utc_now

logger = logging.getLogger(__name__)


class ScheduleType(Enum):
    """Types of schedules."""

    INTERVAL = "interval"  # Every N seconds
    ONCE = "once"  # One-time execution


@dataclass
class JobResult:
    """Result of a job execution."""

    job_id: str
    success: bool
    started_at: datetime
    completed_at: datetime
    result: Any = None
    error: str | None = None

    @property
    def duration_seconds(self) -> float:
        return (self.completed_at - self.started_at).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        return {
            "job_id": self.job_id,
            "success": self.success,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat(),
            "duration_seconds": round(self.duration_seconds, 3),
            "error": self.error,
        }


@dataclass
class ScheduledJob:
    """A scheduled job configuration."""

    job_id: str
    task_name: str
    namespace: str  # e.g., "irrigation", "notifications"
    schedule_type: ScheduleType
    enabled: bool = True

    args: tuple = field(default_factory=tuple)
    kwargs: dict[str, Any] = field(default_factory=dict)

    interval_seconds: int | None = None  # For INTERVAL type
    run_at: datetime | None = None  # For ONCE type

    # Execution tracking
    next_run: datetime | None = None
    last_run: datetime | None = None
    run_count: int = 0
    success_count: int = 0
    failure_count: int = 0
    last_error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary (for API responses)."""
        return {
            "job_id": self.job_id,
            "task_name": self.task_name,
            "namespace": self.namespace,
            "schedule_type": self.schedule_type.value,
            "enabled": self.enabled,
            "interval_seconds": self.interval_seconds,
            "next_run": self.next_run.isoformat() if self.next_run else None,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "run_count": self.run_count,
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "last_error": self.last_error,
        }


class UnifiedScheduler:
    """
    Heap-driven scheduler with a bounded worker pool.

    Heap entries are ``(run_at_ts, seq, job_id)``; ``seq`` keeps ordering
    stable when timestamps match. Entries are never removed in place: removed,
    disabled or rescheduled jobs leave stale entries that the loop skips.
    """

    def __init__(
        self,
        check_interval_seconds: float = 1.0,
        max_history: int = 1000,
        max_workers: int = 2,
        clock: Clock = utc_now,
    ):
        """
        Args:
            check_interval_seconds: How often to check for due jobs (default 1s)
            max_history: Maximum job execution history to keep
            max_workers: Maximum number of concurrent job executions
            clock: Source of the current time
        """
        self._check_interval = float(check_interval_seconds)
        self._max_history = int(max_history)
        self._max_workers = int(max_workers)
        self._clock = clock

        self._jobs: dict[str, ScheduledJob] = {}
        self._tasks: dict[str, Callable] = {}  # task_name -> function

        self._job_heap: list[tuple[float, int, str]] = []
        self._heap_seq = 0

        self._history: list[JobResult] = []

        self._running = False
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()
        self._job_lock = threading.RLock()
        self._executor: ThreadPoolExecutor | None = None

    # ==================== Task Registration ====================

    def register_task(self, name: str, func: Callable) -> None:
        """Register a task function programmatically."""
        self._tasks[name] = func
        logger.debug("Registered task: %s", name)

    def has_task(self, name: str) -> bool:
        return name in self._tasks

    def clear_jobs(self) -> None:
        """Remove all scheduled jobs and pending heap entries."""
        with self._job_lock:
            self._jobs.clear()
            self._job_heap.clear()
            self._heap_seq = 0

    def _ensure_executor(self) -> None:
        """Ensure an executor is available (supports stop() -> start() restarts)."""
        if self._executor is not None:
            return
        self._executor = ThreadPoolExecutor(
            max_workers=self._max_workers,
            thread_name_prefix="UnifiedSchedulerJob",
        )

    def _push_heap(self, job: ScheduledJob) -> None:
        if not job.enabled or not job.next_run:
            return
        self._heap_seq += 1
        heapq.heappush(self._job_heap, (job.next_run.timestamp(), self._heap_seq, job.job_id))

    @staticmethod
    def _namespace_for(task_name: str) -> str:
        return task_name.split(".")[0] if "." in task_name else "default"

    # ==================== Job Scheduling ====================

    def schedule_interval(
        self,
        task_name: str,
        interval_seconds: int,
        *,
        job_id: str | None = None,
        namespace: str | None = None,
        args: tuple = (),
        kwargs: dict[str, Any] | None = None,
        enabled: bool = True,
        start_immediately: bool = False,
    ) -> ScheduledJob:
        """Schedule a task to run at regular intervals."""
        if int(interval_seconds) <= 0:
            raise ValueError("interval_seconds must be positive")

        now = self._clock()
        job = ScheduledJob(
            job_id=job_id or f"{task_name}_every_{int(interval_seconds)}s",
            task_name=task_name,
            namespace=namespace or self._namespace_for(task_name),
            schedule_type=ScheduleType.INTERVAL,
            enabled=enabled,
            args=args,
            kwargs=kwargs or {},
            interval_seconds=int(interval_seconds),
            next_run=now if start_immediately else now + timedelta(seconds=int(interval_seconds)),
        )

        self._add_job(job)
        logger.info("Scheduled interval job: %s (every %ss)", job.job_id, interval_seconds)
        return job

    def schedule_once(
        self,
        task_name: str,
        run_at: datetime,
        *,
        job_id: str | None = None,
        namespace: str | None = None,
        args: tuple = (),
        kwargs: dict[str, Any] | None = None,
    ) -> ScheduledJob:
        """Schedule a task to run once at a specific time."""
        job = ScheduledJob(
            job_id=job_id or f"{task_name}_once_{int(run_at.timestamp())}",
            task_name=task_name,
            namespace=namespace or self._namespace_for(task_name),
            schedule_type=ScheduleType.ONCE,
            args=args,
            kwargs=kwargs or {},
            run_at=run_at,
            next_run=run_at,
        )

        self._add_job(job)
        logger.info("Scheduled one-time job: %s (at %s)", job.job_id, run_at.isoformat())
        return job

    def schedule_after(self, task_name: str, delay_seconds: float, **options: Any) -> ScheduledJob:
        """Schedule a one-time run ``delay_seconds`` from now."""
        return self.schedule_once(task_name, self._clock() + timedelta(seconds=float(delay_seconds)), **options)

    # ==================== Job Management ====================

    def _add_job(self, job: ScheduledJob) -> None:
        with self._job_lock:
            self._jobs[job.job_id] = job
            self._push_heap(job)

    def get_job(self, job_id: str) -> ScheduledJob | None:
        return self._jobs.get(job_id)

    def get_jobs(self, namespace: str | None = None, enabled_only: bool = False) -> list[ScheduledJob]:
        jobs = list(self._jobs.values())
        if namespace:
            jobs = [j for j in jobs if j.namespace == namespace]
        if enabled_only:
            jobs = [j for j in jobs if j.enabled]
        return jobs

    # ==================== Scheduler Control ====================

    def start(self) -> None:
        """Start the scheduler background thread."""
        if self._running:
            logger.warning("Scheduler already running")
            return

        self._ensure_executor()
        self._stop_event.clear()
        self._running = True
        self._thread = threading.Thread(target=self._run_loop, daemon=True, name="UnifiedScheduler")
        self._thread.start()
        logger.info("UnifiedScheduler started")

    def stop(self, wait: bool = True, timeout: float = 5.0) -> None:
        """
        Stop the scheduler.

        Args:
            wait: Wait for the loop thread and in-flight jobs to finish
            timeout: Maximum wait for the loop thread in seconds
        """
        if not self._running:
            return

        self._running = False
        self._stop_event.set()

        if wait and self._thread:
            self._thread.join(timeout=timeout)

        if self._executor:
            self._executor.shutdown(wait=wait)
            self._executor = None

        logger.info("UnifiedScheduler stopped")

    def shutdown(self, wait: bool = True, timeout: float = 5.0) -> None:
        """Alias for stop(); matches other services' shutdown() convention."""
        self.stop(wait=wait, timeout=timeout)

    def is_running(self) -> bool:
        return self._running

    def _run_loop(self) -> None:
        logger.debug("Scheduler loop started")
        while self._running:
            try:
                self.process_due_jobs()
            except Exception as e:
                logger.error("Error in scheduler loop: %s", e, exc_info=True)
            self._stop_event.wait(self._check_interval)
        logger.debug("Scheduler loop ended")

    # ==================== Core Scheduling Logic ====================

    def process_due_jobs(self) -> int:
        """
        Submit every due job to the worker pool (or run inline when the pool
        is not started). Returns the number of runs dispatched.
        """
        now = self._clock()
        due: list[tuple[str, datetime]] = []

        with self._job_lock:
            while self._job_heap:
                run_at_ts, _seq, job_id = self._job_heap[0]
                if run_at_ts > now.timestamp():
                    break
                heapq.heappop(self._job_heap)

                job = self._jobs.get(job_id)
                if not job or not job.enabled or not job.next_run:
                    continue
                if abs(job.next_run.timestamp() - run_at_ts) > 1e-6:
                    continue  # stale entry

                scheduled_for = job.next_run
                # Reschedule before executing so a long run cannot cause a missed slot
                self._schedule_next_run(job, scheduled_for, now)
                self._push_heap(job)
                due.append((job_id, scheduled_for))

        for job_id, scheduled_for in due:
            if self._executor is None:
                self._execute_job(job_id, scheduled_for)
                continue
            try:
                self._executor.submit(self._execute_job, job_id, scheduled_for)
            except RuntimeError as e:
                logger.error("Failed to submit job %s to executor: %s", job_id, e)
        return len(due)

    def _execute_job(self, job_id: str, scheduled_for: datetime) -> None:
        with self._job_lock:
            job = self._jobs.get(job_id)
        if not job:
            return

        started_at = self._clock()
        try:
            func = self._tasks.get(job.task_name)
            if func is None:
                raise ValueError(f"Task function not found: {job.task_name}")
            result = func(*job.args, **job.kwargs)
        except Exception as e:
            with self._job_lock:
                job.last_run = started_at
                job.run_count += 1
                job.failure_count += 1
                job.last_error = str(e)
            self._record_history(JobResult(job.job_id, False, started_at, self._clock(), error=str(e)))
            logger.error("Job %s failed: %s", job.job_id, e, exc_info=True)
            return

        with self._job_lock:
            job.last_run = started_at
            job.run_count += 1
            job.success_count += 1
            job.last_error = None
        job_result = JobResult(job.job_id, True, started_at, self._clock(), result=result)
        self._record_history(job_result)
        logger.debug(
            "Job %s completed in %.2fs (scheduled_for=%s)",
            job.job_id,
            job_result.duration_seconds,
            scheduled_for.isoformat(),
        )

    def _schedule_next_run(self, job: ScheduledJob, scheduled_for: datetime, now: datetime) -> None:
        if job.schedule_type == ScheduleType.ONCE:
            job.next_run = None
            job.enabled = False
            return

        interval = int(job.interval_seconds or 60)
        next_run = scheduled_for + timedelta(seconds=interval)
        # Far behind (e.g. the host slept): skip to the first future slot
        if next_run <= now:
            skips = int((now - next_run).total_seconds() // interval) + 1
            next_run += timedelta(seconds=skips * interval)
        job.next_run = next_run

    def _record_history(self, result: JobResult) -> None:
        with self._job_lock:
            self._history.append(result)
            if len(self._history) > self._max_history:
                self._history = self._history[-self._max_history :]

    # ==================== Status & History ====================

    def get_status(self) -> dict[str, Any]:
        """Get scheduler status."""
        with self._job_lock:
            enabled_jobs = [j for j in self._jobs.values() if j.enabled]
            return {
                "running": self._running,
                "total_jobs": len(self._jobs),
                "enabled_jobs": len(enabled_jobs),
                "pending_jobs": sum(1 for j in enabled_jobs if j.next_run is not None),
                "history_size": len(self._history),
                "recent_failures": sum(1 for r in self._history[-20:] if not r.success),
                "max_workers": self._max_workers,
                "jobs": [j.to_dict() for j in self._jobs.values()],
            }

    def health_check(self) -> dict[str, Any]:
        """
        Summarize scheduler health.

        ``unhealthy`` when stopped or more than half of recent runs failed,
        ``degraded`` when an interval job has not run for three intervals or
        more than a fifth of recent runs failed.
        """
        with self._job_lock:
            now = self._clock()
            recent = self._history[-50:]
            failures = [r for r in recent if not r.success]
            failure_rate = len(failures) / len(recent) if recent else 0.0

            stale_jobs = []
            for job in self._jobs.values():
                if not (job.enabled and job.last_run and job.schedule_type == ScheduleType.INTERVAL):
                    continue
                expected = timedelta(seconds=job.interval_seconds or 60)
                if now - job.last_run > expected * 3:
                    stale_jobs.append({"job_id": job.job_id, "last_run": job.last_run.isoformat()})

            if not self._running:
                health, reason = "unhealthy", "Scheduler is not running"
            elif failure_rate > 0.5:
                health, reason = "unhealthy", f"High failure rate: {failure_rate:.0%}"
            elif stale_jobs:
                health, reason = "degraded", f"{len(stale_jobs)} stale job(s) detected"
            elif failure_rate > 0.2:
                health, reason = "degraded", f"Elevated failure rate: {failure_rate:.0%}"
            else:
                health, reason = "healthy", "All systems operational"

            return {
                "health": health,
                "reason": reason,
                "timestamp": now.isoformat(),
                "scheduler_running": self._running,
                "statistics": {
                    "total_jobs": len(self._jobs),
                    "recent_executions": len(recent),
                    "recent_failures": len(failures),
                    "failure_rate": round(failure_rate, 3),
                },
                "stale_jobs": stale_jobs,
            }

    def get_history(self, job_id: str | None = None, limit: int = 100) -> list[JobResult]:
        """Execution history, newest first."""
        with self._job_lock:
            results = list(self._history)
        if job_id:
            results = [r for r in results if r.job_id == job_id]
        return sorted(results, key=lambda r: r.started_at, reverse=True)[: int(limit)]
