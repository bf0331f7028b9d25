"""Scheduler for periodic full and incremental traversals."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_MISSED

from ..config.settings import ScheduleSettings
from ..core import Traverser, TraversalResult
from ..utils.logging import get_logger


FULL_TRAVERSAL_JOB = "full_traversal"
INCREMENTAL_TRAVERSAL_JOB = "incremental_traversal"


class SchedulerError(Exception):
    """Raised when scheduler operations fail."""
    pass


class TraversalScheduler:
    """Runs traversals on fixed intervals with APScheduler."""

    def __init__(self, traverser: Traverser, schedule: ScheduleSettings):
        self.traverser = traverser
        self.schedule = schedule
        self.logger = get_logger(self.__class__.__name__)

        self.scheduler = AsyncIOScheduler(
            job_defaults={
                'coalesce': True,  # Combine multiple pending executions
                'max_instances': 1,  # Only one instance per job
                'misfire_grace_time': 300
            }
        )

        self.job_stats: Dict[str, Dict[str, Any]] = {}

        self.scheduler.add_listener(self._job_error, EVENT_JOB_ERROR)
        self.scheduler.add_listener(self._job_missed, EVENT_JOB_MISSED)

    @property
    def running(self) -> bool:
        return self.scheduler.running

    async def start(self):
        """Start the scheduler and register the traversal jobs."""
        if self.scheduler.running:
            self.logger.warning("Scheduler is already running")
            return

        try:
            self._add_jobs()
            self.scheduler.start()
        except Exception as e:
            self.logger.error("Failed to start scheduler", error=str(e))
            raise SchedulerError(f"Failed to start scheduler: {e}") from e

        self.logger.info("Traversal scheduler started", jobs=list(self.job_stats.keys()))

    async def stop(self, wait: bool = True):
        """Stop the scheduler.

        Args:
            wait: Whether to wait for running jobs to complete
        """
        if not self.scheduler.running:
            self.logger.warning("Scheduler is not running")
            return

        self.scheduler.shutdown(wait=wait)
        self.logger.info("Traversal scheduler stopped")

    async def trigger(self, job_id: str) -> TraversalResult:
        """Run a traversal job immediately, outside its schedule."""
        if job_id not in (FULL_TRAVERSAL_JOB, INCREMENTAL_TRAVERSAL_JOB):
            raise SchedulerError(f"Unknown traversal job: {job_id}")

        self.logger.info("Manually triggering traversal", job_id=job_id)
        return await self._run_job(job_id)

    def get_status(self) -> Dict[str, Any]:
        """Get scheduler and per-job status."""
        jobs = {}
        for job_id, stats in self.job_stats.items():
            job = self.scheduler.get_job(job_id)
            jobs[job_id] = {
                **stats,
                "next_run": self._next_run(job)
            }

        return {"running": self.scheduler.running, "jobs": jobs}

    @staticmethod
    def _next_run(job) -> Optional[str]:
        next_run_time = getattr(job, "next_run_time", None)
        return next_run_time.isoformat() if next_run_time else None

    def _add_jobs(self):
        full_job_options: Dict[str, Any] = {}
        if self.schedule.run_on_start:
            full_job_options["next_run_time"] = datetime.now(timezone.utc)

        self.scheduler.add_job(
            func=self._run_job,
            trigger=IntervalTrigger(minutes=self.schedule.traversal_interval_minutes),
            args=[FULL_TRAVERSAL_JOB],
            id=FULL_TRAVERSAL_JOB,
            name="Full traversal",
            replace_existing=True,
            **full_job_options
        )
        self._init_stats(FULL_TRAVERSAL_JOB, self.schedule.traversal_interval_minutes)

        if self.schedule.incremental_interval_minutes > 0:
            self.scheduler.add_job(
                func=self._run_job,
                trigger=IntervalTrigger(minutes=self.schedule.incremental_interval_minutes),
                args=[INCREMENTAL_TRAVERSAL_JOB],
                id=INCREMENTAL_TRAVERSAL_JOB,
                name="Incremental traversal",
                replace_existing=True
            )
            self._init_stats(INCREMENTAL_TRAVERSAL_JOB, self.schedule.incremental_interval_minutes)

    def _init_stats(self, job_id: str, interval_minutes: Optional[int]):
        self.job_stats[job_id] = {
            "interval_minutes": interval_minutes,
            "last_run": None,
            "run_count": 0,
            "success_count": 0,
            "error_count": 0,
            "last_result": None
        }

    async def _run_job(self, job_id: str) -> TraversalResult:
        if job_id == FULL_TRAVERSAL_JOB:
            result = await self.traverser.full_traversal()
        else:
            result = await self.traverser.incremental_traversal()

        if job_id not in self.job_stats:
            self._init_stats(job_id, None)

        stats = self.job_stats[job_id]
        stats["last_run"] = datetime.now(timezone.utc).isoformat()
        stats["run_count"] += 1
        if result.success:
            stats["success_count"] += 1
        else:
            stats["error_count"] += 1
        stats["last_result"] = result.to_dict()

        return result

    def _job_error(self, event):
        self.logger.error("Traversal job raised", job_id=event.job_id, error=str(event.exception))
        if event.job_id in self.job_stats:
            self.job_stats[event.job_id]["error_count"] += 1

    def _job_missed(self, event):
        self.logger.warning("Traversal job missed its run time", job_id=event.job_id)
