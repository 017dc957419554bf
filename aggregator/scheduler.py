"""Timer-driven dispatch of aggregation and cleanup jobs."""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Awaitable, Callable, List, Optional, Set

from aggregator.cleanup import Housekeeper
from aggregator.models import RunTrigger
from aggregator.pipeline import AggregationPipeline
from shared.config import settings
from shared.utils import get_utc_now

logger = logging.getLogger(__name__)


def next_hour_boundary(now: datetime, every_hours: int) -> datetime:
    """Next top of an hour divisible by every_hours, strictly after now."""
    fire_at = now.replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)
    while fire_at.hour % every_hours != 0:
        fire_at += timedelta(hours=1)
    return fire_at


def next_daily_at(now: datetime, hour: int) -> datetime:
    """Next occurrence of hour:00, strictly after now."""
    fire_at = now.replace(hour=hour, minute=0, second=0, microsecond=0)
    if fire_at <= now:
        fire_at += timedelta(days=1)
    return fire_at


@dataclass
class ScheduledJob:
    """A named action and the rule computing its next fire time."""
    name: str
    next_fire_time: Callable[[datetime], datetime]
    action: Callable[[], Awaitable]


class Scheduler:
    """
    Fires periodic jobs and manual triggers.

    Holds no pipeline state: it only decides when to call the pipeline. A
    job that raises is logged and the job keeps its schedule.
    """

    def __init__(
        self,
        pipeline: AggregationPipeline,
        housekeeper: Housekeeper,
        interval_hours: int = None,
        cleanup_hour: int = None,
        clock: Callable[[], datetime] = get_utc_now
    ):
        self.pipeline = pipeline
        self.housekeeper = housekeeper
        self.clock = clock
        interval_hours = interval_hours or settings.aggregation_interval_hours
        cleanup_hour = settings.cleanup_hour if cleanup_hour is None else cleanup_hour

        self.jobs: List[ScheduledJob] = [
            ScheduledJob(
                name="news_aggregation",
                next_fire_time=lambda now: next_hour_boundary(now, interval_hours),
                action=lambda: self.pipeline.run(RunTrigger.SCHEDULED),
            ),
            ScheduledJob(
                name="daily_cleanup",
                next_fire_time=lambda now: next_daily_at(now, cleanup_hour),
                action=self.housekeeper.run,
            ),
        ]
        self._stop = asyncio.Event()
        self._job_tasks: List[asyncio.Task] = []
        self._background: Set[asyncio.Task] = set()

    def start(self):
        """Start one timer loop per job."""
        logger.info("Starting cron jobs...")
        self._stop.clear()
        self._job_tasks = [asyncio.create_task(self._job_loop(job)) for job in self.jobs]
        logger.info("Cron jobs started successfully")

    async def stop(self):
        """Stop the timers, cancel triggered runs and wait for all of them to exit."""
        logger.info("Stopping cron jobs...")
        self._stop.set()
        tasks = self._job_tasks + list(self._background)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._job_tasks = []
        self._background.clear()

    async def wait_closed(self):
        """Block until stop() is called."""
        await self._stop.wait()

    def trigger_aggregation(self) -> asyncio.Task:
        """Start an aggregation run in the background and return immediately."""
        logger.info("Manually triggering news aggregation...")
        task = asyncio.create_task(self.pipeline.run(RunTrigger.MANUAL))
        self._background.add(task)
        task.add_done_callback(self._on_background_done)
        return task

    async def run_job(self, job: ScheduledJob) -> Optional[object]:
        """Run one job now, logging instead of raising."""
        logger.info(f"Running scheduled {job.name}...")
        try:
            result = await job.action()
            logger.info(f"Scheduled {job.name} completed")
            return result
        except Exception as e:
            logger.error(f"Error in scheduled {job.name}: {e}")
            return None

    async def _job_loop(self, job: ScheduledJob):
        while not self._stop.is_set():
            now = self.clock()
            delay = (job.next_fire_time(now) - now).total_seconds()
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=max(delay, 0))
                return
            except asyncio.TimeoutError:
                pass
            await self.run_job(job)

    def _on_background_done(self, task: asyncio.Task):
        self._background.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Error in triggered news aggregation: {error}")
