"""Job scheduling for Sales Scout."""

from datetime import datetime
from typing import TYPE_CHECKING

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

if TYPE_CHECKING:
    from .coordinator import JobCoordinator


class JobScheduler:
    """Runs the batch scrape of all tracked products on an interval.

    Default schedule:
    - Batch scrape: every 60 minutes, first run at startup
    """

    def __init__(self, coordinator: "JobCoordinator", config: dict):
        """Initialize job scheduler.

        Args:
            coordinator: Job coordinator instance
            config: Configuration dictionary
        """
        self.coordinator = coordinator
        self.config = config

        schedule_config = config.get("schedule", {})
        self.job_defaults = {
            "coalesce": True,
            "max_instances": schedule_config.get("max_instances_per_job", 1),
            "misfire_grace_time": schedule_config.get("misfire_grace_time_seconds", 120),
        }
        self.scheduler = AsyncIOScheduler(job_defaults=self.job_defaults)

    def configure_jobs(self):
        """Set up all scheduled jobs based on configuration."""
        schedule_config = self.config.get("schedule", {})

        interval_minutes = schedule_config.get("scrape_interval_minutes", 60)
        job_options = dict(self.job_defaults)
        if schedule_config.get("scrape_on_start", True):
            job_options["next_run_time"] = datetime.now()

        self.scheduler.add_job(
            self.coordinator.run_batch,
            IntervalTrigger(minutes=interval_minutes),
            id="batch_scrape",
            name="Tracked Products Scrape",
            replace_existing=True,
            **job_options,
        )
        logger.info(f"Scheduled batch scrape every {interval_minutes} minutes")

    def start(self):
        """Start the scheduler."""
        logger.info("Starting job scheduler")
        self.scheduler.start()

    def stop(self):
        """Stop the scheduler."""
        logger.info("Stopping job scheduler")
        self.scheduler.shutdown()

    def get_jobs(self):
        """Get list of scheduled jobs."""
        return self.scheduler.get_jobs()
