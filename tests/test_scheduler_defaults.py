from sales_scout.orchestrator.scheduler import JobScheduler


CONFIG = {
    "schedule": {
        "scrape_interval_minutes": 15,
        "scrape_on_start": False,
        "max_instances_per_job": 1,
        "misfire_grace_time_seconds": 120,
    }
}


class DummyCoordinator:
    async def run_batch(self, *args, **kwargs):
        return None


def test_scheduler_sets_guardrail_defaults():
    scheduler = JobScheduler(DummyCoordinator(), CONFIG)
    scheduler.configure_jobs()

    assert scheduler.scheduler._job_defaults["coalesce"] is True
    assert scheduler.scheduler._job_defaults["max_instances"] == 1
    assert scheduler.scheduler._job_defaults["misfire_grace_time"] == 120

    jobs = scheduler.get_jobs()
    assert [job.id for job in jobs] == ["batch_scrape"]
    for job in jobs:
        assert job.max_instances == 1
        assert job.coalesce is True


def test_batch_interval_comes_from_config():
    scheduler = JobScheduler(DummyCoordinator(), CONFIG)
    scheduler.configure_jobs()

    job = scheduler.get_jobs()[0]

    assert job.trigger.interval.total_seconds() == 15 * 60
    assert job.func == scheduler.coordinator.run_batch
