"""
APScheduler backend tests
"""
import pytest

from pms.services.scheduler_backend import MISFIRE_GRACE_SECONDS, APSchedulerBackend


@pytest.fixture
def backend():
    backend = APSchedulerBackend()
    backend.start()
    yield backend
    backend.shutdown()


class TestAPSchedulerBackend:

    def test_add_job(self, backend):
        backend.add_job("automation-sweep-1", lambda: None, "interval", seconds=300)

        job = backend.scheduler.get_job("automation-sweep-1")

        assert job is not None
        assert job.name == "automation-sweep-1"
        assert job.next_run_time is not None
        assert job.trigger.interval.total_seconds() == 300

    def test_overlapping_runs_coalesced(self, backend):
        backend.add_job("automation-sweep-1", lambda: None, "interval", seconds=300)

        job = backend.scheduler.get_job("automation-sweep-1")

        assert job.coalesce is True
        assert job.max_instances == 1
        assert job.misfire_grace_time == MISFIRE_GRACE_SECONDS

    def test_add_replaces_existing(self, backend):
        backend.add_job("job", lambda: None, "interval", seconds=300)
        backend.add_job("job", lambda: None, "interval", seconds=60)

        jobs = backend.scheduler.get_jobs()

        assert len(jobs) == 1
        assert jobs[0].trigger.interval.total_seconds() == 60

    def test_remove_job(self, backend):
        backend.add_job("job", lambda: None, "interval", seconds=300)

        assert backend.remove_job("job") is True
        assert backend.remove_job("job") is False
        assert backend.scheduler.get_job("job") is None

    def test_start_and_shutdown(self):
        backend = APSchedulerBackend()
        assert backend.running is False

        backend.start()
        backend.start()
        assert backend.running is True

        backend.shutdown()
        backend.shutdown()
        assert backend.running is False
