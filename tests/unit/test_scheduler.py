"""Tests for APScheduler job configuration and the sync cycle job body."""
from datetime import timedelta
from unittest.mock import MagicMock, patch

from apscheduler.schedulers.blocking import BlockingScheduler

from synchro.errors import PrimaryConnectionError
from synchro.scheduler.jobs import JOB_ID, build_scheduler, run_sync_cycle


def _job(scheduler):
    return next(j for j in scheduler.get_jobs() if j.id == JOB_ID)


class TestBuildScheduler:
    def test_returns_scheduler(self):
        scheduler = build_scheduler(MagicMock())
        assert isinstance(scheduler, BlockingScheduler)

    def test_sync_job_registered(self):
        scheduler = build_scheduler(MagicMock())
        assert [job.id for job in scheduler.get_jobs()] == [JOB_ID]

    def test_sync_job_is_interval(self):
        scheduler = build_scheduler(MagicMock())
        assert _job(scheduler).trigger.__class__.__name__ == "IntervalTrigger"

    def test_interval_from_settings(self):
        """Scheduler respects the SYNC_INTERVAL_SECONDS setting."""
        with patch("synchro.scheduler.jobs.get_settings") as mock_settings:
            mock_settings.return_value.sync_interval_seconds = 45
            scheduler = build_scheduler(MagicMock())

        assert _job(scheduler).trigger.interval == timedelta(seconds=45)

    def test_cycles_never_overlap(self):
        job = _job(build_scheduler(MagicMock()))
        assert job.max_instances == 1
        assert job.coalesce is True

    def test_job_runs_cycle_against_engine(self):
        engine = MagicMock()
        job = _job(build_scheduler(engine))
        assert job.func is run_sync_cycle
        assert job.kwargs == {"sync_engine": engine}

    def test_scheduler_not_running_on_creation(self):
        """build_scheduler should not auto-start."""
        scheduler = build_scheduler(MagicMock())
        assert not scheduler.running


# ─── run_sync_cycle job body ───────────────────────────────────────────────────

class TestRunSyncCycle:
    def test_returns_report(self):
        engine = MagicMock()
        engine.perform_sync.return_value = "report"
        assert run_sync_cycle(engine) == "report"
        engine.perform_sync.assert_called_once()

    def test_sync_error_does_not_propagate(self, caplog):
        """An aborted cycle is logged; the next tick starts from scratch."""
        engine = MagicMock()
        engine.perform_sync.side_effect = PrimaryConnectionError("server down")

        with caplog.at_level("ERROR"):
            assert run_sync_cycle(engine) is None

        assert "server down" in caplog.text

    def test_unexpected_exception_does_not_propagate(self):
        """The job catches everything so the scheduler stays alive."""
        engine = MagicMock()
        engine.perform_sync.side_effect = RuntimeError("boom")
        # Should not raise
        assert run_sync_cycle(engine) is None
