"""
APScheduler job driving the replication engine.

One interval job, never more than one instance at a time: a cycle that
overruns the interval delays the next tick instead of overlapping it
(overlapping cycles would both select the same entries and fight over
trigger suppression).
"""
import logging
from typing import Optional

from apscheduler.schedulers.blocking import BlockingScheduler

from synchro.config import get_settings
from synchro.errors import SyncError
from synchro.replication.engine import CycleReport, SyncEngine

logger = logging.getLogger(__name__)

JOB_ID = "sync_cycle"


def build_scheduler(sync_engine: SyncEngine) -> BlockingScheduler:
    """
    Create and configure the scheduler.

    Args:
        sync_engine: Engine whose perform_sync() runs on every tick.

    Returns:
        Configured BlockingScheduler (not yet started).
    """
    settings = get_settings()
    scheduler = BlockingScheduler()

    scheduler.add_job(
        run_sync_cycle,
        trigger="interval",
        seconds=settings.sync_interval_seconds,
        id=JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        kwargs={"sync_engine": sync_engine},
    )

    return scheduler


def run_sync_cycle(sync_engine: SyncEngine) -> Optional[CycleReport]:
    """Job body: one cycle. Errors are logged so the scheduler stays alive."""
    try:
        return sync_engine.perform_sync()
    except SyncError as exc:
        logger.error("Sync cycle aborted: %s", exc)
    except Exception:
        logger.exception("Unexpected error during sync cycle")
    return None
