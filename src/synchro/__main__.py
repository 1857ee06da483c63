"""
Main entrypoint: runs the replication service.

Usage:
    python -m synchro          # sync every SYNC_INTERVAL_SECONDS until Ctrl+C
    python -m synchro once     # run a single cycle and exit (status 1 on failure)
"""
import logging
import sys
from pathlib import Path
from typing import List, Optional

from synchro.config import Settings

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


def configure_logging(settings: Settings) -> None:
    """Console logging, plus a log file when LOG_FILE is set."""
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if settings.log_file:
        log_path = Path(settings.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))
    logging.basicConfig(level=settings.log_level.upper(), format=LOG_FORMAT, handlers=handlers)


def _run_once() -> int:
    from synchro.db.engine import build_sync_engine
    from synchro.errors import SyncError

    sync_engine = build_sync_engine()
    try:
        sync_engine.perform_sync()
    except SyncError as exc:
        logger.error("Sync cycle failed: %s", exc)
        return 1
    finally:
        sync_engine.close()
    return 0


def _run_service() -> None:
    from synchro.config import get_settings
    from synchro.db.engine import build_sync_engine
    from synchro.scheduler.jobs import build_scheduler

    settings = get_settings()
    sync_engine = build_sync_engine(settings)
    scheduler = build_scheduler(sync_engine)
    logger.info("Service started (sync every %d s)", settings.sync_interval_seconds)

    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Shutting down...")
    finally:
        if scheduler.running:
            scheduler.shutdown()
        sync_engine.close()
        logger.info("Service stopped")


def main(argv: Optional[List[str]] = None) -> int:
    from synchro.config import get_settings
    from synchro.errors import ConfigurationError

    argv = sys.argv[1:] if argv is None else argv
    configure_logging(get_settings())

    try:
        if argv and argv[0] == "once":
            return _run_once()
        if argv:
            print("Usage: python -m synchro [once]", file=sys.stderr)
            return 2
        _run_service()
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
