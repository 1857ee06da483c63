"""
SyncEngine: one full replication cycle across both stores.

Flow for a cycle:
  1. Open the primary connection (shared by both directions)
  2. primary → secondary: select pending entries, apply each, record outcome
  3. secondary → primary: same, with primary writes under trigger suppression
  4. Close the primary connection

Entry-level failures (mapping, application) are recorded on the entry and
the batch continues. Cycle-level failures (primary unreachable, outcome not
recordable) abort the cycle and propagate to the scheduler; the next tick
starts from scratch.

Cycles must not overlap: neither entry selection nor table-wide trigger
suppression is safe under concurrent cycles against the same stores.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from synchro.errors import (
    ConfigurationError,
    EntryError,
    PrimaryConnectionError,
    RecorderError,
    TriggerSuppressionError,
)
from synchro.models.change_log import ChangeLogEntry, Direction
from synchro.replication.applier import ChangeApplier
from synchro.replication.reader import ChangeLogReader, OriginPolicy
from synchro.replication.recorder import OutcomeRecorder
from synchro.replication.triggers import AlterTableTriggerSuppressor, TriggerSuppressor

logger = logging.getLogger(__name__)

CYCLE_ORDER = (Direction.PRIMARY_TO_SECONDARY, Direction.SECONDARY_TO_PRIMARY)


class CycleState(str, Enum):
    IDLE = "idle"
    CONNECTING_PRIMARY = "connecting_primary"
    PROCESSING_PRIMARY_TO_SECONDARY = "processing_primary_to_secondary"
    PROCESSING_SECONDARY_TO_PRIMARY = "processing_secondary_to_primary"
    FAILED = "failed"


_PROCESSING_STATE = {
    Direction.PRIMARY_TO_SECONDARY: CycleState.PROCESSING_PRIMARY_TO_SECONDARY,
    Direction.SECONDARY_TO_PRIMARY: CycleState.PROCESSING_SECONDARY_TO_PRIMARY,
}


@dataclass
class DirectionReport:
    direction: Direction
    selected: int = 0
    synchronized: int = 0
    failed: int = 0


@dataclass
class CycleReport:
    started_at: datetime
    finished_at: Optional[datetime] = None
    directions: List[DirectionReport] = field(default_factory=list)
    trigger_failures: List[TriggerSuppressionError] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return sum(d.failed for d in self.directions)

    @property
    def synchronized(self) -> int:
        return sum(d.synchronized for d in self.directions)

    @property
    def unrestored_triggers(self) -> List[str]:
        """Tables whose triggers could not be re-enabled this cycle."""
        return [f.table_name for f in self.trigger_failures if f.reenabling]


class SyncEngine:
    """Orchestrates reader → applier → recorder for both directions."""

    def __init__(
        self,
        primary_engine: Optional[Engine],
        secondary_engine: Optional[Engine],
        *,
        policy: Optional[OriginPolicy] = None,
        suppressor: Optional[TriggerSuppressor] = None,
        max_sync_attempts: Optional[int] = None,
        recorder: Optional[OutcomeRecorder] = None,
    ):
        """
        Args:
            primary_engine: Server store holding the change log; trigger-bearing.
            secondary_engine: Desktop-file store.
            policy: Origin rule; defaults to ACCESS_ / WINDOWS_SERVICE.
            suppressor: Trigger suppression for primary writes.
            max_sync_attempts: Dead-letter threshold, None for unbounded retry.
            recorder: Outcome recorder (injectable for tests).

        Raises:
            ConfigurationError: either store is missing.
        """
        if primary_engine is None:
            raise ConfigurationError("Primary store connection is not configured")
        if secondary_engine is None:
            raise ConfigurationError("Secondary store connection is not configured")

        self.primary_engine = primary_engine
        self.secondary_engine = secondary_engine
        self.reader = ChangeLogReader(policy or OriginPolicy(), max_attempts=max_sync_attempts)
        self.applier = ChangeApplier(
            secondary_engine,
            suppressor or AlterTableTriggerSuppressor(),
            on_trigger_failure=self._on_trigger_failure,
        )
        self.recorder = recorder or OutcomeRecorder()
        self.state = CycleState.IDLE
        self._report: Optional[CycleReport] = None

    def perform_sync(self) -> CycleReport:
        """Run one cycle over both directions.

        Returns:
            CycleReport with per-direction counts.

        Raises:
            PrimaryConnectionError: primary store unreachable; nothing processed.
            RecorderError: an outcome could not be recorded; cycle aborted.
        """
        report = CycleReport(started_at=datetime.now())
        self._report = report
        logger.info("Sync cycle starting")

        self.state = CycleState.CONNECTING_PRIMARY
        try:
            conn = self.primary_engine.connect()
        except SQLAlchemyError as exc:
            self.state = CycleState.FAILED
            logger.error("Primary store unavailable, cycle aborted: %s", exc)
            raise PrimaryConnectionError(f"Could not connect to the primary store: {exc}") from exc

        try:
            with conn:
                for direction in CYCLE_ORDER:
                    self.state = _PROCESSING_STATE[direction]
                    report.directions.append(self._process_direction(conn, direction))
        except (PrimaryConnectionError, RecorderError):
            self.state = CycleState.FAILED
            raise
        finally:
            self._report = None

        report.finished_at = datetime.now()
        self.state = CycleState.IDLE
        logger.info(
            "Sync cycle finished: %d synchronized, %d failed",
            report.synchronized, report.failed,
        )
        if report.unrestored_triggers:
            logger.critical(
                "Triggers left disabled after this cycle on: %s",
                ", ".join(report.unrestored_triggers),
            )
        return report

    def close(self) -> None:
        self.primary_engine.dispose()
        self.secondary_engine.dispose()

    # ─── Internal helpers ─────────────────────────────────────────────────────

    def _process_direction(self, conn: Connection, direction: Direction) -> DirectionReport:
        logger.info("=== %s ===", direction.value)
        result = DirectionReport(direction=direction)
        entries = self.reader.select_pending(conn, direction)
        result.selected = len(entries)

        for entry in entries:
            if self._process_entry(conn, direction, entry):
                result.synchronized += 1
            else:
                result.failed += 1
        return result

    def _process_entry(self, conn: Connection, direction: Direction, entry: ChangeLogEntry) -> bool:
        try:
            self.applier.apply(entry, direction, conn)
        except EntryError as exc:
            logger.error("Entry %s (%s %s) failed: %s", entry.id, entry.operation, entry.table_name, exc)
            self.recorder.record(conn, entry.id, False, str(exc))
            return False
        except Exception as exc:
            logger.exception("Unexpected error applying entry %s", entry.id)
            self.recorder.record(conn, entry.id, False, f"{type(exc).__name__}: {exc}")
            return False

        self.recorder.record(conn, entry.id, True)
        logger.info("Entry %s synchronized", entry.id)
        return True

    def _on_trigger_failure(self, exc: TriggerSuppressionError) -> None:
        if self._report is not None:
            self._report.trigger_failures.append(exc)
