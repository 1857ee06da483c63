"""
Applies one change-log entry to the opposite store.

Flow for a single entry:
  1. Parse Operation and the JSON row images
  2. Resolve the table pair and translate into the target schema
  3. Issue exactly one write (INSERT, UPDATE or DELETE) against the target:
       - secondary: fresh connection, committed and closed on exit
       - primary:   the cycle's shared connection, inside suppressed_triggers()

Idempotency: an INSERT whose natural key already exists on the target is
written as an UPDATE, so replaying an entry after a crash between apply and
record never duplicates the row.
"""
import logging
from typing import Callable, Optional

from sqlalchemy import and_, delete, func, insert, select, update
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from synchro.errors import ApplicationError, TriggerSuppressionError
from synchro.mapping.coercion import parse_payload
from synchro.mapping.registry import translation_for
from synchro.mapping.translation import TargetRow, Translation
from synchro.models.change_log import ChangeLogEntry, Direction, Operation
from synchro.replication.triggers import TriggerSuppressor, suppressed_triggers

logger = logging.getLogger(__name__)


class ChangeApplier:
    """Translates and writes single entries; knows nothing about retries."""

    def __init__(
        self,
        secondary_engine: Engine,
        suppressor: TriggerSuppressor,
        on_trigger_failure: Optional[Callable[[TriggerSuppressionError], None]] = None,
    ):
        """
        Args:
            secondary_engine: Engine for the secondary store; one connection
                is checked out per entry.
            suppressor: Trigger suppression strategy for primary writes.
            on_trigger_failure: Called with every suppression failure.
        """
        self.secondary_engine = secondary_engine
        self.suppressor = suppressor
        self.on_trigger_failure = on_trigger_failure

    def apply(self, entry: ChangeLogEntry, direction: Direction, primary_conn: Connection) -> int:
        """Apply ``entry`` toward the store ``direction`` points at.

        Returns:
            Number of target rows affected.

        Raises:
            MappingError: the entry cannot be translated.
            ApplicationError: the target write failed.
        """
        operation = Operation.parse(entry.operation)
        translation = translation_for(direction, entry.table_name)
        keys = parse_payload(entry.key_values, "KeyValues")
        values = {} if operation is Operation.DELETE else parse_payload(entry.new_values, "NewValues")
        row = translation.to_target(operation, keys, values)

        logger.info(
            "Applying %s %s → %s (entry %s)",
            operation.value, entry.table_name, translation.target.name, entry.id,
        )
        if direction.targets_primary:
            return self._apply_to_primary(primary_conn, translation, operation, row)
        return self._apply_to_secondary(translation, operation, row)

    # ─── Internal helpers ─────────────────────────────────────────────────────

    def _apply_to_secondary(self, translation: Translation, operation: Operation, row: TargetRow) -> int:
        try:
            with self.secondary_engine.begin() as conn:
                return _write(conn, translation, operation, row)
        except SQLAlchemyError as exc:
            raise ApplicationError(
                f"{operation.value} on {translation.target.name} failed: {exc}"
            ) from exc

    def _apply_to_primary(
        self, conn: Connection, translation: Translation, operation: Operation, row: TargetRow
    ) -> int:
        table_name = translation.target.name
        with suppressed_triggers(self.suppressor, conn, table_name, self.on_trigger_failure):
            try:
                affected = _write(conn, translation, operation, row)
                conn.commit()
            except SQLAlchemyError as exc:
                conn.rollback()
                raise ApplicationError(
                    f"{operation.value} on {table_name} failed: {exc}"
                ) from exc
        return affected


def _write(conn: Connection, translation: Translation, operation: Operation, row: TargetRow) -> int:
    table = translation.target
    where = and_(*(table.c[name] == value for name, value in row.key.items()))

    if operation is Operation.DELETE:
        affected = conn.execute(delete(table).where(where)).rowcount
    elif operation is Operation.INSERT and not _exists(conn, table, where):
        affected = conn.execute(
            insert(table).values({**row.key, **translation.insert_defaults, **row.values})
        ).rowcount
    else:
        if operation is Operation.INSERT:
            logger.warning("%s row %s already present; applying insert as update", table.name, row.key)
        affected = conn.execute(update(table).where(where).values(row.values)).rowcount

    if affected == 0:
        logger.warning("%s on %s matched no row for key %s", operation.value, table.name, row.key)
    return affected


def _exists(conn: Connection, table, where) -> bool:
    return conn.execute(select(func.count()).select_from(table).where(where)).scalar_one() > 0
