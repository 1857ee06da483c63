"""
Change-capture trigger suppression on the primary store.

Every write the engine makes on the primary would otherwise be captured by
the table's trigger and replayed back to the secondary. Two strategies:

  AlterTableTriggerSuppressor
      ALTER TABLE t DISABLE / ENABLE TRIGGER ALL. Table-wide: while disabled,
      writes from *any* session go uncaptured, so cycles must be serialized
      and no other writer should touch the table during the window.

  SessionContextTriggerSuppressor
      Sets a session-context flag on the engine's own connection. Triggers
      must opt in by returning early when the flag is set:

          IF SESSION_CONTEXT(N'synchro_replaying') = 1 RETURN;

      Other sessions stay instrumented.

suppressed_triggers() wraps either one so that re-enabling happens on every
exit path.
"""
import logging
from contextlib import contextmanager
from typing import Callable, Iterator, Optional, Protocol

from sqlalchemy import text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from synchro.errors import TriggerSuppressionError

logger = logging.getLogger(__name__)

SESSION_CONTEXT_KEY = "synchro_replaying"


class TriggerSuppressor(Protocol):
    def disable(self, conn: Connection, table_name: str) -> None: ...

    def enable(self, conn: Connection, table_name: str) -> None: ...


class AlterTableTriggerSuppressor:
    """Disables every trigger on the table for the duration of the write."""

    def disable(self, conn: Connection, table_name: str) -> None:
        self._alter(conn, table_name, reenabling=False)

    def enable(self, conn: Connection, table_name: str) -> None:
        self._alter(conn, table_name, reenabling=True)

    @staticmethod
    def _alter(conn: Connection, table_name: str, reenabling: bool) -> None:
        quoted = conn.dialect.identifier_preparer.quote(table_name)
        action = "ENABLE" if reenabling else "DISABLE"
        try:
            conn.execute(text(f"ALTER TABLE {quoted} {action} TRIGGER ALL"))
            conn.commit()
        except SQLAlchemyError as exc:
            conn.rollback()
            raise TriggerSuppressionError(table_name, reenabling, str(exc)) from exc
        logger.info("Triggers %sd on %s", action.lower(), table_name)


class SessionContextTriggerSuppressor:
    """Flags the engine's session so opted-in triggers skip capture."""

    def __init__(self, key: str = SESSION_CONTEXT_KEY):
        self.key = key

    def disable(self, conn: Connection, table_name: str) -> None:
        self._set(conn, table_name, 1)

    def enable(self, conn: Connection, table_name: str) -> None:
        self._set(conn, table_name, None)

    def _set(self, conn: Connection, table_name: str, value: Optional[int]) -> None:
        try:
            conn.execute(
                text("EXEC sp_set_session_context @key = :key, @value = :value"),
                {"key": self.key, "value": value},
            )
        except SQLAlchemyError as exc:
            conn.rollback()
            raise TriggerSuppressionError(table_name, value is None, str(exc)) from exc


def build_suppressor(strategy: str) -> TriggerSuppressor:
    if strategy == "session_context":
        return SessionContextTriggerSuppressor()
    return AlterTableTriggerSuppressor()


@contextmanager
def suppressed_triggers(
    suppressor: TriggerSuppressor,
    conn: Connection,
    table_name: str,
    on_failure: Optional[Callable[[TriggerSuppressionError], None]] = None,
) -> Iterator[None]:
    """Disable capture on entry, re-enable exactly once on exit.

    Suppression failures never abort the write: a failed disable means the
    write is captured (and tagged with the service identity, which the
    reader skips); a failed re-enable is logged as critical. Both are passed
    to ``on_failure``.
    """
    try:
        suppressor.disable(conn, table_name)
    except TriggerSuppressionError as exc:
        logger.error("%s; the write will be captured", exc)
        if on_failure is not None:
            on_failure(exc)
    try:
        yield
    finally:
        try:
            suppressor.enable(conn, table_name)
        except TriggerSuppressionError as exc:
            logger.critical("%s; changes to %s are no longer captured", exc, table_name)
            if on_failure is not None:
                on_failure(exc)
