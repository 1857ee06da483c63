"""Outcome recording: the only writer of a change-log entry after capture."""
import logging
from typing import Optional

from sqlalchemy import update
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from synchro.errors import RecorderError
from synchro.models.change_log import ChangeLogEntry

logger = logging.getLogger(__name__)

MAX_ERROR_LENGTH = 4000


class OutcomeRecorder:
    def record(
        self,
        conn: Connection,
        entry_id: int,
        success: bool,
        error_message: Optional[str] = None,
    ) -> None:
        """Mark an entry synchronized or failed and count the attempt.

        Success clears LastSyncError; failure stores the (truncated) message.
        Committed immediately.

        Raises:
            RecorderError: the update failed or matched no entry. The caller
                must abort the cycle: the store now holds a write the log
                does not know about.
        """
        log = ChangeLogEntry.__table__
        error = None if success else (error_message or "Unknown error")[:MAX_ERROR_LENGTH]
        stmt = (
            update(log)
            .where(log.c.id == entry_id)
            .values(
                synchronized=success,
                sync_attempts=log.c.sync_attempts + 1,
                last_sync_error=error,
            )
        )
        try:
            result = conn.execute(stmt)
            conn.commit()
        except SQLAlchemyError as exc:
            raise RecorderError(f"Could not record outcome of entry {entry_id}: {exc}") from exc
        if result.rowcount != 1:
            raise RecorderError(f"Change-log entry {entry_id} not found")
        logger.debug("Entry %d recorded as %s", entry_id, "synchronized" if success else "failed")
