"""
Change-log selection per replication direction.

Both directions read the same SyncLog table on the primary. The origin tag
(CreatedBy) decides which direction an entry belongs to:

  secondary → primary:  CreatedBy LIKE '<secondary_prefix>%'
  primary → secondary:  everything else, except the engine's own identity
                        (NULL counts as a native primary write)

The two predicates are complements of each other minus the service identity,
so no entry can be selected by both directions.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import and_, false, not_, or_, select
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql.elements import ColumnElement

from synchro.errors import PrimaryConnectionError
from synchro.models.change_log import ChangeLogEntry, Direction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OriginPolicy:
    service_identity: str = "WINDOWS_SERVICE"
    secondary_prefix: str = "ACCESS_"

    def clause(self, direction: Direction) -> ColumnElement:
        origin = ChangeLogEntry.__table__.c.origin
        from_secondary = origin.startswith(self.secondary_prefix, autoescape=True)
        if direction.targets_primary:
            return from_secondary
        return or_(
            origin.is_(None),
            and_(not_(from_secondary), origin != self.service_identity),
        )


class ChangeLogReader:
    """Selects unsynchronized entries for one direction, oldest first."""

    def __init__(self, policy: OriginPolicy, max_attempts: Optional[int] = None):
        """
        Args:
            policy: Origin rule separating the two directions.
            max_attempts: Entries that already failed this many times are
                left alone (dead letters). None retries forever.
        """
        self.policy = policy
        self.max_attempts = max_attempts

    def select_pending(self, conn: Connection, direction: Direction) -> List[ChangeLogEntry]:
        """Fresh query every call; nothing is cached between cycles.

        Raises:
            PrimaryConnectionError: the change log could not be read.
        """
        log = ChangeLogEntry.__table__
        stmt = (
            select(log)
            .where(log.c.synchronized == false(), self.policy.clause(direction))
            .order_by(log.c.modified_at, log.c.id)
        )
        if self.max_attempts is not None:
            stmt = stmt.where(log.c.sync_attempts < self.max_attempts)

        try:
            rows = conn.execute(stmt).all()
        except SQLAlchemyError as exc:
            raise PrimaryConnectionError(f"Could not read the change log: {exc}") from exc

        entries = [
            ChangeLogEntry(**{column.key: row._mapping[column] for column in log.columns})
            for row in rows
        ]
        logger.info("Found %d pending entries for %s", len(entries), direction.value)
        return entries
