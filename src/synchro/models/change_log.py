"""Change-log model (the SyncLog table on the primary store)."""
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import Text
from sqlmodel import Field, SQLModel

from synchro.errors import MappingError


class Operation(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Operation":
        """Parse the log's Operation column (case-insensitive)."""
        try:
            return cls((value or "").strip().upper())
        except ValueError:
            raise MappingError(f"Unknown operation {value!r}") from None


class Direction(str, Enum):
    PRIMARY_TO_SECONDARY = "primary_to_secondary"
    SECONDARY_TO_PRIMARY = "secondary_to_primary"

    @property
    def targets_primary(self) -> bool:
        return self is Direction.SECONDARY_TO_PRIMARY


def _column(name: str, key: str) -> dict:
    # Python attribute names are snake_case; the table keeps the store's column names.
    return {"name": name, "key": key}


class ChangeLogEntry(SQLModel, table=True):
    """One captured insert/update/delete, pending replication to the other store.

    Only the outcome columns (synchronized, sync_attempts, last_sync_error)
    are ever written after creation, and only by the OutcomeRecorder.
    """

    __tablename__ = "SyncLog"

    id: Optional[int] = Field(
        default=None, primary_key=True, sa_column_kwargs=_column("ID", "id")
    )
    table_name: str = Field(sa_column_kwargs=_column("TableName", "table_name"))
    operation: str = Field(sa_column_kwargs=_column("Operation", "operation"))
    key_values: str = Field(sa_type=Text, sa_column_kwargs=_column("KeyValues", "key_values"))
    new_values: Optional[str] = Field(
        default=None, sa_type=Text, sa_column_kwargs=_column("NewValues", "new_values")
    )
    old_values: Optional[str] = Field(
        default=None, sa_type=Text, sa_column_kwargs=_column("OldValues", "old_values")
    )
    origin: Optional[str] = Field(default=None, sa_column_kwargs=_column("CreatedBy", "origin"))
    modified_at: datetime = Field(
        default_factory=datetime.now,
        sa_column_kwargs=_column("DateModification", "modified_at"),
    )
    synchronized: bool = Field(
        default=False, sa_column_kwargs=_column("Synchronized", "synchronized")
    )
    sync_attempts: int = Field(default=0, sa_column_kwargs=_column("SyncAttempts", "sync_attempts"))
    last_sync_error: Optional[str] = Field(
        default=None, sa_type=Text, sa_column_kwargs=_column("LastSyncError", "last_sync_error")
    )
