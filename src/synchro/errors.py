"""
Exception taxonomy for the replication engine.

Two families:

  Cycle-level (propagate to the scheduler, abort the cycle):
    ConfigurationError, PrimaryConnectionError, RecorderError

  Entry-level (caught per change-log entry, recorded on the entry):
    MappingError, UnmappedTableError, ApplicationError

TriggerSuppressionError sits apart: it is reported but never aborts an entry.
"""


class SyncError(Exception):
    """Base class for every error raised by the replication engine."""


# ── Cycle-level ───────────────────────────────────────────────────────────────

class ConfigurationError(SyncError):
    """Raised when a required store endpoint is missing or invalid."""


class PrimaryConnectionError(SyncError):
    """Raised when the primary store cannot be opened or its change log read."""


class RecorderError(SyncError):
    """Raised when an entry's outcome cannot be written back to the change log."""


# ── Entry-level ───────────────────────────────────────────────────────────────

class EntryError(SyncError):
    """Base class for failures confined to a single change-log entry."""


class MappingError(EntryError):
    """Raised when an entry cannot be translated into the target schema."""


class UnmappedTableError(MappingError):
    """Raised when an entry's TableName has no registered translation."""


class ApplicationError(EntryError):
    """Raised when the translated write fails against the target store."""


# ── Degraded ──────────────────────────────────────────────────────────────────

class TriggerSuppressionError(SyncError):
    """Raised when change-capture triggers cannot be disabled or re-enabled.

    A failed re-enable (``reenabling=True``) leaves the table silently
    un-instrumented and must be treated as critical by whoever reports it.
    """

    def __init__(self, table_name: str, reenabling: bool, reason: str):
        self.table_name = table_name
        self.reenabling = reenabling
        action = "re-enable" if reenabling else "disable"
        super().__init__(f"Could not {action} triggers on {table_name}: {reason}")
