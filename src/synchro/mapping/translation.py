"""Translation result and per-direction translation descriptor."""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping

from sqlalchemy import Table

from synchro.mapping.coercion import Payload
from synchro.models.change_log import Operation


@dataclass(frozen=True)
class TargetRow:
    """A translated row: natural-key columns plus the columns to write."""

    key: Dict[str, Any]
    values: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Translation:
    """One direction of one entity pair.

    Attributes:
        source_table: TableName as written in the change log.
        target: Core table the translated row is written to.
        translate_key: KeyValues → target natural key (Delete).
        translate_row: (KeyValues, NewValues) → TargetRow (Insert / Update).
        insert_defaults: Target-only columns set on Insert and left alone on Update.
    """

    source_table: str
    target: Table
    translate_key: Callable[[Payload], Dict[str, Any]]
    translate_row: Callable[[Payload, Payload], TargetRow]
    insert_defaults: Mapping[str, Any] = field(default_factory=dict)

    def to_target(self, operation: Operation, keys: Payload, values: Payload) -> TargetRow:
        if operation is Operation.DELETE:
            return TargetRow(key=self.translate_key(keys))
        return self.translate_row(keys, values)
