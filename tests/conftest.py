"""Shared test fixtures."""
import json
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional
from unittest.mock import MagicMock

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from synchro.models.change_log import ChangeLogEntry
from synchro.models.tables import primary_metadata, secondary_metadata

BASE_TIME = datetime(2025, 3, 10, 8, 0, 0)


def _memory_engine():
    return create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture(name="primary_engine")
def primary_engine_fixture():
    """In-memory stand-in for the SQL Server store: SyncLog plus Blo* tables."""
    engine = _memory_engine()
    SQLModel.metadata.create_all(engine)
    primary_metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(name="secondary_engine")
def secondary_engine_fixture():
    """In-memory stand-in for the Access store."""
    engine = _memory_engine()
    secondary_metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(name="suppressor")
def suppressor_fixture():
    """SQLite has no trigger DDL; record the calls instead."""
    return MagicMock()


@pytest.fixture(name="add_entry")
def add_entry_fixture(primary_engine) -> Callable[..., int]:
    """Factory that writes a SyncLog entry and returns its ID.

    Entries get increasing DateModification values unless one is given.
    """
    counter = {"n": 0}

    def _add(
        table_name: str,
        operation: str,
        keys: Dict[str, Any],
        values: Optional[Dict[str, Any]] = None,
        origin: Optional[str] = "dbo",
        modified_at: Optional[datetime] = None,
    ) -> int:
        counter["n"] += 1
        entry = ChangeLogEntry(
            table_name=table_name,
            operation=operation,
            key_values=json.dumps(keys),
            new_values=json.dumps(values) if values is not None else None,
            origin=origin,
            modified_at=modified_at or BASE_TIME + timedelta(seconds=counter["n"]),
        )
        with Session(primary_engine) as s:
            s.add(entry)
            s.commit()
            s.refresh(entry)
            return entry.id

    return _add


@pytest.fixture(name="get_entry")
def get_entry_fixture(primary_engine) -> Callable[[int], ChangeLogEntry]:
    def _get(entry_id: int) -> ChangeLogEntry:
        with Session(primary_engine) as s:
            entry = s.get(ChangeLogEntry, entry_id)
            s.expunge(entry)
            return entry

    return _get
