"""Tests for engine construction from settings."""
import pytest
from sqlalchemy.pool import NullPool

from synchro.config import Settings
from synchro.db.engine import (
    build_sync_engine,
    create_secondary_engine,
    to_sqlalchemy_url,
)
from synchro.errors import ConfigurationError
from synchro.replication.engine import SyncEngine
from synchro.replication.triggers import SessionContextTriggerSuppressor


class TestToSqlalchemyUrl:
    def test_url_passes_through(self):
        url = "mssql+pyodbc://user:pw@server/db?driver=ODBC+Driver+18+for+SQL+Server"
        assert to_sqlalchemy_url(url, "mssql+pyodbc") == url

    def test_odbc_string_is_wrapped(self):
        raw = "Driver={ODBC Driver 18 for SQL Server};Server=srv;Database=CodeBE;Trusted_Connection=yes;"
        url = to_sqlalchemy_url(raw, "mssql+pyodbc")
        assert url.startswith("mssql+pyodbc:///?odbc_connect=")
        assert "Driver%3D%7BODBC+Driver+18+for+SQL+Server%7D" in url
        assert " " not in url

    def test_access_string_uses_access_dialect(self):
        raw = r"Driver={Microsoft Access Driver (*.mdb, *.accdb)};DBQ=C:\data\codebe.accdb;"
        assert to_sqlalchemy_url(raw, "access+pyodbc").startswith("access+pyodbc:///?odbc_connect=")


class TestCreateSecondaryEngine:
    def test_file_store_is_unpooled(self, tmp_path):
        engine = create_secondary_engine(f"sqlite:///{tmp_path / 'secondary.db'}")
        assert isinstance(engine.pool, NullPool)
        engine.dispose()


class TestBuildSyncEngine:
    def test_missing_primary_url(self):
        settings = Settings(_env_file=None, secondary_database_url="sqlite://")
        with pytest.raises(ConfigurationError, match="PRIMARY_DATABASE_URL"):
            build_sync_engine(settings)

    def test_missing_secondary_url(self):
        settings = Settings(_env_file=None, primary_database_url="sqlite://")
        with pytest.raises(ConfigurationError, match="SECONDARY_DATABASE_URL"):
            build_sync_engine(settings)

    def test_builds_from_settings(self):
        settings = Settings(
            _env_file=None,
            primary_database_url="sqlite://",
            secondary_database_url="sqlite://",
            service_identity="SYNC_SVC",
            max_sync_attempts=3,
            trigger_suppression="session_context",
        )
        sync_engine = build_sync_engine(settings)
        try:
            assert isinstance(sync_engine, SyncEngine)
            assert sync_engine.reader.policy.service_identity == "SYNC_SVC"
            assert sync_engine.reader.max_attempts == 3
            assert isinstance(sync_engine.applier.suppressor, SessionContextTriggerSuppressor)
        finally:
            sync_engine.close()
