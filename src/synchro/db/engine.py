"""SQLAlchemy engines for both stores and the SyncEngine built from settings."""
import urllib.parse
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool, StaticPool

from synchro.config import Settings, get_settings
from synchro.errors import ConfigurationError
from synchro.replication.engine import SyncEngine
from synchro.replication.reader import OriginPolicy
from synchro.replication.triggers import build_suppressor

PRIMARY_ODBC_DIALECT = "mssql+pyodbc"
SECONDARY_ODBC_DIALECT = "access+pyodbc"  # provided by sqlalchemy-access


def to_sqlalchemy_url(raw: str, odbc_dialect: str) -> str:
    """Accept either a SQLAlchemy URL or a raw ODBC connection string.

    "Driver={...};Server=...;" style strings (what App.config held) are
    wrapped as ``<dialect>:///?odbc_connect=<quoted>``.
    """
    raw = raw.strip()
    if "://" in raw:
        return raw
    return f"{odbc_dialect}:///?odbc_connect={urllib.parse.quote_plus(raw)}"


def _is_sqlite_memory(url: str) -> bool:
    return url.startswith("sqlite") and (":memory:" in url or url.rstrip("/") == "sqlite:")


def create_primary_engine(url: str) -> Engine:
    """Pooled engine; one connection is held for the length of a cycle."""
    url = to_sqlalchemy_url(url, PRIMARY_ODBC_DIALECT)
    if _is_sqlite_memory(url):
        return create_engine(url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    return create_engine(url, pool_pre_ping=True)


def create_secondary_engine(url: str) -> Engine:
    """Unpooled engine: every entry opens, writes, and really closes the file."""
    url = to_sqlalchemy_url(url, SECONDARY_ODBC_DIALECT)
    if _is_sqlite_memory(url):
        return create_engine(url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    return create_engine(url, poolclass=NullPool)


def build_sync_engine(settings: Optional[Settings] = None) -> SyncEngine:
    """Wire a SyncEngine from settings.

    Raises:
        ConfigurationError: a store URL is missing.
    """
    settings = settings or get_settings()
    if not settings.primary_database_url.strip():
        raise ConfigurationError("PRIMARY_DATABASE_URL is not set")
    if not settings.secondary_database_url.strip():
        raise ConfigurationError("SECONDARY_DATABASE_URL is not set")

    return SyncEngine(
        create_primary_engine(settings.primary_database_url),
        create_secondary_engine(settings.secondary_database_url),
        policy=OriginPolicy(
            service_identity=settings.service_identity,
            secondary_prefix=settings.secondary_origin_prefix,
        ),
        suppressor=build_suppressor(settings.trigger_suppression),
        max_sync_attempts=settings.max_sync_attempts,
    )
