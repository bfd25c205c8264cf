from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from .config import settings


def create_store_engine(url: str, timeout: float = 5.0) -> Engine:
    """
    Create the SQLAlchemy engine for the relational store.

    SQLite:
    - check_same_thread=False, FastAPI serves requests from a thread pool
    - timeout = busy timeout, concurrent writers wait instead of failing
    - foreign keys ON (cascades of sessions → slots → bookings)
    - every transaction starts with BEGIN IMMEDIATE, so writers are
      serialized from the first statement and SAVEPOINTs nest inside
      a real transaction
    """
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    path = url[len("sqlite:///"):] if url.startswith("sqlite:///") else ""
    if path and path != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(
        url,
        connect_args={"check_same_thread": False, "timeout": timeout},
    )

    @event.listens_for(engine, "connect")
    def _configure_sqlite(dbapi_connection, _):
        # Let SQLAlchemy control BEGIN instead of pysqlite
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


engine = create_store_engine(
    settings.resolved_database_url,
    timeout=settings.db_timeout_seconds,
)

# SessionLocal: the main way to work with the database
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)


def init_db(bind: Engine | None = None) -> None:
    """Create all tables (development / tests; production uses alembic)."""
    from .models import Base

    Base.metadata.create_all(bind=bind or engine)


# FastAPI dependency
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
