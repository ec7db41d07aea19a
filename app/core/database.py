"""Database engine and session management.

Checklist submissions are held in SQLite. The default URL (``sqlite://``)
is an in-memory database, so records only live as long as the process,
the same way the dashboard kept them before it had a server.

SQLite Configuration Choices:
    - **StaticPool for in-memory URLs**: every new connection to ``sqlite://``
      would otherwise open a fresh, empty database. A single shared
      connection keeps one database for the whole process.

    - **WAL (Write-Ahead Logging)** for file databases: readers are not
      blocked while a submission is being written.

    - **check_same_thread=False**: FastAPI may hand a session to a worker
      thread other than the one that opened the connection.
"""

from sqlalchemy import event as sa_event
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.core.config import settings

IN_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")

connect_args = {"check_same_thread": False}


def build_engine(database_url: str, echo: bool = False):
    """Create an engine for the given SQLite URL."""
    if database_url in IN_MEMORY_URLS:
        return create_engine(
            database_url,
            connect_args=connect_args,
            poolclass=StaticPool,
            echo=echo,
        )

    file_engine = create_engine(database_url, connect_args=connect_args, echo=echo)

    @sa_event.listens_for(file_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        """Enable WAL on each new pooled connection (pragmas are per-connection)."""
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    return file_engine


engine = build_engine(settings.database_url, echo=settings.debug)


def create_db_and_tables():
    """Create all database tables."""
    SQLModel.metadata.create_all(engine)


def get_session():
    """Dependency for getting database session."""
    with Session(engine) as session:
        yield session
