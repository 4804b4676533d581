"""Database session management."""

from contextlib import contextmanager
from typing import Generator
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, Session

from mcp_workspace.infra.config import config


def _engine_options(database_url: str) -> dict:
    if database_url.startswith("sqlite"):
        # Request handlers and the test client run on different threads
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": 10,  # Number of connections to maintain
        "max_overflow": 20,  # Max connections beyond pool_size
        "pool_timeout": 30,  # Seconds to wait for connection from pool
        "pool_recycle": 3600,  # Recycle connections after 1 hour
    }


engine = create_engine(
    config.DATABASE_URL,
    pool_pre_ping=True,  # Verify connections before using
    echo=config.DEBUG,
    **_engine_options(config.DATABASE_URL),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """Get a database session that commits on success and rolls back on error."""
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_db() -> Generator[Session, None, None]:
    """Dependency for FastAPI routes."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def init_db() -> None:
    """Create the workspaces table if it does not exist yet."""
    with get_db_session() as session:
        session.execute(
            text("""
                CREATE TABLE IF NOT EXISTS workspaces (
                    id VARCHAR(255) PRIMARY KEY,
                    data TEXT NOT NULL,
                    wid_hash VARCHAR(64),
                    updated_at TIMESTAMP
                )
            """)
        )
        session.execute(
            text("CREATE INDEX IF NOT EXISTS idx_workspaces_wid_hash ON workspaces (wid_hash)")
        )
