import os
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.exc import DBAPIError, DisconnectionError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from core.errors import MediationError, StorageError
from utils.state import State

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./mediation.db")

engine = create_engine(
    DATABASE_URL,
    connect_args=(
        {"check_same_thread": False, "timeout": 30}
        if "sqlite" in DATABASE_URL
        else {}
    ),
    # Help detect and recycle stale/closed connections (useful for SSL disconnects)
    pool_pre_ping=True,
)


if "sqlite" in DATABASE_URL:

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        # Ensure SQLite enforces foreign key constraints (so ON DELETE CASCADE works)
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
        # Take over transaction control from pysqlite, see _begin_immediate
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        # Writers queue on the database lock up front instead of failing
        # with "database is locked" when two readers try to upgrade.
        conn.exec_driver_sql("BEGIN IMMEDIATE")


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        try:
            yield db
        except (OperationalError, DBAPIError, DisconnectionError) as e:
            # Log the original DBAPI error for diagnostics; re-raise generic error
            State.logger.exception(f"Database operational error: {e}")
            raise StorageError() from e
    finally:
        db.close()


@contextmanager
def transaction(db: Session):
    """Run one logical operation as a single commit.

    Business errors and storage errors both roll back everything written
    inside the block.
    """
    try:
        yield db
        db.commit()
    except MediationError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        State.logger.exception(f"Transaction rolled back: {e}")
        raise StorageError() from e
