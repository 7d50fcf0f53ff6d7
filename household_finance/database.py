import logging

from sqlalchemy import event
from sqlmodel import SQLModel, create_engine, Session
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import NullPool

from .config import settings

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_conn, _record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON;")
    cursor.close()


if settings.database_url.startswith("sqlite"):
    engine = create_engine(
        settings.database_url,
        echo=settings.sql_echo,
        connect_args={"check_same_thread": False, "timeout": 60},
        poolclass=NullPool,  # avoid multiple pooled connections holding write locks
    )
    event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    # Configure SQLite pragmas to reduce locking
    try:
        with engine.connect() as conn:
            conn.exec_driver_sql("PRAGMA journal_mode=WAL;")
            conn.exec_driver_sql("PRAGMA busy_timeout=60000;")
    except OperationalError:
        # The database may be momentarily locked during reloader startup.
        logger.warning("Could not set SQLite pragmas; database is locked")
else:
    engine = create_engine(
        settings.database_url,
        echo=settings.sql_echo,
    )


def get_session():
    with Session(engine) as session:
        yield session


def init_db():
    from .models import (  # noqa: F401
        budget,
        category,
        expense,
        payment_method,
        savings_goal,
        user,
        user_profile,
    )

    SQLModel.metadata.create_all(engine)
    logger.info("Database tables ensured")
