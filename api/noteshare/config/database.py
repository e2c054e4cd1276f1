import logging

from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from .settings import DATABASE_URL

logger = logging.getLogger(__name__)

_is_sqlite = DATABASE_URL.startswith("sqlite")

# check_same_thread=False: SQLite connections are shared across the worker threads
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if _is_sqlite else {},
    pool_pre_ping=not _is_sqlite,
)


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


def configure_sqlite_connection(dbapi_connection, connection_record):
    """
    Enforce foreign keys and replace the built-in lower().

    SQLite compiles ILIKE to lower(x) LIKE lower(y), and its own lower() only
    folds ASCII, so "ÉCOLE" would never match "école" without this.
    """
    dbapi_connection.create_function("lower", 1, _unicode_lower, deterministic=True)
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _enable_wal(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


if _is_sqlite:
    event.listen(engine, "connect", configure_sqlite_connection)
    if ":memory:" not in DATABASE_URL and DATABASE_URL.rstrip("/") != "sqlite:":
        event.listen(engine, "connect", _enable_wal)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Yield a database session for the duration of one request"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    """Create all tables that do not exist yet"""
    # Import models so they register on Base.metadata
    from ..models import user, note, leaderboard  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables initialized")
