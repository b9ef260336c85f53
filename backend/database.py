# backend/database.py
from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker
from dotenv import load_dotenv

from config import settings

load_dotenv()

Base = declarative_base()


def _normalize_url(url: str) -> str:
    # Hosted Postgres providers still hand out postgres:// URLs
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+psycopg://", 1)
    return url


def build_engine(url: str, lock_timeout: float = None):
    """Create an engine whose lock waits are bounded.

    SQLite: every transaction starts with ``BEGIN IMMEDIATE`` so writers
    serialize on the database lock, waiting at most ``lock_timeout`` seconds.
    PostgreSQL: ``lock_timeout`` is set for each session, so a blocked
    ``SELECT ... FOR UPDATE`` fails instead of waiting forever.
    """
    url = _normalize_url(url)
    if lock_timeout is None:
        lock_timeout = settings.LOCK_TIMEOUT_SECONDS

    if url.startswith("sqlite"):
        engine = create_engine(
            url, connect_args={"check_same_thread": False, "timeout": lock_timeout}
        )

        @event.listens_for(engine, "connect")
        def _sqlite_connect(dbapi_connection, connection_record):
            # Let SQLAlchemy emit BEGIN itself (see the "begin" hook below)
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine, "begin")
        def _sqlite_begin(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

        return engine

    timeout_ms = int(lock_timeout * 1000)
    return create_engine(
        url,
        pool_pre_ping=True,
        connect_args={"options": f"-c lock_timeout={timeout_ms}"},
    )


engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_db(bind=None):
    # Register every mapped table before create_all
    import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
