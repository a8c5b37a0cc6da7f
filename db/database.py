from datetime import datetime, timezone

from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from gradebook.config import DATABASE_URL

Base = declarative_base()


def utcnow() -> datetime:
    # naive UTC, matching what SQLite hands back
    return datetime.now(timezone.utc).replace(tzinfo=None)


def make_engine(url: str = DATABASE_URL):
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    engine = create_engine(url, connect_args={"check_same_thread": False, "timeout": 30})

    # pysqlite defers BEGIN until the first write, which lets two transactions
    # read the same enrollment count. Take the write lock up front instead.
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


engine = make_engine()
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
