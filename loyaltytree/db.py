from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base

from loyaltytree.config import get_settings


def build_engine(database_url: str, **kwargs):
    connect_args = kwargs.pop("connect_args", None) or {}
    if database_url.startswith("postgres"):
        connect_args.setdefault("options", "-c timezone=utc")
    elif database_url.startswith("sqlite"):
        connect_args.setdefault("check_same_thread", False)

    engine = create_engine(database_url, connect_args=connect_args, **kwargs)

    if database_url.startswith("sqlite"):
        @event.listens_for(engine, "connect")
        def _sqlite_connect(dbapi_connection, _record):
            # pysqlite's own BEGIN handling breaks SAVEPOINT; SQLAlchemy emits BEGIN below.
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine, "begin")
        def _sqlite_begin(conn):
            conn.exec_driver_sql("BEGIN")

    return engine


engine = build_engine(get_settings().database_url)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
