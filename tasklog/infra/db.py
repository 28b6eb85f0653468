from sqlite3 import Connection as SQLiteConnection

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from tasklog.config import SETTINGS

# Execution option read by the SQLite "begin" hook: "IMMEDIATE" takes the write
# lock when the transaction starts instead of at its first write.
SQLITE_BEGIN_OPTION = "sqlite_begin"

engine = create_engine(SETTINGS.database_url, pool_pre_ping=True)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
Base = declarative_base()


@event.listens_for(Engine, "connect")
def _configure_sqlite(dbapi_connection, connection_record) -> None:
    if isinstance(dbapi_connection, SQLiteConnection):
        # pysqlite defers BEGIN until the first write; hand BEGIN over to _begin_sqlite
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


@event.listens_for(Engine, "begin")
def _begin_sqlite(conn) -> None:
    if conn.dialect.name == "sqlite":
        mode = conn.get_execution_options().get(SQLITE_BEGIN_OPTION, "")
        conn.exec_driver_sql(f"BEGIN {mode}".strip())


def init_db() -> None:
    if SETTINGS.create_schema:
        from . import models  # noqa: F401

        Base.metadata.create_all(engine)
    with engine.connect() as connection:
        connection.execute(text("SELECT 1"))
