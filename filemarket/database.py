from sqlmodel import SQLModel, create_engine, Session
from sqlalchemy import event
from sqlalchemy.pool import StaticPool
from filemarket.config import settings


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE CASCADE / SET NULL unless asked per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _build_engine(url: str):
    if url.startswith("sqlite"):
        # one shared connection so an in-memory database survives across sessions
        sqlite_engine = create_engine(
            url,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        event.listen(sqlite_engine, "connect", _enable_sqlite_foreign_keys)
        return sqlite_engine
    return create_engine(
        url,
        echo=False,
        pool_pre_ping=True,      # checks dead connections
        pool_recycle=1800        # refresh every 30 min
    )


engine = _build_engine(settings.database_url)


def create_db_and_tables():
    import filemarket.models  # noqa: F401  registers every table on the metadata
    SQLModel.metadata.create_all(engine)


def get_session():
    with Session(engine) as session:
        yield session
