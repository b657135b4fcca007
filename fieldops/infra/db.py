from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base, sessionmaker

from fieldops.config import SETTINGS

_IS_SQLITE = make_url(SETTINGS.database_url).get_backend_name() == "sqlite"

engine = create_engine(
    SETTINGS.database_url,
    pool_pre_ping=True,
    connect_args={"check_same_thread": False} if _IS_SQLITE else {},
)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
Base = declarative_base()

if _IS_SQLITE:

    @event.listens_for(engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, _record) -> None:
        # ON DELETE actions on tasks/appliances depend on it.
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def init_db() -> None:
    with engine.connect() as connection:
        connection.execute(text("SELECT 1"))
    if _IS_SQLITE:
        # Local file databases are created on first start; PostgreSQL goes through alembic.
        from . import models  # noqa: F401

        Base.metadata.create_all(engine)
