from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import get_settings
from .logging_config import app_logger

settings = get_settings()

Base = declarative_base()


def build_engine(url: str, echo: bool = False) -> Engine:
    """
    Create an engine for the catalog store.

    SQLite engines get the Python search primitives registered on every
    connection, so the ranking query runs unchanged in tests and local dev.
    """
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        sqlite_engine = create_engine(url, echo=echo, **kwargs)
        _install_sqlite_primitives(sqlite_engine)
        return sqlite_engine

    return create_engine(url, echo=echo, pool_pre_ping=True)


def _install_sqlite_primitives(sqlite_engine: Engine) -> None:
    from .search.sqlite_functions import register_search_functions

    @event.listens_for(sqlite_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        register_search_functions(dbapi_connection)
        # SQLite ignores ON DELETE CASCADE unless asked
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = build_engine(settings.database_url, echo=settings.DB_ECHO)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind: Engine = None) -> None:
    """Create tables, plus the pg_trgm extension and search index on PostgreSQL."""
    # Register every mapped class on Base.metadata
    from . import models  # noqa: F401

    bind = bind or engine
    if bind.dialect.name == "postgresql":
        with bind.begin() as conn:
            conn.execute(text("CREATE EXTENSION IF NOT EXISTS pg_trgm"))

    Base.metadata.create_all(bind=bind)

    if bind.dialect.name == "postgresql":
        with bind.begin() as conn:
            conn.execute(text(
                "CREATE INDEX IF NOT EXISTS search_index ON products USING gin (("
                "setweight(to_tsvector('english', name), 'A') || "
                "setweight(to_tsvector('english', coalesce(description, '')), 'B') || "
                "setweight(to_tsvector('english', coalesce(short_description, '')), 'C')))"
            ))
            conn.execute(text(
                "CREATE INDEX IF NOT EXISTS products_name_trgm_idx "
                "ON products USING gin (lower(name) gin_trgm_ops)"
            ))
    app_logger.info("database_initialized", dialect=bind.dialect.name)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
