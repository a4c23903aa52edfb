"""
Notes API - Database Engine Construction
=========================================

What:  Declarative base, connection URL normalization and async engine /
       session factory builders.
How:   NoteStore.initialize() calls build_engine() once at startup and keeps
       the engine for the life of the process. Nothing here runs at import
       time, so importing the package never touches a database.

Connection Strings:
    postgres://u:p@host/db?sslmode=require     URL form, any libpq scheme
    host=db user=u dbname=notes sslmode=...    libpq keyword/value form
    sqlite+aiosqlite:///notes.db               any SQLAlchemy async URL
    Both libpq forms end up as postgresql+asyncpg URLs; asyncpg calls the
    sslmode option `ssl`, so it is renamed on the way.

Connection Pooling:
    PostgreSQL URLs get a QueuePool sized from settings (pool_size,
    max_overflow, pool_pre_ping). SQLite URLs use SQLAlchemy's defaults,
    since the pool arguments do not apply to its file-backed pool.
"""

import shlex

from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from notesapi.config import settings

ASYNCPG_DRIVER = "postgresql+asyncpg"

# libpq keyword → URL.create() argument; other keywords become query options
_KEYWORD_FIELDS = {
    "host": "host",
    "port": "port",
    "user": "username",
    "password": "password",
    "dbname": "database",
}


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Its metadata is what NoteStore.initialize() runs create_all() against.
    """
    pass


def parse_keyword_dsn(dsn: str) -> URL:
    """
    Build an asyncpg URL from a libpq keyword/value string.

    Example:
        "host=db port=5432 user=notes dbname=notes"
        → postgresql+asyncpg://notes@db:5432/notes

    Raises:
        ValueError: an item is not key=value, the port is not a number, or
            quoting is unbalanced.
    """
    fields = {}
    query = {}
    for item in shlex.split(dsn):
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise ValueError(f"invalid connection option {item!r}")
        if key in _KEYWORD_FIELDS:
            fields[_KEYWORD_FIELDS[key]] = value
        else:
            query[key] = value

    if "port" in fields:
        fields["port"] = int(fields["port"])
    return URL.create(ASYNCPG_DRIVER, query=query, **fields)


def _rename_sslmode(url: URL) -> URL:
    if "sslmode" not in url.query:
        return url
    sslmode = url.query["sslmode"]
    url = url.difference_update_query(["sslmode"])
    if "ssl" in url.query:
        return url
    return url.update_query_dict({"ssl": sslmode})


def normalize_database_url(url: str) -> str:
    """
    Rewrite a plain Postgres connection string into an asyncpg SQLAlchemy URL.

    Accepts:
    - postgres://... and postgresql://...
    - postgresql+asyncpg://...  (only sslmode is renamed)
    - host=... dbname=...       (libpq keyword/value form)
    - any other SQLAlchemy async URL, e.g. sqlite+aiosqlite:///notes.db (unchanged)
    """
    url = url.strip()
    if "://" not in url and "=" in url:
        parsed = parse_keyword_dsn(url)
    else:
        for prefix in ("postgres://", "postgresql://"):
            if url.startswith(prefix):
                url = ASYNCPG_DRIVER + "://" + url[len(prefix):]
                break
        if not url.startswith(ASYNCPG_DRIVER + "://"):
            return url
        parsed = make_url(url)

    return _rename_sslmode(parsed).render_as_string(hide_password=False)


def build_engine(url: str) -> AsyncEngine:
    """
    Create the async engine for a connection string.

    Raises:
        sqlalchemy.exc.ArgumentError: the URL cannot be parsed or names an
            unknown dialect/driver.
        ValueError: a keyword/value string is malformed.
    """
    parsed = make_url(normalize_database_url(url))

    options = {
        # Echo SQL in DEBUG mode only
        "echo": settings.log_level == "DEBUG",
    }
    if parsed.get_backend_name() != "sqlite":
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )

    return create_async_engine(parsed, **options)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False keeps loaded attributes readable after commit
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
