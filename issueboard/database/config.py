import os

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

# Database URL from environment, defaulting to a local SQLite file
ASYNC_DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./issueboard.db")
SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() in ("1", "true", "yes")


def engine_options(url: str) -> dict:
    """Keyword arguments for ``create_async_engine`` suited to ``url``."""
    options = {"echo": SQL_ECHO}
    if url.startswith("sqlite"):
        # one aiosqlite connection is shared across tasks
        options["connect_args"] = {"check_same_thread": False}
    return options


engine = create_async_engine(ASYNC_DATABASE_URL, **engine_options(ASYNC_DATABASE_URL))

# Session factory used by the persistence gateway
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)


class Base(DeclarativeBase):
    pass
