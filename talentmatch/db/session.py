# talentmatch/db/session.py
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from talentmatch.db.base import Base, import_models


def build_engine(db_url: str) -> AsyncEngine:
    # SQLite-friendly connect args
    is_sqlite = db_url.startswith("sqlite")
    connect_args = {"timeout": 30} if is_sqlite else {}

    engine = create_async_engine(
        db_url,
        pool_pre_ping=True,
        connect_args=connect_args,
    )

    # Enable WAL + sane pragmas for SQLite
    if is_sqlite:
        @event.listens_for(engine.sync_engine, "connect")
        def _set_sqlite_pragmas(dbapi_connection, connection_record):
            cur = dbapi_connection.cursor()
            cur.execute("PRAGMA journal_mode=WAL;")
            cur.execute("PRAGMA synchronous=NORMAL;")
            cur.execute("PRAGMA foreign_keys=ON;")
            cur.close()

    return engine


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        expire_on_commit=False,
        autoflush=False,
    )


async def create_all(engine: AsyncEngine) -> None:
    import_models()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
