import logging
from pathlib import Path

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from hopp.config import settings

logger = logging.getLogger(__name__)

engine = create_async_engine(
    settings.database_url,
    echo=False,
    connect_args={"timeout": 30},  # wait up to 30s for SQLite write lock before failing
)
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


def _ensure_sqlite_dir(url: str) -> None:
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite" and parsed.database and parsed.database != ":memory:":
        Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)


async def init_db():
    import hopp.models  # noqa: F401  (registers tables on Base.metadata)

    _ensure_sqlite_dir(settings.database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # Listing indexes
    async with engine.begin() as conn:
        await conn.execute(text(
            "CREATE INDEX IF NOT EXISTS idx_event_brewery_date "
            "ON events (brewery_id, event_date)"
        ))
        await conn.execute(text(
            "CREATE INDEX IF NOT EXISTS idx_release_brewery_date "
            "ON beer_releases (brewery_id, release_date)"
        ))


async def get_session() -> AsyncSession:
    async with async_session() as session:
        yield session
