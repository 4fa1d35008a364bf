# studioboard/db/session.py
import sys, asyncio
if sys.platform.startswith("win"):
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from studioboard.core.config import settings


def resolve_database_url(url: str | None) -> str:
    if url:
        return url
    data_dir = (Path(__file__).resolve().parents[2] / "data")
    data_dir.mkdir(parents=True, exist_ok=True)
    db_file = data_dir / "studioboard.db"
    # usar caminho POSIX para o SQLAlchemy
    return f"sqlite+aiosqlite:///{db_file.as_posix()}"


def build_engine(url: str | None = None) -> AsyncEngine:
    return create_async_engine(resolve_database_url(url), echo=False, future=True)


def build_sessionmaker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind, expire_on_commit=False, class_=AsyncSession)


engine = build_engine(settings.DATABASE_URL)
AsyncSessionLocal = build_sessionmaker(engine)
