from contextlib import asynccontextmanager
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from .settings import DATABASE_ECHO, DATABASE_URL

engine = create_async_engine(DATABASE_URL, echo=DATABASE_ECHO)

AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)

Base = declarative_base()


async def get_db():
    async with AsyncSessionLocal() as session:
        yield session


@asynccontextmanager
async def unit_of_work(db: AsyncSession):
    """Commit everything written inside the block at once, or nothing.

    Repositories called inside only flush; a failure at any step rolls back
    every row written before it.
    """
    try:
        yield db
        await db.commit()
    except BaseException:
        await db.rollback()
        raise


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
