# backend/app/core/database.py
"""
Moteur SQLAlchemy async + fabrique de sessions.

Une AsyncSession par requête, injectée via get_db().
Les lectures d'une même requête sont séquentielles : une AsyncSession
n'est pas utilisable depuis plusieurs coroutines en parallèle.
"""
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from app.core.config import settings

engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_pre_ping=True,
)

SessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

Base = declarative_base()


async def get_db() -> AsyncIterator[AsyncSession]:
    async with SessionLocal() as session:
        yield session
