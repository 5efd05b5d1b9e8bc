import logging
from contextlib import asynccontextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import NullPool

from miniforum.core.config import settings
from miniforum.core.errors import ProviderError, UNAVAILABLE

logger = logging.getLogger(__name__)

# Базовый класс для моделей
Base = declarative_base()


def make_engine(database_url: str, echo: bool = False):
    """Асинхронный движок; для SQLite соединения не переиспользуются"""
    if database_url.startswith("sqlite"):
        return create_async_engine(database_url, future=True, echo=echo, poolclass=NullPool)
    return create_async_engine(database_url, future=True, echo=echo, pool_pre_ping=True)


def make_session_factory(bind):
    return sessionmaker(bind=bind, class_=AsyncSession, expire_on_commit=False)


engine = make_engine(settings.database_url, echo=settings.sql_echo)

# Сессии
SessionLocal = make_session_factory(engine)


async def init_db(bind=None) -> None:
    """Создание таблиц, если их нет"""
    # Импортируем модели, чтобы они зарегистрировались в metadata
    from miniforum.db import models  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_db(bind=None) -> None:
    from miniforum.db import models  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@asynccontextmanager
async def provider_session(session_factory):
    """Сессия, в которой ошибки базы превращаются в ProviderError"""
    try:
        async with session_factory() as session:
            yield session
    except SQLAlchemyError as e:
        logger.error(f"Storage failure: {e}")
        raise ProviderError(UNAVAILABLE, "Storage is unavailable") from e
