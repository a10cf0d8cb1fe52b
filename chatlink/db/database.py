from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from chatlink.core.config import Settings, settings
from chatlink.core.logging import get_logger

# Получение логгера
logger = get_logger(__name__)

# Базовый класс для всех моделей
Base = declarative_base()


def create_engine_from_settings(config: Settings) -> AsyncEngine:
    """Создание асинхронного движка SQLAlchemy по настройкам приложения"""
    options = {"echo": config.DATABASE_ECHO}
    if not config.DATABASE_URI.startswith("sqlite"):
        options["pool_size"] = config.DATABASE_POOL_SIZE
        options["pool_pre_ping"] = True
    return create_async_engine(config.DATABASE_URI, **options)


def create_session_factory(bind: AsyncEngine) -> async_sessionmaker:
    """Создание фабрики асинхронных сессий"""
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


# Создание асинхронного движка и фабрики сессий
engine = create_engine_from_settings(settings)
AsyncSessionLocal = create_session_factory(engine)


async def init_db(bind: AsyncEngine = engine) -> None:
    """
    Инициализация базы данных при запуске приложения
    - Создание таблиц, если они не существуют
    """
    try:
        async with bind.begin() as conn:
            # Загрузка моделей, чтобы они попали в метаданные
            from chatlink.db import models  # noqa: F401
            await conn.run_sync(Base.metadata.create_all)

        logger.info("Инициализация базы данных завершена")
    except Exception as e:
        logger.error(f"Ошибка при инициализации базы данных: {e}")
        raise


# Функция для получения сессии БД
async def get_db() -> AsyncIterator[AsyncSession]:
    session = AsyncSessionLocal()
    try:
        yield session
    finally:
        await session.close()
