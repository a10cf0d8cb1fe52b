"""
Общие фикстуры для тестов

Интеграционные тесты работают с базой SQLite в памяти (sqlite+aiosqlite):
одно соединение на тест через StaticPool, таблицы создаются по метаданным
моделей перед каждым тестом.
"""
import itertools
import logging
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from chatlink.core.config import Settings
from chatlink.core.security import TokenManager
from chatlink.db import models  # noqa: F401
from chatlink.db.database import Base, create_session_factory
from chatlink.db.models.user import User

TEST_DATABASE_URI = "sqlite+aiosqlite:///:memory:"

# Настройка логирования для тестов
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)


@pytest.fixture
def test_settings() -> Settings:
    """Настройки приложения для тестов"""
    return Settings(
        SECRET_KEY="test-secret-key",
        DATABASE_URI=TEST_DATABASE_URI,
        MESSAGES_LIMIT_MAX=50,
    )


@pytest.fixture
def token_manager(test_settings) -> TokenManager:
    return TokenManager.from_settings(test_settings)


# Мок асинхронной сессии БД
@pytest.fixture
def mock_db_session():
    """Создает мок для асинхронной сессии БД"""
    return AsyncMock(spec=AsyncSession)


@pytest_asyncio.fixture
async def db_engine():
    """Движок тестовой базы данных с созданными таблицами"""
    engine = create_async_engine(
        TEST_DATABASE_URI,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return create_session_factory(db_engine)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Реальная асинхронная сессия тестовой БД"""
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_user(db_session):
    """
    Фабрика пользователей

    Пример: `user = await make_user()` или `await make_user(id=7)`
    """
    counter = itertools.count(1)

    async def _make_user(id: int = None, username: str = None) -> User:
        number = next(counter)
        user = User(
            id=id,
            username=username or (f"member-{id}" if id else f"user-{number}"),
            password_hash="not-a-real-hash",
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _make_user
