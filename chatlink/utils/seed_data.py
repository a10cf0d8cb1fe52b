import asyncio
import random
from typing import List

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from chatlink.core.config import settings
from chatlink.core.logging import get_logger
from chatlink.core.security import TokenManager
from chatlink.db.database import AsyncSessionLocal, Base, engine
from chatlink.db.models.user import User
from chatlink.services.chat_service import ChatService
from chatlink.services.message_service import MessageService
from chatlink.services.private_chat_service import PrivateChatService
from chatlink.services.relationship_service import RelationshipService
from chatlink.services.user_service import UserService

logger = get_logger("seed_data")

# Тестовые данные
TEST_USERS = [
    {"username": "ivan", "password": "password123"},
    {"username": "maria", "password": "password123"},
    {"username": "alex", "password": "password123"},
    {"username": "elena", "password": "password123"},
    {"username": "dmitry", "password": "password123"},
]

TEST_MESSAGES = [
    "Привет! Как дела?",
    "Что нового?",
    "Встретимся сегодня?",
    "Спасибо за информацию!",
    "Когда у нас дедлайн?",
    "Можешь помочь с задачей?",
    "Отличная работа!",
    "Завтра созвон в 10:00",
    "Хорошего дня!",
]


async def create_tables(bind: AsyncEngine = engine):
    """Создание всех таблиц в базе данных"""
    async with bind.begin() as conn:
        # Загрузка моделей, чтобы они попали в метаданные
        from chatlink.db import models  # noqa: F401
        # Удаление существующих таблиц
        await conn.run_sync(Base.metadata.drop_all)
        # Создание таблиц заново
        await conn.run_sync(Base.metadata.create_all)


async def seed_users(db: AsyncSession) -> List[User]:
    """Создание тестовых пользователей"""
    logger.info("Создание пользователей...")
    user_service = UserService(db, TokenManager.from_settings(settings))
    return [
        await user_service.sign_up(data["username"], data["password"])
        for data in TEST_USERS
    ]


async def seed_relationships(db: AsyncSession, users: List[User]) -> None:
    """
    Создание связей: первый пользователь дружит со всеми, кроме последнего,
    второй приглашает третьего, последний заблокировал первого
    """
    logger.info("Создание связей между пользователями...")
    relationships = RelationshipService(db)
    first, others, last = users[0], users[1:-1], users[-1]

    for user in others:
        await relationships.invite(first.id, user.id)
        await relationships.accept_invitation(user.id, first.id)

    if len(users) > 2:
        await relationships.invite(users[1].id, users[2].id)
    await relationships.block(last.id, first.id)


async def seed_chats(db: AsyncSession, users: List[User]) -> List[int]:
    """Создание личных, приватных и одного публичного чата"""
    logger.info("Создание чатов...")
    private_chats = PrivateChatService(db)
    chat_ids = []

    # Личный чат у каждого пользователя
    for user in users:
        chat_ids.append(await private_chats.get_or_create_private_chat(user.id, user.id))

    # Приватные чаты каждого с каждым
    for i in range(len(users)):
        for j in range(i + 1, len(users)):
            chat_ids.append(await private_chats.get_or_create_private_chat(users[i].id, users[j].id))

    # Общий публичный чат со всеми пользователями
    chat_service = ChatService(db)
    public_chat = await chat_service.create_public_chat(users[0].id, "Общий чат")
    for user in users[1:]:
        await chat_service.add_member(public_chat.id, user.id)
    chat_ids.append(public_chat.id)

    return chat_ids


async def seed_messages(db: AsyncSession, chat_ids: List[int]) -> int:
    """Создание тестовых сообщений от участников каждого чата"""
    logger.info("Создание сообщений...")
    chat_service = ChatService(db)
    message_service = MessageService(db, limit_max=settings.MESSAGES_LIMIT_MAX)
    count = 0

    for chat_id in chat_ids:
        members = await chat_service.members_of(chat_id)
        for _ in range(random.randint(3, 10)):
            author = random.choice(members)
            await message_service.create_message(chat_id, author.id, random.choice(TEST_MESSAGES))
            count += 1

    return count


async def seed_all():
    """Заполнение базы данных тестовыми данными"""
    await create_tables()

    async with AsyncSessionLocal() as db:
        users = await seed_users(db)
        await seed_relationships(db, users)
        chat_ids = await seed_chats(db, users)
        messages = await seed_messages(db, chat_ids)

    logger.info(f"Создано {len(users)} пользователей, {len(chat_ids)} чатов, {messages} сообщений")
    print("\nТестовые учетные данные:")
    for user_data in TEST_USERS:
        print(f"Имя: {user_data['username']}, Пароль: {user_data['password']}")


if __name__ == "__main__":
    asyncio.run(seed_all())
