from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chatlink.core.logging import get_logger
from chatlink.db.models.chat import Chat, ChatMember, ChatType
from chatlink.db.models.user import User
from chatlink.db.repositories.base import BaseRepository

# Получение логгера
logger = get_logger("chat_repository")


class ChatRepository(BaseRepository[Chat]):
    """Репозиторий для работы с чатами"""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Chat)

    async def get_by_pair_key(self, pair_key: str) -> Optional[Chat]:
        """Получение приватного чата по каноническому ключу пары пользователей"""
        chats = await self.find(Chat.pair_key == pair_key)
        return chats[0] if chats else None

    async def get_user_chat_ids(self, user_id: int, chat_type: ChatType) -> List[int]:
        """
        Получение ID чатов заданного типа, в которых состоит пользователь

        Args:
            user_id: ID пользователя
            chat_type: Тип чата

        Returns:
            Список ID чатов в порядке возрастания
        """
        logger.debug(f"Получение ID чатов типа {chat_type.value} пользователя {user_id}")
        stmt = (
            select(Chat.id)
            .join(ChatMember, ChatMember.chat_id == Chat.id)
            .where(ChatMember.user_id == user_id, Chat.type == chat_type)
            .order_by(Chat.id)
        )
        result = await self._execute(stmt, "user_chat_ids")
        return list(result.scalars().all())

    async def get_privates(self, first_user_id: int, second_user_id: int) -> Tuple[List[int], List[int]]:
        """
        Получение ID приватных чатов каждого из двух пользователей

        Оба чтения выполняются в одной транзакции сессии.

        Returns:
            Пара списков: чаты первого пользователя, чаты второго пользователя
        """
        first = await self.get_user_chat_ids(first_user_id, ChatType.PRIVATE)
        second = await self.get_user_chat_ids(second_user_id, ChatType.PRIVATE)
        return first, second

    async def get_user_chats(self, user_id: int, chat_type: ChatType) -> List[Chat]:
        """Получение чатов заданного типа, в которых состоит пользователь"""
        stmt = (
            select(Chat)
            .join(ChatMember, ChatMember.chat_id == Chat.id)
            .where(ChatMember.user_id == user_id, Chat.type == chat_type)
            .order_by(Chat.id)
        )
        result = await self._execute(stmt, "user_chats")
        return list(result.scalars().all())

    async def search_public(self, fragment: str) -> List[Chat]:
        """Поиск публичных чатов, название которых содержит fragment"""
        logger.debug(f"Поиск публичных чатов по фрагменту названия: {fragment}")
        return await self.find(
            Chat.type == ChatType.PUBLIC,
            Chat.name.contains(fragment, autoescape=True),
        )


class ChatMemberRepository(BaseRepository[ChatMember]):
    """Репозиторий для работы с участниками чатов"""

    def __init__(self, db: AsyncSession):
        super().__init__(db, ChatMember)

    async def add(self, chat_id: int, user_id: int) -> ChatMember:
        """Добавление пользователя в чат"""
        logger.debug(f"Добавление пользователя {user_id} в чат {chat_id}")
        return await self.create(chat_id=chat_id, user_id=user_id)

    async def get(self, chat_id: int, user_id: int) -> Optional[ChatMember]:
        members = await self.find(ChatMember.chat_id == chat_id, ChatMember.user_id == user_id)
        return members[0] if members else None

    async def remove(self, user_id: int, chat_id: int) -> int:
        """
        Удаление пользователя из чата

        Returns:
            Количество удаленных записей членства
        """
        logger.debug(f"Удаление пользователя {user_id} из чата {chat_id}")
        return await self.delete_where(ChatMember.chat_id == chat_id, ChatMember.user_id == user_id)

    async def count_members(self, chat_id: int) -> int:
        return await self.count(ChatMember.chat_id == chat_id)

    async def get_users(self, chat_id: int) -> List[User]:
        """
        Получение пользователей чата

        Returns:
            Список пользователей в порядке возрастания ID
        """
        stmt = (
            select(User)
            .join(ChatMember, ChatMember.user_id == User.id)
            .where(ChatMember.chat_id == chat_id)
            .order_by(User.id)
        )
        result = await self._execute(stmt, "users")
        return list(result.scalars().all())
