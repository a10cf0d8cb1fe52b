from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chatlink.core.logging import get_logger
from chatlink.db.models.message import Message
from chatlink.db.repositories.base import BaseRepository

# Получение логгера
logger = get_logger("message_repository")


class MessageRepository(BaseRepository[Message]):
    """Репозиторий для работы с сообщениями"""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Message)

    async def get_chat_messages(self, chat_id: int) -> List[Message]:
        """Получение всех сообщений чата в порядке отправки"""
        return await self.find(Message.chat_id == chat_id)

    async def get_latest(self, chat_id: int, limit: int) -> List[Message]:
        """
        Получение последних сообщений чата

        Args:
            chat_id: ID чата
            limit: Максимальное количество сообщений

        Returns:
            Последние limit сообщений в хронологическом порядке
        """
        logger.debug(f"Получение последних {limit} сообщений чата {chat_id}")
        stmt = (
            select(Message)
            .where(Message.chat_id == chat_id)
            .order_by(Message.id.desc())
            .limit(limit)
        )
        result = await self._execute(stmt, "latest")
        messages = list(result.scalars().all())
        messages.reverse()
        return messages

    async def delete_all(self, chat_id: int) -> int:
        """
        Удаление всех сообщений чата

        Returns:
            Количество удаленных сообщений
        """
        logger.debug(f"Удаление всех сообщений чата {chat_id}")
        return await self.delete_where(Message.chat_id == chat_id)
