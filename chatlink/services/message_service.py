from datetime import datetime
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from chatlink.core.exceptions import NotFoundError, ValidationError
from chatlink.core.logging import get_logger
from chatlink.core.metrics import track_message_sent
from chatlink.core.performance import async_time_it
from chatlink.db.models.message import Message
from chatlink.db.repositories.chat import ChatRepository
from chatlink.db.repositories.message import MessageRepository
from chatlink.db.unit_of_work import UnitOfWork

# Получение логгера для этого модуля
logger = get_logger("message_service")


class MessageService:
    """Сервис для работы с сообщениями"""

    def __init__(self, db: AsyncSession, limit_max: int = 200):
        self.db = db
        self.limit_max = limit_max
        self.message_repo = MessageRepository(db)
        self.chat_repo = ChatRepository(db)

    @async_time_it
    async def create_message(self, chat_id: int, author_id: int, text: str) -> Message:
        """
        Сохранение сообщения в чате

        Args:
            chat_id: ID чата
            author_id: ID автора
            text: Текст сообщения

        Returns:
            Сохраненное сообщение

        Raises:
            ValidationError: пустой текст
            NotFoundError: чат не найден
        """
        if not text or not text.strip():
            raise ValidationError("message text is empty", entity="message")

        chat = await self.chat_repo.get_by_id(chat_id)
        if chat is None:
            logger.warning(f"Попытка отправить сообщение в несуществующий чат {chat_id}")
            raise NotFoundError(f"chat {chat_id} not found", entity="chat")

        logger.info(f"Сохранение сообщения от пользователя {author_id} в чат {chat_id}")
        async with UnitOfWork(self.db, "create_message"):
            message = await self.message_repo.create(
                chat_id=chat_id,
                author_id=author_id,
                text=text,
                sent_at=datetime.utcnow(),
            )

        track_message_sent(chat.type.value)
        return message

    async def get_message(self, message_id: int) -> Message:
        message = await self.message_repo.get_by_id(message_id)
        if message is None:
            raise NotFoundError(f"message {message_id} not found", entity="message")
        return message

    async def latest_messages(self, chat_id: int, limit: int) -> List[Message]:
        """
        Последние сообщения чата в хронологическом порядке

        Значение limit ограничивается сверху limit_max.
        """
        if limit <= 0:
            raise ValidationError(f"limit must be positive, got {limit}", entity="message")
        limit = min(limit, self.limit_max)
        return await self.message_repo.get_latest(chat_id, limit)
