"""
Поиск и создание приватных чатов

Приватный чат двух пользователей определяется по пересечению их списков
приватных чатов: ID, встречающийся в объединении обоих списков ровно
дважды, принадлежит обоим пользователям. Личный чат (заметки для себя)
это приватный чат с единственным участником.

Гонка двух одновременных созданий закрыта уникальным ключом pair_key
(канонической парой "<min>:<max>") и схемой "вставить или получить".
"""
from collections import Counter
from typing import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from chatlink.core.exceptions import ConflictError, NotFoundError
from chatlink.core.logging import get_logger
from chatlink.core.metrics import track_private_chat_created, track_private_chat_resolution
from chatlink.core.performance import async_time_it
from chatlink.db.models.chat import ChatType, private_pair_key
from chatlink.db.repositories.chat import ChatMemberRepository, ChatRepository
from chatlink.db.repositories.user import UserRepository
from chatlink.db.unit_of_work import UnitOfWork

# Получение логгера
logger = get_logger("private_chat_service")

# Приватного чата еще нет
NO_PRIVATE_CHAT = 0


def first_shared_chat(*chat_ids: Iterable[int]) -> int:
    """
    Первый ID, встречающийся ровно дважды в объединении списков

    Порядок обхода: сначала первый список, затем второй.
    """
    combined = [chat_id for ids in chat_ids for chat_id in ids]
    counts = Counter(combined)
    for chat_id in combined:
        if counts[chat_id] == 2:
            return chat_id
    return NO_PRIVATE_CHAT


class PrivateChatService:
    """Сервис приватных чатов"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.chat_repo = ChatRepository(db)
        self.member_repo = ChatMemberRepository(db)
        self.user_repo = UserRepository(db)

    @async_time_it
    async def resolve_private_chat(self, requester_id: int, other_id: int) -> int:
        """
        Поиск существующего приватного чата

        Args:
            requester_id: ID пользователя, запрашивающего чат
            other_id: ID собеседника (совпадает с requester_id для личного чата)

        Returns:
            ID чата или NO_PRIVATE_CHAT, если чата еще нет
        """
        if requester_id == other_id:
            chat_id = await self._resolve_personal_chat(requester_id)
            track_private_chat_resolution("personal" if chat_id else "none")
            return chat_id

        logger.debug(f"Поиск приватного чата пользователей {requester_id} и {other_id}")
        requester_chats, other_chats = await self.chat_repo.get_privates(requester_id, other_id)
        chat_id = first_shared_chat(requester_chats, other_chats)
        track_private_chat_resolution("existing" if chat_id else "none")
        return chat_id

    async def _resolve_personal_chat(self, user_id: int) -> int:
        logger.debug(f"Поиск личного чата пользователя {user_id}")
        for chat_id in await self.chat_repo.get_user_chat_ids(user_id, ChatType.PRIVATE):
            if await self.member_repo.count_members(chat_id) == 1:
                return chat_id
        return NO_PRIVATE_CHAT

    @async_time_it
    async def get_or_create_private_chat(self, requester_id: int, other_id: int) -> int:
        """
        Получение приватного чата с созданием при отсутствии

        Новый чат получает название по имени собеседника и канонический
        pair_key. Если вставка нарушает уникальность pair_key, берется
        существующий чат с этим ключом и в него возвращаются недостающие
        участники.

        Returns:
            ID приватного чата

        Raises:
            NotFoundError: собеседник не найден
            ConflictError: в чате с тем же pair_key есть посторонний участник
        """
        chat_id = await self.resolve_private_chat(requester_id, other_id)
        if chat_id != NO_PRIVATE_CHAT:
            return chat_id

        other = await self.user_repo.get_by_id(other_id)
        if other is None:
            logger.warning(f"Попытка создать приватный чат с несуществующим пользователем {other_id}")
            raise NotFoundError(f"user {other_id} not found", entity="user")

        pair_key = private_pair_key(requester_id, other_id)
        member_ids = sorted({requester_id, other_id})

        logger.info(f"Создание приватного чата {pair_key}")
        try:
            async with UnitOfWork(self.db, "create_private_chat"):
                chat = await self.chat_repo.create(
                    name=other.username,
                    type=ChatType.PRIVATE,
                    pair_key=pair_key,
                )
                for user_id in member_ids:
                    await self.member_repo.add(chat.id, user_id)
        except ConflictError:
            logger.info(f"Приватный чат {pair_key} уже существует, используем его")
            return await self._fetch_by_pair_key(pair_key, member_ids)

        track_private_chat_created()
        logger.info(f"Создан приватный чат {chat.id} ({pair_key})")
        return chat.id

    async def _fetch_by_pair_key(self, pair_key: str, member_ids: Iterable[int]) -> int:
        """Получение чата по pair_key и восстановление недостающих участников"""
        chat = await self.chat_repo.get_by_pair_key(pair_key)
        if chat is None:
            # Ключ освободился между вставкой и чтением
            raise ConflictError(f"private chat {pair_key} changed concurrently", entity="chat")

        member_ids = set(member_ids)
        current_ids = {user.id for user in await self.member_repo.get_users(chat.id)}
        foreign_ids = current_ids - member_ids
        if foreign_ids:
            logger.warning(f"В приватном чате {chat.id} ({pair_key}) есть посторонние участники: {sorted(foreign_ids)}")
            raise ConflictError(f"private chat {pair_key} has foreign members", entity="chat")

        async with UnitOfWork(self.db, "restore_private_chat"):
            for user_id in sorted(member_ids - current_ids):
                logger.info(f"Возвращение пользователя {user_id} в приватный чат {chat.id}")
                await self.member_repo.add(chat.id, user_id)
        return chat.id
