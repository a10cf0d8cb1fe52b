from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from chatlink.core.exceptions import ChatlinkError, NotFoundError, PartialCascadeFailure, ValidationError
from chatlink.core.logging import get_logger
from chatlink.core.metrics import track_cascade_delete
from chatlink.core.performance import async_time_it
from chatlink.db.models.chat import Chat, ChatType, pair_key_members
from chatlink.db.models.message import Message
from chatlink.db.models.user import User
from chatlink.db.repositories.chat import ChatMemberRepository, ChatRepository
from chatlink.db.repositories.message import MessageRepository
from chatlink.db.repositories.user import UserRepository
from chatlink.db.unit_of_work import UnitOfWork

# Получение логгера
logger = get_logger("chat_service")

# Приватный чат: не более двух участников
PRIVATE_CHAT_CAPACITY = 2


@dataclass
class ChatLink:
    """Чат и, для приватного чата, собеседник текущего пользователя"""
    chat: Chat
    counterpart: Optional[User] = None


@dataclass
class PrivateDialog:
    """Приватный чат двух пользователей, названный по собеседнику"""
    id: int
    name: str
    icon: str
    user: User


class ChatService:
    """Сервис для работы с чатами и их участниками"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.chat_repo = ChatRepository(db)
        self.member_repo = ChatMemberRepository(db)
        self.message_repo = MessageRepository(db)
        self.user_repo = UserRepository(db)

    async def get_chat(self, chat_id: int) -> Chat:
        """Получение чата по ID"""
        chat = await self.chat_repo.get_by_id(chat_id)
        if chat is None:
            logger.warning(f"Чат {chat_id} не найден")
            raise NotFoundError(f"chat {chat_id} not found", entity="chat")
        return chat

    @async_time_it
    async def create_chat(self, name: str, chat_type: ChatType, pair_key: Optional[str] = None) -> int:
        """
        Создание чата без участников

        Участники добавляются отдельно через add_member.

        Returns:
            ID созданного чата
        """
        logger.info(f"Создание чата типа {chat_type.value} с названием '{name}'")
        async with UnitOfWork(self.db, "create_chat"):
            chat = await self.chat_repo.create(name=name, type=chat_type, pair_key=pair_key)
        return chat.id

    @async_time_it
    async def create_public_chat(self, creator_id: int, name: str) -> Chat:
        """Создание публичного чата вместе с членством создателя"""
        name = (name or "").strip()
        if not name:
            raise ValidationError("chat name is empty", entity="chat")

        logger.info(f"Создание публичного чата '{name}' пользователем {creator_id}")
        async with UnitOfWork(self.db, "create_public_chat"):
            chat = await self.chat_repo.create(name=name, type=ChatType.PUBLIC)
            await self.member_repo.add(chat.id, creator_id)

        logger.info(f"Создан публичный чат {chat.id}")
        return chat

    async def update_chat(self, chat_id: int, name: Optional[str] = None, icon: Optional[str] = None) -> Chat:
        """Изменение названия и/или иконки чата"""
        fields = {}
        if name is not None:
            if not name.strip():
                raise ValidationError("chat name is empty", entity="chat")
            fields["name"] = name.strip()
        if icon is not None:
            fields["icon"] = icon

        chat = await self.get_chat(chat_id)
        if not fields:
            return chat

        logger.info(f"Обновление чата {chat_id}: {', '.join(fields)}")
        async with UnitOfWork(self.db, "update_chat"):
            await self.chat_repo.update(chat_id, **fields)
        await self.db.refresh(chat)
        return chat

    @async_time_it
    async def add_member(self, chat_id: int, user_id: int) -> int:
        """
        Добавление пользователя в чат

        Если пользователь уже состоит в чате, возвращается ID существующего
        членства. Одновременная вставка той же пары завершается ConflictError
        по ограничению уникальности.

        Returns:
            ID записи членства

        Raises:
            NotFoundError: чат или пользователь не найден
            ValidationError: в приватном чате уже два участника или
                пользователь не входит в пару чата с pair_key
        """
        chat = await self.get_chat(chat_id)
        if await self.user_repo.get_by_id(user_id) is None:
            raise NotFoundError(f"user {user_id} not found", entity="user")

        existing = await self.member_repo.get(chat_id, user_id)
        if existing is not None:
            logger.debug(f"Пользователь {user_id} уже состоит в чате {chat_id}")
            return existing.id

        if chat.type == ChatType.PRIVATE:
            if chat.pair_key and user_id not in pair_key_members(chat.pair_key):
                logger.warning(f"Пользователь {user_id} не входит в пару приватного чата {chat_id}")
                raise ValidationError(
                    f"user {user_id} does not belong to private chat {chat_id}", entity="chat"
                )
            members = await self.member_repo.count_members(chat_id)
            if members >= PRIVATE_CHAT_CAPACITY:
                logger.warning(f"Попытка добавить третьего участника в приватный чат {chat_id}")
                raise ValidationError(f"private chat {chat_id} is full", entity="chat")

        logger.info(f"Добавление пользователя {user_id} в чат {chat_id}")
        async with UnitOfWork(self.db, "add_member"):
            member = await self.member_repo.add(chat_id, user_id)
        return member.id

    @async_time_it
    async def remove_member(self, user_id: int, chat_id: int) -> bool:
        """
        Удаление пользователя из чата

        Если после удаления в чате не осталось участников, в той же
        транзакции удаляются сам чат и все его сообщения.

        Returns:
            True, если чат был удален каскадно

        Raises:
            NotFoundError: пользователь не состоит в чате
            PartialCascadeFailure: каскад прерван, транзакция откатана
        """
        logger.info(f"Удаление пользователя {user_id} из чата {chat_id}")
        async with UnitOfWork(self.db, "remove_member"):
            removed = await self.member_repo.remove(user_id, chat_id)
            if not removed:
                logger.warning(f"Пользователь {user_id} не состоит в чате {chat_id}")
                raise NotFoundError(
                    f"user {user_id} is not a member of chat {chat_id}",
                    entity="chat_member",
                )

            remaining = await self.member_repo.count_members(chat_id)
            if remaining:
                logger.debug(f"В чате {chat_id} осталось участников: {remaining}")
                return False

            logger.info(f"В чате {chat_id} не осталось участников, чат будет удален")
            await self._purge_chat(chat_id)

        track_cascade_delete("last_member")
        return True

    @async_time_it
    async def delete_chat(self, chat_id: int) -> None:
        """
        Явное удаление чата независимо от числа участников

        Сначала удаляется каждый участник, затем чат, затем сообщения.
        Итоговое состояние совпадает с каскадом после ухода последнего участника.
        """
        await self.get_chat(chat_id)
        logger.info(f"Удаление чата {chat_id}")

        async with UnitOfWork(self.db, "delete_chat"):
            for user in await self.member_repo.get_users(chat_id):
                try:
                    await self.member_repo.remove(user.id, chat_id)
                except ChatlinkError as e:
                    raise PartialCascadeFailure(
                        f"chat {chat_id}: removing member {user.id} failed: {e}",
                        chat_id=chat_id,
                        step="remove_members",
                    ) from e
            await self._purge_chat(chat_id)

        track_cascade_delete("explicit")

    async def _purge_chat(self, chat_id: int) -> None:
        """Удаление чата и его сообщений внутри текущей единицы работы"""
        try:
            deleted = await self.chat_repo.delete_where(Chat.id == chat_id)
        except ChatlinkError as e:
            raise PartialCascadeFailure(
                f"chat {chat_id}: delete failed: {e}", chat_id=chat_id, step="delete_chat"
            ) from e
        if not deleted:
            # Чат уже удален параллельным запросом
            logger.info(f"Чат {chat_id} уже удален, продолжаем очистку сообщений")

        try:
            purged = await self.message_repo.delete_all(chat_id)
        except ChatlinkError as e:
            raise PartialCascadeFailure(
                f"chat {chat_id}: messages purge failed: {e}", chat_id=chat_id, step="delete_messages"
            ) from e
        logger.debug(f"Удалено сообщений чата {chat_id}: {purged}")

    async def members_of(self, chat_id: int) -> List[User]:
        """Участники чата, пустой список для удаленного чата"""
        return await self.member_repo.get_users(chat_id)

    async def messages_of(self, chat_id: int) -> List[Message]:
        return await self.message_repo.get_chat_messages(chat_id)

    async def is_member(self, chat_id: int, user_id: int) -> bool:
        return await self.member_repo.get(chat_id, user_id) is not None

    async def get_chat_link(self, chat_id: int, current_user_id: int) -> ChatLink:
        """
        Чат и собеседник для приватного чата

        Для личного чата собеседник совпадает с единственным участником,
        для чата двух пользователей это второй участник.
        """
        chat = await self.get_chat(chat_id)
        if chat.type != ChatType.PRIVATE:
            return ChatLink(chat=chat)

        members = await self.member_repo.get_users(chat_id)
        counterpart = next((user for user in members if user.id != current_user_id), None)
        if counterpart is None and members:
            counterpart = members[0]
        return ChatLink(chat=chat, counterpart=counterpart)

    async def public_chats_of(self, user_id: int) -> List[Chat]:
        return await self.chat_repo.get_user_chats(user_id, ChatType.PUBLIC)

    async def private_chats_of(self, user_id: int) -> List[int]:
        """ID приватных чатов пользователя в порядке возрастания"""
        return await self.chat_repo.get_user_chat_ids(user_id, ChatType.PRIVATE)

    @async_time_it
    async def private_dialogs_of(self, user_id: int, current_user_id: int) -> List[PrivateDialog]:
        """
        Приватные чаты пользователя с двумя участниками

        Каждый диалог называется по собеседнику current_user_id; личные
        чаты в список не попадают.
        """
        dialogs = []
        for chat in await self.chat_repo.get_user_chats(user_id, ChatType.PRIVATE):
            members = await self.member_repo.get_users(chat.id)
            if len(members) != PRIVATE_CHAT_CAPACITY:
                continue
            counterpart = next((user for user in members if user.id != current_user_id), members[0])
            dialogs.append(PrivateDialog(
                id=chat.id,
                name=counterpart.username,
                icon=counterpart.icon,
                user=counterpart,
            ))
        return dialogs

    async def search_public_chats(self, fragment: str) -> List[Chat]:
        if not fragment:
            return []
        return await self.chat_repo.search_public(fragment)
