"""
Граф связей между пользователями

Связи хранятся направленными ребрами sender -> recipient с типом
invitation / friends / black_list. Дружба хранится одним ребром, но
читается симметрично; черный список и приглашения читаются с учетом
направления.
"""
from dataclasses import dataclass, field
from typing import Iterable, List

from sqlalchemy.ext.asyncio import AsyncSession

from chatlink.core.exceptions import NotFoundError, ValidationError
from chatlink.core.logging import get_logger
from chatlink.core.metrics import track_relationship_change
from chatlink.core.performance import async_time_it
from chatlink.db.models.relationship import RelationshipEdge, RelationshipKind
from chatlink.db.models.user import User
from chatlink.db.repositories.relationship import RelationshipRepository
from chatlink.db.repositories.user import UserRepository
from chatlink.db.unit_of_work import UnitOfWork

# Получение логгера
logger = get_logger("relationship_service")


def _unique_users(*groups: Iterable[User]) -> List[User]:
    """Объединение списков пользователей без повторов, по возрастанию ID"""
    seen = {}
    for group in groups:
        for user in group:
            seen.setdefault(user.id, user)
    return [seen[user_id] for user_id in sorted(seen)]


@dataclass
class UserLists:
    """Все представления графа связей для одного пользователя"""
    friends: List[User] = field(default_factory=list)
    blacklist: List[User] = field(default_factory=list)
    on_blacklist: List[User] = field(default_factory=list)
    invites: List[User] = field(default_factory=list)
    requires: List[User] = field(default_factory=list)


class RelationshipService:
    """Сервис для работы с графом связей между пользователями"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.edge_repo = RelationshipRepository(db)
        self.user_repo = UserRepository(db)

    # Базовые операции над ребрами

    @async_time_it
    async def add_edge(self, sender_id: int, recipient_id: int, kind: RelationshipKind) -> int:
        """
        Создание направленной связи

        Противоречивые связи между одной парой не проверяются.

        Returns:
            ID созданной связи

        Raises:
            ValidationError: связь пользователя с самим собой
            ConflictError: такая же тройка (sender, recipient, kind) уже существует
        """
        if sender_id == recipient_id:
            raise ValidationError(f"user {sender_id} cannot relate to themselves")

        logger.info(f"Создание связи {kind.value}: {sender_id} -> {recipient_id}")
        async with UnitOfWork(self.db, "add_edge"):
            edge = await self.edge_repo.create(
                sender_id=sender_id,
                recipient_id=recipient_id,
                relationship=kind,
            )

        track_relationship_change(kind.value, "add")
        return edge.id

    @async_time_it
    async def remove_edge(self, sender_id: int, recipient_id: int, kind: RelationshipKind) -> None:
        """
        Удаление связи по точной тройке

        Raises:
            NotFoundError: связь не найдена
        """
        logger.info(f"Удаление связи {kind.value}: {sender_id} -> {recipient_id}")
        async with UnitOfWork(self.db, "remove_edge"):
            deleted = await self.edge_repo.delete_edge(sender_id, recipient_id, kind)
            if not deleted:
                logger.warning(f"Связь {kind.value} {sender_id} -> {recipient_id} не найдена")
                raise NotFoundError(
                    f"edge {sender_id}->{recipient_id} ({kind.value}) not found",
                    entity="relationship",
                )

        track_relationship_change(kind.value, "remove")

    async def statuses_between(self, user_id: int, other_id: int) -> List[RelationshipEdge]:
        """Связи user -> other любого типа и дружба other -> user"""
        return await self.edge_repo.get_between(user_id, other_id)

    # Действия пользователя

    async def invite(self, sender_id: int, recipient_id: int) -> int:
        """Приглашение в друзья"""
        await self._ensure_user(recipient_id)
        return await self.add_edge(sender_id, recipient_id, RelationshipKind.INVITATION)

    async def cancel_invitation(self, sender_id: int, recipient_id: int) -> None:
        """Отмена отправленного приглашения"""
        await self.remove_edge(sender_id, recipient_id, RelationshipKind.INVITATION)

    async def refuse_invitation(self, recipient_id: int, sender_id: int) -> None:
        """Отказ от полученного приглашения"""
        await self.remove_edge(sender_id, recipient_id, RelationshipKind.INVITATION)

    @async_time_it
    async def accept_invitation(self, recipient_id: int, sender_id: int) -> int:
        """
        Принятие приглашения: тип ребра sender -> recipient меняется на friends

        Returns:
            ID ребра дружбы

        Raises:
            NotFoundError: приглашения от sender_id нет
            ConflictError: ребро дружбы с тем же направлением уже существует
        """
        logger.info(f"Пользователь {recipient_id} принимает приглашение от {sender_id}")
        async with UnitOfWork(self.db, "accept_invitation"):
            edge = await self.edge_repo.get_edge(sender_id, recipient_id, RelationshipKind.INVITATION)
            if edge is None:
                logger.warning(f"Приглашение {sender_id} -> {recipient_id} не найдено")
                raise NotFoundError(
                    f"invitation {sender_id}->{recipient_id} not found",
                    entity="relationship",
                )
            await self.edge_repo.update(edge.id, relationship=RelationshipKind.FRIENDS)

        track_relationship_change(RelationshipKind.FRIENDS.value, "accept")
        return edge.id

    @async_time_it
    async def remove_friend(self, user_id: int, friend_id: int) -> None:
        """
        Удаление из друзей

        Ребро дружбы могло быть сохранено в любом направлении (в зависимости
        от того, кто отправлял приглашение), поэтому удаляются оба.

        Raises:
            NotFoundError: пользователи не являются друзьями
        """
        logger.info(f"Пользователь {user_id} удаляет из друзей {friend_id}")
        async with UnitOfWork(self.db, "remove_friend"):
            deleted = await self.edge_repo.delete_edge(user_id, friend_id, RelationshipKind.FRIENDS)
            deleted += await self.edge_repo.delete_edge(friend_id, user_id, RelationshipKind.FRIENDS)
            if not deleted:
                raise NotFoundError(
                    f"users {user_id} and {friend_id} are not friends",
                    entity="relationship",
                )

        track_relationship_change(RelationshipKind.FRIENDS.value, "remove")

    async def block(self, sender_id: int, recipient_id: int) -> int:
        """Добавление пользователя в черный список"""
        await self._ensure_user(recipient_id)
        return await self.add_edge(sender_id, recipient_id, RelationshipKind.BLACK_LIST)

    async def unblock(self, sender_id: int, recipient_id: int) -> None:
        """Удаление пользователя из черного списка"""
        await self.remove_edge(sender_id, recipient_id, RelationshipKind.BLACK_LIST)

    # Производные представления

    async def friends_of(self, user_id: int) -> List[User]:
        """Друзья пользователя: ребра friends в обоих направлениях"""
        outgoing = await self.edge_repo.get_recipients(user_id, RelationshipKind.FRIENDS)
        incoming = await self.edge_repo.get_senders(user_id, RelationshipKind.FRIENDS)
        return _unique_users(outgoing, incoming)

    async def blocked_by(self, user_id: int) -> List[User]:
        """Пользователи, которых заблокировал user_id"""
        return await self.edge_repo.get_recipients(user_id, RelationshipKind.BLACK_LIST)

    async def blockers_of(self, user_id: int) -> List[User]:
        """Пользователи, которые заблокировали user_id"""
        return await self.edge_repo.get_senders(user_id, RelationshipKind.BLACK_LIST)

    async def sent_invites_of(self, user_id: int) -> List[User]:
        """Пользователи, которым user_id отправил приглашение"""
        return await self.edge_repo.get_recipients(user_id, RelationshipKind.INVITATION)

    async def received_invites_of(self, user_id: int) -> List[User]:
        """Пользователи, приславшие приглашение user_id"""
        return await self.edge_repo.get_senders(user_id, RelationshipKind.INVITATION)

    @async_time_it
    async def user_lists(self, user_id: int) -> UserLists:
        """Все списки связей пользователя"""
        logger.debug(f"Получение списков связей пользователя {user_id}")
        return UserLists(
            friends=await self.friends_of(user_id),
            blacklist=await self.blocked_by(user_id),
            on_blacklist=await self.blockers_of(user_id),
            invites=await self.sent_invites_of(user_id),
            requires=await self.received_invites_of(user_id),
        )

    async def search_users(self, fragment: str) -> List[User]:
        if not fragment:
            return []
        return await self.user_repo.search(fragment)

    async def _ensure_user(self, user_id: int) -> User:
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError(f"user {user_id} not found", entity="user")
        return user
