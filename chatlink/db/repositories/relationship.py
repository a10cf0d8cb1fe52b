from typing import List, Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from chatlink.core.logging import get_logger
from chatlink.db.models.relationship import RelationshipEdge, RelationshipKind
from chatlink.db.models.user import User
from chatlink.db.repositories.base import BaseRepository

# Получение логгера
logger = get_logger("relationship_repository")


class RelationshipRepository(BaseRepository[RelationshipEdge]):
    """Репозиторий направленных связей между пользователями"""

    def __init__(self, db: AsyncSession):
        super().__init__(db, RelationshipEdge)

    async def get_edge(self, sender_id: int, recipient_id: int, kind: RelationshipKind) -> Optional[RelationshipEdge]:
        edges = await self.find(
            RelationshipEdge.sender_id == sender_id,
            RelationshipEdge.recipient_id == recipient_id,
            RelationshipEdge.relationship == kind,
        )
        return edges[0] if edges else None

    async def delete_edge(self, sender_id: int, recipient_id: int, kind: RelationshipKind) -> int:
        """Удаление связи по точной тройке (sender, recipient, kind)"""
        return await self.delete_where(
            RelationshipEdge.sender_id == sender_id,
            RelationshipEdge.recipient_id == recipient_id,
            RelationshipEdge.relationship == kind,
        )

    async def get_between(self, user_id: int, other_id: int) -> List[RelationshipEdge]:
        """
        Связи между двумя пользователями с точки зрения user_id

        Любые связи user -> other и дружба other -> user.
        """
        return await self.find(
            or_(
                and_(
                    RelationshipEdge.sender_id == user_id,
                    RelationshipEdge.recipient_id == other_id,
                ),
                and_(
                    RelationshipEdge.sender_id == other_id,
                    RelationshipEdge.recipient_id == user_id,
                    RelationshipEdge.relationship == RelationshipKind.FRIENDS,
                ),
            )
        )

    async def get_recipients(self, sender_id: int, kind: RelationshipKind) -> List[User]:
        """Пользователи, к которым ведут связи sender_id -> X заданного типа"""
        stmt = (
            select(User)
            .join(RelationshipEdge, RelationshipEdge.recipient_id == User.id)
            .where(RelationshipEdge.sender_id == sender_id, RelationshipEdge.relationship == kind)
            .order_by(User.id)
        )
        result = await self._execute(stmt, "recipients")
        return list(result.scalars().all())

    async def get_senders(self, recipient_id: int, kind: RelationshipKind) -> List[User]:
        """Пользователи, от которых ведут связи X -> recipient_id заданного типа"""
        stmt = (
            select(User)
            .join(RelationshipEdge, RelationshipEdge.sender_id == User.id)
            .where(RelationshipEdge.recipient_id == recipient_id, RelationshipEdge.relationship == kind)
            .order_by(User.id)
        )
        result = await self._execute(stmt, "senders")
        return list(result.scalars().all())
