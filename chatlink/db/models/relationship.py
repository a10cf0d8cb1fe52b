from enum import Enum as PyEnum

from sqlalchemy import Column, Enum, ForeignKey, Index, Integer, UniqueConstraint

from chatlink.db.database import Base


class RelationshipKind(str, PyEnum):
    """Типы направленных связей между пользователями"""
    INVITATION = "invitation"  # sender пригласил recipient в друзья
    FRIENDS = "friends"        # дружба; одно ребро, читается в обе стороны
    BLACK_LIST = "black_list"  # sender заблокировал recipient


class RelationshipEdge(Base):
    """
    Направленная связь sender -> recipient

    Уникальна только точная тройка (sender, recipient, relationship):
    разные типы связи между одной парой хранилище не запрещает.
    """
    __tablename__ = "users_relationship"

    id = Column(Integer, primary_key=True, autoincrement=True)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    recipient_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    relationship = Column(
        Enum(RelationshipKind, name="relationship_kind", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("sender_id", "recipient_id", "relationship", name="uq_relationship_edge"),
        Index("ix_relationship_recipient", "recipient_id", "relationship"),
        Index("ix_relationship_sender", "sender_id", "relationship"),
    )

    def __repr__(self):
        return (
            f"<RelationshipEdge({self.sender_id} -> {self.recipient_id}, "
            f"{self.relationship})>"
        )
