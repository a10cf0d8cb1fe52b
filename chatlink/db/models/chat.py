from datetime import datetime
from enum import Enum as PyEnum
from typing import Set

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String, UniqueConstraint

from chatlink.db.database import Base


class ChatType(str, PyEnum):
    """Типы чатов в системе"""
    PUBLIC = "public"    # Открытый чат с произвольным составом
    PRIVATE = "private"  # Чат двух пользователей или личный чат одного пользователя


def private_pair_key(first_user_id: int, second_user_id: int) -> str:
    """
    Канонический ключ пары пользователей приватного чата

    Порядок аргументов не важен: ключ строится как "<меньший>:<больший>".
    Для личного чата оба ID совпадают.
    """
    low, high = sorted((first_user_id, second_user_id))
    return f"{low}:{high}"


def pair_key_members(pair_key: str) -> Set[int]:
    """ID пользователей, которым принадлежит ключ private_pair_key"""
    low, high = pair_key.split(":")
    return {int(low), int(high)}


class Chat(Base):
    """Модель чата (публичного или приватного)"""
    __tablename__ = "chats"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, default="")
    type = Column(
        Enum(ChatType, name="chat_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ChatType.PUBLIC,
    )
    icon = Column(String(255), nullable=False, default="")
    # Только для приватных чатов, см. private_pair_key
    pair_key = Column(String(64), nullable=True, unique=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<Chat(id={self.id}, type={self.type}, name={self.name!r})>"


class ChatMember(Base):
    """Участник чата: связь пользователь-чат"""
    __tablename__ = "chat_members"

    id = Column(Integer, primary_key=True, autoincrement=True)
    chat_id = Column(Integer, ForeignKey("chats.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint("chat_id", "user_id", name="uq_chat_member"),
    )

    def __repr__(self):
        return f"<ChatMember(chat_id={self.chat_id}, user_id={self.user_id})>"
