# Импорт всех репозиториев для удобного доступа
from chatlink.db.repositories.base import BaseRepository
from chatlink.db.repositories.chat import ChatMemberRepository, ChatRepository
from chatlink.db.repositories.message import MessageRepository
from chatlink.db.repositories.relationship import RelationshipRepository
from chatlink.db.repositories.user import UserRepository

# Экспорт репозиториев для использования из других модулей
__all__ = [
    "BaseRepository",
    "UserRepository",
    "ChatRepository",
    "ChatMemberRepository",
    "MessageRepository",
    "RelationshipRepository",
]
