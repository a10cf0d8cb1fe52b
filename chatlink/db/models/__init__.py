# Импорт всех моделей для удобного доступа
from chatlink.db.models.chat import Chat, ChatMember, ChatType, private_pair_key
from chatlink.db.models.message import Message
from chatlink.db.models.relationship import RelationshipEdge, RelationshipKind
from chatlink.db.models.user import User

# Экспорт моделей для использования из других модулей
__all__ = [
    "User",
    "Chat",
    "ChatMember",
    "ChatType",
    "Message",
    "RelationshipEdge",
    "RelationshipKind",
    "private_pair_key",
]
