from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from chatlink.core.config import Settings, get_settings
from chatlink.core.exceptions import AuthenticationError
from chatlink.core.logging import get_logger
from chatlink.core.security import TokenManager
from chatlink.db.database import get_db
from chatlink.services.chat_service import ChatService
from chatlink.services.message_service import MessageService
from chatlink.services.private_chat_service import PrivateChatService
from chatlink.services.relationship_service import RelationshipService
from chatlink.services.user_service import UserService

# Получение логгера
logger = get_logger("dependencies")

# Схема Bearer для получения токенов из заголовка Authorization
bearer_scheme = HTTPBearer(auto_error=False)


def get_token_manager(settings: Settings = Depends(get_settings)) -> TokenManager:
    return TokenManager.from_settings(settings)


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    tokens: TokenManager = Depends(get_token_manager),
) -> int:
    """
    Получает ID текущего пользователя по токену

    Raises:
        AuthenticationError: если заголовок отсутствует или токен недействителен
    """
    if credentials is None or not credentials.credentials:
        logger.warning("Запрос без токена авторизации")
        raise AuthenticationError("missing bearer token")
    return tokens.decode_token(credentials.credentials)


def get_user_service(
    db: AsyncSession = Depends(get_db),
    tokens: TokenManager = Depends(get_token_manager),
) -> UserService:
    return UserService(db, tokens)


def get_relationship_service(db: AsyncSession = Depends(get_db)) -> RelationshipService:
    return RelationshipService(db)


def get_chat_service(db: AsyncSession = Depends(get_db)) -> ChatService:
    return ChatService(db)


def get_private_chat_service(db: AsyncSession = Depends(get_db)) -> PrivateChatService:
    return PrivateChatService(db)


def get_message_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> MessageService:
    return MessageService(db, limit_max=settings.MESSAGES_LIMIT_MAX)
