from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from chatlink.core.logging import get_logger
from chatlink.db.models.user import User
from chatlink.db.repositories.base import BaseRepository

# Получение логгера
logger = get_logger("user_repository")


class UserRepository(BaseRepository[User]):
    """Репозиторий для работы с пользователями"""

    def __init__(self, db: AsyncSession):
        super().__init__(db, User)

    async def get_by_username(self, username: str) -> Optional[User]:
        """
        Получение пользователя по имени

        Args:
            username: Имя пользователя

        Returns:
            Найденный пользователь или None, если пользователь не найден
        """
        logger.debug(f"Поиск пользователя с именем: {username}")
        users = await self.find(User.username == username)
        return users[0] if users else None

    async def search(self, fragment: str) -> List[User]:
        """Поиск пользователей, имя которых содержит fragment"""
        logger.debug(f"Поиск пользователей по фрагменту имени: {fragment}")
        return await self.find(User.username.contains(fragment, autoescape=True))
