from sqlalchemy.ext.asyncio import AsyncSession

from chatlink.core.exceptions import AuthenticationError, ConflictError, NotFoundError, ValidationError
from chatlink.core.logging import get_logger
from chatlink.core.performance import AsyncPerformanceTracker, async_time_it
from chatlink.core.security import TokenManager, get_password_hash, verify_password
from chatlink.db.models.user import User
from chatlink.db.repositories.user import UserRepository
from chatlink.db.unit_of_work import UnitOfWork

# Получение логгера
logger = get_logger(__name__)


def _clean_username(username: str) -> str:
    username = (username or "").strip()
    if not username:
        raise ValidationError("username is empty", entity="user")
    return username


class UserService:
    """Сервис для работы с пользователями"""

    def __init__(self, db: AsyncSession, tokens: TokenManager):
        self.db = db
        self.tokens = tokens
        self.user_repo = UserRepository(db)

    @async_time_it
    async def sign_up(self, username: str, password: str) -> User:
        """Регистрация нового пользователя"""
        username = _clean_username(username)
        if not password:
            raise ValidationError("password is empty", entity="user")

        async with AsyncPerformanceTracker("Проверка существования имени пользователя"):
            if await self.user_repo.get_by_username(username) is not None:
                logger.warning(f"Попытка зарегистрировать занятое имя: {username}")
                raise ConflictError(f"username {username!r} is taken", entity="user")

        async with UnitOfWork(self.db, "sign_up"):
            user = await self.user_repo.create(
                username=username,
                password_hash=get_password_hash(password),
            )

        logger.info(f"Создан новый пользователь: {user.username} (id={user.id})")
        return user

    @async_time_it
    async def authenticate(self, username: str, password: str) -> str:
        """
        Аутентификация пользователя

        Returns:
            JWT-токен доступа

        Raises:
            AuthenticationError: неверное имя пользователя или пароль
        """
        async with AsyncPerformanceTracker("Получение пользователя по имени"):
            user = await self.user_repo.get_by_username(username)
        if user is None:
            logger.warning(f"Попытка входа с несуществующим именем: {username}")
            raise AuthenticationError("invalid credentials")

        async with AsyncPerformanceTracker("Проверка пароля"):
            valid = verify_password(password, user.password_hash)
        if not valid:
            logger.warning(f"Попытка входа с неверным паролем для пользователя: {username}")
            raise AuthenticationError("invalid credentials")

        logger.info(f"Успешная аутентификация пользователя: {username}")
        return self.tokens.create_access_token(user.id)

    async def get_user(self, user_id: int) -> User:
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError(f"user {user_id} not found", entity="user")
        return user

    async def change_username(self, user_id: int, username: str) -> User:
        """Смена имени пользователя"""
        username = _clean_username(username)
        user = await self.get_user(user_id)
        taken = await self.user_repo.get_by_username(username)
        if taken is not None and taken.id != user_id:
            raise ConflictError(f"username {username!r} is taken", entity="user")

        logger.info(f"Пользователь {user_id} меняет имя на {username}")
        async with UnitOfWork(self.db, "change_username"):
            await self.user_repo.update(user_id, username=username)
        await self.db.refresh(user)
        return user

    async def change_password(self, user_id: int, old_password: str, new_password: str) -> None:
        """Смена пароля с проверкой текущего"""
        user = await self.get_user(user_id)
        if not verify_password(old_password, user.password_hash):
            logger.warning(f"Неверный текущий пароль при смене пароля пользователя {user_id}")
            raise AuthenticationError("invalid credentials")
        if not new_password:
            raise ValidationError("password is empty", entity="user")

        async with UnitOfWork(self.db, "change_password"):
            await self.user_repo.update(user_id, password_hash=get_password_hash(new_password))
        logger.info(f"Пароль пользователя {user_id} изменен")

    async def change_icon(self, user_id: int, icon: str) -> User:
        user = await self.get_user(user_id)
        async with UnitOfWork(self.db, "change_icon"):
            await self.user_repo.update(user_id, icon=icon or "")
        await self.db.refresh(user)
        return user
