"""
Хеширование паролей и работа с JWT-токенами доступа
"""
from datetime import datetime, timedelta
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from chatlink.core.config import Settings
from chatlink.core.exceptions import AuthenticationError
from chatlink.core.logging import get_logger

logger = get_logger("security")

# Контекст для хеширования паролей
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Проверка пароля"""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Хеширование пароля"""
    return pwd_context.hash(password)


class TokenManager:
    """
    Выпуск и проверка JWT-токенов доступа

    Секрет передается при создании объекта и не читается из окружения
    во время вызова.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_minutes: int = 60 * 48):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenManager":
        return cls(
            secret_key=settings.SECRET_KEY,
            algorithm=settings.ALGORITHM,
            expire_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
        )

    def create_access_token(self, user_id: int, expires_delta: Optional[timedelta] = None) -> str:
        """
        Создает JWT-токен доступа

        Args:
            user_id: ID пользователя
            expires_delta: Время действия токена (по умолчанию expire_minutes)

        Returns:
            str: Сгенерированный JWT-токен
        """
        if expires_delta is None:
            expires_delta = timedelta(minutes=self.expire_minutes)

        now = datetime.utcnow()
        to_encode = {"sub": str(user_id), "exp": now + expires_delta, "iat": now}
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def decode_token(self, token: str) -> int:
        """
        Декодирует и проверяет JWT-токен

        Args:
            token: JWT-токен

        Returns:
            int: ID пользователя из токена

        Raises:
            AuthenticationError: если токен недействителен, просрочен или не содержит ID
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError as e:
            logger.warning(f"Ошибка при декодировании JWT-токена: {str(e)}")
            raise AuthenticationError(f"invalid token: {e}") from e

        subject = payload.get("sub")
        if subject is None:
            raise AuthenticationError("token has no subject")

        try:
            return int(subject)
        except (TypeError, ValueError) as e:
            raise AuthenticationError(f"malformed token subject: {subject!r}") from e
