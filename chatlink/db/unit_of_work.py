"""
Единица работы над асинхронной сессией SQLAlchemy

Многошаговые изменения (создание чата вместе с участниками, удаление
участника с каскадным удалением чата, явное удаление чата) выполняются
внутри одной единицы работы: при успешном завершении блока транзакция
фиксируется, при любой ошибке откатывается целиком.
"""
from typing import Optional, Type

from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from chatlink.core.exceptions import ConflictError, StoreUnavailableError
from chatlink.core.logging import get_logger
from chatlink.core.metrics import track_db_error

logger = get_logger("unit_of_work")


def translate_db_error(error: SQLAlchemyError, operation: str) -> Exception:
    """
    Преобразует исключение SQLAlchemy в типизированную ошибку приложения

    Args:
        error: Исходное исключение
        operation: Название операции для логов и метрик

    Returns:
        Exception: ConflictError для нарушений уникальности,
        StoreUnavailableError для ошибок соединения и драйвера,
        иначе исходное исключение
    """
    track_db_error(operation, error)
    if isinstance(error, IntegrityError):
        return ConflictError(f"{operation}: {error.orig}")
    if isinstance(error, (OperationalError, InterfaceError, DBAPIError)):
        logger.error(f"Хранилище недоступно при выполнении '{operation}': {error}")
        return StoreUnavailableError(f"{operation}: {error}")
    return error


class UnitOfWork:
    """
    Асинхронный контекстный менеджер транзакции

    Пример использования:
    ```python
    async with UnitOfWork(db, "create_public_chat"):
        chat = await chat_repo.create(...)
        await member_repo.add(chat.id, user_id)
    ```
    """

    def __init__(self, db: AsyncSession, operation: str = "unit_of_work"):
        self.db = db
        self.operation = operation

    async def __aenter__(self) -> "UnitOfWork":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb,
    ) -> bool:
        if exc_type is not None:
            logger.warning(f"Откат транзакции '{self.operation}': {exc_val!r}")
            await self.db.rollback()
            return False

        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise translate_db_error(e, self.operation) from e
        return False
