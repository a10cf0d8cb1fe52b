from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from chatlink.core.logging import get_logger
from chatlink.db.unit_of_work import translate_db_error

# Создаем типизированную переменную для моделей
T = TypeVar('T')

# Получение логгера
logger = get_logger("base_repository")


class BaseRepository(Generic[T]):
    """
    Базовый репозиторий с общими методами для всех моделей

    Методы только выполняют запросы и flush; фиксацию транзакции выполняет
    вызывающий сервис через UnitOfWork. Ошибки SQLAlchemy преобразуются
    в ConflictError / StoreUnavailableError.
    """

    def __init__(self, db: AsyncSession, model: Type[T]):
        """
        Инициализация репозитория

        Args:
            db: Сессия базы данных
            model: Класс модели, с которой работает репозиторий
        """
        self.db = db
        self.model = model

    @property
    def table(self) -> str:
        return self.model.__tablename__

    async def _execute(self, stmt, operation: str):
        try:
            return await self.db.execute(stmt)
        except SQLAlchemyError as e:
            raise translate_db_error(e, f"{self.table}.{operation}") from e

    async def _flush(self, operation: str) -> None:
        try:
            await self.db.flush()
        except SQLAlchemyError as e:
            raise translate_db_error(e, f"{self.table}.{operation}") from e

    async def get_by_id(self, id: int) -> Optional[T]:
        """
        Получение объекта по его ID

        Args:
            id: Идентификатор объекта

        Returns:
            Найденный объект или None, если объект не найден
        """
        result = await self._execute(select(self.model).where(self.model.id == id), "get")
        return result.scalar_one_or_none()

    async def create(self, **fields: Any) -> T:
        """
        Создание нового объекта

        Args:
            fields: Значения колонок

        Returns:
            Созданный объект с присвоенным ID
        """
        db_obj = self.model(**fields)
        self.db.add(db_obj)
        await self._flush("insert")
        return db_obj

    async def find(self, *criteria, order_by=None) -> List[T]:
        """
        Выборка объектов по условиям

        Args:
            criteria: Условия SQLAlchemy
            order_by: Колонка сортировки (по умолчанию ID)

        Returns:
            Список объектов, пустой если совпадений нет
        """
        stmt = select(self.model).where(*criteria).order_by(
            order_by if order_by is not None else self.model.id
        )
        result = await self._execute(stmt, "find")
        return list(result.scalars().all())

    async def count(self, *criteria) -> int:
        stmt = select(func.count()).select_from(self.model).where(*criteria)
        result = await self._execute(stmt, "count")
        return result.scalar_one()

    async def update(self, id: int, **fields: Any) -> bool:
        """
        Обновление полей объекта

        Returns:
            True, если объект найден и обновлен
        """
        stmt = (
            update(self.model)
            .where(self.model.id == id)
            .values(**fields)
        )
        result = await self._execute(stmt, "update")
        return result.rowcount > 0

    async def delete_where(self, *criteria) -> int:
        """
        Удаление объектов по условиям

        Returns:
            Количество удаленных строк
        """
        stmt = delete(self.model).where(*criteria)
        result = await self._execute(stmt, "delete")
        return result.rowcount
