"""
Утилиты для измерения длительности операций сервисного слоя
"""
import time
import functools
from typing import Any, Callable, TypeVar

from chatlink.core.logging import get_logger
from chatlink.core.metrics import service_operation_duration_seconds

# Получение логгера
logger = get_logger("performance")

AsyncF = TypeVar('AsyncF', bound=Callable[..., Any])


def async_time_it(func: AsyncF) -> AsyncF:
    """
    Декоратор для измерения времени выполнения асинхронных методов

    Длительность пишется в лог на уровне DEBUG и в гистограмму
    service_operation_duration_seconds с меткой operation=<Класс.метод>.
    Время учитывается и для вызовов, завершившихся исключением.
    """
    operation = func.__qualname__

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        start_time = time.time()
        try:
            return await func(*args, **kwargs)
        finally:
            execution_time = time.time() - start_time
            service_operation_duration_seconds.labels(operation=operation).observe(execution_time)
            logger.debug(f"Время выполнения {operation}: {execution_time:.4f} секунд")

    return wrapper  # type: ignore


class AsyncPerformanceTracker:
    """
    Класс для отслеживания производительности в асинхронном контексте

    Пример использования:
    ```python
    async with AsyncPerformanceTracker("Проверка пароля"):
        ok = verify_password(password, user.password_hash)
    ```
    """

    def __init__(self, operation_name: str):
        self.operation_name = operation_name
        self.start_time = 0.0

    async def __aenter__(self) -> "AsyncPerformanceTracker":
        self.start_time = time.time()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        execution_time = time.time() - self.start_time
        logger.debug(f"Время выполнения '{self.operation_name}': {execution_time:.4f} секунд")
