"""
Типизированные ошибки ядра приложения

Сервисы и репозитории не формируют текст для пользователя: сообщение
исключения предназначено для логов, а преобразование в HTTP-ответ
выполняют обработчики исключений в chatlink.main.
"""
from typing import Optional


class ChatlinkError(Exception):
    """Базовая ошибка приложения"""

    def __init__(self, message: str = "", *, entity: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.entity = entity


class NotFoundError(ChatlinkError):
    """Запрошенная сущность, связь или членство отсутствует"""


class ConflictError(ChatlinkError):
    """Нарушена уникальность (дублирующая связь, членство, имя пользователя)"""


class ValidationError(ChatlinkError):
    """Некорректные входные данные операции"""


class AuthenticationError(ChatlinkError):
    """Неверные учетные данные или недействительный токен"""


class StoreUnavailableError(ChatlinkError):
    """Хранилище недоступно (ошибка соединения или драйвера)"""


class PartialCascadeFailure(ChatlinkError):
    """
    Каскадное удаление чата прервано на одном из шагов

    Все шаги каскада выполняются в одной единице работы, поэтому к моменту
    появления этой ошибки транзакция уже откатана и частичного состояния
    в хранилище не остается. Повторная попытка не выполняется.
    """

    def __init__(self, message: str = "", *, chat_id: Optional[int] = None, step: Optional[str] = None):
        super().__init__(message, entity="chat")
        self.chat_id = chat_id
        self.step = step
