"""
Модуль для сбора и экспорта метрик приложения

Этот модуль предоставляет метрики HTTP-запросов, ошибок хранилища и
бизнес-метрики ядра: разрешение приватных чатов, каскадные удаления
чатов и изменения графа связей между пользователями.
"""
import time
import logging

from fastapi import FastAPI, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, Histogram, generate_latest

# Настройка логирования
logger = logging.getLogger(__name__)

# Создаем реестр метрик
registry = CollectorRegistry()

# Метрики HTTP запросов
http_requests_total = Counter(
    'http_requests_total',
    'Общее количество HTTP запросов',
    ['method', 'endpoint', 'status'],
    registry=registry
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'Длительность HTTP запросов в секундах',
    ['method', 'endpoint'],
    buckets=(0.01, 0.025, 0.05, 0.075, 0.1, 0.25, 0.5, 0.75, 1.0, 2.5, 5.0, 7.5, 10.0, float('inf')),
    registry=registry
)

# Метрики базы данных
db_errors_total = Counter(
    'db_errors_total',
    'Общее количество ошибок базы данных',
    ['operation', 'error_type'],
    registry=registry
)

# Метрики сервисных операций
service_operation_duration_seconds = Histogram(
    'service_operation_duration_seconds',
    'Длительность операций сервисного слоя в секундах',
    ['operation'],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.075, 0.1, 0.25, 0.5, 0.75, 1.0, float('inf')),
    registry=registry
)

# Бизнес-метрики
private_chat_resolutions_total = Counter(
    'private_chat_resolutions_total',
    'Результаты поиска приватного чата между пользователями',
    ['outcome'],
    registry=registry
)

private_chats_created_total = Counter(
    'private_chats_created_total',
    'Количество созданных приватных чатов',
    registry=registry
)

chat_cascade_deletes_total = Counter(
    'chat_cascade_deletes_total',
    'Количество каскадных удалений чатов',
    ['trigger'],
    registry=registry
)

relationship_edges_total = Counter(
    'relationship_edges_total',
    'Изменения графа связей между пользователями',
    ['kind', 'action'],
    registry=registry
)

messages_sent_total = Counter(
    'messages_sent_total',
    'Общее количество отправленных сообщений',
    ['chat_type'],
    registry=registry
)


def _normalize_path(path: str) -> str:
    """Заменяет числовые сегменты пути на {id} для группировки метрик"""
    parts = path.split('/')
    for i, part in enumerate(parts):
        if i > 0 and part.isdigit():
            parts[i] = '{id}'
    return '/'.join(parts)


async def metrics_middleware(request: Request, call_next) -> Response:
    """
    Middleware для сбора метрик HTTP запросов

    Args:
        request: Объект запроса FastAPI
        call_next: Следующая функция в цепочке middleware

    Returns:
        Response: Ответ FastAPI
    """
    start_time = time.time()
    path = _normalize_path(request.url.path)

    try:
        response = await call_next(request)
    except Exception as e:
        # В случае ошибки также записываем метрики
        logger.error(f"Ошибка при обработке запроса: {str(e)}")
        http_requests_total.labels(method=request.method, endpoint=path, status=500).inc()
        http_request_duration_seconds.labels(
            method=request.method,
            endpoint=path
        ).observe(time.time() - start_time)
        raise

    http_requests_total.labels(
        method=request.method,
        endpoint=path,
        status=response.status_code
    ).inc()
    http_request_duration_seconds.labels(
        method=request.method,
        endpoint=path
    ).observe(time.time() - start_time)
    return response


def setup_metrics(app: FastAPI, metrics_path: str = "/metrics") -> None:
    """
    Подключает сбор метрик к приложению и публикует их по адресу metrics_path

    Args:
        app: Приложение FastAPI
        metrics_path: Путь, по которому Prometheus забирает метрики
    """
    app.middleware("http")(metrics_middleware)

    @app.get(metrics_path, include_in_schema=False)
    async def metrics() -> Response:
        return Response(content=generate_latest(registry), media_type=CONTENT_TYPE_LATEST)


def track_db_error(operation: str, error: Exception) -> None:
    """Учитывает ошибку хранилища"""
    db_errors_total.labels(operation=operation, error_type=type(error).__name__).inc()


def track_private_chat_resolution(outcome: str) -> None:
    """
    Учитывает результат поиска приватного чата

    Args:
        outcome: existing, personal или none
    """
    private_chat_resolutions_total.labels(outcome=outcome).inc()


def track_private_chat_created() -> None:
    private_chats_created_total.inc()


def track_cascade_delete(trigger: str) -> None:
    """
    Учитывает каскадное удаление чата

    Args:
        trigger: last_member (ушел последний участник) или explicit (явное удаление)
    """
    chat_cascade_deletes_total.labels(trigger=trigger).inc()


def track_relationship_change(kind: str, action: str) -> None:
    relationship_edges_total.labels(kind=kind, action=action).inc()


def track_message_sent(chat_type: str) -> None:
    messages_sent_total.labels(chat_type=chat_type).inc()
