"""
Основной модуль приложения - точка входа FastAPI
"""
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from chatlink.api.routes import api_router
from chatlink.core.config import settings
from chatlink.core.exceptions import (
    AuthenticationError,
    ChatlinkError,
    ConflictError,
    NotFoundError,
    PartialCascadeFailure,
    StoreUnavailableError,
    ValidationError,
)
from chatlink.core.logging import RequestLoggingMiddleware, get_logger, setup_logging
from chatlink.core.metrics import setup_metrics
from chatlink.db.database import init_db

# Настройка логирования
setup_logging(
    log_level=settings.LOG_LEVEL,
    log_format=settings.LOG_FORMAT,
    log_dir=settings.LOG_DIR if settings.LOG_TO_FILE else None,
)

# Получение логгера
logger = get_logger("main")

# Статус и обобщенный текст ответа для ошибок приложения
ERROR_RESPONSES = {
    NotFoundError: (status.HTTP_404_NOT_FOUND, "Не найдено"),
    ConflictError: (status.HTTP_409_CONFLICT, "Конфликт данных"),
    ValidationError: (status.HTTP_400_BAD_REQUEST, "Некорректные данные запроса"),
    AuthenticationError: (status.HTTP_401_UNAUTHORIZED, "Недействительные учетные данные"),
    StoreUnavailableError: (status.HTTP_503_SERVICE_UNAVAILABLE, "Хранилище временно недоступно"),
    PartialCascadeFailure: (status.HTTP_500_INTERNAL_SERVER_ERROR, "Не удалось удалить чат"),
}


# Контекст запуска приложения
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Контекст жизненного цикла приложения
    Запускается при старте и остановке приложения
    """
    logger.info("Запуск приложения...")

    # Инициализация базы данных
    await init_db()
    logger.info("База данных инициализирована")

    yield

    logger.info("Остановка приложения...")


# Создание приложения FastAPI
app = FastAPI(
    title=settings.PROJECT_NAME,
    description=settings.PROJECT_DESCRIPTION,
    version=settings.PROJECT_VERSION,
    lifespan=lifespan
)

# Настройка CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=settings.ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Логирование запросов
app.add_middleware(RequestLoggingMiddleware)

# Настройка сбора метрик Prometheus
if settings.METRICS_ENABLED:
    setup_metrics(app, metrics_path=settings.METRICS_PATH)
    logger.info("Метрики Prometheus настроены")


@app.exception_handler(ChatlinkError)
async def chatlink_exception_handler(request: Request, exc: ChatlinkError):
    """Преобразование ошибок приложения в HTTP-ответы"""
    status_code, detail = status.HTTP_500_INTERNAL_SERVER_ERROR, "Внутренняя ошибка сервера"
    for error_type, response in ERROR_RESPONSES.items():
        if isinstance(exc, error_type):
            status_code, detail = response
            break

    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {status_code}: {exc.message}")

    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    return JSONResponse(status_code=status_code, content={"detail": detail}, headers=headers)


# Обработчик необработанных исключений
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Глобальный обработчик исключений"""
    logger.error(f"Необработанное исключение: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Внутренняя ошибка сервера"}
    )

# Включение маршрутов API
app.include_router(api_router, prefix=settings.API_V1_STR)

# Маршрут для проверки работоспособности
@app.get("/health", tags=["health"])
async def health_check():
    """Проверка работоспособности приложения"""
    return {"status": "ok", "environment": settings.ENVIRONMENT}


# Запуск приложения с uvicorn при прямом запуске модуля
if __name__ == "__main__":
    uvicorn.run(
        "chatlink.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.ENVIRONMENT.lower() == "development"
    )
