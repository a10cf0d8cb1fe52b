import logging
import sys
import time
from datetime import date
from pathlib import Path
from typing import Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    log_level: str = "INFO",
    log_format: str = DEFAULT_LOG_FORMAT,
    log_dir: Optional[str] = None,
) -> None:
    """
    Настройка корневого логгера

    Args:
        log_level: Уровень логирования (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Формат записей
        log_dir: Каталог для файла журнала; без него логи пишутся только в консоль
    """
    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {log_level}")

    formatter = logging.Formatter(log_format)
    handlers = [logging.StreamHandler(sys.stdout)]

    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        log_file = log_path / f"chatlink_{date.today().isoformat()}.log"
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()
    for handler in handlers:
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    root_logger.info(f"Logging configured with level {log_level}")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Одна запись журнала на каждый HTTP-запрос: метод, путь, статус и время"""

    async def dispatch(self, request: Request, call_next) -> Response:
        logger = logging.getLogger("api")
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                f"{request.method} {request.url.path} упал через {time.perf_counter() - start_time:.4f}s"
            )
            raise

        elapsed = time.perf_counter() - start_time
        level = logging.INFO
        if response.status_code >= 500:
            level = logging.ERROR
        elif response.status_code >= 400:
            level = logging.WARNING
        logger.log(level, f"{request.method} {request.url.path} -> {response.status_code} ({elapsed:.4f}s)")
        return response


def get_logger(name: str) -> logging.Logger:
    """Логгер модуля"""
    return logging.getLogger(name)
