#!/usr/bin/env python
"""
Скрипт для заполнения базы данных тестовыми данными.
Запуск: python seed_db.py
"""
import asyncio

from chatlink.core.config import settings
from chatlink.core.logging import setup_logging
from chatlink.utils.seed_data import seed_all

if __name__ == "__main__":
    setup_logging(log_level=settings.LOG_LEVEL, log_format=settings.LOG_FORMAT)
    print("Заполнение базы данных тестовыми данными...")
    asyncio.run(seed_all())
    print("Заполнение базы данных завершено!")
