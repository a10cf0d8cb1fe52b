"""
Модуль с маршрутами API приложения
"""
from fastapi import APIRouter

from chatlink.api.routes import auth_routes
from chatlink.api.routes import chat_routes
from chatlink.api.routes import message_routes
from chatlink.api.routes import user_routes

# Создаем основной роутер API
api_router = APIRouter()

# Включаем все необходимые роутеры
api_router.include_router(auth_routes.router)
api_router.include_router(user_routes.router)
api_router.include_router(chat_routes.router)
api_router.include_router(message_routes.router)
