from typing import List

from fastapi import APIRouter, Depends, Path, status

from chatlink.api.dependencies import get_current_user_id, get_message_service
from chatlink.core.logging import get_logger
from chatlink.schemas.message import MessageCreate, MessageResponse
from chatlink.services.message_service import MessageService

# Создание маршрутизатора
router = APIRouter(prefix="/chats/{chat_id}/messages", tags=["messages"])

# Получение логгера
logger = get_logger("message_routes")


@router.post("", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def create_message(
    chat_id: int,
    message_in: MessageCreate,
    current_user_id: int = Depends(get_current_user_id),
    message_service: MessageService = Depends(get_message_service),
):
    message = await message_service.create_message(chat_id, current_user_id, message_in.text)
    return MessageResponse.model_validate(message)


@router.get("/limit/{limit}", response_model=List[MessageResponse])
async def get_latest_messages(
    chat_id: int,
    limit: int = Path(..., gt=0),
    current_user_id: int = Depends(get_current_user_id),
    message_service: MessageService = Depends(get_message_service),
):
    """Последние limit сообщений чата в хронологическом порядке"""
    messages = await message_service.latest_messages(chat_id, limit)
    return [MessageResponse.model_validate(message) for message in messages]


@router.get("/{message_id}", response_model=MessageResponse)
async def get_message(
    chat_id: int,
    message_id: int,
    current_user_id: int = Depends(get_current_user_id),
    message_service: MessageService = Depends(get_message_service),
):
    message = await message_service.get_message(message_id)
    return MessageResponse.model_validate(message)
