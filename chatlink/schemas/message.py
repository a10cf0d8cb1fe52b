"""
Схемы для работы с сообщениями
"""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class MessageCreate(BaseModel):
    """Данные нового сообщения"""
    text: str = Field(..., min_length=1, max_length=4096)


class MessageResponse(BaseModel):
    """Сообщение для API-ответов"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    chat_id: int
    author_id: int
    text: str
    sent_at: datetime
