from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from chatlink.db.models.chat import ChatType
from chatlink.schemas.user import UserResponse


# Схема для создания публичного чата
class PublicChatCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


# Схема для добавления пользователя в чат
class ChatMemberAdd(BaseModel):
    user_id: int


# Схема для удаления пользователя из чата; без user_id удаляется текущий пользователь
class ChatMemberRemove(BaseModel):
    user_id: Optional[int] = None


class ChatIconUpdate(BaseModel):
    icon: str = Field("", max_length=255)


# Схема для ответа с информацией о чате
class ChatResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    type: ChatType
    icon: str = ""
    created_at: Optional[datetime] = None


# Чат вместе с собеседником для приватного чата
class ChatLinkResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    chat: ChatResponse
    counterpart: Optional[UserResponse] = None


# Приватный диалог, названный по собеседнику
class PrivateDialogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    icon: str
    user: UserResponse


# Результат удаления пользователя из чата
class MemberRemovedResponse(BaseModel):
    chat_id: int
    chat_deleted: bool
