from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from chatlink.db.models.relationship import RelationshipKind


# Схема для регистрации и входа
class UserCredentials(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1)


# Схема для ответа с информацией о пользователе
class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    icon: str = ""
    created_at: datetime


# Схема для токена доступа
class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


# Схемы для изменения профиля
class UsernameUpdate(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)


class PasswordUpdate(BaseModel):
    old_password: str
    new_password: str = Field(..., min_length=1)


class IconUpdate(BaseModel):
    icon: str = Field("", max_length=255)


# Все списки связей пользователя
class UserListsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    friends: List[UserResponse]
    blacklist: List[UserResponse]
    on_blacklist: List[UserResponse]
    invites: List[UserResponse]
    requires: List[UserResponse]


class RelationshipResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    sender_id: int
    recipient_id: int
    relationship: RelationshipKind


# Профиль другого пользователя вместе со связями между ним и текущим
class UserProfileResponse(BaseModel):
    user: UserResponse
    statuses: List[RelationshipResponse]


class IdResponse(BaseModel):
    id: int
