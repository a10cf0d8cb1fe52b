from typing import List

from fastapi import APIRouter, Depends, status

from chatlink.api.dependencies import (
    get_chat_service,
    get_current_user_id,
    get_relationship_service,
    get_user_service,
)
from chatlink.core.logging import get_logger
from chatlink.schemas.chat import ChatResponse, PrivateDialogResponse
from chatlink.schemas.user import (
    IdResponse,
    RelationshipResponse,
    UserListsResponse,
    UserProfileResponse,
    UserResponse,
)
from chatlink.services.chat_service import ChatService
from chatlink.services.relationship_service import RelationshipService
from chatlink.services.user_service import UserService

# Создание маршрутизатора
router = APIRouter(prefix="/users", tags=["users"])

# Получение логгера
logger = get_logger("user_routes")


@router.get("/search/{username}", response_model=List[UserResponse], summary="Поиск пользователей")
async def search_users(
    username: str,
    current_user_id: int = Depends(get_current_user_id),
    relationships: RelationshipService = Depends(get_relationship_service),
):
    users = await relationships.search_users(username)
    return [UserResponse.model_validate(user) for user in users]


@router.get("/{user_id}", response_model=UserProfileResponse, summary="Профиль пользователя")
async def get_user(
    user_id: int,
    current_user_id: int = Depends(get_current_user_id),
    user_service: UserService = Depends(get_user_service),
    relationships: RelationshipService = Depends(get_relationship_service),
):
    """Профиль пользователя и связи между ним и текущим пользователем"""
    user = await user_service.get_user(user_id)
    statuses = await relationships.statuses_between(current_user_id, user_id)
    return UserProfileResponse(
        user=UserResponse.model_validate(user),
        statuses=[RelationshipResponse.model_validate(edge) for edge in statuses],
    )


@router.get("/{user_id}/all", response_model=UserListsResponse, summary="Все списки связей")
async def get_user_lists(
    user_id: int,
    current_user_id: int = Depends(get_current_user_id),
    relationships: RelationshipService = Depends(get_relationship_service),
):
    """Друзья, черный список, заблокировавшие, отправленные и полученные приглашения"""
    lists = await relationships.user_lists(user_id)
    return UserListsResponse.model_validate(lists)


@router.get("/{user_id}/public", response_model=List[ChatResponse], summary="Публичные чаты пользователя")
async def get_user_public_chats(
    user_id: int,
    current_user_id: int = Depends(get_current_user_id),
    chat_service: ChatService = Depends(get_chat_service),
):
    chats = await chat_service.public_chats_of(user_id)
    return [ChatResponse.model_validate(chat) for chat in chats]


@router.get("/{user_id}/private", response_model=List[PrivateDialogResponse], summary="Приватные чаты пользователя")
async def get_user_private_chats(
    user_id: int,
    current_user_id: int = Depends(get_current_user_id),
    chat_service: ChatService = Depends(get_chat_service),
):
    dialogs = await chat_service.private_dialogs_of(user_id, current_user_id)
    return [PrivateDialogResponse.model_validate(dialog) for dialog in dialogs]


@router.post("/{user_id}/invite", response_model=IdResponse, status_code=status.HTTP_201_CREATED)
async def invite(
    user_id: int,
    current_user_id: int = Depends(get_current_user_id),
    relationships: RelationshipService = Depends(get_relationship_service),
):
    """Приглашение пользователя в друзья"""
    edge_id = await relationships.invite(current_user_id, user_id)
    return IdResponse(id=edge_id)


@router.delete("/{user_id}/cancel", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_invitation(
    user_id: int,
    current_user_id: int = Depends(get_current_user_id),
    relationships: RelationshipService = Depends(get_relationship_service),
):
    await relationships.cancel_invitation(current_user_id, user_id)


@router.put("/{user_id}/accept", response_model=IdResponse)
async def accept_invitation(
    user_id: int,
    current_user_id: int = Depends(get_current_user_id),
    relationships: RelationshipService = Depends(get_relationship_service),
):
    """Принятие приглашения от пользователя user_id"""
    edge_id = await relationships.accept_invitation(current_user_id, user_id)
    return IdResponse(id=edge_id)


@router.delete("/{user_id}/refuse", status_code=status.HTTP_204_NO_CONTENT)
async def refuse_invitation(
    user_id: int,
    current_user_id: int = Depends(get_current_user_id),
    relationships: RelationshipService = Depends(get_relationship_service),
):
    await relationships.refuse_invitation(current_user_id, user_id)


@router.post("/{user_id}/addToBL", response_model=IdResponse, status_code=status.HTTP_201_CREATED)
async def add_to_blacklist(
    user_id: int,
    current_user_id: int = Depends(get_current_user_id),
    relationships: RelationshipService = Depends(get_relationship_service),
):
    edge_id = await relationships.block(current_user_id, user_id)
    return IdResponse(id=edge_id)


@router.delete("/{user_id}/deleteFromBlacklist", status_code=status.HTTP_204_NO_CONTENT)
async def delete_from_blacklist(
    user_id: int,
    current_user_id: int = Depends(get_current_user_id),
    relationships: RelationshipService = Depends(get_relationship_service),
):
    await relationships.unblock(current_user_id, user_id)


@router.delete("/{user_id}/deleteFriend", status_code=status.HTTP_204_NO_CONTENT)
async def delete_friend(
    user_id: int,
    current_user_id: int = Depends(get_current_user_id),
    relationships: RelationshipService = Depends(get_relationship_service),
):
    await relationships.remove_friend(current_user_id, user_id)
