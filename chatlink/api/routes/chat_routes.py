from typing import List, Optional

from fastapi import APIRouter, Depends, status

from chatlink.api.dependencies import get_chat_service, get_current_user_id, get_private_chat_service
from chatlink.core.logging import get_logger
from chatlink.schemas.chat import (
    ChatIconUpdate,
    ChatLinkResponse,
    ChatMemberAdd,
    ChatMemberRemove,
    ChatResponse,
    MemberRemovedResponse,
    PublicChatCreate,
)
from chatlink.schemas.user import IdResponse, UserResponse
from chatlink.services.chat_service import ChatService
from chatlink.services.private_chat_service import PrivateChatService

# Создание маршрутизатора
router = APIRouter(prefix="/chats", tags=["chats"])

# Получение логгера
logger = get_logger("chat_routes")


@router.post("/create", response_model=ChatResponse, status_code=status.HTTP_201_CREATED)
async def create_public_chat(
    chat_data: PublicChatCreate,
    current_user_id: int = Depends(get_current_user_id),
    chat_service: ChatService = Depends(get_chat_service),
):
    """Создание публичного чата; создатель становится его участником"""
    chat = await chat_service.create_public_chat(current_user_id, chat_data.name)
    return ChatResponse.model_validate(chat)


@router.get("/search/{name}", response_model=List[ChatResponse], summary="Поиск публичных чатов")
async def search_chats(
    name: str,
    current_user_id: int = Depends(get_current_user_id),
    chat_service: ChatService = Depends(get_chat_service),
):
    chats = await chat_service.search_public_chats(name)
    return [ChatResponse.model_validate(chat) for chat in chats]


@router.get("/{user_id}/private", response_model=IdResponse, summary="Приватный чат с пользователем")
async def private_chat(
    user_id: int,
    current_user_id: int = Depends(get_current_user_id),
    private_chats: PrivateChatService = Depends(get_private_chat_service),
):
    """
    ID приватного чата текущего пользователя с user_id

    Если чата еще нет, он создается. Для user_id, равного текущему
    пользователю, возвращается личный чат.
    """
    chat_id = await private_chats.get_or_create_private_chat(current_user_id, user_id)
    return IdResponse(id=chat_id)


@router.get("/{chat_id}", response_model=ChatResponse)
async def get_chat(
    chat_id: int,
    current_user_id: int = Depends(get_current_user_id),
    chat_service: ChatService = Depends(get_chat_service),
):
    chat = await chat_service.get_chat(chat_id)
    return ChatResponse.model_validate(chat)


@router.get("/{chat_id}/link", response_model=ChatLinkResponse)
async def get_chat_link(
    chat_id: int,
    current_user_id: int = Depends(get_current_user_id),
    chat_service: ChatService = Depends(get_chat_service),
):
    """Чат и, для приватного чата, собеседник текущего пользователя"""
    link = await chat_service.get_chat_link(chat_id, current_user_id)
    return ChatLinkResponse.model_validate(link)


@router.get("/{chat_id}/users", response_model=List[UserResponse])
async def get_chat_users(
    chat_id: int,
    current_user_id: int = Depends(get_current_user_id),
    chat_service: ChatService = Depends(get_chat_service),
):
    users = await chat_service.members_of(chat_id)
    return [UserResponse.model_validate(user) for user in users]


@router.post("/{chat_id}/add", response_model=IdResponse, status_code=status.HTTP_201_CREATED)
async def add_user_to_chat(
    chat_id: int,
    member: ChatMemberAdd,
    current_user_id: int = Depends(get_current_user_id),
    chat_service: ChatService = Depends(get_chat_service),
):
    logger.info(f"Пользователь {current_user_id} добавляет {member.user_id} в чат {chat_id}")
    membership_id = await chat_service.add_member(chat_id, member.user_id)
    return IdResponse(id=membership_id)


@router.put("/{chat_id}/delete", response_model=MemberRemovedResponse)
async def remove_user_from_chat(
    chat_id: int,
    member: Optional[ChatMemberRemove] = None,
    current_user_id: int = Depends(get_current_user_id),
    chat_service: ChatService = Depends(get_chat_service),
):
    """
    Удаление пользователя из чата; пустой чат удаляется вместе с сообщениями

    Без user_id в теле запроса из чата выходит текущий пользователь.
    """
    user_id = current_user_id
    if member is not None and member.user_id is not None:
        user_id = member.user_id
    logger.info(f"Пользователь {current_user_id} удаляет {user_id} из чата {chat_id}")
    deleted = await chat_service.remove_member(user_id, chat_id)
    return MemberRemovedResponse(chat_id=chat_id, chat_deleted=deleted)


@router.put("/{chat_id}/icon", response_model=ChatResponse)
async def change_chat_icon(
    chat_id: int,
    data: ChatIconUpdate,
    current_user_id: int = Depends(get_current_user_id),
    chat_service: ChatService = Depends(get_chat_service),
):
    chat = await chat_service.update_chat(chat_id, icon=data.icon)
    return ChatResponse.model_validate(chat)


@router.delete("/{chat_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_chat(
    chat_id: int,
    current_user_id: int = Depends(get_current_user_id),
    chat_service: ChatService = Depends(get_chat_service),
):
    """Удаление чата со всеми участниками и сообщениями"""
    logger.info(f"Пользователь {current_user_id} удаляет чат {chat_id}")
    await chat_service.delete_chat(chat_id)
