"""
Интеграционные тесты участников чатов и каскадного удаления
"""
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import delete

from chatlink.core.exceptions import NotFoundError, PartialCascadeFailure, StoreUnavailableError, ValidationError
from chatlink.db.models.chat import Chat, ChatType
from chatlink.services.chat_service import ChatService
from chatlink.services.message_service import MessageService


@pytest.fixture
def chat_service(db_session):
    return ChatService(db_session)


@pytest.fixture
def message_service(db_session):
    return MessageService(db_session)


def _ids(users):
    return [user.id for user in users]


@pytest.mark.asyncio
async def test_last_member_leaving_deletes_chat_and_messages(chat_service, message_service, make_user):
    """Чат с участниками 7 и 9: после ухода обоих не остается ни чата, ни сообщений"""
    await make_user(id=7)
    await make_user(id=9)
    chat_id = await chat_service.create_chat("team", ChatType.PUBLIC)
    await chat_service.add_member(chat_id, 7)
    await chat_service.add_member(chat_id, 9)
    await message_service.create_message(chat_id, 7, "привет")
    await message_service.create_message(chat_id, 9, "и тебе")

    assert await chat_service.remove_member(7, chat_id) is False
    assert (await chat_service.get_chat(chat_id)).id == chat_id
    assert _ids(await chat_service.members_of(chat_id)) == [9]
    assert len(await chat_service.messages_of(chat_id)) == 2

    assert await chat_service.remove_member(9, chat_id) is True
    with pytest.raises(NotFoundError):
        await chat_service.get_chat(chat_id)
    assert await chat_service.members_of(chat_id) == []
    assert await chat_service.messages_of(chat_id) == []


@pytest.mark.asyncio
async def test_created_chat_has_no_members(chat_service):
    chat_id = await chat_service.create_chat("empty", ChatType.PUBLIC)

    assert (await chat_service.get_chat(chat_id)).name == "empty"
    assert await chat_service.members_of(chat_id) == []


@pytest.mark.asyncio
async def test_add_member_twice_is_noop(chat_service, make_user):
    user = await make_user()
    chat_id = await chat_service.create_chat("team", ChatType.PUBLIC)

    first = await chat_service.add_member(chat_id, user.id)
    second = await chat_service.add_member(chat_id, user.id)

    assert first == second
    assert _ids(await chat_service.members_of(chat_id)) == [user.id]


@pytest.mark.asyncio
async def test_add_member_to_missing_chat(chat_service, make_user):
    user = await make_user()

    with pytest.raises(NotFoundError):
        await chat_service.add_member(404, user.id)


@pytest.mark.asyncio
async def test_private_chat_holds_two_members(chat_service, make_user):
    first = await make_user()
    second = await make_user()
    third = await make_user()
    chat_id = await chat_service.create_chat("", ChatType.PRIVATE)
    await chat_service.add_member(chat_id, first.id)
    await chat_service.add_member(chat_id, second.id)

    with pytest.raises(ValidationError):
        await chat_service.add_member(chat_id, third.id)


@pytest.mark.asyncio
async def test_remove_non_member(chat_service, make_user):
    user = await make_user()
    chat_id = await chat_service.create_chat("team", ChatType.PUBLIC)

    with pytest.raises(NotFoundError):
        await chat_service.remove_member(user.id, chat_id)


@pytest.mark.asyncio
async def test_delete_chat_removes_members_and_messages(chat_service, message_service, make_user):
    """Явное удаление приводит к тому же итогу, что и уход последнего участника"""
    owner = await make_user()
    guest = await make_user()
    chat = await chat_service.create_public_chat(owner.id, "Общий чат")
    await chat_service.add_member(chat.id, guest.id)
    await message_service.create_message(chat.id, owner.id, "сообщение")

    await chat_service.delete_chat(chat.id)

    with pytest.raises(NotFoundError):
        await chat_service.get_chat(chat.id)
    assert await chat_service.members_of(chat.id) == []
    assert await chat_service.messages_of(chat.id) == []
    assert await chat_service.public_chats_of(owner.id) == []


@pytest.mark.asyncio
async def test_delete_missing_chat(chat_service):
    with pytest.raises(NotFoundError):
        await chat_service.delete_chat(404)


@pytest.mark.asyncio
async def test_cascade_failure_rolls_back(chat_service, message_service, make_user):
    """Сбой очистки сообщений откатывает и удаление участника, и удаление чата"""
    user_id = (await make_user()).id
    chat_id = await chat_service.create_chat("team", ChatType.PUBLIC)
    await chat_service.add_member(chat_id, user_id)
    await message_service.create_message(chat_id, user_id, "сообщение")

    chat_service.message_repo.delete_all = AsyncMock(side_effect=StoreUnavailableError("connection lost"))

    with pytest.raises(PartialCascadeFailure) as exc_info:
        await chat_service.remove_member(user_id, chat_id)

    assert exc_info.value.chat_id == chat_id
    assert exc_info.value.step == "delete_messages"
    assert (await chat_service.get_chat(chat_id)).id == chat_id
    assert _ids(await chat_service.members_of(chat_id)) == [user_id]
    assert len(await chat_service.messages_of(chat_id)) == 1


@pytest.mark.asyncio
async def test_cascade_tolerates_already_deleted_chat(chat_service, message_service, make_user, db_session):
    """Чат, уже удаленный параллельным запросом, не считается ошибкой каскада"""
    user_id = (await make_user()).id
    chat_id = await chat_service.create_chat("team", ChatType.PUBLIC)
    await chat_service.add_member(chat_id, user_id)
    await message_service.create_message(chat_id, user_id, "сообщение")

    await db_session.execute(delete(Chat).where(Chat.id == chat_id))
    await db_session.commit()

    assert await chat_service.remove_member(user_id, chat_id) is True
    assert await chat_service.messages_of(chat_id) == []


@pytest.mark.asyncio
async def test_create_public_chat_adds_creator(chat_service, make_user):
    owner = await make_user()

    chat = await chat_service.create_public_chat(owner.id, "  Книжный клуб ")

    assert chat.name == "Книжный клуб"
    assert chat.type == ChatType.PUBLIC
    assert _ids(await chat_service.members_of(chat.id)) == [owner.id]
    assert [c.id for c in await chat_service.public_chats_of(owner.id)] == [chat.id]


@pytest.mark.asyncio
async def test_create_public_chat_requires_name(chat_service, make_user):
    owner = await make_user()

    with pytest.raises(ValidationError):
        await chat_service.create_public_chat(owner.id, "   ")


@pytest.mark.asyncio
async def test_update_chat_icon(chat_service, make_user):
    owner = await make_user()
    chat = await chat_service.create_public_chat(owner.id, "team")

    updated = await chat_service.update_chat(chat.id, icon="icons/team.png")

    assert updated.icon == "icons/team.png"
    assert updated.name == "team"


@pytest.mark.asyncio
async def test_search_public_chats(chat_service, make_user):
    owner = await make_user()
    await chat_service.create_public_chat(owner.id, "python chat")
    await chat_service.create_public_chat(owner.id, "go chat")
    await chat_service.create_chat("python private", ChatType.PRIVATE)

    found = await chat_service.search_public_chats("python")

    assert [chat.name for chat in found] == ["python chat"]


@pytest.mark.asyncio
async def test_chat_link_counterpart(chat_service, make_user):
    me = await make_user()
    other = await make_user()
    dialog_id = await chat_service.create_chat("", ChatType.PRIVATE)
    await chat_service.add_member(dialog_id, me.id)
    await chat_service.add_member(dialog_id, other.id)
    personal_id = await chat_service.create_chat("", ChatType.PRIVATE)
    await chat_service.add_member(personal_id, me.id)

    assert (await chat_service.get_chat_link(dialog_id, me.id)).counterpart.id == other.id
    assert (await chat_service.get_chat_link(personal_id, me.id)).counterpart.id == me.id


@pytest.mark.asyncio
async def test_private_dialogs_named_after_counterpart(chat_service, make_user):
    me = await make_user(username="me")
    other = await make_user(username="friend")
    dialog_id = await chat_service.create_chat("", ChatType.PRIVATE)
    await chat_service.add_member(dialog_id, me.id)
    await chat_service.add_member(dialog_id, other.id)
    personal_id = await chat_service.create_chat("", ChatType.PRIVATE)
    await chat_service.add_member(personal_id, me.id)

    dialogs = await chat_service.private_dialogs_of(me.id, me.id)

    assert [(dialog.id, dialog.name) for dialog in dialogs] == [(dialog_id, "friend")]
    assert await chat_service.private_chats_of(me.id) == [dialog_id, personal_id]
