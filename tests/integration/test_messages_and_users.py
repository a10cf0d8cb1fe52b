"""
Интеграционные тесты сообщений и учетных записей
"""
import pytest

from chatlink.core.exceptions import AuthenticationError, ConflictError, NotFoundError, ValidationError
from chatlink.db.models.chat import ChatType
from chatlink.services.chat_service import ChatService
from chatlink.services.message_service import MessageService
from chatlink.services.user_service import UserService


@pytest.fixture
def message_service(db_session):
    return MessageService(db_session, limit_max=3)


@pytest.fixture
def user_service(db_session, token_manager):
    return UserService(db_session, token_manager)


@pytest.mark.asyncio
async def test_latest_messages_in_chronological_order(db_session, message_service, make_user):
    author = await make_user()
    chat_id = await ChatService(db_session).create_chat("team", ChatType.PUBLIC)
    for text in ["one", "two", "three", "four"]:
        await message_service.create_message(chat_id, author.id, text)

    latest = await message_service.latest_messages(chat_id, 2)
    assert [message.text for message in latest] == ["three", "four"]

    # Значение limit ограничено limit_max
    clamped = await message_service.latest_messages(chat_id, 100)
    assert [message.text for message in clamped] == ["two", "three", "four"]


@pytest.mark.asyncio
async def test_message_to_missing_chat(message_service, make_user):
    author = await make_user()

    with pytest.raises(NotFoundError):
        await message_service.create_message(404, author.id, "text")


@pytest.mark.asyncio
async def test_empty_message_rejected(db_session, message_service, make_user):
    author = await make_user()
    chat_id = await ChatService(db_session).create_chat("team", ChatType.PUBLIC)

    with pytest.raises(ValidationError):
        await message_service.create_message(chat_id, author.id, "   ")


@pytest.mark.asyncio
async def test_get_message(db_session, message_service, make_user):
    author = await make_user()
    chat_id = await ChatService(db_session).create_chat("team", ChatType.PUBLIC)
    message = await message_service.create_message(chat_id, author.id, "hello")

    found = await message_service.get_message(message.id)

    assert found.text == "hello"
    assert found.author_id == author.id
    assert found.sent_at is not None
    with pytest.raises(NotFoundError):
        await message_service.get_message(404)


@pytest.mark.asyncio
async def test_sign_up_and_authenticate(user_service, token_manager):
    user = await user_service.sign_up("alice", "secret")

    token = await user_service.authenticate("alice", "secret")

    assert token_manager.decode_token(token) == user.id
    with pytest.raises(AuthenticationError):
        await user_service.authenticate("alice", "wrong")
    with pytest.raises(AuthenticationError):
        await user_service.authenticate("nobody", "secret")


@pytest.mark.asyncio
async def test_username_taken(user_service):
    await user_service.sign_up("alice", "secret")

    with pytest.raises(ConflictError):
        await user_service.sign_up("alice", "other")


@pytest.mark.asyncio
async def test_change_profile(user_service):
    user = await user_service.sign_up("alice", "secret")
    await user_service.sign_up("bob", "secret")

    renamed = await user_service.change_username(user.id, "alice2")
    assert renamed.username == "alice2"

    with pytest.raises(ConflictError):
        await user_service.change_username(user.id, "bob")

    updated = await user_service.change_icon(user.id, "avatars/alice.png")
    assert updated.icon == "avatars/alice.png"

    await user_service.change_password(user.id, "secret", "new-secret")
    assert await user_service.authenticate("alice2", "new-secret")
    with pytest.raises(AuthenticationError):
        await user_service.change_password(user.id, "secret", "again")
