"""
Интеграционные тесты HTTP API

Приложение вызывается напрямую через httpx.ASGITransport; зависимости
get_db и get_settings подменяются тестовыми.
"""
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from chatlink.core.config import get_settings
from chatlink.db.database import get_db
from chatlink.main import app


@pytest_asyncio.fixture
async def client(session_factory, test_settings):
    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_settings] = lambda: test_settings

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _register(client: AsyncClient, username: str) -> dict:
    """Регистрация и вход; возвращает ID пользователя и заголовки авторизации"""
    response = await client.post("/api/auth/sign-up", json={"username": username, "password": "password123"})
    assert response.status_code == 201, response.text
    user_id = response.json()["id"]

    response = await client.post("/api/auth/sign-in", json={"username": username, "password": "password123"})
    assert response.status_code == 200, response.text
    token = response.json()["access_token"]
    return {"id": user_id, "headers": {"Authorization": f"Bearer {token}"}}


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_metrics_endpoint(client):
    await client.get("/health")

    response = await client.get("/metrics")

    assert response.status_code == 200
    assert "http_requests_total" in response.text


@pytest.mark.asyncio
async def test_sign_up_and_get_me(client):
    alice = await _register(client, "alice")

    response = await client.get("/api/auth/get-me", headers=alice["headers"])

    assert response.status_code == 200
    assert response.json()["username"] == "alice"
    assert response.json()["id"] == alice["id"]


@pytest.mark.asyncio
async def test_requests_without_token_are_rejected(client):
    response = await client.get("/api/auth/get-me")
    assert response.status_code == 401

    response = await client.get("/api/auth/get-me", headers={"Authorization": "Bearer broken"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_duplicate_sign_up_conflict(client):
    await _register(client, "alice")

    response = await client.post("/api/auth/sign-up", json={"username": "alice", "password": "x"})

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_wrong_password(client):
    await _register(client, "alice")

    response = await client.post("/api/auth/sign-in", json={"username": "alice", "password": "wrong"})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_private_chat_endpoint_is_idempotent_and_symmetric(client):
    alice = await _register(client, "alice")
    bob = await _register(client, "bob")

    first = await client.get(f"/api/chats/{bob['id']}/private", headers=alice["headers"])
    second = await client.get(f"/api/chats/{bob['id']}/private", headers=alice["headers"])
    reverse = await client.get(f"/api/chats/{alice['id']}/private", headers=bob["headers"])

    assert first.status_code == 200
    chat_id = first.json()["id"]
    assert second.json()["id"] == chat_id
    assert reverse.json()["id"] == chat_id

    response = await client.get(f"/api/users/{alice['id']}/private", headers=alice["headers"])
    assert [(dialog["id"], dialog["name"]) for dialog in response.json()] == [(chat_id, "bob")]

    response = await client.get(f"/api/chats/{chat_id}/link", headers=alice["headers"])
    assert response.json()["counterpart"]["username"] == "bob"


@pytest.mark.asyncio
async def test_invite_accept_and_lists(client):
    alice = await _register(client, "alice")
    bob = await _register(client, "bob")

    response = await client.post(f"/api/users/{bob['id']}/invite", headers=alice["headers"])
    assert response.status_code == 201

    response = await client.get(f"/api/users/{bob['id']}/all", headers=bob["headers"])
    assert [user["username"] for user in response.json()["requires"]] == ["alice"]

    response = await client.put(f"/api/users/{alice['id']}/accept", headers=bob["headers"])
    assert response.status_code == 200

    response = await client.get(f"/api/users/{alice['id']}/all", headers=alice["headers"])
    lists = response.json()
    assert [user["username"] for user in lists["friends"]] == ["bob"]
    assert lists["invites"] == []

    response = await client.get(f"/api/users/{bob['id']}", headers=alice["headers"])
    assert [status["relationship"] for status in response.json()["statuses"]] == ["friends"]

    response = await client.delete(f"/api/users/{alice['id']}/deleteFriend", headers=bob["headers"])
    assert response.status_code == 204


@pytest.mark.asyncio
async def test_relationship_errors_are_mapped(client):
    alice = await _register(client, "alice")
    bob = await _register(client, "bob")

    response = await client.put(f"/api/users/{bob['id']}/accept", headers=alice["headers"])
    assert response.status_code == 404

    response = await client.post(f"/api/users/{alice['id']}/addToBL", headers=alice["headers"])
    assert response.status_code == 400

    await client.post(f"/api/users/{bob['id']}/addToBL", headers=alice["headers"])
    response = await client.post(f"/api/users/{bob['id']}/addToBL", headers=alice["headers"])
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_public_chat_lifecycle(client):
    alice = await _register(client, "alice")
    bob = await _register(client, "bob")

    response = await client.post("/api/chats/create", json={"name": "Общий чат"}, headers=alice["headers"])
    assert response.status_code == 201
    chat_id = response.json()["id"]

    response = await client.post(f"/api/chats/{chat_id}/add", json={"user_id": bob["id"]}, headers=alice["headers"])
    assert response.status_code == 201

    response = await client.post(
        f"/api/chats/{chat_id}/messages", json={"text": "привет"}, headers=bob["headers"]
    )
    assert response.status_code == 201
    message_id = response.json()["id"]

    response = await client.get(f"/api/chats/{chat_id}/messages/{message_id}", headers=alice["headers"])
    assert response.json()["text"] == "привет"

    response = await client.get(f"/api/chats/{chat_id}/messages/limit/10", headers=alice["headers"])
    assert [message["id"] for message in response.json()] == [message_id]

    response = await client.get(f"/api/chats/{chat_id}/users", headers=alice["headers"])
    assert [user["username"] for user in response.json()] == ["alice", "bob"]

    response = await client.put(f"/api/chats/{chat_id}/delete", headers=alice["headers"])
    assert response.json() == {"chat_id": chat_id, "chat_deleted": False}

    response = await client.put(f"/api/chats/{chat_id}/delete", headers=bob["headers"])
    assert response.json() == {"chat_id": chat_id, "chat_deleted": True}

    response = await client.get(f"/api/chats/{chat_id}", headers=alice["headers"])
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_remove_other_member_from_chat(client):
    """Удаление другого участника; уход последнего участника удаляет чат"""
    alice = await _register(client, "alice")
    bob = await _register(client, "bob")

    response = await client.post("/api/chats/create", json={"name": "team"}, headers=alice["headers"])
    chat_id = response.json()["id"]
    await client.post(f"/api/chats/{chat_id}/add", json={"user_id": bob["id"]}, headers=alice["headers"])
    await client.post(f"/api/chats/{chat_id}/messages", json={"text": "hi"}, headers=bob["headers"])

    response = await client.put(f"/api/chats/{chat_id}/delete", headers=alice["headers"])
    assert response.json() == {"chat_id": chat_id, "chat_deleted": False}

    response = await client.put(
        f"/api/chats/{chat_id}/delete", json={"user_id": bob["id"]}, headers=alice["headers"]
    )
    assert response.status_code == 200
    assert response.json() == {"chat_id": chat_id, "chat_deleted": True}

    response = await client.get(f"/api/chats/{chat_id}/messages/limit/10", headers=alice["headers"])
    assert response.json() == []
    response = await client.get(f"/api/chats/{chat_id}", headers=alice["headers"])
    assert response.status_code == 404

    response = await client.put(
        f"/api/chats/{chat_id}/delete", json={"user_id": bob["id"]}, headers=alice["headers"]
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_chat_endpoint(client):
    alice = await _register(client, "alice")

    response = await client.post("/api/chats/create", json={"name": "temp"}, headers=alice["headers"])
    chat_id = response.json()["id"]

    response = await client.delete(f"/api/chats/{chat_id}", headers=alice["headers"])
    assert response.status_code == 204

    response = await client.delete(f"/api/chats/{chat_id}", headers=alice["headers"])
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_search(client):
    alice = await _register(client, "alice")
    await _register(client, "malice")
    await client.post("/api/chats/create", json={"name": "python"}, headers=alice["headers"])

    response = await client.get("/api/users/search/lic", headers=alice["headers"])
    assert [user["username"] for user in response.json()] == ["alice", "malice"]

    response = await client.get("/api/chats/search/pyth", headers=alice["headers"])
    assert [chat["name"] for chat in response.json()] == ["python"]
