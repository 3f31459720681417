"""
Messaging API tests - send, conversations, unread counts and read receipts.
"""

import pytest
from httpx import AsyncClient


async def _send(client: AsyncClient, headers: dict, recipient_id: str, content: str, item_id: str | None = None):
    body = {"recipient_id": recipient_id, "content": content}
    if item_id:
        body["item_id"] = item_id
    response = await client.post("/api/v1/messages", headers=headers, json=body)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_send_message(client: AsyncClient, other_headers: dict, test_user, other_user, published_item, feed):
    received = []
    await feed.subscribe("messages", "recipient_id", test_user.id, received.append)

    message = await _send(client, other_headers, test_user.id, "Is the drill still available?", published_item.id)

    assert message["sender_id"] == other_user.id
    assert message["is_read"] is False
    assert [e.new["id"] for e in received] == [message["id"]]


@pytest.mark.asyncio
async def test_cannot_message_yourself(client: AsyncClient, auth_headers: dict, test_user):
    response = await client.post(
        "/api/v1/messages", headers=auth_headers, json={"recipient_id": test_user.id, "content": "hello me"}
    )
    assert response.status_code == 422
    assert response.json()["detail"] == "You cannot message yourself"


@pytest.mark.asyncio
async def test_unknown_recipient_404(client: AsyncClient, auth_headers: dict):
    response = await client.post(
        "/api/v1/messages", headers=auth_headers, json={"recipient_id": "nobody", "content": "hi"}
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_conversations_and_unread(
    client: AsyncClient, auth_headers: dict, other_headers: dict, test_user, other_user, published_item
):
    await _send(client, other_headers, test_user.id, "Hi!", published_item.id)
    await _send(client, other_headers, test_user.id, "Can I pick it up today?", published_item.id)
    await _send(client, auth_headers, other_user.id, "Sure, after 5pm", published_item.id)
    await _send(client, other_headers, test_user.id, "Unrelated question")

    response = await client.get("/api/v1/messages/conversations", headers=auth_headers)
    assert response.status_code == 200
    conversations = response.json()
    assert len(conversations) == 2
    assert conversations[0]["last_message"] == "Unrelated question"
    assert conversations[0]["item_id"] is None
    about_item = conversations[1]
    assert about_item["item_title"] == "Drill Set"
    assert about_item["other_user_name"] == "Neighbour"
    assert about_item["last_message"] == "Sure, after 5pm"
    assert about_item["unread_count"] == 2

    unread = await client.get("/api/v1/messages/unread-count", headers=auth_headers)
    assert unread.json() == {"count": 3}


@pytest.mark.asyncio
async def test_thread_and_mark_read(
    client: AsyncClient, auth_headers: dict, other_headers: dict, test_user, other_user
):
    first = await _send(client, other_headers, test_user.id, "One")
    await _send(client, auth_headers, other_user.id, "Two")
    await _send(client, other_headers, test_user.id, "Three")

    thread = await client.get(f"/api/v1/messages/thread/{other_user.id}", headers=auth_headers)
    assert [m["content"] for m in thread.json()] == ["One", "Two", "Three"]

    # Only the recipient may mark a message read
    response = await client.post(f"/api/v1/messages/{first['id']}/read", headers=other_headers)
    assert response.status_code == 403
    response = await client.post(f"/api/v1/messages/{first['id']}/read", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["is_read"] is True

    response = await client.post(f"/api/v1/messages/thread/{other_user.id}/read", headers=auth_headers)
    assert response.json() == {"count": 1}
    unread = await client.get("/api/v1/messages/unread-count", headers=auth_headers)
    assert unread.json() == {"count": 0}
    # The sender's own unread count is untouched
    unread = await client.get("/api/v1/messages/unread-count", headers=other_headers)
    assert unread.json() == {"count": 1}


@pytest.mark.asyncio
async def test_messages_require_auth(client: AsyncClient):
    response = await client.get("/api/v1/messages/conversations")
    assert response.status_code == 401
