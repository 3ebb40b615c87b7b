import pytest

from social_api.exceptions import InvalidOperation, NotFound, PermissionDenied
from social_api.services.message_service import MessageService


@pytest.mark.asyncio
async def test_first_message_opens_one_conversation(test_db, make_user):
    alice = await make_user()
    bob = await make_user()
    service = MessageService(test_db)

    first = await service.send_message(alice.id, bob.id, "Hi Bob")
    reply = await service.send_message(bob.id, alice.id, "Hi Alice")

    assert first.conversation_id == reply.conversation_id
    assert reply.sender.username == bob.username

    conversations = await service.get_conversations(alice.id)
    assert len(conversations) == 1
    assert conversations[0].recipient.id == bob.id
    assert (await service.get_conversations(bob.id))[0].recipient.id == alice.id


@pytest.mark.asyncio
async def test_messages_are_newest_first_and_limited(test_db, make_user):
    alice = await make_user()
    bob = await make_user()
    service = MessageService(test_db)

    sent = [await service.send_message(alice.id, bob.id, f"message {i}") for i in range(5)]

    messages = await service.get_messages(sent[0].conversation_id, bob.id, limit=3)

    assert [m.id for m in messages] == [m.id for m in reversed(sent)][:3]


@pytest.mark.asyncio
async def test_message_rules(test_db, make_user):
    alice = await make_user()
    bob = await make_user()
    eve = await make_user()
    service = MessageService(test_db)

    with pytest.raises(InvalidOperation):
        await service.send_message(alice.id, alice.id, "talking to myself")
    with pytest.raises(NotFound):
        await service.send_message(alice.id, 9999, "anyone there?")

    message = await service.send_message(alice.id, bob.id, "private")

    with pytest.raises(PermissionDenied):
        await service.get_messages(message.conversation_id, eve.id)
    with pytest.raises(NotFound) as exc_info:
        await service.get_messages(4242, alice.id)
    assert exc_info.value.detail == "Chat does not exist"


@pytest.mark.asyncio
async def test_messages_api(test_client, make_user, auth_headers):
    alice = await make_user()
    bob = await make_user()

    response = await test_client.post(
        f"/api/v1/messages/{bob.id}", json={"content": "Hello"}, headers=auth_headers(alice)
    )
    assert response.status_code == 200
    conversation_id = response.json()["conversation_id"]

    response = await test_client.get("/api/v1/messages/", headers=auth_headers(bob))
    assert [c["id"] for c in response.json()] == [conversation_id]

    response = await test_client.get(
        f"/api/v1/messages/conversations/{conversation_id}", headers=auth_headers(bob)
    )
    assert [m["content"] for m in response.json()] == ["Hello"]
