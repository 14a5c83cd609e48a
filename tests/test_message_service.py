"""Unit tests for MessageService: sending, conversation history, inbox aggregate, read receipts."""

import uuid
from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import select

from src.exceptions import ForbiddenException, NotFoundException, ValidationException
from src.models import Message, MessageType
from src.modules.messaging.service import MessageService, conversation_key


@pytest.fixture
def users():
    return uuid.uuid4(), uuid.uuid4(), uuid.uuid4()


@pytest.fixture
def send(db_session):
    """Send a message and pin its timestamp so ordering is deterministic."""

    async def _send(sender, receiver, content: str, minutes_ago: int = 0) -> Message:
        message = await MessageService(db_session).send_message(sender, receiver, content)
        message.created_at = datetime.now(UTC) - timedelta(minutes=minutes_ago)
        await db_session.flush()
        return message

    return _send


async def _stored(db_session, sender_id) -> list[Message]:
    result = await db_session.execute(
        select(Message)
        .where(Message.sender_id == sender_id)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


def test_conversation_key_is_order_independent():
    a, b = uuid.uuid4(), uuid.uuid4()
    assert conversation_key(a, b) == conversation_key(b, a)
    assert str(a) in conversation_key(a, b)
    assert len(conversation_key(a, b)) <= 100


class TestSendMessage:
    @pytest.mark.asyncio
    async def test_send_stores_unread_message(self, db_session, users):
        alice, bob, _ = users

        message = await MessageService(db_session).send_message(alice, bob, "  Is the site free on Monday?  ")

        assert message.content == "Is the site free on Monday?"
        assert message.conversation_id == conversation_key(bob, alice)
        assert message.message_type == MessageType.TEXT
        assert message.is_read is False
        assert message.read_at is None

    @pytest.mark.asyncio
    async def test_content_rules(self, db_session, users):
        alice, bob, _ = users
        svc = MessageService(db_session)

        with pytest.raises(ValidationException):
            await svc.send_message(alice, bob, "   ")
        with pytest.raises(ValidationException):
            await svc.send_message(alice, bob, "x" * 1001)
        with pytest.raises(ValidationException):
            await svc.send_message(alice, alice, "Note to self")
        assert (await svc.send_message(alice, bob, "x" * 1000)).content == "x" * 1000

    @pytest.mark.asyncio
    async def test_requirement_context_must_exist(self, db_session, homeowner, make_requirement, users):
        requirement = await make_requirement(homeowner)
        _, bob, _ = users
        svc = MessageService(db_session)

        message = await svc.send_message(
            homeowner.user_id, bob, "About the duplex", requirement_id=requirement.id
        )
        assert message.requirement_id == requirement.id

        with pytest.raises(NotFoundException):
            await svc.send_message(homeowner.user_id, bob, "About what?", requirement_id=uuid.uuid4())


class TestConversationHistory:
    @pytest.mark.asyncio
    async def test_history_is_oldest_first_for_both_sides(self, db_session, users, send):
        alice, bob, _ = users
        await send(alice, bob, "Hello", minutes_ago=30)
        await send(bob, alice, "Hi, how can I help?", minutes_ago=20)
        await send(alice, bob, "Need a quote for tiling", minutes_ago=10)
        svc = MessageService(db_session)

        items, total = await svc.get_conversation(bob, conversation_key(alice, bob))

        assert total == 3
        assert [m.content for m in items] == ["Hello", "Hi, how can I help?", "Need a quote for tiling"]

        page, total = await svc.get_conversation(alice, conversation_key(alice, bob), limit=1, offset=1)
        assert total == 3
        assert [m.content for m in page] == ["Hi, how can I help?"]

    @pytest.mark.asyncio
    async def test_outsider_cannot_read(self, db_session, users, send):
        alice, bob, carol = users
        await send(alice, bob, "Private")

        with pytest.raises(ForbiddenException):
            await MessageService(db_session).get_conversation(carol, conversation_key(alice, bob))


class TestConversationList:
    @pytest.mark.asyncio
    async def test_aggregate_per_conversation(self, db_session, users, send):
        alice, bob, carol = users
        await send(carol, alice, "Old question", minutes_ago=120)
        await send(alice, bob, "Hello Bob", minutes_ago=30)
        await send(bob, alice, "Hello Alice", minutes_ago=20)
        await send(bob, alice, "Sending drawings", minutes_ago=10)

        conversations = await MessageService(db_session).list_conversations(alice)

        assert [c["other_user_id"] for c in conversations] == [bob, carol]
        with_bob, with_carol = conversations
        assert with_bob["conversation_id"] == conversation_key(alice, bob)
        assert with_bob["last_message"].content == "Sending drawings"
        assert with_bob["total_messages"] == 3
        assert with_bob["unread_count"] == 2
        assert with_carol["last_message"].content == "Old question"
        assert with_carol["unread_count"] == 1

    @pytest.mark.asyncio
    async def test_own_messages_are_never_unread(self, db_session, users, send):
        alice, bob, _ = users
        await send(alice, bob, "Ping", minutes_ago=5)

        (conversation,) = await MessageService(db_session).list_conversations(alice)

        assert conversation["other_user_id"] == bob
        assert conversation["unread_count"] == 0
        assert (await MessageService(db_session).list_conversations(bob))[0]["unread_count"] == 1

    @pytest.mark.asyncio
    async def test_no_messages_no_conversations(self, db_session, users):
        assert await MessageService(db_session).list_conversations(users[0]) == []


class TestReadReceipts:
    @pytest.mark.asyncio
    async def test_mark_conversation_read(self, db_session, users, send):
        alice, bob, _ = users
        await send(bob, alice, "One", minutes_ago=3)
        await send(bob, alice, "Two", minutes_ago=2)
        await send(alice, bob, "Reply", minutes_ago=1)
        svc = MessageService(db_session)

        assert await svc.mark_conversation_read(alice, conversation_key(alice, bob)) == 2
        assert await svc.mark_conversation_read(alice, conversation_key(alice, bob)) == 0

        received = await _stored(db_session, bob)
        assert all(m.is_read and m.read_at is not None for m in received)
        (sent,) = await _stored(db_session, alice)
        assert sent.is_read is False
        assert (await svc.list_conversations(alice))[0]["unread_count"] == 0

    @pytest.mark.asyncio
    async def test_mark_read_from_one_sender_only(self, db_session, users, send):
        alice, bob, carol = users
        await send(bob, alice, "From Bob", minutes_ago=2)
        await send(carol, alice, "From Carol", minutes_ago=1)
        svc = MessageService(db_session)

        assert await svc.mark_read_from(alice, bob) == 1

        assert [m.is_read for m in await _stored(db_session, bob)] == [True]
        assert [m.is_read for m in await _stored(db_session, carol)] == [False]

    @pytest.mark.asyncio
    async def test_outsider_cannot_mark_read(self, db_session, users, send):
        alice, bob, carol = users
        await send(alice, bob, "Private")

        with pytest.raises(ForbiddenException):
            await MessageService(db_session).mark_conversation_read(carol, conversation_key(alice, bob))
