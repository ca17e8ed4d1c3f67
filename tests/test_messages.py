from __future__ import annotations

import pytest

from assistant_relay.app.assistants.errors import InvalidArgument, NotConfigured
from assistant_relay.app.assistants.messages import add_message, list_messages


@pytest.mark.asyncio
async def test_add_message_posts_user_role_message(transport) -> None:
    message = await add_message(
        transport=transport, thread_id="thread_123", content="Hello"
    )

    assert transport.calls == [
        ("create_message", ("thread_123", {"role": "user", "content": "Hello"}))
    ]
    assert message.message_id == "msg_1"
    assert message.role == "user"
    assert message.text == "Hello"


@pytest.mark.asyncio
async def test_add_message_accepts_empty_content(transport) -> None:
    message = await add_message(transport=transport, thread_id="thread_123", content="")

    assert transport.calls[0][1][1] == {"role": "user", "content": ""}
    assert message.role == "user"
    assert message.text == ""


@pytest.mark.asyncio
async def test_add_message_rejects_missing_content(transport) -> None:
    with pytest.raises(InvalidArgument):
        await add_message(transport=transport, thread_id="thread_123", content=None)

    assert transport.calls == []


@pytest.mark.asyncio
async def test_list_messages_without_cursor_requests_ascending_from_start(
    transport,
) -> None:
    await list_messages(transport=transport, thread_id="thread_123")
    await list_messages(
        transport=transport, thread_id="thread_123", after_message_id=None
    )

    assert transport.calls == [
        ("list_messages", ("thread_123", {"order": "asc"})),
        ("list_messages", ("thread_123", {"order": "asc"})),
    ]


@pytest.mark.asyncio
async def test_list_messages_with_cursor_requests_messages_after_it(transport) -> None:
    await list_messages(
        transport=transport, thread_id="thread_123", after_message_id="msg_prev"
    )

    assert transport.calls == [
        ("list_messages", ("thread_123", {"order": "asc", "after": "msg_prev"}))
    ]


@pytest.mark.asyncio
async def test_list_messages_rejects_blank_cursor(transport) -> None:
    with pytest.raises(InvalidArgument):
        await list_messages(
            transport=transport, thread_id="thread_123", after_message_id=" "
        )

    assert transport.calls == []


@pytest.mark.asyncio
async def test_added_message_is_returned_by_list_messages(transport) -> None:
    added = await add_message(
        transport=transport, thread_id="thread_123", content="What is 2 + 2?"
    )

    page = await list_messages(transport=transport, thread_id="thread_123")

    listed = [item for item in page.messages if item.message_id == added.message_id]
    assert len(listed) == 1
    assert listed[0].role == "user"
    assert listed[0].text == "What is 2 + 2?"
    assert page.last_id == added.message_id


@pytest.mark.asyncio
async def test_cursor_returns_only_newer_messages(make_transport) -> None:
    transport = make_transport()
    first = await add_message(
        transport=transport, thread_id="thread_123", content="one"
    )
    second = await add_message(
        transport=transport, thread_id="thread_123", content="two"
    )

    page = await list_messages(
        transport=transport, thread_id="thread_123", after_message_id=first.message_id
    )

    assert [item.message_id for item in page.messages] == [second.message_id]


@pytest.mark.asyncio
async def test_message_operations_require_credential(make_transport) -> None:
    transport = make_transport(configured=False)

    with pytest.raises(NotConfigured):
        await add_message(transport=transport, thread_id="thread_123", content="hi")
    with pytest.raises(NotConfigured):
        await list_messages(transport=transport, thread_id="thread_123")

    assert transport.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize("thread_id", ["..", ".", "../assistants/asst_1"])
async def test_add_message_rejects_ids_that_leave_the_thread_path(
    transport, thread_id
) -> None:
    with pytest.raises(InvalidArgument):
        await add_message(transport=transport, thread_id=thread_id, content="hi")

    assert transport.calls == []
