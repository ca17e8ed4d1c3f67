from __future__ import annotations

import logging

from assistant_relay.app.assistants.contracts import ROLE_USER, Message, MessagePage
from assistant_relay.app.assistants.guards import (
    require_configured,
    require_identifier,
    require_text,
)
from assistant_relay.app.assistants.transport import AssistantTransport

LOGGER = logging.getLogger(__name__)

# Reads are always oldest first; cursors only make sense in this order.
LIST_ORDER = "asc"


async def add_message(
    *,
    transport: AssistantTransport,
    thread_id: str,
    content: str,
) -> Message:
    require_configured(transport)
    require_identifier(thread_id, "thread_id")
    require_text(content, "content")

    message = await transport.create_message(
        thread_id,
        {"role": ROLE_USER, "content": content},
    )
    LOGGER.info("Message %s added to thread %s", message.message_id, thread_id)
    return message


async def list_messages(
    *,
    transport: AssistantTransport,
    thread_id: str,
    after_message_id: str | None = None,
) -> MessagePage:
    """Read a thread's messages in ascending order.

    With ``after_message_id`` only messages created after that id are
    returned. There is no local cache, so callers advance the cursor to
    ``MessagePage.last_id`` to read incrementally.
    """
    require_configured(transport)
    require_identifier(thread_id, "thread_id")
    params = {"order": LIST_ORDER}
    if after_message_id is not None:
        params["after"] = require_identifier(after_message_id, "after_message_id")

    page = await transport.list_messages(thread_id, params)
    LOGGER.info(
        "Found %d messages in thread %s after %s",
        len(page.messages),
        thread_id,
        after_message_id or "start",
    )
    return page
