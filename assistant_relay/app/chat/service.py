from __future__ import annotations

import asyncio
import logging

from assistant_relay.app.assistants.client import AssistantClient
from assistant_relay.app.assistants.contracts import Message
from assistant_relay.app.chat.contracts import AssistantPersona, ChatTurn

LOGGER = logging.getLogger(__name__)


class ChatService:
    def __init__(
        self,
        client: AssistantClient,
        *,
        persona: AssistantPersona,
        assistant_id: str | None = None,
    ) -> None:
        self._client = client
        self._persona = persona
        self._assistant_id = assistant_id
        self._assistant_lock = asyncio.Lock()

    async def resolve_assistant_id(self) -> str:
        if self._assistant_id:
            return self._assistant_id
        async with self._assistant_lock:
            if not self._assistant_id:
                assistant = await self._client.create_assistant(
                    name=self._persona.name,
                    instructions=self._persona.instructions,
                    model=self._persona.model,
                )
                self._assistant_id = assistant.assistant_id
        return self._assistant_id

    async def _read_replies(self, thread_id: str, cursor: str) -> tuple[Message, ...]:
        replies: list[Message] = []
        while True:
            page = await self._client.list_messages(thread_id, after_message_id=cursor)
            replies.extend(page.messages)
            if not page.has_more or page.last_id in (None, cursor):
                return tuple(replies)
            cursor = page.last_id

    async def send(self, message: str, thread_id: str | None = None) -> ChatTurn:
        assistant_id = await self.resolve_assistant_id()
        if thread_id is None:
            thread_id = (await self._client.create_thread()).thread_id

        user_message = await self._client.add_message(thread_id, message)
        run = await self._client.run_assistant(thread_id, assistant_id)
        reply_messages = await self._read_replies(thread_id, user_message.message_id)
        turn = ChatTurn(
            thread_id=thread_id,
            run_id=run.run_id,
            status=run.status,
            user_message_id=user_message.message_id,
            reply_messages=reply_messages,
        )
        LOGGER.info(
            "Chat turn finished on thread %s with %d reply messages",
            thread_id,
            len(turn.reply_messages),
        )
        return turn
