from __future__ import annotations

import asyncio
import time
from collections.abc import Mapping, Sequence
from typing import Any

import httpx

from assistant_relay.app.assistants.contracts import (
    Assistant,
    Message,
    MessagePage,
    Run,
    Thread,
)
from assistant_relay.app.assistants.errors import NotConfigured
from assistant_relay.app.assistants.messages import add_message, list_messages
from assistant_relay.app.assistants.provisioning import create_assistant, create_thread
from assistant_relay.app.assistants.runs import (
    DEFAULT_RUN_POLICY,
    ClockFn,
    RunPolicy,
    SleepFn,
    run_assistant,
)
from assistant_relay.app.assistants.transport import (
    AssistantTransport,
    HttpAssistantTransport,
)
from assistant_relay.core.config import AppConfig


class AssistantClient:
    """Assistant run lifecycle bound to one transport.

    Expected turn order: ``add_message``, then ``run_assistant``, then
    ``list_messages`` with the added message id as cursor. The client holds
    no per-thread state, so concurrent turns on different threads do not
    interact.
    """

    def __init__(
        self,
        transport: AssistantTransport,
        *,
        run_policy: RunPolicy = DEFAULT_RUN_POLICY,
        sleep: SleepFn = asyncio.sleep,
        clock: ClockFn = time.monotonic,
    ) -> None:
        self._transport = transport
        self._run_policy = run_policy
        self._sleep = sleep
        self._clock = clock

    @property
    def configured(self) -> bool:
        return self._transport.configured

    @property
    def run_policy(self) -> RunPolicy:
        return self._run_policy

    async def create_assistant(
        self,
        *,
        name: str,
        instructions: str,
        model: str,
        tools: Sequence[Mapping[str, Any]] | None = None,
    ) -> Assistant:
        return await create_assistant(
            transport=self._transport,
            name=name,
            instructions=instructions,
            model=model,
            tools=tools,
        )

    async def create_thread(
        self,
        *,
        messages: Sequence[Mapping[str, Any]] | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> Thread:
        return await create_thread(
            transport=self._transport, messages=messages, metadata=metadata
        )

    async def add_message(self, thread_id: str, content: str) -> Message:
        return await add_message(
            transport=self._transport, thread_id=thread_id, content=content
        )

    async def run_assistant(
        self,
        thread_id: str,
        assistant_id: str,
        instructions: str | None = None,
    ) -> Run:
        return await run_assistant(
            transport=self._transport,
            thread_id=thread_id,
            assistant_id=assistant_id,
            instructions=instructions,
            policy=self._run_policy,
            sleep=self._sleep,
            clock=self._clock,
        )

    async def list_messages(
        self, thread_id: str, after_message_id: str | None = None
    ) -> MessagePage:
        return await list_messages(
            transport=self._transport,
            thread_id=thread_id,
            after_message_id=after_message_id,
        )


def build_assistant_client(
    config: AppConfig,
    *,
    http_transport: httpx.AsyncBaseTransport | None = None,
) -> AssistantClient:
    if config.is_production and not config.openai_api_key:
        raise NotConfigured(
            "OPENAI_API_KEY (or OPENAI_API_KEY_FILE) is required in production."
        )
    transport = HttpAssistantTransport(
        api_key=config.openai_api_key,
        base_url=config.openai_base_url,
        timeout_seconds=config.request_timeout_seconds,
        http_transport=http_transport,
    )
    return AssistantClient(
        transport,
        run_policy=RunPolicy(
            poll_interval_seconds=config.run_poll_interval_seconds,
            timeout_seconds=config.run_timeout_seconds,
        ),
    )
