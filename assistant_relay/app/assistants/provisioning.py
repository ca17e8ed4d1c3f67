from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from assistant_relay.app.assistants.contracts import MESSAGE_ROLES, Assistant, Thread
from assistant_relay.app.assistants.errors import InvalidArgument
from assistant_relay.app.assistants.guards import (
    require_configured,
    require_non_blank,
    require_text,
)
from assistant_relay.app.assistants.transport import AssistantTransport

LOGGER = logging.getLogger(__name__)


def _validate_tools(tools: object) -> list[dict[str, Any]]:
    if isinstance(tools, (str, bytes)) or not isinstance(tools, Sequence):
        raise InvalidArgument("tools must be a list of tool descriptors")
    validated: list[dict[str, Any]] = []
    for tool in tools:
        if not isinstance(tool, Mapping):
            raise InvalidArgument("each tool descriptor must be a mapping")
        validated.append(dict(tool))
    return validated


def _validate_seed_messages(messages: object) -> list[dict[str, Any]]:
    if isinstance(messages, (str, bytes)) or not isinstance(messages, Sequence):
        raise InvalidArgument("messages must be a list of messages")
    validated: list[dict[str, Any]] = []
    for index, message in enumerate(messages):
        if not isinstance(message, Mapping):
            raise InvalidArgument(f"messages[{index}] must be a mapping")
        role = message.get("role")
        if not isinstance(role, str) or role not in MESSAGE_ROLES:
            raise InvalidArgument(
                f"messages[{index}].role must be one of {sorted(MESSAGE_ROLES)}"
            )
        require_text(message.get("content"), f"messages[{index}].content")
        validated.append(dict(message))
    return validated


async def create_assistant(
    *,
    transport: AssistantTransport,
    name: str,
    instructions: str,
    model: str,
    tools: Sequence[Mapping[str, Any]] | None = None,
) -> Assistant:
    require_configured(transport)
    payload: dict[str, Any] = {
        "name": require_non_blank(name, "name"),
        "instructions": require_non_blank(instructions, "instructions"),
        "model": require_non_blank(model, "model"),
    }
    if tools is not None:
        payload["tools"] = _validate_tools(tools)

    LOGGER.info("Creating assistant %r with model %s", name, model)
    assistant = await transport.create_assistant(payload)
    LOGGER.info("Assistant created: %s", assistant.assistant_id)
    return assistant


async def create_thread(
    *,
    transport: AssistantTransport,
    messages: Sequence[Mapping[str, Any]] | None = None,
    metadata: Mapping[str, Any] | None = None,
) -> Thread:
    require_configured(transport)
    payload: dict[str, Any] = {}
    if messages is not None:
        payload["messages"] = _validate_seed_messages(messages)
    if metadata is not None:
        if not isinstance(metadata, Mapping):
            raise InvalidArgument("metadata must be a mapping")
        payload["metadata"] = dict(metadata)

    thread = await transport.create_thread(payload or None)
    LOGGER.info("Thread created: %s", thread.thread_id)
    return thread
