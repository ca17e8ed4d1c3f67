from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"
MESSAGE_ROLES = {ROLE_USER, ROLE_ASSISTANT}

CONTENT_TYPE_TEXT = "text"

RUN_STATUS_QUEUED = "queued"
RUN_STATUS_IN_PROGRESS = "in_progress"
RUN_STATUS_CANCELLING = "cancelling"
RUN_STATUS_COMPLETED = "completed"
RUN_STATUS_FAILED = "failed"
RUN_STATUS_CANCELLED = "cancelled"
RUN_STATUS_EXPIRED = "expired"
RUN_STATUS_REQUIRES_ACTION = "requires_action"
RUN_STATUS_INCOMPLETE = "incomplete"

TERMINAL_RUN_STATUSES = {
    RUN_STATUS_COMPLETED,
    RUN_STATUS_FAILED,
    RUN_STATUS_CANCELLED,
    RUN_STATUS_EXPIRED,
    RUN_STATUS_REQUIRES_ACTION,
    RUN_STATUS_INCOMPLETE,
}

# Phase rank used to reject status regressions; terminal statuses share the last phase.
RUN_STATUS_PHASES = {
    RUN_STATUS_QUEUED: 0,
    RUN_STATUS_IN_PROGRESS: 1,
    RUN_STATUS_CANCELLING: 2,
    **{status: 3 for status in TERMINAL_RUN_STATUSES},
}


@dataclass(frozen=True)
class Assistant:
    assistant_id: str
    name: str | None
    instructions: str | None
    model: str
    tools: tuple[dict[str, Any], ...] = ()
    created_at: int | None = None


@dataclass(frozen=True)
class Thread:
    thread_id: str
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: int | None = None


@dataclass(frozen=True)
class MessageContent:
    type: str
    text: str | None = None


@dataclass(frozen=True)
class Message:
    message_id: str
    thread_id: str
    role: str
    content: tuple[MessageContent, ...]
    created_at: int | None = None
    run_id: str | None = None
    assistant_id: str | None = None

    @property
    def text(self) -> str:
        return "\n".join(
            part.text
            for part in self.content
            if part.type == CONTENT_TYPE_TEXT and part.text is not None
        )


@dataclass(frozen=True)
class MessagePage:
    messages: tuple[Message, ...]
    first_id: str | None = None
    last_id: str | None = None
    has_more: bool = False


@dataclass(frozen=True)
class Run:
    run_id: str
    thread_id: str
    assistant_id: str
    status: str
    instructions: str | None = None
    last_error: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_RUN_STATUSES
