from __future__ import annotations

from dataclasses import dataclass

from assistant_relay.app.assistants.contracts import ROLE_ASSISTANT, Message


@dataclass(frozen=True)
class AssistantPersona:
    name: str
    instructions: str
    model: str


@dataclass(frozen=True)
class ChatTurn:
    thread_id: str
    run_id: str
    status: str
    user_message_id: str
    reply_messages: tuple[Message, ...]

    @property
    def reply_text(self) -> str:
        return "\n\n".join(
            message.text
            for message in self.reply_messages
            if message.role == ROLE_ASSISTANT and message.text
        )
