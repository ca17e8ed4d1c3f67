from __future__ import annotations

from typing import Any

import pytest

from assistant_relay.app.assistants.contracts import (
    CONTENT_TYPE_TEXT,
    ROLE_ASSISTANT,
    RUN_STATUS_COMPLETED,
    Assistant,
    Message,
    MessageContent,
    MessagePage,
    Run,
    Thread,
)
from assistant_relay.app.assistants.transport import AssistantTransport


class RecordingTransport(AssistantTransport):
    def __init__(
        self,
        *,
        configured: bool = True,
        run_statuses: list[str] | None = None,
        assistant_replies: list[str] | None = None,
        page_size: int | None = None,
    ) -> None:
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.run_statuses = list(run_statuses or [RUN_STATUS_COMPLETED])
        self.assistant_replies = list(assistant_replies or [])
        self.messages: list[Message] = []
        self.page_size = page_size
        self._configured = configured

    @property
    def configured(self) -> bool:
        return self._configured

    def _next_run(self, thread_id: str, run_id: str, assistant_id: str) -> Run:
        status = self.run_statuses.pop(0)
        if status == RUN_STATUS_COMPLETED:
            for reply in self.assistant_replies:
                self._append(thread_id, ROLE_ASSISTANT, reply, run_id=run_id)
            self.assistant_replies.clear()
        return Run(
            run_id=run_id,
            thread_id=thread_id,
            assistant_id=assistant_id,
            status=status,
        )

    def _append(
        self, thread_id: str, role: str, text: str, run_id: str | None = None
    ) -> Message:
        message = Message(
            message_id=f"msg_{len(self.messages) + 1}",
            thread_id=thread_id,
            role=role,
            content=(MessageContent(type=CONTENT_TYPE_TEXT, text=text),),
            run_id=run_id,
        )
        self.messages.append(message)
        return message

    async def create_assistant(self, payload: dict[str, Any]) -> Assistant:
        self.calls.append(("create_assistant", (payload,)))
        return Assistant(
            assistant_id="asst_123",
            name=payload["name"],
            instructions=payload["instructions"],
            model=payload["model"],
            tools=tuple(payload.get("tools", ())),
        )

    async def create_thread(self, payload: dict[str, Any] | None) -> Thread:
        self.calls.append(("create_thread", (payload,)))
        return Thread(
            thread_id="thread_123",
            metadata=dict((payload or {}).get("metadata") or {}),
        )

    async def create_message(self, thread_id: str, payload: dict[str, Any]) -> Message:
        self.calls.append(("create_message", (thread_id, payload)))
        return self._append(thread_id, payload["role"], payload["content"])

    async def list_messages(
        self, thread_id: str, params: dict[str, str]
    ) -> MessagePage:
        self.calls.append(("list_messages", (thread_id, params)))
        messages = [item for item in self.messages if item.thread_id == thread_id]
        after = params.get("after")
        if after is not None:
            ids = [item.message_id for item in messages]
            messages = messages[ids.index(after) + 1 :] if after in ids else []
        has_more = self.page_size is not None and len(messages) > self.page_size
        if has_more:
            messages = messages[: self.page_size]
        return MessagePage(
            messages=tuple(messages),
            first_id=messages[0].message_id if messages else None,
            last_id=messages[-1].message_id if messages else None,
            has_more=has_more,
        )

    async def create_run(self, thread_id: str, payload: dict[str, Any]) -> Run:
        self.calls.append(("create_run", (thread_id, payload)))
        run = self._next_run(thread_id, "run_123", payload["assistant_id"])
        if "instructions" in payload:
            return Run(
                run_id=run.run_id,
                thread_id=run.thread_id,
                assistant_id=run.assistant_id,
                status=run.status,
                instructions=payload["instructions"],
            )
        return run

    async def retrieve_run(self, thread_id: str, run_id: str) -> Run:
        self.calls.append(("retrieve_run", (thread_id, run_id)))
        return self._next_run(thread_id, run_id, "asst_123")


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    for name in (
        "APP_ENV",
        "OPENAI_API_KEY",
        "OPENAI_BASE_URL",
        "RUN_TIMEOUT_SECONDS",
        "RUN_POLL_INTERVAL_SECONDS",
        "ASSISTANT_ID",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("OPENAI_API_KEY_FILE", str(tmp_path / "missing-secret"))
    monkeypatch.setattr(
        "assistant_relay.core.config.load_dotenv", lambda **kwargs: False
    )


@pytest.fixture
def make_transport():
    return RecordingTransport


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()
