from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from assistant_relay.app.assistants.client import (
    AssistantClient,
    build_assistant_client,
)
from assistant_relay.app.assistants.contracts import Message, MessagePage, Thread
from assistant_relay.app.assistants.errors import (
    AssistantError,
    InvalidArgument,
    NotConfigured,
    RemoteError,
    RunFailed,
    RunTimeout,
)
from assistant_relay.app.chat.contracts import AssistantPersona
from assistant_relay.app.chat.service import ChatService
from assistant_relay.core.config import AppConfig, load_app_config

LOGGER = logging.getLogger(__name__)

ERROR_CODE_INVALID_INPUT = 1001
ERROR_CODE_MALFORMED_JSON = 1002
ERROR_CODE_UNEXPECTED = 5000
ERROR_CODE_REMOTE = 5021
ERROR_CODE_RUN_FAILED = 5022
ERROR_CODE_NOT_CONFIGURED = 5031
ERROR_CODE_RUN_TIMEOUT = 5041


class ChatRequest(BaseModel):
    message: str
    thread_id: str | None = None


class CreateThreadRequest(BaseModel):
    messages: list[dict[str, Any]] | None = None
    metadata: dict[str, Any] | None = None


def _error_response(status_code: int, code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content={"code": code, "message": message}
    )


def _assistant_error_response(exc: AssistantError) -> JSONResponse:
    if isinstance(exc, NotConfigured):
        return _error_response(503, ERROR_CODE_NOT_CONFIGURED, str(exc))
    if isinstance(exc, InvalidArgument):
        return _error_response(400, ERROR_CODE_INVALID_INPUT, str(exc))
    if isinstance(exc, RunTimeout):
        return _error_response(504, ERROR_CODE_RUN_TIMEOUT, str(exc))
    if isinstance(exc, RunFailed):
        return _error_response(502, ERROR_CODE_RUN_FAILED, str(exc))
    if isinstance(exc, RemoteError):
        return _error_response(502, ERROR_CODE_REMOTE, str(exc))
    return _error_response(500, ERROR_CODE_UNEXPECTED, "An unexpected error occurred")


def _validation_error_response(exc: RequestValidationError) -> JSONResponse:
    errors = list(exc.errors())
    if any(error.get("type") == "json_invalid" for error in errors):
        return _error_response(
            400, ERROR_CODE_MALFORMED_JSON, "Malformed JSON in request body."
        )
    if not errors:
        return _error_response(400, ERROR_CODE_INVALID_INPUT, "Invalid request body.")

    first = errors[0]
    location = tuple(first.get("loc", ()))
    field = ".".join(str(part) for part in location[1:]) or "body"
    if first.get("type") == "missing":
        message = f"Missing required field: {field}"
    elif first.get("input") is None:
        message = f"Field cannot be null: {field}"
    else:
        message = f"Invalid value for field: {field}"
    return _error_response(400, ERROR_CODE_INVALID_INPUT, message)


def _message_payload(message: Message) -> dict[str, Any]:
    return {
        "id": message.message_id,
        "thread_id": message.thread_id,
        "role": message.role,
        "text": message.text,
        "run_id": message.run_id,
        "created_at": message.created_at,
    }


def _thread_payload(thread: Thread) -> dict[str, Any]:
    return {
        "id": thread.thread_id,
        "metadata": thread.metadata,
        "created_at": thread.created_at,
    }


def _page_payload(page: MessagePage) -> dict[str, Any]:
    return {
        "data": [_message_payload(message) for message in page.messages],
        "first_id": page.first_id,
        "last_id": page.last_id,
        "has_more": page.has_more,
    }


def create_app(
    config: AppConfig | None = None,
    *,
    client: AssistantClient | None = None,
) -> FastAPI:
    config = config or load_app_config()
    client = client or build_assistant_client(config)
    chat_service = ChatService(
        client,
        persona=AssistantPersona(
            name=config.assistant_name,
            instructions=config.assistant_instructions,
            model=config.assistant_model,
        ),
        assistant_id=config.assistant_id,
    )
    if not client.configured:
        LOGGER.warning(
            "OPENAI_API_KEY is not set; assistant endpoints will return 503."
        )

    app = FastAPI(title=config.app_name, version=config.app_version)

    @app.exception_handler(AssistantError)
    async def handle_assistant_error(
        _request: Request, exc: AssistantError
    ) -> JSONResponse:
        if isinstance(exc, (RemoteError, RunFailed)):
            LOGGER.error("Assistant call failed: %s", exc)
        return _assistant_error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _validation_error_response(exc)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(
        _request: Request, exc: Exception
    ) -> JSONResponse:
        LOGGER.exception("Unhandled error", exc_info=exc)
        return _error_response(
            500, ERROR_CODE_UNEXPECTED, "An unexpected error occurred"
        )

    @app.get("/")
    async def root() -> JSONResponse:
        return JSONResponse(
            content={
                "name": config.app_name,
                "version": config.app_version,
                "environment": config.environment,
                "docs": "/docs",
            }
        )

    @app.get("/health")
    async def health() -> dict[str, bool]:
        return {"ok": True}

    @app.get("/ready")
    async def ready() -> JSONResponse:
        report = {
            "ready": client.configured,
            "credential_source": config.api_key_source,
            "run_poll_interval_seconds": client.run_policy.poll_interval_seconds,
            "run_timeout_seconds": client.run_policy.timeout_seconds,
        }
        return JSONResponse(
            content=report, status_code=200 if client.configured else 503
        )

    @app.post("/assistant/chat")
    async def chat(payload: ChatRequest) -> dict[str, Any]:
        turn = await chat_service.send(payload.message, thread_id=payload.thread_id)
        return {
            "thread_id": turn.thread_id,
            "run_id": turn.run_id,
            "status": turn.status,
            "response": turn.reply_text,
            "messages": [_message_payload(message) for message in turn.reply_messages],
        }

    @app.post("/assistant/threads")
    async def create_thread(
        payload: CreateThreadRequest | None = None,
    ) -> dict[str, Any]:
        request = payload or CreateThreadRequest()
        thread = await client.create_thread(
            messages=request.messages, metadata=request.metadata
        )
        return _thread_payload(thread)

    @app.get("/assistant/threads/{thread_id}/messages")
    async def thread_messages(
        thread_id: str, after: str | None = None
    ) -> dict[str, Any]:
        page = await client.list_messages(thread_id, after_message_id=after)
        return _page_payload(page)

    return app
