from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx

from assistant_relay.app.assistants.contracts import (
    MESSAGE_ROLES,
    RUN_STATUS_PHASES,
    Assistant,
    Message,
    MessageContent,
    MessagePage,
    Run,
    Thread,
)
from assistant_relay.app.assistants.errors import NotConfigured, RemoteError
from assistant_relay.core.config import DEFAULT_OPENAI_BASE_URL

ASSISTANTS_BETA_HEADER = "assistants=v2"


class AssistantTransport:
    """Remote assistant API seam.

    Implementations own the credential and the wire format. Callers check
    ``configured`` before issuing any request.
    """

    @property
    def configured(self) -> bool:
        raise NotImplementedError

    async def create_assistant(self, payload: dict[str, Any]) -> Assistant:
        raise NotImplementedError

    async def create_thread(self, payload: dict[str, Any] | None) -> Thread:
        raise NotImplementedError

    async def create_message(self, thread_id: str, payload: dict[str, Any]) -> Message:
        raise NotImplementedError

    async def list_messages(
        self, thread_id: str, params: dict[str, str]
    ) -> MessagePage:
        raise NotImplementedError

    async def create_run(self, thread_id: str, payload: dict[str, Any]) -> Run:
        raise NotImplementedError

    async def retrieve_run(self, thread_id: str, run_id: str) -> Run:
        raise NotImplementedError


class HttpAssistantTransport(AssistantTransport):
    def __init__(
        self,
        *,
        api_key: str | None,
        base_url: str = DEFAULT_OPENAI_BASE_URL,
        timeout_seconds: float = 20.0,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._http_transport = http_transport

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "OpenAI-Beta": ASSISTANTS_BETA_HEADER,
        }

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        if not self.configured:
            raise NotConfigured()

        endpoint = f"{self._base_url}{path}"
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_seconds, transport=self._http_transport
            ) as client:
                response = await client.request(
                    method,
                    endpoint,
                    headers=self._headers(),
                    json=json_body,
                    params=params,
                )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise RemoteError(
                _error_detail(exc.response, method=method, path=path),
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise RemoteError(f"{method} {path} failed: {exc}") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise RemoteError(
                f"{method} {path} returned a non-JSON body",
                status_code=response.status_code,
            ) from exc
        if not isinstance(payload, dict):
            raise RemoteError(
                f"{method} {path} returned an unexpected payload",
                status_code=response.status_code,
            )
        return payload

    async def create_assistant(self, payload: dict[str, Any]) -> Assistant:
        row = await self._request("POST", "/assistants", json_body=payload)
        return parse_assistant(row)

    async def create_thread(self, payload: dict[str, Any] | None) -> Thread:
        row = await self._request("POST", "/threads", json_body=payload or {})
        return parse_thread(row)

    async def create_message(self, thread_id: str, payload: dict[str, Any]) -> Message:
        row = await self._request(
            "POST", f"/threads/{_segment(thread_id)}/messages", json_body=payload
        )
        return parse_message(row, thread_id=thread_id)

    async def list_messages(
        self, thread_id: str, params: dict[str, str]
    ) -> MessagePage:
        body = await self._request(
            "GET", f"/threads/{_segment(thread_id)}/messages", params=params
        )
        return parse_message_page(body, thread_id=thread_id)

    async def create_run(self, thread_id: str, payload: dict[str, Any]) -> Run:
        row = await self._request(
            "POST", f"/threads/{_segment(thread_id)}/runs", json_body=payload
        )
        return parse_run(row, thread_id=thread_id)

    async def retrieve_run(self, thread_id: str, run_id: str) -> Run:
        row = await self._request(
            "GET", f"/threads/{_segment(thread_id)}/runs/{_segment(run_id)}"
        )
        return parse_run(row, thread_id=thread_id)


def _segment(value: str) -> str:
    # Ids are opaque path segments; reserved characters must not reach the URL.
    return quote(value, safe="")


def _error_detail(response: httpx.Response, *, method: str, path: str) -> str:
    prefix = f"{method} {path} returned HTTP {response.status_code}"
    try:
        body = response.json()
    except ValueError:
        return prefix
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return f"{prefix}: {error['message']}"
    return prefix


def _require_id(row: dict[str, Any], kind: str) -> str:
    value = row.get("id")
    if not isinstance(value, str) or not value:
        raise RemoteError(f"{kind} response is missing an id")
    return value


def _optional_str(value: object) -> str | None:
    return value if isinstance(value, str) else None


def _optional_int(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    return value if isinstance(value, int) else None


def parse_assistant(row: dict[str, Any]) -> Assistant:
    assistant_id = _require_id(row, "assistant")
    model = row.get("model")
    if not isinstance(model, str):
        raise RemoteError(f"assistant {assistant_id} response is missing a model")
    tools = row.get("tools")
    return Assistant(
        assistant_id=assistant_id,
        name=_optional_str(row.get("name")),
        instructions=_optional_str(row.get("instructions")),
        model=model,
        tools=tuple(tool for tool in tools if isinstance(tool, dict))
        if isinstance(tools, list)
        else (),
        created_at=_optional_int(row.get("created_at")),
    )


def parse_thread(row: dict[str, Any]) -> Thread:
    metadata = row.get("metadata")
    return Thread(
        thread_id=_require_id(row, "thread"),
        metadata=dict(metadata) if isinstance(metadata, dict) else {},
        created_at=_optional_int(row.get("created_at")),
    )


def _parse_content_part(part: object) -> MessageContent | None:
    if not isinstance(part, dict):
        return None
    part_type = part.get("type")
    if not isinstance(part_type, str):
        return None
    text = part.get("text")
    value = text.get("value") if isinstance(text, dict) else None
    return MessageContent(type=part_type, text=_optional_str(value))


def parse_message(row: dict[str, Any], *, thread_id: str) -> Message:
    message_id = _require_id(row, "message")
    role = row.get("role")
    if not isinstance(role, str) or role not in MESSAGE_ROLES:
        raise RemoteError(f"message {message_id} has unsupported role: {role!r}")
    content = row.get("content")
    parts = (
        [_parse_content_part(part) for part in content]
        if isinstance(content, list)
        else []
    )
    return Message(
        message_id=message_id,
        thread_id=_optional_str(row.get("thread_id")) or thread_id,
        role=role,
        content=tuple(part for part in parts if part is not None),
        created_at=_optional_int(row.get("created_at")),
        run_id=_optional_str(row.get("run_id")),
        assistant_id=_optional_str(row.get("assistant_id")),
    )


def parse_message_page(body: dict[str, Any], *, thread_id: str) -> MessagePage:
    rows = body.get("data")
    if not isinstance(rows, list):
        raise RemoteError(f"message list for thread {thread_id} is missing data")
    messages = tuple(
        parse_message(row, thread_id=thread_id) for row in rows if isinstance(row, dict)
    )
    return MessagePage(
        messages=messages,
        first_id=_optional_str(body.get("first_id"))
        or (messages[0].message_id if messages else None),
        last_id=_optional_str(body.get("last_id"))
        or (messages[-1].message_id if messages else None),
        has_more=bool(body.get("has_more", False)),
    )


def parse_run(row: dict[str, Any], *, thread_id: str) -> Run:
    run_id = _require_id(row, "run")
    status = row.get("status")
    if not isinstance(status, str) or status not in RUN_STATUS_PHASES:
        raise RemoteError(f"run {run_id} has unknown status: {status!r}")
    last_error = row.get("last_error")
    return Run(
        run_id=run_id,
        thread_id=_optional_str(row.get("thread_id")) or thread_id,
        assistant_id=_optional_str(row.get("assistant_id")) or "",
        status=status,
        instructions=_optional_str(row.get("instructions")),
        last_error=_optional_str(last_error.get("message"))
        if isinstance(last_error, dict)
        else None,
    )
