from __future__ import annotations

from assistant_relay.app.assistants.errors import InvalidArgument, NotConfigured
from assistant_relay.app.assistants.transport import AssistantTransport

# Relative path segments would be resolved away before the request is sent.
_DOT_SEGMENTS = frozenset({".", ".."})


def require_configured(transport: AssistantTransport) -> None:
    if not transport.configured:
        raise NotConfigured()


def require_non_blank(value: object, name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgument(f"{name} is required")
    return value


def require_identifier(value: object, name: str) -> str:
    identifier = require_non_blank(value, name)
    if identifier.strip() in _DOT_SEGMENTS or "/" in identifier:
        raise InvalidArgument(f"{name} is not a valid identifier")
    return identifier


def require_text(value: object, name: str) -> str:
    if not isinstance(value, str):
        raise InvalidArgument(f"{name} must be a string")
    return value
