from __future__ import annotations

from assistant_relay.app.assistants.contracts import Run


class AssistantError(Exception):
    pass


class NotConfigured(AssistantError):
    def __init__(self, message: str = "OpenAI API key not configured.") -> None:
        super().__init__(message)


class InvalidArgument(AssistantError, ValueError):
    pass


class RemoteError(AssistantError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RunFailed(AssistantError):
    def __init__(
        self,
        status: str,
        *,
        run: Run | None = None,
        message: str | None = None,
    ) -> None:
        super().__init__(message or f"Run failed with status: {status}")
        self.status = status
        self.run = run


class RunTimeout(RunFailed):
    def __init__(
        self, status: str, *, timeout_seconds: float, run: Run | None = None
    ) -> None:
        super().__init__(
            status,
            run=run,
            message=(
                f"Run did not reach a terminal status within {timeout_seconds:g}s "
                f"(last status: {status})"
            ),
        )
        self.timeout_seconds = timeout_seconds
