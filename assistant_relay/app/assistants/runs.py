from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from assistant_relay.app.assistants.contracts import (
    RUN_STATUS_COMPLETED,
    RUN_STATUS_PHASES,
    Run,
)
from assistant_relay.app.assistants.errors import RemoteError, RunFailed, RunTimeout
from assistant_relay.app.assistants.guards import (
    require_configured,
    require_identifier,
    require_text,
)
from assistant_relay.app.assistants.transport import AssistantTransport

LOGGER = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]
ClockFn = Callable[[], float]


@dataclass(frozen=True)
class RunPolicy:
    poll_interval_seconds: float = 1.0
    # None waits until the run reaches a terminal status.
    timeout_seconds: float | None = None


DEFAULT_RUN_POLICY = RunPolicy()


def _check_status_advance(previous: Run, current: Run) -> None:
    if RUN_STATUS_PHASES[current.status] < RUN_STATUS_PHASES[previous.status]:
        raise RemoteError(
            f"run {current.run_id} status regressed from "
            f"{previous.status} to {current.status}"
        )


def _emit_run_event(
    run: Run,
    *,
    outcome: str,
    polls: int,
    elapsed_seconds: float,
) -> None:
    payload = {
        "run_id": run.run_id,
        "thread_id": run.thread_id,
        "assistant_id": run.assistant_id,
        "status": run.status,
        "outcome": outcome,
        "polls": polls,
        "elapsed_ms": max(int(elapsed_seconds * 1000), 0),
    }
    if run.last_error:
        payload["last_error"] = run.last_error
    LOGGER.info("run_event %s", json.dumps(payload, sort_keys=True))


async def run_assistant(
    *,
    transport: AssistantTransport,
    thread_id: str,
    assistant_id: str,
    instructions: str | None = None,
    policy: RunPolicy = DEFAULT_RUN_POLICY,
    sleep: SleepFn = asyncio.sleep,
    clock: ClockFn = time.monotonic,
) -> Run:
    """Create a run and wait for it to reach a terminal status.

    Returns the run when it completes. Any other terminal status raises
    ``RunFailed`` with the observed status, and exceeding
    ``policy.timeout_seconds`` raises ``RunTimeout``. Nothing is retried.
    """
    require_configured(transport)
    require_identifier(thread_id, "thread_id")
    require_identifier(assistant_id, "assistant_id")
    payload: dict[str, str] = {"assistant_id": assistant_id}
    if instructions is not None:
        payload["instructions"] = require_text(instructions, "instructions")

    LOGGER.info("Running assistant %s on thread %s", assistant_id, thread_id)
    started_at = clock()
    run = await transport.create_run(thread_id, payload)
    polls = 0
    while not run.is_terminal:
        elapsed = clock() - started_at
        delay = policy.poll_interval_seconds
        if policy.timeout_seconds is not None:
            remaining = policy.timeout_seconds - elapsed
            if remaining <= 0:
                _emit_run_event(
                    run, outcome="timeout", polls=polls, elapsed_seconds=elapsed
                )
                raise RunTimeout(
                    run.status, timeout_seconds=policy.timeout_seconds, run=run
                )
            # Never sleep past the deadline.
            delay = min(delay, remaining)
        await sleep(delay)
        polled = await transport.retrieve_run(thread_id, run.run_id)
        polls += 1
        _check_status_advance(run, polled)
        run = polled

    elapsed = clock() - started_at
    if run.status != RUN_STATUS_COMPLETED:
        _emit_run_event(run, outcome="failed", polls=polls, elapsed_seconds=elapsed)
        raise RunFailed(run.status, run=run)
    _emit_run_event(run, outcome="completed", polls=polls, elapsed_seconds=elapsed)
    return run
