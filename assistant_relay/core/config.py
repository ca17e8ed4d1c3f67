from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

LOGGER = logging.getLogger(__name__)

DEFAULT_SECRET_FILE = "/run/secrets/openai_api_key"
DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"
PRODUCTION_ENVIRONMENT = "production"

API_KEY_SOURCE_SECRET_FILE = "secret_file"
API_KEY_SOURCE_ENVIRONMENT = "environment"
API_KEY_SOURCE_NONE = "none"


@dataclass(frozen=True)
class AppConfig:
    app_name: str
    app_version: str
    environment: str
    openai_api_key: str | None
    api_key_source: str
    openai_base_url: str
    request_timeout_seconds: float
    run_poll_interval_seconds: float
    run_timeout_seconds: float | None
    assistant_id: str | None
    assistant_name: str
    assistant_instructions: str
    assistant_model: str

    @property
    def is_production(self) -> bool:
        return self.environment == PRODUCTION_ENVIRONMENT


def _read_optional_env(name: str) -> str | None:
    value = os.getenv(name)
    if not value:
        return None
    stripped = value.strip()
    return stripped if stripped else None


def _read_str_env(name: str, default: str) -> str:
    return _read_optional_env(name) or default


def _read_float_env(name: str, default: float) -> float:
    value = _read_optional_env(name)
    if value is None:
        return default
    try:
        parsed = float(value)
    except ValueError:
        LOGGER.warning("Ignoring non-numeric %s=%r; using %s", name, value, default)
        return default
    return parsed if parsed > 0 else default


def _read_optional_float_env(name: str) -> float | None:
    value = _read_optional_env(name)
    if value is None:
        return None
    try:
        parsed = float(value)
    except ValueError:
        LOGGER.warning("Ignoring non-numeric %s=%r; no limit is applied", name, value)
        return None
    if not parsed > 0:
        LOGGER.warning("Ignoring non-positive %s=%r; no limit is applied", name, value)
        return None
    return parsed


def _read_secret_file(path: str) -> str | None:
    secret_path = Path(path)
    if not secret_path.is_file():
        return None
    secret = secret_path.read_text(encoding="utf-8").strip()
    return secret if secret else None


def resolve_api_key() -> tuple[str | None, str]:
    secret_path = _read_str_env("OPENAI_API_KEY_FILE", DEFAULT_SECRET_FILE)
    secret = _read_secret_file(secret_path)
    if secret:
        return secret, API_KEY_SOURCE_SECRET_FILE
    env_key = _read_optional_env("OPENAI_API_KEY")
    if env_key:
        return env_key, API_KEY_SOURCE_ENVIRONMENT
    return None, API_KEY_SOURCE_NONE


def load_app_config() -> AppConfig:
    environment = _read_str_env("APP_ENV", "development").lower()
    if environment != PRODUCTION_ENVIRONMENT:
        load_dotenv(override=False)

    api_key, api_key_source = resolve_api_key()
    return AppConfig(
        app_name=_read_str_env("APP_NAME", "Assistant Relay"),
        app_version=_read_str_env("APP_VERSION", "0.1.0"),
        environment=environment,
        openai_api_key=api_key,
        api_key_source=api_key_source,
        openai_base_url=_read_str_env("OPENAI_BASE_URL", DEFAULT_OPENAI_BASE_URL),
        request_timeout_seconds=_read_float_env(
            "OPENAI_REQUEST_TIMEOUT_SECONDS", default=20.0
        ),
        run_poll_interval_seconds=_read_float_env(
            "RUN_POLL_INTERVAL_SECONDS", default=1.0
        ),
        run_timeout_seconds=_read_optional_float_env("RUN_TIMEOUT_SECONDS"),
        assistant_id=_read_optional_env("ASSISTANT_ID"),
        assistant_name=_read_str_env("ASSISTANT_NAME", "Relay Assistant"),
        assistant_instructions=_read_str_env(
            "ASSISTANT_INSTRUCTIONS", "You are a helpful assistant."
        ),
        assistant_model=_read_str_env("ASSISTANT_MODEL", "gpt-4o"),
    )
