"""Runtime settings, read from ``SLOTSYNC_*`` environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping
from urllib.parse import urlsplit, urlunsplit

ENV_OVERRIDES = {
    "base_url": "SLOTSYNC_BASE_URL",
    "api_prefix": "SLOTSYNC_API_PREFIX",
    "ws_path": "SLOTSYNC_WS_PATH",
    "refresh_interval_s": "SLOTSYNC_REFRESH_INTERVAL_S",
    "debounce_s": "SLOTSYNC_DEBOUNCE_S",
    "reconnect_base_s": "SLOTSYNC_RECONNECT_BASE_S",
    "reconnect_max_s": "SLOTSYNC_RECONNECT_MAX_S",
    "max_logs": "SLOTSYNC_MAX_LOGS",
    "request_timeout_s": "SLOTSYNC_REQUEST_TIMEOUT_S",
    "host": "SLOTSYNC_HOST",
    "port": "SLOTSYNC_PORT",
    "log_level": "SLOTSYNC_LOG_LEVEL",
}


@dataclass
class Settings:
    base_url: str = "http://localhost:8080"
    api_prefix: str = "/api"
    ws_path: str = "/ws"
    refresh_interval_s: float = 60.0
    debounce_s: float = 0.5
    reconnect_base_s: float = 1.0
    reconnect_max_s: float = 30.0
    max_logs: int = 1000
    request_timeout_s: float = 10.0
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "INFO"

    @property
    def api_url(self) -> str:
        return self.base_url.rstrip("/") + self.api_prefix

    @property
    def ws_url(self) -> str:
        parts = urlsplit(self.base_url)
        scheme = "wss" if parts.scheme == "https" else "ws"
        return urlunsplit((scheme, parts.netloc, self.ws_path, "", ""))

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ
        settings = cls()
        for key, env_var in ENV_OVERRIDES.items():
            raw = env.get(env_var)
            if raw is None:
                continue
            current = getattr(settings, key)
            if isinstance(current, str):
                setattr(settings, key, raw)
                continue
            try:
                value = type(current)(raw)
            except ValueError as exc:
                raise ValueError(f"{env_var} must be a number, got {raw!r}") from exc
            setattr(settings, key, value)
        return settings
