from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000
DEFAULT_LOG_LEVEL = "info"
# Names uvicorn.Config accepts for log_level
LOG_LEVELS = {"critical", "error", "warning", "info", "debug", "trace"}


@dataclass(slots=True)
class ServiceConfig:
    host: str
    port: int
    log_level: str
    base_url: str


def _parse_port(raw: str | None) -> int:
    value = (raw or "").strip()
    try:
        port = int(value) if value else DEFAULT_PORT
    except ValueError:
        return DEFAULT_PORT
    if not 0 < port < 65536:
        return DEFAULT_PORT
    return port


def _parse_log_level(raw: str | None) -> str:
    value = (raw or "").strip().lower()
    if value == "warn":
        return "warning"
    return value if value in LOG_LEVELS else DEFAULT_LOG_LEVEL


def load_config(env: dict[str, str] | None = None) -> ServiceConfig:
    e: dict[str, Any] = dict(os.environ)
    if env:
        e.update(env)
    host = (e.get("TODOAPI_HOST") or "").strip() or DEFAULT_HOST
    port = _parse_port(e.get("TODOAPI_PORT"))
    # Clients should not dial the wildcard address
    client_host = "127.0.0.1" if host in {"0.0.0.0", "::"} else host
    base_url = (e.get("TODOAPI_BASE_URL") or "").strip() or f"http://{client_host}:{port}"
    return ServiceConfig(
        host=host,
        port=port,
        log_level=_parse_log_level(e.get("LOG_LEVEL")),
        base_url=base_url.rstrip("/"),
    )


__all__ = ["ServiceConfig", "load_config"]
