from __future__ import annotations

import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    # Listeners
    proxy_host: str = os.getenv("DSP_PROXY_HOST", "0.0.0.0")
    proxy_port: int = _env_int("DSP_PROXY_PORT", 80)
    api_host: str = os.getenv("DSP_API_HOST", "0.0.0.0")
    api_port: int = _env_int("DSP_API_PORT", 8080)

    # Routing
    gateway_timeout_s: int = _env_int("DSP_GATEWAY_TIMEOUT_S", 10)
    bridge_network: str = os.getenv("DSP_BRIDGE_NETWORK", "bridge")
    domain_suffix: str = os.getenv("DSP_DOMAIN_SUFFIX", "localhost")
    # Rewrite the Host header to the backend address instead of passing the client's through.
    change_origin: bool = _env_bool("DSP_CHANGE_ORIGIN", False)

    # Event stream
    event_retry_s: int = _env_int("DSP_EVENT_RETRY_S", 5)

    # Event log / logging
    db_path: str = os.getenv("DSP_DB_PATH", "dsp.db")
    log_level: str = os.getenv("DSP_LOG_LEVEL", "INFO").upper()


settings = Settings()
