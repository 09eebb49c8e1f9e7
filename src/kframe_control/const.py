import logging
import os

from kframe_control import __version__

__all__ = [
    "KFRAME_BIND_HOST",
    "KFRAME_CONFIG_FILE_PATH",
    "KFRAME_DEBUG",
    "KFRAME_HOST",
    "KFRAME_KEEPALIVE_MS",
    "KFRAME_LOG_FORMAT",
    "KFRAME_LOG_HUMAN_OUTPUT",
    "KFRAME_LOG_JSON_FILE",
    "KFRAME_LOG_NAME",
    "KFRAME_MAX_RETRIES",
    "KFRAME_METRICS_PORT",
    "KFRAME_SUITE",
    "KFRAME_VERSION",
    "session_env",
    "YES_ANSWER",
]

logger = logging.getLogger(__name__)

YES_ANSWER = ("true", "yes", "y", "t", "1")


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Invalid integer for %s: %r, using default %d", name, raw, default)
        return default


KFRAME_VERSION: str = __version__
KFRAME_LOG_NAME: str = "kframe_control"

# Session
KFRAME_HOST: str = os.environ.get("KFRAME_HOST", "")
KFRAME_BIND_HOST: str = os.environ.get("KFRAME_BIND_HOST", "0.0.0.0")
KFRAME_KEEPALIVE_MS: int = _int_env("KFRAME_KEEPALIVE_MS", 2000)
KFRAME_MAX_RETRIES: int = _int_env("KFRAME_MAX_RETRIES", 5)
KFRAME_SUITE: str = os.environ.get("KFRAME_SUITE", "suite1a")
KFRAME_CONFIG_FILE_PATH: str = os.environ.get("KFRAME_CONFIG_FILE_PATH", "~/.config/kframe-control/config.yaml")

# Observability
KFRAME_DEBUG: bool = os.environ.get("KFRAME_DEBUG", "0").casefold() in YES_ANSWER
KFRAME_LOG_FORMAT: str = os.environ.get("KFRAME_LOG_FORMAT", "human")  # json, human or both
KFRAME_LOG_JSON_FILE: str | None = os.environ.get("KFRAME_LOG_JSON_FILE") or None
KFRAME_LOG_HUMAN_OUTPUT: str = os.environ.get("KFRAME_LOG_HUMAN_OUTPUT", "stdout")
KFRAME_METRICS_PORT: int = _int_env("KFRAME_METRICS_PORT", 0)  # 0 disables the exporter

_SESSION_ENV_KEYS = {
    "KFRAME_HOST": "host",
    "KFRAME_KEEPALIVE_MS": "keepalive_interval_ms",
    "KFRAME_MAX_RETRIES": "max_retries",
    "KFRAME_SUITE": "suite",
    "KFRAME_METRICS_PORT": "metrics_port",
}


def session_env() -> dict[str, str]:
    """SessionConfig fields currently set in the environment (re-read, so .env loads count)."""
    settings = {}
    for env_key, field in _SESSION_ENV_KEYS.items():
        value = os.environ.get(env_key, "").strip()
        if value and not (field == "metrics_port" and value == "0"):
            settings[field] = value
    return settings
