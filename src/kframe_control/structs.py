"""Validated session configuration."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from kframe_control.const import KFRAME_HOST, KFRAME_KEEPALIVE_MS, KFRAME_MAX_RETRIES, KFRAME_SUITE
from kframe_control.protocol.payloads import SUITE_IDS


class SessionConfig(BaseModel):
    """Host-supplied session settings.

    An empty ``host`` is allowed here; ``connect()`` refuses to start without one.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    host: str = KFRAME_HOST
    keepalive_interval_ms: int = Field(default=KFRAME_KEEPALIVE_MS, gt=0)
    max_retries: int = Field(default=KFRAME_MAX_RETRIES, ge=0)
    suite: str = KFRAME_SUITE
    metrics_port: int | None = Field(default=None, ge=1, le=65535)

    @field_validator("host")
    @classmethod
    def _strip_host(cls, value: str) -> str:
        return value.strip()

    @field_validator("suite")
    @classmethod
    def _known_suite(cls, value: str) -> str:
        if value not in SUITE_IDS:
            msg = f"Invalid suite: {value} (expected one of {', '.join(SUITE_IDS)})"
            raise ValueError(msg)
        return value
