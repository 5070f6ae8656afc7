"""Pydantic models for session state."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


class Cookie(BaseModel):
    """One browser cookie as persisted in the session file."""

    # Keys from other engines (puppeteer's size/session/priority) are kept as-is.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    name: str = Field(min_length=1)
    value: str
    domain: str = Field(min_length=1)
    path: str = "/"
    expires: Union[int, float] = -1  # kept as written so files round-trip unchanged
    http_only: bool = False
    secure: bool = False
    same_site: Optional[str] = None  # Strict, Lax, None

    def to_record(self) -> dict:
        return self.model_dump(by_alias=True)


Session = list[Cookie]

session_adapter = TypeAdapter(list[Cookie])


class LifecycleState(str, Enum):
    IDLE = "idle"
    LAUNCHING = "launching"
    AWAITING_MARKER = "awaiting_marker"
    READY = "ready"
    DEGRADED = "degraded"
    RETRYING = "retrying"


class StatusSnapshot(BaseModel):
    """Read-only view of the lifecycle published to the status endpoints."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    ready: bool = False
    state: LifecycleState = LifecycleState.IDLE
    last_error: Optional[str] = None
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
