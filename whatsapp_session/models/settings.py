"""Pydantic models for lifecycle and browser configuration."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class LifecycleSettings(BaseModel):
    """Timings (seconds) and login policy for the session lifecycle."""

    model_config = ConfigDict(frozen=True)

    url: str = "https://web.whatsapp.com"
    navigation_timeout: float = Field(default=60.0, gt=0)
    detection_timeout: float = Field(default=15.0, gt=0)
    login_timeout: float = Field(default=120.0, gt=0)
    retry_delay: float = Field(default=30.0, ge=0)
    keepalive_interval: float = Field(default=60.0, gt=0)
    probe_timeout: float = Field(default=10.0, gt=0)
    session_settle_delay: float = Field(default=5.0, ge=0)
    interactive_login: bool = False


class BrowserOptions(BaseModel):
    """How the automation engine is launched."""

    model_config = ConfigDict(frozen=True)

    engine: Literal["chromium", "camoufox"] = "chromium"
    headless: bool = True
    no_sandbox: bool = True
    executable_path: Optional[str] = None
    user_agent: Optional[str] = None
