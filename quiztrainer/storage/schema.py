from __future__ import annotations

"""Schema constants and Pydantic models for Parquet-backed session stats."""

from datetime import datetime, timezone
from typing import Optional

import pandas as pd
from pydantic import BaseModel, Field, field_validator, model_validator

# --- Constants ---

COUNT_KEYS = ["C", "P", "S"]

DTYPES = {
    "session_id": "string",
    # timezone-aware UTC timestamps
    "session_start": pd.DatetimeTZDtype(tz="UTC"),
    "theme_id": "string",
    "Q": "UInt16",
    "C": "UInt16",
    "P": "UInt16",
    "S": "UInt16",
    "T_ms": "UInt32",
}

META_DTYPES = {
    "session_id": "string",
    "session_start": pd.DatetimeTZDtype(tz="UTC"),
    "app_version": "string",
    "question_count": "UInt16",
    "timer_duration": "UInt16",
    "notes": "string",
}


def _ensure_utc(v: datetime) -> datetime:
    if v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v.astimezone(timezone.utc)


# --- Pydantic models ---

class SessionThemeRow(BaseModel):
    """Per (session x theme) summary: Q asked, C correct, P partial, S skipped."""

    session_id: str
    session_start: datetime
    theme_id: str = Field(min_length=1)
    Q: int = Field(ge=1, le=65535)
    C: int = Field(default=0, ge=0, le=65535)
    P: int = Field(default=0, ge=0, le=65535)
    S: int = Field(default=0, ge=0, le=65535)
    T_ms: int = Field(default=0, ge=0, le=4294967295)

    @model_validator(mode="after")
    def _outcomes_le_q(self) -> "SessionThemeRow":
        if self.C + self.P + self.S > self.Q:
            raise ValueError("C + P + S must be <= Q")
        return self

    @field_validator("session_start")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        return _ensure_utc(v)


class SessionMeta(BaseModel):
    session_id: str
    session_start: datetime
    app_version: Optional[str] = None
    question_count: Optional[int] = Field(default=None, ge=1, le=65535)
    timer_duration: Optional[int] = Field(default=None, ge=1, le=65535)
    notes: Optional[str] = None

    @field_validator("session_start")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        return _ensure_utc(v)
