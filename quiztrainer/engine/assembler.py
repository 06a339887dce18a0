from __future__ import annotations

"""Result assembler: builds the immutable SessionResult at completion."""

from datetime import datetime, timezone
from typing import Optional, Sequence
from uuid import uuid4

from .models import SessionAnswer, SessionConfig, SessionResult, theme_ids
from .scoring import score


def assemble(
    config: SessionConfig,
    answer_log: Sequence[SessionAnswer],
    elapsed_time: int,
    *,
    session_id: Optional[str] = None,
    started_at: Optional[datetime] = None,
    completed_at: Optional[datetime] = None,
) -> SessionResult:
    """Score the log from scratch and package it with the contributing theme ids."""
    completed = completed_at or datetime.now(timezone.utc)
    return SessionResult(
        session_id=session_id or str(uuid4()),
        scoring=score(answer_log),
        answers=tuple(answer_log),
        elapsed_time=max(0, int(elapsed_time)),
        themes=theme_ids(config.contributing_themes()),
        started_at=started_at or completed,
        completed_at=completed,
    )
