from __future__ import annotations

"""Pydantic models for the admin export/import envelopes.

Field aliases follow the camelCase payloads exchanged with the admin tools,
so ``model_dump(by_alias=True)`` yields the wire shape directly.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..engine.models import (
    Scoring,
    SessionAnswer,
    SessionResult,
    SubTheme,
    Theme,
)

EXPORT_VERSION = "1.0"


def _ensure_utc(v: datetime) -> datetime:
    if v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v.astimezone(timezone.utc)


class _Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SubThemeRecord(_Record):
    id: str = Field(min_length=1)
    name: str = ""
    selected: bool = False
    question_count: int = Field(default=0, ge=0, alias="questionCount")

    def to_sub_theme(self) -> SubTheme:
        return SubTheme(id=self.id, name=self.name, selected=self.selected, question_count=self.question_count)


class ThemeRecord(_Record):
    id: str = Field(min_length=1)
    name: str = ""
    icon: str = ""
    color: str = ""
    selected: bool = False
    sub_themes: List[SubThemeRecord] = Field(default_factory=list, alias="subThemes")

    @field_validator("sub_themes")
    @classmethod
    def _unique_sub_theme_ids(cls, v: List[SubThemeRecord]) -> List[SubThemeRecord]:
        ids = [st.id for st in v]
        dupes = sorted({i for i in ids if ids.count(i) > 1})
        if dupes:
            raise ValueError(f"duplicate sub-theme ids: {', '.join(dupes)}")
        return v

    def to_theme(self) -> Theme:
        return Theme(
            id=self.id,
            name=self.name,
            icon=self.icon,
            color=self.color,
            selected=self.selected,
            sub_themes=tuple(st.to_sub_theme() for st in self.sub_themes),
        )


class ScoringRecord(_Record):
    correct: int = Field(default=0, ge=0)
    incorrect: int = Field(default=0, ge=0)
    skipped: int = Field(default=0, ge=0)
    partial: int = Field(default=0, ge=0)


class AnswerRecord(_Record):
    question_id: str = Field(alias="questionId", min_length=1)
    selected_answers: List[str] = Field(default_factory=list, alias="selectedAnswers")
    time_spent: int = Field(default=0, ge=0, alias="timeSpent")
    is_correct: bool = Field(alias="isCorrect")
    is_partial: Optional[bool] = Field(default=None, alias="isPartial")
    is_skipped: bool = Field(default=False, alias="isSkipped")

    @model_validator(mode="after")
    def _one_outcome(self) -> "AnswerRecord":
        if self.is_skipped and (self.is_correct or self.is_partial):
            raise ValueError("a skipped answer cannot be correct or partial")
        if self.is_correct and self.is_partial:
            raise ValueError("an answer cannot be both correct and partial")
        return self


class SessionRecord(_Record):
    session_id: str = Field(alias="sessionId", min_length=1)
    scoring: ScoringRecord
    answers: List[AnswerRecord] = Field(default_factory=list)
    elapsed_time: int = Field(default=0, ge=0, alias="elapsedTime")
    themes: List[str] = Field(default_factory=list)
    started_at: datetime = Field(alias="startedAt")
    completed_at: datetime = Field(alias="completedAt")

    @field_validator("started_at", "completed_at")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        return _ensure_utc(v)

    @model_validator(mode="after")
    def _counts_match_answers(self) -> "SessionRecord":
        s = self.scoring
        if s.correct + s.incorrect + s.skipped + s.partial != len(self.answers):
            raise ValueError("scoring counts do not add up to the number of answers")
        return self

    @classmethod
    def from_result(cls, result: SessionResult) -> "SessionRecord":
        return cls.model_validate(result.to_json())

    def to_result(self) -> SessionResult:
        return SessionResult(
            session_id=self.session_id,
            scoring=Scoring(**self.scoring.model_dump()),
            answers=tuple(
                SessionAnswer(
                    question_id=a.question_id,
                    selected_answers=frozenset(a.selected_answers),
                    time_spent=a.time_spent,
                    is_correct=a.is_correct,
                    is_partial=a.is_partial,
                    is_skipped=a.is_skipped,
                )
                for a in self.answers
            ),
            elapsed_time=self.elapsed_time,
            themes=tuple(self.themes),
            started_at=self.started_at,
            completed_at=self.completed_at,
        )


class ExportData(_Record):
    themes: List[ThemeRecord] = Field(default_factory=list)
    questions: List[Dict[str, Any]] = Field(default_factory=list)
    users: List[Dict[str, Any]] = Field(default_factory=list)
    sessions: List[SessionRecord] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    version: str = EXPORT_VERSION

    @field_validator("timestamp")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        return _ensure_utc(v)


class ImportCounts(_Record):
    themes: int = Field(default=0, ge=0)
    questions: int = Field(default=0, ge=0)
    users: int = Field(default=0, ge=0)
    sessions: int = Field(default=0, ge=0)


class ImportResult(_Record):
    success: bool = True
    imported: ImportCounts = Field(default_factory=ImportCounts)
    errors: List[str] = Field(default_factory=list)
