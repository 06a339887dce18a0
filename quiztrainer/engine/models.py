from __future__ import annotations

"""Data model for training sessions.

Every model round-trips through ``to_json``/``from_json`` using the camelCase
keys of the mobile app payloads (``subThemes``, ``questionCount``, ...), so
session results can be handed to persistence or export unchanged.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple

from .errors import InvalidConfigError


class QuestionType(str, Enum):
    SINGLE = "single"
    MULTIPLE = "multiple"


class QuestionTypeFilter(str, Enum):
    ALL = "all"
    SINGLE = "single"
    MULTIPLE = "multiple"

    def accepts(self, question_type: QuestionType) -> bool:
        if self is QuestionTypeFilter.ALL:
            return True
        return self.value == QuestionType(question_type).value


@dataclass(frozen=True)
class SubTheme:
    id: str
    name: str
    selected: bool = False
    question_count: int = 0

    def __post_init__(self) -> None:
        if int(self.question_count) < 0:
            raise ValueError(f"Sub-theme {self.id!r} has a negative question count")

    def to_json(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "selected": self.selected,
            "questionCount": self.question_count,
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "SubTheme":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            selected=bool(data.get("selected", False)),
            question_count=int(data.get("questionCount", 0)),
        )


@dataclass(frozen=True)
class Theme:
    id: str
    name: str
    icon: str = ""
    color: str = ""
    selected: bool = False
    sub_themes: Tuple[SubTheme, ...] = ()

    @property
    def contributing(self) -> bool:
        """A theme contributes when it or any of its sub-themes is selected."""
        return self.selected or any(st.selected for st in self.sub_themes)

    @property
    def total_questions(self) -> int:
        return sum(st.question_count for st in self.sub_themes)

    def contributing_sub_themes(self) -> List[SubTheme]:
        picked = [st for st in self.sub_themes if st.selected]
        if picked:
            return picked
        if self.selected:
            return list(self.sub_themes)
        return []

    def to_json(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "icon": self.icon,
            "color": self.color,
            "selected": self.selected,
            "subThemes": [st.to_json() for st in self.sub_themes],
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Theme":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            icon=str(data.get("icon", "")),
            color=str(data.get("color", "")),
            selected=bool(data.get("selected", False)),
            sub_themes=tuple(SubTheme.from_json(st) for st in data.get("subThemes", [])),
        )


@dataclass(frozen=True)
class Scoring:
    """Outcome counts of one session."""

    correct: int = 0
    incorrect: int = 0
    skipped: int = 0
    partial: int = 0

    @property
    def total(self) -> int:
        return self.correct + self.incorrect + self.skipped + self.partial

    def to_json(self) -> Dict[str, int]:
        return {
            "correct": self.correct,
            "incorrect": self.incorrect,
            "skipped": self.skipped,
            "partial": self.partial,
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Scoring":
        return cls(
            correct=int(data.get("correct", 0)),
            incorrect=int(data.get("incorrect", 0)),
            skipped=int(data.get("skipped", 0)),
            partial=int(data.get("partial", 0)),
        )


@dataclass(frozen=True)
class ScoringWeights:
    """Points awarded per outcome."""

    correct: float = 1.0
    incorrect: float = -0.25
    skipped: float = 0.0
    partial: float = 0.5

    def to_json(self) -> Dict[str, float]:
        return {
            "correct": self.correct,
            "incorrect": self.incorrect,
            "skipped": self.skipped,
            "partial": self.partial,
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "ScoringWeights":
        base = cls()
        return cls(
            correct=float(data.get("correct", base.correct)),
            incorrect=float(data.get("incorrect", base.incorrect)),
            skipped=float(data.get("skipped", base.skipped)),
            partial=float(data.get("partial", base.partial)),
        )


@dataclass(frozen=True)
class SessionConfig:
    themes: Tuple[Theme, ...]
    question_count: int
    timer_enabled: bool = False
    timer_duration: Optional[int] = None
    scoring: Scoring = field(default_factory=Scoring)
    question_type_filter: QuestionTypeFilter = QuestionTypeFilter.ALL
    weights: ScoringWeights = field(default_factory=ScoringWeights)

    def contributing_themes(self) -> List[Theme]:
        return [t for t in self.themes if t.contributing]

    def validate(self) -> None:
        """Raise InvalidConfigError unless a session can start from this config."""
        if int(self.question_count) <= 0:
            raise InvalidConfigError(f"questionCount must be positive, got {self.question_count}")
        if self.timer_enabled:
            if self.timer_duration is None:
                raise InvalidConfigError("timerDuration is required when the timer is enabled")
            if int(self.timer_duration) <= 0:
                raise InvalidConfigError(f"timerDuration must be positive, got {self.timer_duration}")
        elif self.timer_duration is not None:
            raise InvalidConfigError("timerDuration must be empty when the timer is disabled")
        if not self.themes:
            raise InvalidConfigError("at least one theme is required")
        if not self.contributing_themes():
            raise InvalidConfigError("no theme or sub-theme is selected")
        if self.scoring.total != 0:
            raise InvalidConfigError("initial scoring must be zeroed")

    def to_json(self) -> Dict[str, Any]:
        return {
            "themes": [t.to_json() for t in self.themes],
            "questionCount": self.question_count,
            "timerEnabled": self.timer_enabled,
            "timerDuration": self.timer_duration,
            "scoring": self.scoring.to_json(),
            "questionTypeFilter": self.question_type_filter.value,
            "weights": self.weights.to_json(),
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "SessionConfig":
        duration = data.get("timerDuration")
        return cls(
            themes=tuple(Theme.from_json(t) for t in data.get("themes", [])),
            question_count=int(data.get("questionCount", 0)),
            timer_enabled=bool(data.get("timerEnabled", False)),
            timer_duration=int(duration) if duration is not None else None,
            scoring=Scoring.from_json(data.get("scoring", {})),
            question_type_filter=QuestionTypeFilter(data.get("questionTypeFilter", "all")),
            weights=ScoringWeights.from_json(data.get("weights", {})),
        )


@dataclass(frozen=True)
class AnswerOption:
    id: str
    text: str
    is_correct: bool = False


@dataclass(frozen=True)
class Question:
    id: str
    theme_id: str
    sub_theme_ids: Tuple[str, ...]
    type: QuestionType
    text: str
    answers: Tuple[AnswerOption, ...]
    explanation: str = ""

    @property
    def correct_answers(self) -> FrozenSet[str]:
        return frozenset(a.id for a in self.answers if a.is_correct)

    def to_json(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "theme": self.theme_id,
            "subThemes": list(self.sub_theme_ids),
            "type": self.type.value,
            "question": self.text,
            "answers": [{"id": a.id, "text": a.text, "isCorrect": a.is_correct} for a in self.answers],
            "explanation": self.explanation,
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Question":
        sub = data.get("subThemes")
        if sub is None:
            sub = [data["subTheme"]] if data.get("subTheme") else []
        return cls(
            id=str(data["id"]),
            theme_id=str(data.get("theme", "")),
            sub_theme_ids=tuple(str(s) for s in sub),
            type=QuestionType(data.get("type", "single")),
            text=str(data.get("question", "")),
            answers=tuple(
                AnswerOption(id=str(a["id"]), text=str(a.get("text", "")), is_correct=bool(a.get("isCorrect", False)))
                for a in data.get("answers", [])
            ),
            explanation=str(data.get("explanation", "")),
        )


@dataclass(frozen=True)
class SessionAnswer:
    question_id: str
    selected_answers: FrozenSet[str]
    time_spent: int
    is_correct: bool
    is_partial: Optional[bool] = None
    is_skipped: bool = False

    def to_json(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "questionId": self.question_id,
            "selectedAnswers": sorted(self.selected_answers),
            "timeSpent": self.time_spent,
            "isCorrect": self.is_correct,
            "isSkipped": self.is_skipped,
        }
        if self.is_partial is not None:
            payload["isPartial"] = self.is_partial
        return payload

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "SessionAnswer":
        partial = data.get("isPartial")
        return cls(
            question_id=str(data["questionId"]),
            selected_answers=frozenset(str(a) for a in data.get("selectedAnswers", [])),
            time_spent=int(data.get("timeSpent", 0)),
            is_correct=bool(data.get("isCorrect", False)),
            is_partial=bool(partial) if partial is not None else None,
            is_skipped=bool(data.get("isSkipped", False)),
        )


def _parse_ts(value: Optional[str]) -> datetime:
    if not value:
        return datetime.now(timezone.utc)
    return datetime.fromisoformat(value)


@dataclass(frozen=True)
class SessionResult:
    session_id: str
    scoring: Scoring
    answers: Tuple[SessionAnswer, ...]
    elapsed_time: int
    themes: Tuple[str, ...]
    started_at: datetime
    completed_at: datetime

    def to_json(self) -> Dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "scoring": self.scoring.to_json(),
            "answers": [a.to_json() for a in self.answers],
            "elapsedTime": self.elapsed_time,
            "themes": list(self.themes),
            "startedAt": self.started_at.isoformat(),
            "completedAt": self.completed_at.isoformat(),
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "SessionResult":
        return cls(
            session_id=str(data["sessionId"]),
            scoring=Scoring.from_json(data.get("scoring", {})),
            answers=tuple(SessionAnswer.from_json(a) for a in data.get("answers", [])),
            elapsed_time=int(data.get("elapsedTime", 0)),
            themes=tuple(str(t) for t in data.get("themes", [])),
            started_at=_parse_ts(data.get("startedAt")),
            completed_at=_parse_ts(data.get("completedAt")),
        )


def theme_ids(themes: Iterable[Theme]) -> Tuple[str, ...]:
    return tuple(t.id for t in themes)


__all__ = [
    "QuestionType",
    "QuestionTypeFilter",
    "SubTheme",
    "Theme",
    "Scoring",
    "ScoringWeights",
    "SessionConfig",
    "AnswerOption",
    "Question",
    "SessionAnswer",
    "SessionResult",
    "theme_ids",
]
