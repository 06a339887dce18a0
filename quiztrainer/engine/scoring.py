from __future__ import annotations

"""Scoring policy: outcome counts, session statistics and points.

Everything here is a pure function of the answer log, so a result can be
re-scored from a stored log at any time and always gives the same numbers.
"""

from dataclasses import dataclass
from functools import reduce
from typing import Iterable, Sequence

from .models import Scoring, ScoringWeights, SessionAnswer


def fold(scoring: Scoring, answer: SessionAnswer) -> Scoring:
    """Add one answer to a Scoring, returning a new instance."""
    if answer.is_skipped:
        return Scoring(scoring.correct, scoring.incorrect, scoring.skipped + 1, scoring.partial)
    if answer.is_correct:
        return Scoring(scoring.correct + 1, scoring.incorrect, scoring.skipped, scoring.partial)
    if answer.is_partial:
        return Scoring(scoring.correct, scoring.incorrect, scoring.skipped, scoring.partial + 1)
    return Scoring(scoring.correct, scoring.incorrect + 1, scoring.skipped, scoring.partial)


def score(answers: Iterable[SessionAnswer]) -> Scoring:
    answers = list(answers)
    correct = sum(1 for a in answers if a.is_correct and not a.is_skipped)
    partial = sum(1 for a in answers if a.is_partial and not a.is_correct and not a.is_skipped)
    skipped = sum(1 for a in answers if a.is_skipped)
    incorrect = len(answers) - correct - partial - skipped
    return Scoring(correct=correct, incorrect=incorrect, skipped=skipped, partial=partial)


def score_incrementally(answers: Iterable[SessionAnswer]) -> Scoring:
    return reduce(fold, answers, Scoring())


@dataclass(frozen=True)
class SessionStats:
    correct: int
    partial: int
    incorrect: int
    skipped: int
    total: int
    percentage: float
    average_time_ms: float


@dataclass(frozen=True)
class PointsBreakdown:
    base_points: float
    performance_bonus: float
    speed_bonus: int
    streak_bonus: int
    total_points: int


def session_stats(answers: Sequence[SessionAnswer]) -> SessionStats:
    s = score(answers)
    total = len(answers)
    percentage = (s.correct / total) * 100 if total > 0 else 0.0
    average = sum(a.time_spent for a in answers) / total if total > 0 else 0.0
    return SessionStats(
        correct=s.correct,
        partial=s.partial,
        incorrect=s.incorrect,
        skipped=s.skipped,
        total=total,
        percentage=percentage,
        average_time_ms=average,
    )


def weighted_points(scoring: Scoring, weights: ScoringWeights) -> float:
    return (
        scoring.correct * weights.correct
        + scoring.partial * weights.partial
        + scoring.incorrect * weights.incorrect
        + scoring.skipped * weights.skipped
    )


def _performance_bonus(base: float, percentage: float) -> float:
    if percentage >= 80:
        return base * 0.5
    if percentage >= 60:
        return base * 0.2
    return 0.0


def _speed_bonus(average_time_s: float, total: int) -> int:
    # Only sessions averaging under 5 s per question earn a speed bonus
    if total <= 0 or average_time_s >= 5:
        return 0
    factor = max(0.0, 5 - average_time_s) / 5
    return round(min(total * 2, 20) * factor)


def _streak_bonus(streak_days: int) -> int:
    if streak_days >= 30:
        return 30
    if streak_days >= 14:
        return 20
    if streak_days >= 7:
        return 15
    if streak_days >= 3:
        return 5
    return 0


def calculate_points(
    answers: Sequence[SessionAnswer],
    weights: ScoringWeights = ScoringWeights(),
    streak_days: int = 0,
) -> PointsBreakdown:
    stats = session_stats(answers)
    base = weighted_points(score(answers), weights)
    performance = _performance_bonus(base, stats.percentage)
    speed = _speed_bonus(stats.average_time_ms / 1000.0, stats.total)
    streak = _streak_bonus(int(streak_days))
    total = max(0, round(base + performance + speed + streak))
    return PointsBreakdown(
        base_points=round(base, 1),
        performance_bonus=round(performance, 1),
        speed_bonus=speed,
        streak_bonus=streak,
        total_points=total,
    )
