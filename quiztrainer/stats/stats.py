from __future__ import annotations

"""Session summary formatting: per-theme aggregation and text output."""

from typing import Dict, Optional

from ..engine.errors import UnknownQuestionError
from ..engine.models import SessionResult
from ..engine.pool import QuestionPool
from ..engine.scoring import PointsBreakdown, SessionStats


def per_theme(result: SessionResult, pool: QuestionPool) -> Dict[str, Dict[str, int]]:
    """Group answers by the owning theme of each question."""
    out: Dict[str, Dict[str, int]] = {}
    for a in result.answers:
        try:
            tid = pool.get_question(a.question_id).theme_id
        except UnknownQuestionError:
            tid = "?"
        bucket = out.setdefault(tid, {"asked": 0, "correct": 0})
        bucket["asked"] += 1
        bucket["correct"] += 1 if a.is_correct else 0
    return out


def format_summary(
    result: SessionResult,
    stats: SessionStats,
    points: Optional[PointsBreakdown] = None,
    themes: Optional[Dict[str, Dict[str, int]]] = None,
) -> str:
    """Return a human-readable summary of a finished session."""
    s = result.scoring
    lines = [
        f"Total: {s.correct}/{stats.total} correct ({stats.percentage:.0f}%)",
        f"Partial: {s.partial}  Incorrect: {s.incorrect}  Skipped: {s.skipped}",
        f"Time: {result.elapsed_time / 1000.0:.0f}s (avg {stats.average_time_ms / 1000.0:.1f}s per question)",
    ]
    if points is not None:
        lines.append(
            f"Points: {points.total_points} (base {points.base_points}, perf +{points.performance_bonus}, "
            f"speed +{points.speed_bonus}, streak +{points.streak_bonus})"
        )
    for tid in sorted(themes or {}):
        b = themes[tid]
        lines.append(f"Theme {tid}: {b['correct']}/{b['asked']}")
    return "\n".join(lines)
