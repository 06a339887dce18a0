from __future__ import annotations

"""Results Manager.

In-memory index of completed session results. Results are immutable values;
nothing here can reach back into a session that is still running.
"""

from typing import Dict, List

from ..engine.models import SessionResult
from ..engine.scoring import session_stats


class ResultManager:
    def __init__(self) -> None:
        self._results: Dict[str, SessionResult] = {}

    def add(self, result: SessionResult) -> None:
        if result.session_id in self._results:
            raise ValueError(f"Result already stored for session {result.session_id}")
        self._results[result.session_id] = result

    def get(self, session_id: str) -> SessionResult:
        return self._results[session_id]

    def all(self) -> List[SessionResult]:
        return sorted(self._results.values(), key=lambda r: r.completed_at)

    def for_theme(self, theme_id: str) -> List[SessionResult]:
        return [r for r in self.all() if theme_id in r.themes]

    def summarize(self, session_id: str) -> Dict[str, object]:
        result = self._results[session_id]
        stats = session_stats(result.answers)
        return {
            "session_id": session_id,
            "total": stats.total,
            "correct": stats.correct,
            "partial": stats.partial,
            "incorrect": stats.incorrect,
            "skipped": stats.skipped,
            "percentage": round(stats.percentage, 1),
        }
