from __future__ import annotations

"""Session Manager: orchestrates catalog selection, the session engine, and persistence.

It is CLI-agnostic: front-ends drive it through ``ask``/``inform`` callbacks.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

from .. import __version__
from ..engine.errors import DuplicateAnswerError, UnknownQuestionError
from ..engine.models import Question, QuestionTypeFilter, ScoringWeights, SessionConfig, SessionResult
from ..engine.scoring import PointsBreakdown, calculate_points, session_stats
from ..engine.session import SessionPhase, TrainingSession
from ..results.persist import persist_session
from ..results.result_manager import ResultManager
from ..stats.stats import format_summary, per_theme
from ..storage.schema import SessionMeta
from ..storage.store import (
    append_session_theme_stats as storage_append,
    init_store as storage_init_store,
    rows_from_result,
    upsert_session_meta,
    validate_records as storage_validate_records,
)
from ..util.events import EventBus
from ..util.explain import trace as xtrace
from ..util.randomness import make_rng
from .catalog import Catalog, select_themes
from .presets import resolve_params
from .ticker import Ticker

SKIP_TOKENS = {"s", "skip"}
PAUSE_TOKENS = {"p", "pause"}


@dataclass(frozen=True)
class SessionContext:
    started_at: datetime
    preset: str
    params: Dict[str, Any]
    theme_ids: List[str] = field(default_factory=list)
    sub_theme_ids: List[str] = field(default_factory=list)


def parse_selection(raw: str) -> List[str]:
    """Split "a, b c" into option ids; blanks are dropped."""
    return [tok for tok in raw.replace(",", " ").split() if tok]


def format_question(question: Question, index: int, total: int, time_limit: Optional[int]) -> str:
    kind = "choose all that apply" if question.type.value == "multiple" else "choose one"
    head = f"\nQ{index + 1}/{total} ({kind}"
    head += f", {time_limit}s)" if time_limit else ")"
    lines = [head, question.text]
    for opt in question.answers:
        lines.append(f"  {opt.id}) {opt.text}")
    return "\n".join(lines)


class SessionManager:
    def __init__(
        self,
        cfg: Dict[str, Any],
        catalog: Catalog,
        *,
        bus: Optional[EventBus] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.cfg = cfg
        self.catalog = catalog
        self.bus = bus or EventBus()
        self.clock = clock
        self.results = ResultManager()
        self.ctx: Optional[SessionContext] = None
        self.session: Optional[TrainingSession] = None

    def build_config(self, params: Dict[str, Any], theme_ids: Iterable[str], sub_theme_ids: Iterable[str]) -> SessionConfig:
        themes = select_themes(self.catalog.themes, theme_ids, sub_theme_ids)
        timer_enabled = bool(params.get("timer_enabled", False))
        return SessionConfig(
            themes=themes,
            question_count=int(params.get("question_count", 20)),
            timer_enabled=timer_enabled,
            timer_duration=int(params["timer_duration"]) if timer_enabled else None,
            question_type_filter=QuestionTypeFilter(str(params.get("question_type_filter", "all"))),
            weights=ScoringWeights.from_json(self.cfg.get("scoring", {})),
        )

    def start_session(
        self,
        preset: str,
        overrides: Optional[Dict[str, Any]] = None,
        *,
        theme_ids: Iterable[str] = (),
        sub_theme_ids: Iterable[str] = (),
    ) -> List[str]:
        """Resolve params (config -> preset -> overrides), then plan and present the first question."""
        params = resolve_params(dict(self.cfg.get("session", {})), preset, overrides)
        theme_ids = list(theme_ids)
        sub_theme_ids = list(sub_theme_ids)
        if not theme_ids and not sub_theme_ids:
            theme_ids = [t.id for t in self.catalog.themes]
        config = self.build_config(params, theme_ids, sub_theme_ids)
        self.ctx = SessionContext(
            started_at=datetime.now(timezone.utc),
            preset=preset,
            params=params,
            theme_ids=theme_ids,
            sub_theme_ids=sub_theme_ids,
        )
        self.session = TrainingSession(self.catalog.pool, bus=self.bus, rng=make_rng(params.get("seed")), clock=self.clock)
        ids = self.session.start(config)
        xtrace("session_planned", {"preset": preset, "themes": theme_ids, "sub_themes": sub_theme_ids, "questions": len(ids)})
        return ids

    def run(self, ui: Dict[str, Callable[..., Any]], *, use_ticker: bool = True) -> Dict[str, Any]:
        """Drive the started session to completion through ``ui['ask']`` / ``ui['inform']``."""
        assert self.ctx is not None and self.session is not None
        session = self.session
        ask = ui["ask"]
        inform = ui.get("inform", print)

        def on_shown(payload: Dict[str, Any]) -> None:
            q = self.catalog.pool.get_question(payload["question_id"])
            inform(format_question(q, payload["index"], payload["total"], payload.get("time_limit")))

        def on_timed_out(payload: Dict[str, Any]) -> None:
            inform(f"Time's up for {payload['answer'].question_id}.")

        self.bus.subscribe("question_shown", on_shown)
        self.bus.subscribe("question_timed_out", on_timed_out)
        ticker = Ticker(session) if use_ticker and session.config is not None and session.config.timer_enabled else None
        try:
            # The first question was shown before we subscribed
            qid = session.current_question_id
            if qid is not None:
                timer = session.config.timer_duration if session.config.timer_enabled else None
                inform(format_question(self.catalog.pool.get_question(qid), session.current_index, session.total, timer))
            if ticker:
                ticker.start()
            while session.phase is SessionPhase.ACTIVE:
                qid = session.current_question_id
                raw = str(ask("Answer (ids, 's' skip, 'p' pause): ")).strip()
                if session.phase is not SessionPhase.ACTIVE or qid != session.current_question_id:
                    # Timer resolved the question while we were waiting for input
                    continue
                token = raw.lower()
                try:
                    if token in PAUSE_TOKENS:
                        session.pause()
                        ask("Paused. Press Enter to resume.")
                        session.resume()
                    elif token in SKIP_TOKENS:
                        session.skip(qid)
                    else:
                        session.submit(qid, parse_selection(raw))
                except (DuplicateAnswerError, UnknownQuestionError) as exc:
                    inform(f"Rejected: {exc}")
        finally:
            if ticker:
                ticker.stop()
            self.bus.unsubscribe("question_shown", on_shown)
            self.bus.unsubscribe("question_timed_out", on_timed_out)

        result = session.result
        assert result is not None
        summary = self.finish(result)
        if bool(self.cfg.get("stats", {}).get("show_summary", True)):
            inform("\n" + summary["text"])
        return summary

    def finish(self, result: SessionResult) -> Dict[str, Any]:
        """Register, persist and summarize a completed result."""
        stats_cfg = self.cfg.get("stats", {})
        self.results.add(result)
        stats = session_stats(result.answers)
        weights = ScoringWeights.from_json(self.cfg.get("scoring", {}))
        points = calculate_points(result.answers, weights, int(stats_cfg.get("streak_days", 0) or 0))
        summary: Dict[str, Any] = {
            **self.results.summarize(result.session_id),
            "points": points.total_points,
            "elapsed_ms": result.elapsed_time,
            "themes": list(result.themes),
            "started_at": result.started_at.isoformat(),
            "completed_at": result.completed_at.isoformat(),
            "text": format_summary(result, stats, points, per_theme(result, self.catalog.pool)),
        }
        xtrace("session_ended", {k: v for k, v in summary.items() if k != "text"})
        if not bool(stats_cfg.get("disable", False)):
            self.persist(result, points)
        return summary

    def persist(self, result: SessionResult, points: Optional[PointsBreakdown] = None) -> None:
        stats_cfg = self.cfg.get("stats", {})
        try:
            out = stats_cfg.get("output_path")
            if out:
                persist_session(str(out), result, points=points, detail=str(stats_cfg.get("detail", "basic")))
            rows = rows_from_result(result, self.catalog.pool)
            if rows:
                data_dir = Path(str(stats_cfg.get("data_dir", "./storage/data")))
                storage_init_store(data_dir)
                storage_append(storage_validate_records(rows), data_dir)
                params = self.ctx.params if self.ctx else {}
                upsert_session_meta(
                    SessionMeta(
                        session_id=result.session_id,
                        session_start=result.started_at,
                        app_version=__version__,
                        question_count=len(result.answers),
                        timer_duration=params.get("timer_duration") if params.get("timer_enabled") else None,
                        notes=self.ctx.preset if self.ctx else None,
                    ),
                    data_dir,
                )
        except OSError as exc:
            print(f"WARNING: Could not persist session {result.session_id}: {exc}")
