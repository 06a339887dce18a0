from __future__ import annotations

"""Session state machine.

A session walks ``configuring -> active -> completed``. While active, exactly
one planned question is presented at a time and ends either ``answered`` (a
submit or skip) or ``timed_out`` (countdown reached zero). Submissions, ticks
and expiries all go through the same lock, so whichever event is processed
first decides the outcome and the loser is rejected or ignored.

Events emitted on the bus:

- ``question_shown``      {session_id, question_id, index, total, time_limit}
- ``time_remaining``      {session_id, question_id, remaining}
- ``answer_accepted``     {session_id, answer}
- ``question_timed_out``  {session_id, answer}
- ``answer_rejected``     {session_id, question_id, error, message}
- ``session_completed``   {session_id, result}
"""

import random
import threading
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple
from uuid import uuid4

from ..util.events import EventBus
from ..util.explain import trace as xtrace
from .assembler import assemble
from .errors import DuplicateAnswerError, InvalidConfigError, TrainingError, UnknownQuestionError
from .models import Question, SessionAnswer, SessionConfig, SessionResult
from .planner import SelectionPlanner
from .pool import QuestionPool
from .recorder import AnswerRecorder
from .timer import QuestionTimer, make_timer


class SessionPhase(str, Enum):
    CONFIGURING = "configuring"
    ACTIVE = "active"
    COMPLETED = "completed"


class QuestionPhase(str, Enum):
    PRESENTING = "presenting"
    ANSWERED = "answered"
    TIMED_OUT = "timed_out"


class TrainingSession:
    def __init__(
        self,
        pool: QuestionPool,
        *,
        bus: Optional[EventBus] = None,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.monotonic,
        session_id: Optional[str] = None,
    ) -> None:
        self.pool = pool
        self.bus = bus or EventBus()
        self.planner = SelectionPlanner(pool, rng=rng, seed=seed)
        self.clock = clock
        self.session_id = session_id or str(uuid4())
        self.phase = SessionPhase.CONFIGURING
        self.question_phase: Optional[QuestionPhase] = None
        self.config: Optional[SessionConfig] = None
        self.question_ids: List[str] = []
        self.recorder = AnswerRecorder()

        self._lock = threading.RLock()
        self._index = -1
        self._timer: Optional[QuestionTimer] = None
        self._started_at: Optional[datetime] = None
        self._started_clock = 0.0
        self._presented_clock = 0.0
        self._paused_clock: Optional[float] = None
        self._paused_question_s = 0.0
        self._paused_session_s = 0.0
        self._last_remaining_s: Optional[int] = None
        self._result: Optional[SessionResult] = None

    # ------------------------------------------------------------------ state

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def total(self) -> int:
        return len(self.question_ids)

    @property
    def current_question_id(self) -> Optional[str]:
        if self.phase is not SessionPhase.ACTIVE:
            return None
        return self.question_ids[self._index]

    @property
    def current_question(self) -> Optional[Question]:
        qid = self.current_question_id
        return self.pool.get_question(qid) if qid is not None else None

    @property
    def remaining_ms(self) -> Optional[int]:
        if self._timer is None or self.phase is not SessionPhase.ACTIVE:
            return None
        return self._timer.remaining_ms

    @property
    def paused(self) -> bool:
        return self._paused_clock is not None

    @property
    def answers(self) -> Tuple[SessionAnswer, ...]:
        return self.recorder.log

    @property
    def result(self) -> Optional[SessionResult]:
        return self._result

    # ------------------------------------------------------------ transitions

    def start(self, config: SessionConfig) -> List[str]:
        """Validate config, plan the questions and present the first one."""
        with self._lock:
            if self.phase is not SessionPhase.CONFIGURING:
                raise InvalidConfigError(f"session {self.session_id} has already started")
            config.validate()
            ids = self.planner.plan(config.themes, config.question_count, config.question_type_filter)
            self.config = config
            self.question_ids = ids
            self.phase = SessionPhase.ACTIVE
            self._started_at = datetime.now(timezone.utc)
            self._started_clock = self.clock()
            xtrace("session_started", {"session_id": self.session_id, "questions": len(ids), "timer": config.timer_duration})
            self._present(0)
            return list(ids)

    def submit(self, question_id: str, selected_answers: Iterable[str], time_spent: Optional[int] = None) -> SessionAnswer:
        with self._lock:
            self._check_open(question_id)
            if self.paused:
                self.resume()
            question = self.pool.get_question(question_id)
            spent = self._question_elapsed_ms() if time_spent is None else int(time_spent)
            answer = self.recorder.record(question_id, selected_answers, spent, question.correct_answers, question.type)
            self._close_question(answer, QuestionPhase.ANSWERED)
            return answer

    def skip(self, question_id: str) -> SessionAnswer:
        with self._lock:
            self._check_open(question_id)
            if self.paused:
                self.resume()
            answer = self.recorder.record_skip(question_id, self._question_elapsed_ms())
            self._close_question(answer, QuestionPhase.ANSWERED)
            return answer

    def tick(self, elapsed_ms: int) -> Optional[int]:
        """Advance the countdown of the presented question; returns the remaining ms."""
        with self._lock:
            if self.phase is not SessionPhase.ACTIVE or self._timer is None or self.paused:
                return None
            if self._timer.tick(elapsed_ms):
                self._time_out()
                return 0
            seconds = self._timer.remaining_seconds
            if seconds != self._last_remaining_s:
                self._last_remaining_s = seconds
                self.bus.emit(
                    "time_remaining",
                    {"session_id": self.session_id, "question_id": self.current_question_id, "remaining": seconds},
                )
            return self._timer.remaining_ms

    def expire(self, question_id: str) -> Optional[SessionAnswer]:
        """Timer-expired event for question_id; stale expiries are ignored."""
        with self._lock:
            if question_id not in self.question_ids:
                raise UnknownQuestionError(question_id)
            if (
                self.phase is not SessionPhase.ACTIVE
                or self._timer is None
                or question_id != self.current_question_id
            ):
                return None
            self._timer.cancel()
            return self._time_out()

    def pause(self) -> None:
        with self._lock:
            if self.phase is not SessionPhase.ACTIVE or self.paused:
                return
            self._paused_clock = self.clock()
            if self._timer is not None:
                self._timer.freeze()
            xtrace("session_paused", {"session_id": self.session_id, "index": self._index})

    def resume(self) -> None:
        with self._lock:
            if self._paused_clock is None:
                return
            self._end_pause()
            if self._timer is not None:
                self._timer.thaw()
            xtrace("session_resumed", {"session_id": self.session_id, "index": self._index})

    # -------------------------------------------------------------- snapshots

    def snapshot(self) -> Dict[str, Any]:
        """JSON-able progress of an active session (used to pause across runs)."""
        with self._lock:
            if self.config is None:
                raise InvalidConfigError("session has not started")
            return {
                "sessionId": self.session_id,
                "phase": self.phase.value,
                "config": self.config.to_json(),
                "questionIds": list(self.question_ids),
                "currentIndex": self._index,
                "answers": [a.to_json() for a in self.recorder.log],
                "remainingMs": self.remaining_ms,
                "paused": self.paused,
                "elapsedMs": self._session_elapsed_ms(),
                "questionElapsedMs": self._question_elapsed_ms(),
            }

    @classmethod
    def from_snapshot(
        cls,
        data: Dict[str, Any],
        pool: QuestionPool,
        *,
        bus: Optional[EventBus] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> "TrainingSession":
        """Rebuild an active session from snapshot().

        The current question is presented again with the countdown, elapsed
        times and pause state it had when the snapshot was taken.
        """
        session = cls(pool, bus=bus, clock=clock, session_id=str(data["sessionId"]))
        config = SessionConfig.from_json(data["config"])
        config.validate()
        ids = [str(q) for q in data.get("questionIds", [])]
        answers = [SessionAnswer.from_json(a) for a in data.get("answers", [])]
        if [a.question_id for a in answers] != ids[: len(answers)] or len(answers) >= len(ids):
            raise InvalidConfigError("snapshot answers do not match its planned questions")
        with session._lock:
            session.config = config
            session.question_ids = ids
            session.recorder.replay(answers)
            session.phase = SessionPhase.ACTIVE
            session._started_at = datetime.now(timezone.utc)
            now = clock()
            session._started_clock = now - int(data.get("elapsedMs") or 0) / 1000.0
            session._present(len(answers))
            session._presented_clock = now - int(data.get("questionElapsedMs") or 0) / 1000.0
            remaining = data.get("remainingMs")
            if session._timer is not None and remaining is not None:
                # A live question always has at least 1 ms left
                session._timer.remaining_ms = min(session._timer.duration_ms, max(1, int(remaining)))
                session._last_remaining_s = session._timer.remaining_seconds
            if data.get("paused"):
                session.pause()
        return session

    # -------------------------------------------------------------- internals

    def _check_open(self, question_id: str) -> None:
        try:
            if self.recorder.has(question_id):
                raise DuplicateAnswerError(question_id)
            if question_id not in self.question_ids:
                raise UnknownQuestionError(question_id)
            if question_id != self.current_question_id:
                raise UnknownQuestionError(question_id, "not the question currently presented")
        except TrainingError as exc:
            xtrace("answer_rejected", {"question_id": question_id, "error": type(exc).__name__})
            self.bus.emit(
                "answer_rejected",
                {
                    "session_id": self.session_id,
                    "question_id": question_id,
                    "error": type(exc).__name__,
                    "message": str(exc),
                },
            )
            raise

    def _question_elapsed_ms(self) -> int:
        now = self.clock()
        paused = self._paused_question_s
        if self._paused_clock is not None:
            paused += now - self._paused_clock
        return max(0, int(round((now - self._presented_clock - paused) * 1000)))

    def _session_elapsed_ms(self) -> int:
        now = self.clock()
        paused = self._paused_session_s
        if self._paused_clock is not None:
            paused += now - self._paused_clock
        return max(0, int(round((now - self._started_clock - paused) * 1000)))

    def _end_pause(self) -> None:
        assert self._paused_clock is not None
        delta = self.clock() - self._paused_clock
        self._paused_question_s += delta
        self._paused_session_s += delta
        self._paused_clock = None

    def _present(self, index: int) -> None:
        assert self.config is not None
        self._index = index
        self.question_phase = QuestionPhase.PRESENTING
        self._presented_clock = self.clock()
        self._paused_question_s = 0.0
        self._timer = make_timer(self.config.timer_enabled, self.config.timer_duration)
        self._last_remaining_s = None
        if self._timer is not None:
            self._timer.start()
            self._last_remaining_s = self._timer.remaining_seconds
        qid = self.question_ids[index]
        xtrace("question_shown", {"index": index + 1, "total": len(self.question_ids), "question_id": qid})
        self.bus.emit(
            "question_shown",
            {
                "session_id": self.session_id,
                "question_id": qid,
                "index": index,
                "total": len(self.question_ids),
                "time_limit": self.config.timer_duration if self.config.timer_enabled else None,
            },
        )

    def _close_question(self, answer: SessionAnswer, phase: QuestionPhase) -> None:
        if self._timer is not None:
            self._timer.cancel()
        if self._paused_clock is not None:
            # A pause never carries over to the next question
            self._end_pause()
        self.question_phase = phase
        xtrace(
            "graded",
            {
                "question_id": answer.question_id,
                "correct": answer.is_correct,
                "partial": answer.is_partial,
                "skipped": answer.is_skipped,
            },
        )
        event = "question_timed_out" if phase is QuestionPhase.TIMED_OUT else "answer_accepted"
        self.bus.emit(event, {"session_id": self.session_id, "answer": answer})
        self._advance()

    def _time_out(self) -> SessionAnswer:
        assert self._timer is not None
        qid = self.question_ids[self._index]
        answer = self.recorder.record_skip(qid, self._timer.duration_ms)
        self._close_question(answer, QuestionPhase.TIMED_OUT)
        return answer

    def _advance(self) -> None:
        if self._index + 1 < len(self.question_ids):
            self._present(self._index + 1)
        else:
            self._complete()

    def _complete(self) -> None:
        assert self.config is not None
        self.phase = SessionPhase.COMPLETED
        self._timer = None
        self._result = assemble(
            self.config,
            self.recorder.log,
            self._session_elapsed_ms(),
            session_id=self.session_id,
            started_at=self._started_at,
        )
        xtrace("session_completed", {"session_id": self.session_id, "scoring": self._result.scoring.to_json()})
        self.bus.emit("session_completed", {"session_id": self.session_id, "result": self._result})
