from __future__ import annotations

"""Answer recorder: evaluates and stores exactly one outcome per question."""

from typing import AbstractSet, Dict, Iterable, List, Tuple

from .errors import DuplicateAnswerError
from .models import QuestionType, SessionAnswer


def evaluate(selected: AbstractSet[str], correct: AbstractSet[str], question_type: QuestionType) -> Tuple[bool, bool]:
    """Return (is_correct, is_partial) for a non-empty selection."""
    if QuestionType(question_type) is QuestionType.SINGLE:
        return (len(correct) == 1 and set(selected) == set(correct)), False

    hit = len(selected & correct)
    miss = len(selected - correct)
    if hit == len(correct) and miss == 0:
        return True, False
    if hit == 0:
        return False, False
    return False, True


class AnswerRecorder:
    """Append-only answer log for one session."""

    def __init__(self) -> None:
        self._log: List[SessionAnswer] = []
        self._by_id: Dict[str, SessionAnswer] = {}

    @property
    def log(self) -> Tuple[SessionAnswer, ...]:
        return tuple(self._log)

    def __len__(self) -> int:
        return len(self._log)

    def has(self, question_id: str) -> bool:
        return question_id in self._by_id

    def get(self, question_id: str) -> SessionAnswer:
        return self._by_id[question_id]

    def record(
        self,
        question_id: str,
        selected_answers: Iterable[str],
        time_spent: int,
        correct_answers: Iterable[str],
        question_type: QuestionType,
    ) -> SessionAnswer:
        self._ensure_new(question_id)
        selected = frozenset(str(a) for a in selected_answers)
        if not selected:
            return self.record_skip(question_id, time_spent)
        is_correct, is_partial = evaluate(selected, frozenset(correct_answers), question_type)
        answer = SessionAnswer(
            question_id=question_id,
            selected_answers=selected,
            time_spent=max(0, int(time_spent)),
            is_correct=is_correct,
            is_partial=is_partial if QuestionType(question_type) is QuestionType.MULTIPLE else None,
            is_skipped=False,
        )
        return self._append(answer)

    def record_skip(self, question_id: str, time_spent: int) -> SessionAnswer:
        """Store a skipped outcome (user skip, empty selection or timeout)."""
        self._ensure_new(question_id)
        answer = SessionAnswer(
            question_id=question_id,
            selected_answers=frozenset(),
            time_spent=max(0, int(time_spent)),
            is_correct=False,
            is_partial=None,
            is_skipped=True,
        )
        return self._append(answer)

    def replay(self, answers: Iterable[SessionAnswer]) -> None:
        """Re-append answers restored from a saved session."""
        for answer in answers:
            self._ensure_new(answer.question_id)
            self._append(answer)

    def _ensure_new(self, question_id: str) -> None:
        if question_id in self._by_id:
            raise DuplicateAnswerError(question_id)

    def _append(self, answer: SessionAnswer) -> SessionAnswer:
        self._log.append(answer)
        self._by_id[answer.question_id] = answer
        return answer
