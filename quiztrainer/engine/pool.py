from __future__ import annotations

"""Question pool collaborator interface and an in-memory implementation."""

from typing import Dict, Iterable, List, Protocol

from .errors import UnknownQuestionError
from .models import Question, QuestionTypeFilter


class QuestionPool(Protocol):
    def fetch_question_ids(self, sub_theme_id: str, count: int, question_type_filter: QuestionTypeFilter) -> List[str]: ...

    def get_question(self, question_id: str) -> Question: ...


class InMemoryQuestionPool:
    """Questions held in a dict, indexed by sub-theme in insertion order."""

    def __init__(self, questions: Iterable[Question] = ()) -> None:
        self._questions: Dict[str, Question] = {}
        self._by_sub_theme: Dict[str, List[str]] = {}
        for q in questions:
            self.add(q)

    def add(self, question: Question) -> None:
        if question.id in self._questions:
            raise ValueError(f"Duplicate question id: {question.id}")
        self._questions[question.id] = question
        for st in question.sub_theme_ids:
            self._by_sub_theme.setdefault(st, []).append(question.id)

    def __len__(self) -> int:
        return len(self._questions)

    def __contains__(self, question_id: object) -> bool:
        return question_id in self._questions

    def questions(self) -> List[Question]:
        return list(self._questions.values())

    def fetch_question_ids(
        self,
        sub_theme_id: str,
        count: int,
        question_type_filter: QuestionTypeFilter = QuestionTypeFilter.ALL,
    ) -> List[str]:
        flt = QuestionTypeFilter(question_type_filter)
        ids = [
            qid
            for qid in self._by_sub_theme.get(sub_theme_id, [])
            if flt.accepts(self._questions[qid].type)
        ]
        return ids[: max(0, int(count))]

    def get_question(self, question_id: str) -> Question:
        try:
            return self._questions[question_id]
        except KeyError:
            raise UnknownQuestionError(question_id, "not in the question pool") from None

    def sub_theme_counts(self, question_type_filter: QuestionTypeFilter = QuestionTypeFilter.ALL) -> Dict[str, int]:
        flt = QuestionTypeFilter(question_type_filter)
        return {
            st: sum(1 for qid in ids if flt.accepts(self._questions[qid].type))
            for st, ids in self._by_sub_theme.items()
        }
