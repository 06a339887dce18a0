from __future__ import annotations

"""Shared builders for the unit tests."""

from dataclasses import replace
from typing import Iterable, List, Sequence, Tuple

from quiztrainer.engine.models import (
    AnswerOption,
    Question,
    QuestionType,
    SessionConfig,
    SubTheme,
    Theme,
)
from quiztrainer.engine.pool import InMemoryQuestionPool


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_question(
    qid: str,
    theme_id: str,
    sub_theme_ids: Sequence[str],
    qtype: QuestionType = QuestionType.SINGLE,
    correct: Iterable[str] = ("a",),
    options: Iterable[str] = ("a", "b", "c", "d"),
) -> Question:
    correct = set(correct)
    return Question(
        id=qid,
        theme_id=theme_id,
        sub_theme_ids=tuple(sub_theme_ids),
        type=qtype,
        text=f"Question {qid}?",
        answers=tuple(AnswerOption(id=o, text=o.upper(), is_correct=o in correct) for o in options),
    )


def make_pool() -> InMemoryQuestionPool:
    """Theme A: a1 (7 single), a2 (3 multiple). Theme B: b1 (2 single)."""
    questions: List[Question] = []
    questions += [make_question(f"a1-{i}", "A", ["a1"]) for i in range(7)]
    questions += [make_question(f"a2-{i}", "A", ["a2"], QuestionType.MULTIPLE, correct=("a", "b")) for i in range(3)]
    questions += [make_question(f"b1-{i}", "B", ["b1"]) for i in range(2)]
    return InMemoryQuestionPool(questions)


def make_themes(pool: InMemoryQuestionPool, *, select_a: bool = True, select_b: bool = False) -> Tuple[Theme, ...]:
    counts = pool.sub_theme_counts()
    a = Theme(
        id="A",
        name="Theme A",
        selected=select_a,
        sub_themes=(
            SubTheme(id="a1", name="A one", question_count=counts.get("a1", 0)),
            SubTheme(id="a2", name="A two", question_count=counts.get("a2", 0)),
        ),
    )
    b = Theme(
        id="B",
        name="Theme B",
        selected=select_b,
        sub_themes=(SubTheme(id="b1", name="B one", question_count=counts.get("b1", 0)),),
    )
    return (a, b)


def make_config(pool: InMemoryQuestionPool, question_count: int = 5, **kwargs) -> SessionConfig:
    themes = kwargs.pop("themes", None) or make_themes(pool)
    return SessionConfig(themes=themes, question_count=question_count, **kwargs)


def select_sub_theme(theme: Theme, sub_theme_id: str) -> Theme:
    subs = tuple(replace(st, selected=st.id == sub_theme_id) for st in theme.sub_themes)
    return replace(theme, selected=False, sub_themes=subs)
