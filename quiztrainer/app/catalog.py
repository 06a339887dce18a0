from __future__ import annotations

"""Question bank loader (YAML).

Builds the theme catalog and an in-memory question pool from a bank file.
Sub-theme ``question_count`` values are always derived from the questions
actually present, never read from the file.
"""

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Iterable, List, Tuple

import yaml

from ..config.config import default_bank_path
from ..engine.models import AnswerOption, Question, QuestionType, SubTheme, Theme
from ..engine.pool import InMemoryQuestionPool


@dataclass(frozen=True)
class Catalog:
    themes: Tuple[Theme, ...]
    pool: InMemoryQuestionPool

    def theme(self, theme_id: str) -> Theme:
        for t in self.themes:
            if t.id == theme_id:
                return t
        raise KeyError(f"Unknown theme: {theme_id}")


def _question_from_yaml(raw: Dict[str, Any]) -> Question:
    sub = raw.get("sub_themes")
    if sub is None:
        sub = [raw["sub_theme"]] if raw.get("sub_theme") else []
    return Question(
        id=str(raw["id"]),
        theme_id=str(raw.get("theme", "")),
        sub_theme_ids=tuple(str(s) for s in sub),
        type=QuestionType(str(raw.get("type", "single"))),
        text=str(raw.get("question", "")),
        answers=tuple(
            AnswerOption(id=str(a["id"]), text=str(a.get("text", "")), is_correct=bool(a.get("correct", False)))
            for a in raw.get("answers") or []
        ),
        explanation=str(raw.get("explanation", "")),
    )


def build_catalog(data: Dict[str, Any]) -> Catalog:
    pool = InMemoryQuestionPool(_question_from_yaml(q) for q in data.get("questions") or [])
    counts = pool.sub_theme_counts()
    themes: List[Theme] = []
    for t in data.get("themes") or []:
        themes.append(
            Theme(
                id=str(t["id"]),
                name=str(t.get("name", t["id"])),
                icon=str(t.get("icon", "")),
                color=str(t.get("color", "")),
                sub_themes=tuple(
                    SubTheme(id=str(st["id"]), name=str(st.get("name", st["id"])), question_count=counts.get(str(st["id"]), 0))
                    for st in t.get("sub_themes") or []
                ),
            )
        )
    return Catalog(themes=tuple(themes), pool=pool)


def load_bank(path: str | None = None) -> Catalog:
    p = Path(path or default_bank_path())
    with p.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return build_catalog(data)


def select_themes(
    themes: Iterable[Theme],
    theme_ids: Iterable[str] = (),
    sub_theme_ids: Iterable[str] = (),
) -> Tuple[Theme, ...]:
    """Return new theme trees with the given themes / sub-themes marked selected.

    Selecting a theme selects all of its sub-themes, as the config screen does.
    """
    wanted_themes = set(theme_ids)
    wanted_subs = set(sub_theme_ids)
    out: List[Theme] = []
    for t in themes:
        whole = t.id in wanted_themes
        subs = tuple(replace(st, selected=whole or st.id in wanted_subs) for st in t.sub_themes)
        out.append(replace(t, selected=whole, sub_themes=subs))
    return tuple(out)
