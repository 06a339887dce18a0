from __future__ import annotations

"""JSON persistence: session history plus admin export/import envelopes.

History schema (v1):
{
  "schema": 1,
  "sessions": [ {"id", "ts", "themes", "S": {correct, incorrect, skipped, partial}, "T", "P"?, "A"?} ],
  "totals": {"sessions", "correct", "incorrect", "skipped", "partial"}
}

Notes:
- New entries are prepended to ``sessions`` (newest first).
- ``totals`` are cumulative so progress screens never re-scan the list.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError

from ..engine.models import Question, SessionResult, Theme
from ..engine.scoring import PointsBreakdown
from .schema import EXPORT_VERSION, ExportData, ImportCounts, ImportResult, SessionRecord, ThemeRecord

HISTORY_SCHEMA = 1
_COUNT_KEYS = ("correct", "incorrect", "skipped", "partial")


def _empty_history() -> Dict[str, Any]:
    return {"schema": HISTORY_SCHEMA, "sessions": [], "totals": {"sessions": 0, **{k: 0 for k in _COUNT_KEYS}}}


def load_history(path: str) -> Dict[str, Any]:
    p = Path(path)
    if not p.exists():
        return _empty_history()
    with p.open("r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict) or int(data.get("schema", 0)) != HISTORY_SCHEMA:
        return _empty_history()
    data.setdefault("sessions", [])
    data.setdefault("totals", _empty_history()["totals"])
    return data


def persist_session(
    path: str,
    result: SessionResult,
    *,
    points: Optional[PointsBreakdown] = None,
    detail: str = "basic",
) -> Dict[str, Any]:
    """Prepend one compact entry for ``result`` and update the running totals.

    - detail: "basic" (counts and elapsed time) or "rich" (also per-answer outcomes)
    """
    data = load_history(path)
    scoring = result.scoring.to_json()
    entry: Dict[str, Any] = {
        "id": result.session_id,
        "ts": result.completed_at.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M"),
        "themes": list(result.themes),
        "S": scoring,
        "T": result.elapsed_time,
    }
    if points is not None:
        entry["P"] = points.total_points
    if detail == "rich":
        entry["A"] = [
            [a.question_id, "s" if a.is_skipped else ("c" if a.is_correct else ("p" if a.is_partial else "i")), a.time_spent]
            for a in result.answers
        ]

    totals = data["totals"]
    totals["sessions"] = int(totals.get("sessions", 0)) + 1
    for k in _COUNT_KEYS:
        totals[k] = int(totals.get(k, 0)) + int(scoring[k])

    data["sessions"].insert(0, entry)
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8") as f:
        json.dump(data, f, separators=(",", ":"))
    return entry


def build_export(
    themes: Iterable[Theme],
    questions: Iterable[Question] = (),
    users: Iterable[Dict[str, Any]] = (),
    results: Iterable[SessionResult] = (),
    *,
    version: str = EXPORT_VERSION,
) -> ExportData:
    return ExportData(
        themes=[ThemeRecord.model_validate(t.to_json()) for t in themes],
        questions=[q.to_json() for q in questions],
        users=[dict(u) for u in users],
        sessions=[SessionRecord.from_result(r) for r in results],
        timestamp=datetime.now(timezone.utc),
        version=version,
    )


def export_to_json(data: ExportData) -> Dict[str, Any]:
    return data.model_dump(mode="json", by_alias=True)


def write_export(path: str, data: ExportData) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8") as f:
        json.dump(export_to_json(data), f, indent=2)


def _error_text(prefix: str, exc: ValidationError) -> List[str]:
    out = []
    for err in exc.errors():
        loc = ".".join(str(x) for x in err.get("loc", ()))
        out.append(f"{prefix}{'.' + loc if loc else ''}: {err.get('msg')}")
    return out


def import_themes(payload: Iterable[Dict[str, Any]]) -> Tuple[List[Theme], ImportResult]:
    """Validate re-imported theme trees; invalid entries are reported, not raised."""
    themes, _, result = import_payload({"themes": list(payload)})
    return themes, result


def import_payload(payload: Dict[str, Any]) -> Tuple[List[Theme], List[SessionResult], ImportResult]:
    """Accept an export envelope (or a subset of it) and validate each entry."""
    errors: List[str] = []
    themes: List[Theme] = []
    seen_themes: set[str] = set()
    for i, raw in enumerate(payload.get("themes") or []):
        try:
            rec = ThemeRecord.model_validate(raw)
        except ValidationError as exc:
            errors.extend(_error_text(f"themes[{i}]", exc))
            continue
        if rec.id in seen_themes:
            errors.append(f"themes[{i}]: duplicate theme id {rec.id!r}")
            continue
        seen_themes.add(rec.id)
        themes.append(rec.to_theme())

    questions = 0
    for i, raw in enumerate(payload.get("questions") or []):
        try:
            Question.from_json(raw)
        except (KeyError, TypeError, ValueError) as exc:
            errors.append(f"questions[{i}]: {exc!r}")
            continue
        questions += 1

    sessions: List[SessionResult] = []
    for i, raw in enumerate(payload.get("sessions") or []):
        try:
            sessions.append(SessionRecord.model_validate(raw).to_result())
        except ValidationError as exc:
            errors.extend(_error_text(f"sessions[{i}]", exc))

    result = ImportResult(
        success=not errors,
        imported=ImportCounts(themes=len(themes), questions=questions, users=len(payload.get("users") or []), sessions=len(sessions)),
        errors=errors,
    )
    return themes, sessions, result


def read_export(path: str) -> Tuple[List[Theme], List[SessionResult], ImportResult]:
    with Path(path).open("r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        return [], [], ImportResult(success=False, errors=["export file must contain a JSON object"])
    return import_payload(data)
