from __future__ import annotations

"""Parquet-backed store for per-theme session stats (pandas + pyarrow).

Two tables live in the data directory:

- ``session_theme_stats.parquet``: one row per (session x theme)
- ``sessions.parquet``: one metadata row per session
"""

from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Mapping

import pandas as pd

from ..engine.errors import UnknownQuestionError
from ..engine.models import SessionResult
from ..engine.pool import QuestionPool
from .schema import COUNT_KEYS, DTYPES, META_DTYPES, SessionMeta, SessionThemeRow


DATA_FILE = "session_theme_stats.parquet"
META_FILE = "sessions.parquet"
UNKNOWN_THEME = "_unknown"
_PARQUET = {"engine": "pyarrow", "compression": "zstd", "index": False}


def _blank(dtypes: Mapping[str, object]) -> pd.DataFrame:
    return pd.DataFrame({col: pd.Series(dtype=dt) for col, dt in dtypes.items()})


def _coerce(df: pd.DataFrame, dtypes: Mapping[str, object]) -> pd.DataFrame:
    """Cast to the table dtypes; missing outcome counters are filled with 0."""
    df = df.copy()
    for col, dt in dtypes.items():
        if col not in df.columns:
            df[col] = 0 if col in COUNT_KEYS else pd.NA
        df[col] = df[col].astype(dt)
    return df[list(dtypes)]


def _read(path: Path, dtypes: Mapping[str, object]) -> pd.DataFrame:
    if not path.exists():
        return _blank(dtypes)
    return _coerce(pd.read_parquet(path, engine="pyarrow"), dtypes)


def init_store(data_dir: Path) -> None:
    """Create the data directory and empty, correctly typed tables if missing."""
    root = Path(data_dir)
    root.mkdir(parents=True, exist_ok=True)
    for name, dtypes in ((DATA_FILE, DTYPES), (META_FILE, META_DTYPES)):
        target = root / name
        if not target.exists():
            _blank(dtypes).to_parquet(target, **_PARQUET)


def rows_from_result(result: SessionResult, pool: QuestionPool) -> List[SessionThemeRow]:
    """Group a result's answers by the theme of each question."""
    buckets: Dict[str, Dict[str, int]] = defaultdict(lambda: {"Q": 0, "C": 0, "P": 0, "S": 0, "T_ms": 0})
    for a in result.answers:
        try:
            theme_id = pool.get_question(a.question_id).theme_id or UNKNOWN_THEME
        except UnknownQuestionError:
            theme_id = UNKNOWN_THEME
        b = buckets[theme_id]
        b["Q"] += 1
        b["T_ms"] += a.time_spent
        if a.is_skipped:
            b["S"] += 1
        elif a.is_correct:
            b["C"] += 1
        elif a.is_partial:
            b["P"] += 1
    return [
        SessionThemeRow(session_id=result.session_id, session_start=result.started_at, theme_id=tid, **counts)
        for tid, counts in sorted(buckets.items())
    ]


def validate_records(records: list[SessionThemeRow]) -> pd.DataFrame:
    """Validate rows through SessionThemeRow and return them as a typed DataFrame.

    Plain dicts are accepted too; anything violating the row invariants raises
    ``pydantic.ValidationError``.
    """
    if not isinstance(records, list):
        raise TypeError("records must be a list of SessionThemeRow")
    rows = [SessionThemeRow.model_validate(r.model_dump() if isinstance(r, SessionThemeRow) else r) for r in records]
    return _coerce(pd.DataFrame([r.model_dump() for r in rows]), DTYPES)


def append_session_theme_stats(df_new: pd.DataFrame, data_path: Path) -> None:
    """Append typed rows to the stats table; rows already stored verbatim are not duplicated."""
    target = Path(data_path) / DATA_FILE
    frames = [f for f in (_read(target, DTYPES), _coerce(df_new, DTYPES)) if not f.empty]
    merged = pd.concat(frames, ignore_index=True) if frames else _blank(DTYPES)
    merged = _coerce(merged, DTYPES).drop_duplicates(ignore_index=True)
    merged.to_parquet(target, **_PARQUET)


def upsert_session_meta(meta: SessionMeta, data_path: Path) -> None:
    """Replace (or add) the metadata row of ``meta.session_id``."""
    target = Path(data_path) / META_FILE
    row = SessionMeta.model_validate(meta.model_dump() if isinstance(meta, SessionMeta) else meta).model_dump()
    current = _read(target, META_DTYPES)
    current = current[current["session_id"] != row["session_id"]]
    fresh = _coerce(pd.DataFrame([row]), META_DTYPES)
    merged = fresh if current.empty else pd.concat([current, fresh], ignore_index=True)
    merged.to_parquet(target, **_PARQUET)


def load_all(data_path: Path) -> pd.DataFrame:
    """Load every stats row with two convenience columns.

    - acc: share of questions answered fully correctly (C / Q)
    - rt_mean_ms: mean time per question (T_ms / Q)
    """
    df = _read(Path(data_path) / DATA_FILE, DTYPES)
    asked = df["Q"].astype("float32").clip(lower=1)
    df["acc"] = (df["C"].astype("float32") / asked).astype("float32")
    df["rt_mean_ms"] = (df["T_ms"].astype("float32") / asked).astype("float32")
    return df


def query_trend(df: pd.DataFrame, *, theme_id: str) -> pd.DataFrame:
    """Rows of one theme in chronological order."""
    picked = df.loc[df["theme_id"].astype("string") == theme_id]
    return picked.sort_values("session_start", kind="stable").reset_index(drop=True)


def export_ndjson(df: pd.DataFrame, out_path: Path) -> None:
    """Write one JSON object per row, ISO timestamps."""
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    df.to_json(out, orient="records", lines=True, date_format="iso")
