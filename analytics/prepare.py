from __future__ import annotations

"""Load stored session-theme rows and attach derived metrics."""

from pathlib import Path
from typing import Iterable, Optional

import pandas as pd
from .config import AnalyticsConfig
from .metrics import compute_metrics


def load_and_prepare(
    parquet_path: Path,
    cfg: AnalyticsConfig,
    *,
    theme_ids: Optional[Iterable[str]] = None,
) -> pd.DataFrame:
    """Read the stats table, optionally keep some themes, and score each row.

    Rows come back in chronological session order with a dense ``session_idx``
    (0 for the oldest session) shared by every theme row of that session.
    """
    df = pd.read_parquet(parquet_path, engine="pyarrow")
    if theme_ids is not None:
        df = df[df["theme_id"].isin(list(theme_ids))]
    df = df.assign(theme_id=df["theme_id"].astype("category"))
    order = ["session_start", "session_id"] if "session_start" in df.columns else ["session_id"]
    df = df.sort_values(order + ["theme_id"], kind="stable").reset_index(drop=True)

    df = compute_metrics(df, cfg)
    df["session_idx"] = pd.factorize(df["session_id"])[0].astype("int32")
    return df


def theme_summary(df: pd.DataFrame) -> pd.DataFrame:
    """Pooled counts per theme plus the most recent session mark."""
    g = df.groupby("theme_id", observed=True, sort=True)
    out = g[["Q", "C", "P", "S"]].sum().astype("int64")
    out["sessions"] = g["session_id"].nunique()
    out["acc"] = (out["C"] / out["Q"].clip(lower=1)).astype("float32")
    out["last_mark"] = g["mark"].last().astype("float32")
    return out.reset_index()
