from __future__ import annotations

"""EWMA smoothing over session order."""

import pandas as pd


def ewma_by_session(
    df: pd.DataFrame,
    value_col: str,
    span: int,
    group_cols: list[str] | None = None,
) -> pd.DataFrame:
    """Exponentially weighted mean of ``value_col`` along ``session_idx``.

    With ``group_cols`` each group (e.g. a theme) is smoothed on its own.
    The result is sorted by session_idx and carries ``<value_col>_smooth``.
    """
    ordered = df.sort_values("session_idx", kind="stable").copy()
    values = ordered[value_col].astype("float64")
    if group_cols:
        # transform keeps the row index, so no realignment is needed
        smooth = values.groupby([ordered[c] for c in group_cols], observed=True).transform(
            lambda s: s.ewm(span=span).mean()
        )
    else:
        smooth = values.ewm(span=span).mean()
    ordered[f"{value_col}_smooth"] = smooth.astype("float32")
    return ordered
