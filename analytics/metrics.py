from __future__ import annotations

"""Per-row metrics for session-theme stats."""

import numpy as np
import pandas as pd
from .config import AnalyticsConfig

# derived column -> counter it is normalised from (per question asked)
RATE_COLUMNS = {
    "acc": "C",
    "partial_rate": "P",
    "skip_rate": "S",
    "rt_mean_ms": "T_ms",
}


def compute_metrics(df: pd.DataFrame, cfg: AnalyticsConfig) -> pd.DataFrame:
    """Return a copy of ``df`` with outcome rates, a time factor and a composite mark.

    The mark credits a partial answer with ``cfg.partial_weight`` of a correct
    one and decays with mean answer time: ``exp(-alpha * rt_mean / T_ref)``.
    It is clipped to [0, 1].
    """
    out = df.copy()
    asked = out["Q"].astype("float32").clip(lower=1)
    for col, src in RATE_COLUMNS.items():
        out[col] = (out[src].astype("float32") / asked).astype("float32")

    slowness = out["rt_mean_ms"].to_numpy(dtype="float32") / np.float32(cfg.T_ref_ms)
    out["rt_factor"] = np.exp(-np.float32(cfg.alpha) * slowness).astype("float32")

    credit = out["acc"] + np.float32(cfg.partial_weight) * out["partial_rate"]
    out["mark"] = (credit * out["rt_factor"]).clip(0, 1).astype("float32")
    return out
