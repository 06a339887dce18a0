from __future__ import annotations

"""Analytics configuration (hyperparameters) using Pydantic."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class AnalyticsConfig(BaseModel):
    """Hyperparameters for analytics computations and smoothing.

    - alpha: RT penalty scale (>0)
    - T_ref_ms: reference time per question in ms (>0)
    - partial_weight: credit given to a partially correct answer (0..1)
    - smoothing_span: EWMA span in sessions (>1)
    """

    alpha: float = Field(0.9, gt=0)
    T_ref_ms: int = Field(15000, gt=0)
    partial_weight: float = Field(0.5, ge=0, le=1)
    smoothing_span: int = Field(10, gt=1)

    @classmethod
    def from_cfg(cls, cfg: Optional[Dict[str, Any]] = None) -> "AnalyticsConfig":
        """Build from the ``analytics`` section of the app config (unknown keys ignored)."""
        section = dict((cfg or {}).get("analytics", {}) or {})
        return cls(**{k: v for k, v in section.items() if k in cls.model_fields})
