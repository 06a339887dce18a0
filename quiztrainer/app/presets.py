from __future__ import annotations

"""Curated session presets.

Presets help users start a session quickly without many flags. Resolution
order is config ``session`` section, then preset, then CLI overrides.
"""

from typing import Any, Dict

QUESTION_COUNTS = [10, 20, 30, 40]

SESSION_PRESETS: Dict[str, Dict[str, Any]] = {
    "quick": {
        "question_count": 10,
        "timer_enabled": False,
        "question_type_filter": "all",
    },
    "default": {
        "question_count": 20,
        "timer_enabled": False,
        "question_type_filter": "all",
    },
    "exam": {
        "question_count": 40,
        "timer_enabled": True,
        "timer_duration": 30,
        "question_type_filter": "all",
    },
    "multi_select": {
        "question_count": 20,
        "timer_enabled": True,
        "timer_duration": 45,
        "question_type_filter": "multiple",
    },
}


def get_preset(name: str) -> Dict[str, Any]:
    try:
        return dict(SESSION_PRESETS[name])
    except KeyError:
        raise KeyError(f"Unknown preset: {name}") from None


def resolve_params(session_cfg: Dict[str, Any], preset: str, overrides: Dict[str, Any] | None = None) -> Dict[str, Any]:
    """Merge config session section -> preset -> overrides (None values ignored)."""
    params = {**session_cfg, **get_preset(preset)}
    for k, v in (overrides or {}).items():
        if v is not None:
            params[k] = v
    return params
