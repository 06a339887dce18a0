from __future__ import annotations

"""Configuration loading and validation for QuizTrainer.

This module loads YAML configuration, applies defaults, and validates
that enumerations, scoring weights and the question bank path are sane.
"""

from pathlib import Path
from typing import Any, Dict, Optional

import sys

import yaml


ALLOWED_TYPE_FILTERS = {"all", "single", "multiple"}
ALLOWED_STATS_DETAIL = {"basic", "rich"}
DEFAULT_WEIGHTS = {"correct": 1.0, "incorrect": -0.25, "skipped": 0.0, "partial": 0.5}


def _load_yaml(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except FileNotFoundError:
        print(f"ERROR: Config file not found: {path}", file=sys.stderr)
        sys.exit(1)


def default_bank_path() -> str:
    return str(Path(__file__).resolve().parents[1] / "resources" / "sample_bank.yml")


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from YAML or defaults.

    Args:
        path: Optional path to a YAML config. If None, use package defaults.

    Returns:
        A dictionary with configuration values.
    """
    if path:
        cfg = _load_yaml(Path(path))
    else:
        default_path = Path(__file__).with_name("defaults.yml")
        cfg = _load_yaml(default_path)
    return cfg


def validate_config(cfg: Dict[str, Any], *, require_bank: bool = True) -> Dict[str, Any]:
    """Apply defaults and validate configuration values.

    Unsupported enum values and malformed numbers fall back to defaults with
    a warning; a missing question bank is fatal when ``require_bank`` is set.

    Args:
        cfg: The raw configuration dictionary.
        require_bank: Exit when the configured bank file does not exist.

    Returns:
        The validated and merged configuration dictionary.
    """
    cfg.setdefault("session", {})
    cfg.setdefault("scoring", {})
    cfg.setdefault("bank", {})
    cfg.setdefault("stats", {})
    cfg.setdefault("analytics", {})

    session = cfg["session"]
    scoring = cfg["scoring"]
    bank = cfg["bank"]
    stats = cfg["stats"]

    session.setdefault("preset", "default")
    session.setdefault("question_count", 20)
    session.setdefault("timer_enabled", False)
    session.setdefault("timer_duration", 30)
    session.setdefault("question_type_filter", "all")
    session.setdefault("seed", None)

    for k, v in DEFAULT_WEIGHTS.items():
        scoring.setdefault(k, v)

    if not bank.get("path"):
        bank["path"] = default_bank_path()

    stats.setdefault("output_path", "./session_history.json")
    stats.setdefault("data_dir", "./storage/data")
    stats.setdefault("disable", False)
    stats.setdefault("detail", "basic")
    stats.setdefault("show_summary", True)
    stats.setdefault("streak_days", 0)

    # Enum validations
    type_filter = session.get("question_type_filter")
    if type_filter not in ALLOWED_TYPE_FILTERS:
        print(f"WARNING: Unsupported question_type_filter '{type_filter}', using 'all'.")
        session["question_type_filter"] = "all"

    detail = stats.get("detail")
    if detail not in ALLOWED_STATS_DETAIL:
        print(f"WARNING: Unsupported stats detail '{detail}', using 'basic'.")
        stats["detail"] = "basic"

    try:
        count = int(session.get("question_count"))
    except (TypeError, ValueError):
        count = 0
    if count <= 0:
        print(f"WARNING: Invalid question_count '{session.get('question_count')}', using 20.")
        count = 20
    session["question_count"] = count

    try:
        duration = int(session.get("timer_duration"))
    except (TypeError, ValueError):
        duration = 0
    if duration <= 0:
        if session.get("timer_enabled"):
            print(f"WARNING: Invalid timer_duration '{session.get('timer_duration')}', using 30.")
        duration = 30
    session["timer_duration"] = duration
    session["timer_enabled"] = bool(session.get("timer_enabled"))

    for k, v in DEFAULT_WEIGHTS.items():
        try:
            scoring[k] = float(scoring[k])
        except (TypeError, ValueError):
            print(f"WARNING: Invalid scoring weight {k}='{scoring[k]}', using {v}.")
            scoring[k] = v

    if require_bank:
        bank_path = Path(str(bank.get("path", "")))
        if not bank_path.exists():
            print(f"ERROR: Question bank not found at '{bank_path}'.", file=sys.stderr)
            sys.exit(1)

    return cfg
