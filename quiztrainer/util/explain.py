from __future__ import annotations

"""Minimal tracing helpers (Explain Mode).

Enable with ``--explain``: session milestones (plan ready, question shown,
answer graded, session completed) are printed as one-line JSON. The last
events are also kept in memory so front-ends can show a short history.
"""

import json
import sys
from collections import deque
from typing import Any, Deque, Dict, List, Optional, TextIO, Tuple

_ENABLED = False
_STREAM: Optional[TextIO] = None
_RECENT: Deque[Tuple[str, Dict[str, Any]]] = deque(maxlen=200)


def enable(flag: bool = True, stream: Optional[TextIO] = None) -> None:
    global _ENABLED, _STREAM
    _ENABLED = bool(flag)
    _STREAM = stream


def enabled() -> bool:
    return _ENABLED


def recent() -> List[Tuple[str, Dict[str, Any]]]:
    return list(_RECENT)


def clear() -> None:
    _RECENT.clear()


def trace(event: str, payload: Dict[str, Any] | None = None) -> None:
    if not _ENABLED:
        return
    data = payload or {}
    _RECENT.append((event, data))
    out = _STREAM or sys.stdout
    try:
        line = json.dumps(data, separators=(",", ":"), default=str)
    except (TypeError, ValueError):
        line = repr(data)
    print(f"[EXPLAIN] {event} :: {line}", file=out)
