from .schema import COUNT_KEYS, DTYPES, META_DTYPES, SessionThemeRow, SessionMeta
from .store import (
    init_store,
    rows_from_result,
    validate_records,
    append_session_theme_stats,
    upsert_session_meta,
    load_all,
    query_trend,
    export_ndjson,
)

__all__ = [
    "COUNT_KEYS",
    "DTYPES",
    "META_DTYPES",
    "SessionThemeRow",
    "SessionMeta",
    "init_store",
    "rows_from_result",
    "validate_records",
    "append_session_theme_stats",
    "upsert_session_meta",
    "load_all",
    "query_trend",
    "export_ndjson",
]
