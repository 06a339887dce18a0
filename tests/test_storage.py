import json
import tempfile
import unittest
from datetime import datetime, timezone
from pathlib import Path

import pandas as pd
from pydantic import ValidationError

from analytics import AnalyticsConfig, compute_metrics, ewma_by_session, load_and_prepare, theme_summary
from quiztrainer.engine.assembler import assemble
from quiztrainer.engine.models import SessionAnswer
from quiztrainer.storage import (
    SessionMeta,
    SessionThemeRow,
    append_session_theme_stats,
    export_ndjson,
    init_store,
    load_all,
    query_trend,
    rows_from_result,
    upsert_session_meta,
    validate_records,
)
from quiztrainer.storage.store import DATA_FILE, META_FILE
from tests.fixtures import make_config, make_pool, make_themes

T0 = datetime(2024, 4, 1, 18, 0, tzinfo=timezone.utc)


def _result(session_id: str, started_at: datetime = T0):
    pool = make_pool()
    log = [
        SessionAnswer("a1-0", frozenset({"a"}), 1000, True),
        SessionAnswer("a2-0", frozenset({"a"}), 2000, False, is_partial=True),
        SessionAnswer("b1-0", frozenset(), 3000, False, is_skipped=True),
        SessionAnswer("b1-1", frozenset({"b"}), 5000, False),
    ]
    theme_a, theme_b = make_themes(pool, select_b=True)
    return pool, assemble(make_config(pool, 4, themes=(theme_a, theme_b)), log, 11000, session_id=session_id, started_at=started_at)


class SchemaTests(unittest.TestCase):
    def test_outcomes_bounded_by_q(self) -> None:
        with self.assertRaises(ValidationError):
            SessionThemeRow(session_id="s", session_start=T0, theme_id="A", Q=2, C=2, P=1)
        with self.assertRaises(ValidationError):
            SessionThemeRow(session_id="s", session_start=T0, theme_id="A", Q=0)

    def test_naive_timestamp_becomes_utc(self) -> None:
        row = SessionThemeRow(session_id="s", session_start=datetime(2024, 1, 1, 12, 0), theme_id="A", Q=1)
        self.assertEqual(row.session_start.tzinfo, timezone.utc)


class StoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.data_dir = Path(self._tmp.name) / "data"

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_rows_grouped_by_theme(self) -> None:
        pool, result = _result("s1")
        rows = rows_from_result(result, pool)
        by_theme = {r.theme_id: r for r in rows}
        self.assertEqual(sorted(by_theme), ["A", "B"])
        a, b = by_theme["A"], by_theme["B"]
        self.assertEqual((a.Q, a.C, a.P, a.S, a.T_ms), (2, 1, 1, 0, 3000))
        self.assertEqual((b.Q, b.C, b.P, b.S, b.T_ms), (2, 0, 0, 1, 8000))

    def test_append_and_load(self) -> None:
        init_store(self.data_dir)
        self.assertTrue((self.data_dir / DATA_FILE).exists())
        self.assertTrue(load_all(self.data_dir).empty)

        pool, first = _result("s1")
        _, second = _result("s2", started_at=datetime(2024, 4, 2, 18, 0, tzinfo=timezone.utc))
        df1 = validate_records(rows_from_result(first, pool))
        self.assertEqual(str(df1["Q"].dtype), "UInt16")
        append_session_theme_stats(df1, self.data_dir)
        append_session_theme_stats(df1, self.data_dir)
        append_session_theme_stats(validate_records(rows_from_result(second, pool)), self.data_dir)

        df = load_all(self.data_dir)
        self.assertEqual(len(df), 4)
        trend = query_trend(df, theme_id="A")
        self.assertEqual(list(trend["session_id"]), ["s1", "s2"])
        self.assertAlmostEqual(float(trend["acc"].iloc[0]), 0.5)
        self.assertAlmostEqual(float(trend["rt_mean_ms"].iloc[0]), 1500.0)

        out = Path(self._tmp.name) / "out" / "rows.ndjson"
        export_ndjson(trend, out)
        lines = out.read_text(encoding="utf-8").strip().splitlines()
        self.assertEqual(len(lines), 2)
        self.assertEqual(json.loads(lines[0])["theme_id"], "A")

    def test_upsert_meta(self) -> None:
        init_store(self.data_dir)
        upsert_session_meta(SessionMeta(session_id="s1", session_start=T0, question_count=4, notes="quick"), self.data_dir)
        upsert_session_meta(SessionMeta(session_id="s1", session_start=T0, question_count=4, notes="exam"), self.data_dir)
        upsert_session_meta(SessionMeta(session_id="s2", session_start=T0), self.data_dir)
        meta = pd.read_parquet(self.data_dir / META_FILE)
        self.assertEqual(sorted(meta["session_id"]), ["s1", "s2"])
        self.assertEqual(meta.loc[meta["session_id"] == "s1", "notes"].iloc[0], "exam")


class AnalyticsTests(unittest.TestCase):
    def test_compute_metrics(self) -> None:
        df = pd.DataFrame({"Q": [4, 2], "C": [2, 2], "P": [2, 0], "S": [0, 0], "T_ms": [0, 30000]})
        out = compute_metrics(df, AnalyticsConfig(alpha=1.0, T_ref_ms=15000, partial_weight=0.5))
        self.assertAlmostEqual(float(out["acc"].iloc[0]), 0.5)
        self.assertAlmostEqual(float(out["partial_rate"].iloc[0]), 0.5)
        self.assertAlmostEqual(float(out["rt_factor"].iloc[0]), 1.0)
        self.assertAlmostEqual(float(out["mark"].iloc[0]), 0.75)
        # 15 s mean time at T_ref 15 s: factor exp(-1)
        self.assertAlmostEqual(float(out["mark"].iloc[1]), 0.3679, places=3)
        self.assertTrue(((out["mark"] >= 0) & (out["mark"] <= 1)).all())

    def test_config_from_app_cfg(self) -> None:
        cfg = AnalyticsConfig.from_cfg({"analytics": {"alpha": 0.5, "unknown": 1}})
        self.assertEqual(cfg.alpha, 0.5)
        self.assertEqual(cfg.T_ref_ms, 15000)
        with self.assertRaises(ValidationError):
            AnalyticsConfig(smoothing_span=1)

    def test_prepare_and_smooth(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            data_dir = Path(tmp)
            init_store(data_dir)
            for i in range(3):
                pool, result = _result(f"s{i}", started_at=datetime(2024, 4, 1 + i, tzinfo=timezone.utc))
                append_session_theme_stats(validate_records(rows_from_result(result, pool)), data_dir)
            df = load_and_prepare(data_dir / DATA_FILE, AnalyticsConfig())
            only_b = load_and_prepare(data_dir / DATA_FILE, AnalyticsConfig(), theme_ids=["B"])
        self.assertEqual(sorted(df["session_idx"].unique().tolist()), [0, 1, 2])
        self.assertIn("mark", df.columns)
        smooth = ewma_by_session(df, "acc", span=3, group_cols=["theme_id"])
        self.assertEqual(len(smooth), 6)
        self.assertIn("acc_smooth", smooth.columns)
        flat = ewma_by_session(df, "acc", span=3)
        self.assertEqual(list(flat["session_idx"]), sorted(flat["session_idx"]))

        summary = theme_summary(df).set_index("theme_id")
        self.assertEqual(int(summary.loc["A", "Q"]), 6)
        self.assertEqual(int(summary.loc["A", "C"]), 3)
        self.assertEqual(int(summary.loc["B", "sessions"]), 3)
        self.assertAlmostEqual(float(summary.loc["A", "acc"]), 0.5)
        self.assertEqual(set(only_b["theme_id"].astype(str)), {"B"})


if __name__ == "__main__":
    unittest.main()
