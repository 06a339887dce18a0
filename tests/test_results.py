import json
import tempfile
import unittest
from datetime import datetime, timezone
from pathlib import Path

from quiztrainer.app.catalog import load_bank
from quiztrainer.engine.assembler import assemble
from quiztrainer.engine.models import SessionAnswer
from quiztrainer.engine.scoring import calculate_points
from quiztrainer.results.persist import (
    build_export,
    export_to_json,
    import_payload,
    import_themes,
    load_history,
    persist_session,
    read_export,
    write_export,
)
from tests.fixtures import make_config, make_pool


def _result(session_id: str = "s1"):
    pool = make_pool()
    log = [
        SessionAnswer("a1-0", frozenset({"a"}), 1000, True),
        SessionAnswer("a2-0", frozenset({"a"}), 2000, False, is_partial=True),
        SessionAnswer("a1-1", frozenset(), 3000, False, is_skipped=True),
        SessionAnswer("a1-2", frozenset({"c"}), 4000, False),
    ]
    return assemble(
        make_config(pool, 4),
        log,
        12000,
        session_id=session_id,
        started_at=datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc),
        completed_at=datetime(2024, 3, 1, 9, 5, tzinfo=timezone.utc),
    )


class HistoryTests(unittest.TestCase):
    def test_persist_prepends_and_totals(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = str(Path(tmp) / "hist" / "history.json")
            self.assertEqual(load_history(path)["sessions"], [])
            first = _result("s1")
            persist_session(path, first, points=calculate_points(first.answers))
            entry = persist_session(path, _result("s2"), detail="rich")
            data = load_history(path)
            self.assertEqual([s["id"] for s in data["sessions"]], ["s2", "s1"])
            self.assertEqual(data["totals"], {"sessions": 2, "correct": 2, "incorrect": 2, "skipped": 2, "partial": 2})
            self.assertIn("P", data["sessions"][1])
            self.assertEqual([a[1] for a in entry["A"]], ["c", "p", "s", "i"])
            self.assertEqual(entry["ts"], "2024-03-01 09:05")

    def test_foreign_schema_ignored(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "history.json"
            path.write_text(json.dumps({"schema": 99, "sessions": [1, 2]}), encoding="utf-8")
            self.assertEqual(load_history(str(path))["sessions"], [])


class ExportImportTests(unittest.TestCase):
    def test_export_shape(self) -> None:
        catalog = load_bank()
        data = export_to_json(build_export(catalog.themes, catalog.pool.questions(), results=[_result()]))
        self.assertEqual(data["version"], "1.0")
        self.assertEqual(len(data["themes"]), 2)
        self.assertIn("subThemes", data["themes"][0])
        self.assertIn("questionCount", data["themes"][0]["subThemes"][0])
        self.assertEqual(len(data["questions"]), 10)
        session = data["sessions"][0]
        self.assertEqual(session["sessionId"], "s1")
        self.assertEqual(session["answers"][1]["isPartial"], True)

    def test_file_round_trip(self) -> None:
        catalog = load_bank()
        with tempfile.TemporaryDirectory() as tmp:
            path = str(Path(tmp) / "export.json")
            write_export(path, build_export(catalog.themes, catalog.pool.questions(), results=[_result()]))
            themes, sessions, report = read_export(path)
        self.assertTrue(report.success)
        self.assertEqual(report.imported.themes, 2)
        self.assertEqual(report.imported.questions, 10)
        self.assertEqual(report.imported.sessions, 1)
        self.assertEqual([t.id for t in themes], [t.id for t in catalog.themes])
        self.assertEqual(sessions[0].scoring, _result().scoring)
        self.assertEqual(sessions[0].answers, _result().answers)

    def test_invalid_entries_are_reported(self) -> None:
        payload = [
            {"id": "ok", "name": "Fine", "subThemes": [{"id": "s1", "questionCount": 2}]},
            {"id": "neg", "subThemes": [{"id": "s1", "questionCount": -1}]},
            {"id": "dup", "subThemes": [{"id": "s1"}, {"id": "s1"}]},
            {"id": "ok", "subThemes": []},
        ]
        themes, report = import_themes(payload)
        self.assertEqual([t.id for t in themes], ["ok"])
        self.assertFalse(report.success)
        self.assertEqual(report.imported.themes, 1)
        self.assertEqual(len(report.errors), 3)
        self.assertTrue(any("duplicate theme id" in e for e in report.errors))

    def test_session_counts_must_match_answers(self) -> None:
        raw = _result().to_json()
        raw["scoring"]["correct"] += 1
        _, sessions, report = import_payload({"sessions": [raw]})
        self.assertEqual(sessions, [])
        self.assertFalse(report.success)
        self.assertTrue(report.errors[0].startswith("sessions[0]"))


if __name__ == "__main__":
    unittest.main()
