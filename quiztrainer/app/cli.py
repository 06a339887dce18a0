from __future__ import annotations

"""CLI for QuizTrainer using SessionManager and the YAML question bank."""

import argparse
import json
from pathlib import Path
from typing import Any

from analytics import AnalyticsConfig, ewma_by_session, load_and_prepare, theme_summary

from ..config.config import load_config, validate_config
from ..engine.errors import TrainingError
from ..results.persist import build_export, load_history, read_export, write_export
from ..storage.store import DATA_FILE, query_trend
from ..util.randomness import seed_if_needed
from .catalog import load_bank
from .presets import SESSION_PRESETS
from .session_manager import SessionManager


def _split_ids(value: str | None) -> list[str]:
    if not value:
        return []
    return [s.strip() for s in value.split(",") if s.strip()]


def _build_ui() -> dict[str, Any]:
    def ask(prompt: str) -> str:
        return input(prompt)

    def inform(msg: str) -> None:
        print(msg)

    return {"ask": ask, "inform": inform}


def _enable_explain(flag: bool) -> None:
    if flag:
        from ..util.explain import enable as explain_enable
        explain_enable(True)


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="quiztrainer")
    sub = p.add_subparsers(dest="cmd", required=True)

    lt = sub.add_parser("list-themes")
    lt.add_argument("--config", default=None)

    sub.add_parser("presets")

    rp = sub.add_parser("run")
    rp.add_argument("--config", default=None)
    rp.add_argument("--preset", default=None)
    rp.add_argument("--themes", default=None, help="Comma-separated theme ids (all sub-themes)")
    rp.add_argument("--sub-themes", dest="sub_themes", default=None, help="Comma-separated sub-theme ids")
    rp.add_argument("--questions", type=int, default=None)
    rp.add_argument("--type", dest="question_type_filter", choices=["all", "single", "multiple"], default=None)
    rp.add_argument("--timer", dest="timer_duration", type=int, default=None, help="Seconds per question (enables the timer)")
    rp.add_argument("--no-timer", dest="no_timer", action="store_true")
    rp.add_argument("--seed", type=int, default=None)
    rp.add_argument("--explain", action="store_true")

    ep = sub.add_parser("export")
    ep.add_argument("--config", default=None)
    ep.add_argument("--out", required=True)

    ip = sub.add_parser("import")
    ip.add_argument("path")

    pp = sub.add_parser("progress")
    pp.add_argument("--config", default=None)
    pp.add_argument("--theme", default=None)

    args = p.parse_args(argv)

    if args.cmd == "presets":
        for name, params in SESSION_PRESETS.items():
            print(f"{name}: {params}")
        return 0

    if args.cmd == "import":
        themes, sessions, result = read_export(args.path)
        print(json.dumps(result.model_dump(), indent=2))
        return 0 if result.success else 1

    cfg = validate_config(load_config(args.config))

    if args.cmd == "list-themes":
        catalog = load_bank(cfg["bank"]["path"])
        for t in catalog.themes:
            print(f"{t.id}: {t.name} ({t.total_questions} questions)")
            for st in t.sub_themes:
                print(f"  - {st.id}: {st.name} [{st.question_count}]")
        return 0

    if args.cmd == "export":
        catalog = load_bank(cfg["bank"]["path"])
        write_export(args.out, build_export(catalog.themes, catalog.pool.questions()))
        print(f"Wrote {args.out}")
        return 0

    if args.cmd == "progress":
        history = load_history(cfg["stats"]["output_path"])
        totals = history.get("totals", {})
        print(f"Sessions: {totals.get('sessions', 0)}")
        print(
            f"Correct: {totals.get('correct', 0)}  Partial: {totals.get('partial', 0)}  "
            f"Incorrect: {totals.get('incorrect', 0)}  Skipped: {totals.get('skipped', 0)}"
        )
        stats_file = Path(cfg["stats"]["data_dir"]) / DATA_FILE
        if not stats_file.exists():
            return 0
        acfg = AnalyticsConfig.from_cfg(cfg)
        if not args.theme:
            for _, row in theme_summary(load_and_prepare(stats_file, acfg)).iterrows():
                print(
                    f"{row['theme_id']}: {int(row['C'])}/{int(row['Q'])} over {int(row['sessions'])} sessions, "
                    f"last mark {row['last_mark']:.2f}"
                )
        else:
            df = load_and_prepare(stats_file, acfg, theme_ids=[args.theme])
            trend = ewma_by_session(query_trend(df, theme_id=args.theme), "mark", acfg.smoothing_span)
            for _, row in trend.iterrows():
                print(
                    f"{row['session_start']:%Y-%m-%d %H:%M}  {int(row['C'])}/{int(row['Q'])}  "
                    f"acc={row['acc']:.2f}  mark={row['mark']:.2f}  trend={row['mark_smooth']:.2f}"
                )
        return 0

    if args.cmd == "run":
        seed_if_needed()
        _enable_explain(args.explain)
        catalog = load_bank(cfg["bank"]["path"])
        preset = args.preset or cfg["session"].get("preset", "default")
        overrides: dict[str, Any] = {
            "question_count": args.questions,
            "question_type_filter": args.question_type_filter,
            "seed": args.seed,
        }
        if args.timer_duration is not None:
            overrides["timer_enabled"] = True
            overrides["timer_duration"] = args.timer_duration
        if args.no_timer:
            overrides["timer_enabled"] = False

        sm = SessionManager(cfg, catalog)
        try:
            sm.start_session(
                preset,
                overrides,
                theme_ids=_split_ids(args.themes),
                sub_theme_ids=_split_ids(args.sub_themes),
            )
        except (TrainingError, KeyError) as e:
            print(f"ERROR: Cannot start session: {e}")
            return 2
        sm.run(_build_ui())
        return 0

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
