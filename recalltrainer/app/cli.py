from __future__ import annotations

"""CLI for RecallTrainer using TrialSession and the trial registry."""

import argparse
import sys
import time
from pathlib import Path
from typing import Any

from ..config.config import load_config, validate_config
from ..session.states import Advance, Presenting, SessionState, Tick
from ..stats.stats import format_history, format_summary, summarize_history
from ..storage.store import export_ndjson, load_all, query_trend
from .trial_registry import get_trial, list_trials
from .session_manager import TrialSession

POLL_S = 0.05


def _clear() -> None:
    print("\033[2J\033[H", end="", flush=True)


def _describe(item: Any) -> str:
    if hasattr(item, "first") and hasattr(item, "face"):
        return f"[face {item.face.id:03d}] {item.first} {item.last}"
    if hasattr(item, "path"):
        return f"[image {item.id:03d}] {item.path}"
    return str(item)


def _show_content(session: TrialSession) -> None:
    truth = session.truth
    if truth is None:
        return
    if truth.groups:
        print("  ".join(truth.groups))
    elif truth.family in ("words", "word_palace"):
        for i, w in enumerate(truth.items, start=1):
            print(f"{i:>3}. {w}")
    elif truth.family == "names":
        for card in truth.items:
            print(_describe(card))
    elif truth.items:
        print(truth.text)


def _make_listener(session: TrialSession):
    def on_change(state: SessionState, event: Any) -> None:
        if isinstance(state, Presenting) and isinstance(event, Advance):
            # spoken groups are heard, not shown
            if session.meta is not None and session.meta.scheduler == "spoken":
                return
            item = state.truth.groups[state.cursor] if state.truth.groups else state.truth.items[state.cursor]
            print(f"  {state.cursor + 1:>3}: {_describe(item)}", flush=True)
        elif isinstance(state, Presenting) and isinstance(event, Tick):
            remaining = int(event.remaining_s)
            if remaining == 0:
                print("\nTime is up. Press Enter to continue.", flush=True)
            elif remaining in (60, 30, 10) or remaining <= 3:
                print(f"  ... {remaining}s left", flush=True)

    return on_change


def _wait_while(session: TrialSession, phase: str) -> None:
    while session.phase == phase:
        time.sleep(POLL_S)


def _run_quick_math(session: TrialSession) -> None:
    while session.phase == "presentation":
        stream = session.buffer.stream
        answer = input(f"{stream.current.text()} = ")
        if session.phase != "presentation":
            break
        session.submit_answer(answer)


def _recall_text(session: TrialSession) -> None:
    meta = session.meta
    if meta is not None and meta.delimiter == "lines" and meta.scoring == "tokens":
        print("Type one word per line; finish with an empty line.")
        lines = []
        while True:
            line = input()
            if not line.strip():
                break
            lines.append(line)
        session.set_text("\n".join(lines))
    else:
        session.set_text(input("Recall: "))
    session.submit()


def _recall_selection(session: TrialSession) -> None:
    options = list(session.recall_order)
    for i, entry in enumerate(options, start=1):
        print(f"{i:>3}. {_describe(entry)}")
    print("Pick the images in presentation order (numbers, space separated).")
    while session.phase == "recall":
        raw = input("Selection: ")
        for tok in raw.replace(",", " ").split():
            if tok.isdigit() and 1 <= int(tok) <= len(options):
                session.toggle_image(options[int(tok) - 1].id)
            if session.phase != "recall":
                break
        if session.phase == "recall" and not raw.strip():
            session.submit()


def _recall_fields(session: TrialSession) -> None:
    for card in session.recall_order:
        print(f"[face {card.face.id:03d}]")
        session.set_name_field(card.id, "first", input("  first: "))
        session.set_name_field(card.id, "last", input("  last:  "))
    session.submit()


def _run_trial(session: TrialSession, args: argparse.Namespace, cfg: dict) -> int:
    overrides: dict[str, Any] = {}
    for name in ("count", "pace_ms", "time_limit_s", "group_size", "abstract_pct", "digit_width"):
        value = getattr(args, name, None)
        if value is not None:
            overrides[name] = value

    session.listeners.append(_make_listener(session))
    if not session.start(args.trial, args.preset, overrides, seed=args.seed):
        print(f"ERROR: Unknown trial id: {args.trial}", file=sys.stderr)
        return 2
    meta = session.meta
    assert meta is not None

    if session.phase == "loading":
        print("Loading images...")
        _wait_while(session, "loading")
        print("Ready.")

    if meta.recall == "live":
        print(f"Solve as many as you can in {session.config.time_limit_s}s.")
        _run_quick_math(session)
    elif meta.scheduler in ("manual", "countdown"):
        _show_content(session)
        input("\nPress Enter when done memorizing... ")
        session.finish_memorizing()
    else:
        _wait_while(session, "presentation")

    if session.phase == "recall":
        _clear()
        if meta.recall == "text":
            _recall_text(session)
        elif meta.recall == "selection":
            _recall_selection(session)
        elif meta.recall == "fields":
            _recall_fields(session)

    result = session.result
    if result is None:
        print("Trial did not finish.")
        return 1
    print("\nTrial Summary:")
    state = session.state
    print(format_summary(result, getattr(state, "score", None), show_comparison=bool(cfg["ui"].get("show_comparison", True))))
    if session.last_saved is False:
        print("(result not saved)")
    return 0


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="recalltrainer")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("list-trials")

    sp = sub.add_parser("show-params")
    sp.add_argument("--trial", required=True)

    rp = sub.add_parser("run")
    rp.add_argument("--config", default=None)
    rp.add_argument("--trial", default="digits")
    rp.add_argument("--preset", default="default")
    rp.add_argument("--seed", type=int, default=None)
    rp.add_argument("--explain", action="store_true")
    rp.add_argument("--count", type=int, default=None)
    rp.add_argument("--pace-ms", dest="pace_ms", type=int, default=None)
    rp.add_argument("--time", dest="time_limit_s", type=int, default=None, help="Time limit in seconds")
    rp.add_argument("--group", dest="group_size", type=int, default=None)
    rp.add_argument("--abstract-pct", dest="abstract_pct", type=int, default=None)
    rp.add_argument("--digit-width", dest="digit_width", type=int, default=None)

    hp = sub.add_parser("history")
    hp.add_argument("--config", default=None)
    hp.add_argument("--family", default=None)
    hp.add_argument("--last", type=int, default=None, help="Only the most recent N trials per family")
    hp.add_argument("--export", default=None, help="Write the history as NDJSON to this path")

    args = p.parse_args(argv)

    if args.cmd == "list-trials":
        for m in list_trials():
            print(f"{m.id}: {m.name} - {m.description} | presets: {', '.join(m.presets.keys())}")
        return 0

    if args.cmd == "show-params":
        try:
            m = get_trial(args.trial)
        except KeyError as e:
            print(f"ERROR: {e.args[0]}", file=sys.stderr)
            return 2
        print(f"Trial {m.id}: {m.name}")
        print("Parameters:")
        for name, spec in m.parameters_schema.get("properties", {}).items():
            print(f"  - {name}: {spec.get('minimum')}..{spec.get('maximum')} (default {spec.get('default')})")
        print("Presets:")
        for name, params in m.presets.items():
            print(f"  - {name}: {params}")
        return 0

    if args.cmd == "run":
        if args.explain:
            from .explain import enable as explain_enable
            explain_enable(True)
        cfg = validate_config(load_config(args.config))
        session = TrialSession(cfg)
        try:
            return _run_trial(session, args, cfg)
        except (KeyboardInterrupt, EOFError):
            print("\nAborted.")
            return 130
        finally:
            session.close()

    if args.cmd == "history":
        cfg = validate_config(load_config(args.config))
        df = load_all(Path(cfg["results"]["data_dir"]))
        if args.family:
            try:
                df = query_trend(df, family=args.family)
            except ValueError as e:
                print(f"ERROR: {e}", file=sys.stderr)
                return 2
            for r in df.to_dict("records"):
                print(f"{r['finished_at']:%Y-%m-%d %H:%M}  n={r['count']:<5} {r['correct']}/{r['total']}  {r['percentage']:g}%")
        print(format_history(summarize_history(df, last_n=args.last)))
        if args.export:
            export_ndjson(df, Path(args.export))
            print(f"Exported {len(df)} rows to {args.export}")
        return 0

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
