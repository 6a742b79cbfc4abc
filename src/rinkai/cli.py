from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Sequence

from rinkai.engine.ai import AISpec, ai_play_turn
from rinkai.engine.events import EventLog
from rinkai.engine.scoring import ScoreRecord
from rinkai.engine.serialize import snapshot
from rinkai.engine.turns import TurnEngine
from rinkai.engine.types import EngineConfig
from rinkai.paths import get_paths
from rinkai.services.content import ContentError, ContentService
from rinkai.services.highscore import HighScoreService, JsonKeyValueStore
from rinkai.services.share import score_from_url, share_url
from rinkai.services.telemetry import TelemetryService

ROLE_LABELS = {"leader": "室長", "teacher": "講師", "staff": "事務"}


def _print_score(score: ScoreRecord, title: str) -> None:
    print(title)
    print(f"  目標ポイント: {score.points}")
    print(f"  退塾数: {score.withdrawal}")
    print(f"  動員合計: {score.mobilization}")
    print(f"  入退差: {score.enrollment_diff}")
    print(
        f"  体験 {score.experience} / 入塾 {score.enrollment} / "
        f"満足 {score.satisfaction} / 経理 {score.accounting}"
    )


def _build_parser() -> argparse.ArgumentParser:
    paths = get_paths()
    parser = argparse.ArgumentParser(prog="rinkai", description="Play a seeded Rinkai game headlessly.")
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--difficulty", type=int, default=2, choices=(0, 1, 2))
    parser.add_argument("--cards", type=Path, default=paths.data_dir / "cards.csv")
    parser.add_argument("--turns", type=Path, default=paths.data_dir / "turns.json")
    parser.add_argument("--highscore", type=Path, default=paths.userdata_dir / "highscore.json")
    parser.add_argument("--telemetry", type=Path, default=None, help="Mirror engine events to a JSONL file")
    parser.add_argument("--share-base", default="https://example.invalid/rinkai/")
    parser.add_argument("--shared", default=None, help="Decode and print a shared score URL, then exit")
    parser.add_argument("--json", action="store_true", help="Print the final snapshot as JSON")
    parser.add_argument("--quiet", action="store_true")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    if args.shared is not None:
        shared = score_from_url(args.shared)
        if shared is None:
            print("No shared score in URL.", file=sys.stderr)
            return 1
        _print_score(shared, "共有されたスコア:")
        return 0

    paths = get_paths()
    sink = EventLog(forward=TelemetryService(args.telemetry) if args.telemetry else None)
    content = ContentService(paths.data_dir, paths.schema_dir)
    try:
        catalog = content.load_card_catalog(args.cards, sink=sink)
        turns = content.load_turn_configs(args.turns)
        engine = TurnEngine(catalog, turns, config=EngineConfig(), seed=args.seed, sink=sink)
    except (ContentError, ValueError) as e:
        print(f"Failed to load game content: {e}", file=sys.stderr)
        return 1

    spec = AISpec(difficulty=args.difficulty)
    engine.initialize_game()
    while not engine.is_over:
        cfg = engine.get_current_turn_config()
        mark = len(engine.events.records)
        ai_play_turn(engine, spec)
        if args.quiet or cfg is None:
            continue
        hint = f" ({cfg.recommended})" if cfg.recommended else ""
        print(f"[{cfg.name}]{hint}")
        for e in engine.events.records[mark:]:
            if e.get("type") == "CARD_ACQUIRED":
                print(f"  研修: {e.get('card')}")
            elif e.get("type") == "EFFECT_APPLIED":
                print(f"  {ROLE_LABELS.get(str(e.get('role')), '?')}: {e.get('card')}")
            elif e.get("type") == "DEFERRED_EFFECT_SKIPPED":
                print(f"    条件付き効果（未実装）: {e.get('condition')}")
            elif e.get("type") == "CARD_REMOVED":
                print(f"  削除: {e.get('card')}")
        counters = engine.state.counters()
        print(
            f"  体験 {counters['experience']} / 入塾 {counters['enrollment']} / "
            f"満足 {counters['satisfaction']} / 経理 {counters['accounting']}"
        )

    score = engine.score()
    if args.json:
        print(json.dumps(snapshot(engine), ensure_ascii=False, indent=2))
    _print_score(score, "--- スコア ---")

    highscores = HighScoreService(JsonKeyValueStore(args.highscore), sink=sink)
    if highscores.save_high_score(score):
        print("新ハイスコア記録!")
    best = highscores.get_high_score()
    if best is not None:
        print(f"ハイスコア: {best.get('points')}ポイント")
    print(f"共有URL: {share_url(args.share_base, score)}")
    return 0
