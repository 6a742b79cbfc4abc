from __future__ import annotations

from rinkai.engine.ai import AISpec, ai_play_game
from rinkai.engine.scoring import score
from rinkai.engine.serialize import snapshot
from rinkai.engine.turns import TurnEngine
from rinkai.paths import get_paths
from rinkai.services.content import ContentService


def _new_engine(seed: int) -> TurnEngine:
    paths = get_paths()
    content = ContentService(paths.data_dir, paths.schema_dir)
    return TurnEngine(content.load_card_catalog(), content.load_turn_configs(), seed=seed)


def _play(seed: int, difficulty: int) -> TurnEngine:
    engine = _new_engine(seed)
    engine.initialize_game()
    ai_play_game(engine, AISpec(difficulty=difficulty))
    return engine


def test_seeded_games_replay_identically() -> None:
    for difficulty in (0, 1, 2):
        snap1 = snapshot(_play(424242, difficulty))
        snap2 = snapshot(_play(424242, difficulty))
        assert snap1 == snap2


def test_auto_game_runs_to_completion() -> None:
    engine = _play(7, 2)
    assert engine.is_over
    assert (engine.turn, engine.phase) == (8, "end")
    assert engine.score() == score(engine.state)
    assert engine.state.hand == []
    assert all(c is None for c in engine.state.placed.values())
    assert all(0 <= c.acquired_turn <= 7 for c in engine.state.deck)
    # Starting deck plus two first-turn picks, at most one pick per later turn.
    assert len(engine.events.of_type("CARD_ACQUIRED")) <= 2 + 7


def test_auto_player_never_triggers_restriction_failures() -> None:
    engine = _play(99, 2)
    assert engine.events.of_type("PLACEMENT_REJECTED") == []
    assert engine.events.of_type("EFFECT_APPLIED")


def test_engine_reinitializes_cleanly() -> None:
    engine = _play(5, 2)
    first = snapshot(engine)
    engine.events.clear()
    engine.rng.seed(5)
    engine.initialize_game()
    ai_play_game(engine, AISpec(difficulty=2))
    second = snapshot(engine)
    assert first["counters"] == second["counters"]
    assert first["deck"] == second["deck"]
