from __future__ import annotations

from dataclasses import dataclass

from .effects import parse_effect
from .scoring import ScoreRecord, WITHDRAWAL_THRESHOLD
from .state import ResourceState
from .turns import TurnEngine
from .types import ROLES, Card, Resource, Role


@dataclass(frozen=True)
class AISpec:
    """Simple auto-player tuning parameters.

    difficulty:
      0 = easy (sometimes picks at random)
      1 = normal
      2 = hard (never picks at random)
    """

    difficulty: int = 1


def _weights(state: ResourceState) -> dict[Resource, float]:
    # Resources stop mattering much once they clear their scoring tier.
    return {
        "experience": 1.0 if state.experience < 12 else 0.2,
        "enrollment": 1.2,
        "satisfaction": 1.1 if state.satisfaction < WITHDRAWAL_THRESHOLD else 0.3,
        "accounting": 1.1 if state.accounting < WITHDRAWAL_THRESHOLD else 0.3,
    }


def card_value(card: Card, role: Role, state: ResourceState) -> float | None:
    """Immediate value of `card` executed by `role`, or None if not allowed."""
    parsed = parse_effect(card.effect_text, role)
    if parsed.restrictions and role not in parsed.restrictions:
        return None
    w = _weights(state)
    v = 0.0
    for eff in parsed.base:
        v += w[eff.resource] * eff.delta
    for cond in parsed.resolved:
        v += w[cond.resource] * cond.delta
    return v


def best_value(card: Card, state: ResourceState) -> float:
    values = [v for v in (card_value(card, r, state) for r in ROLES) if v is not None]
    return max(values) if values else 0.0


def _mistake(engine: TurnEngine, spec: AISpec, chance: float) -> bool:
    if spec.difficulty >= 2:
        return False
    if spec.difficulty <= 0:
        chance *= 3.5
    return engine.rng.random() < chance


def choose_training(engine: TurnEngine, spec: AISpec) -> list[int]:
    n = engine.picks_required
    if _mistake(engine, spec, 0.1):
        return sorted(engine.rng.sample(range(len(engine.offer)), n))
    ranked = sorted(
        range(len(engine.offer)),
        key=lambda i: (-best_value(engine.offer[i], engine.state), i),
    )
    return sorted(ranked[:n])


def place_hand(engine: TurnEngine, spec: AISpec) -> None:
    st = engine.state
    while True:
        best: tuple[float, int, Role] | None = None
        for idx, card in enumerate(st.hand):
            for role in ROLES:
                if st.placed[role] is not None:
                    continue
                v = card_value(card, role, st)
                if v is None or v <= 0:
                    continue
                if best is None or v > best[0]:
                    best = (v, idx, role)
        if best is None:
            return
        _, idx, role = best
        engine.place_card(role, idx)


def choose_deletions(engine: TurnEngine, spec: AISpec) -> list[int]:
    cfg = engine.get_current_turn_config()
    limit = cfg.delete if cfg is not None else 0
    if limit <= 0:
        return []
    st = engine.state
    ranked = sorted(st.deck, key=lambda c: (best_value(c, st), c.uid))
    return [c.uid for c in ranked[:limit] if best_value(c, st) < 2.0]


def ai_play_turn(engine: TurnEngine, spec: AISpec | None = None) -> None:
    """Play from the current phase until the next training phase or the end."""
    spec = spec or AISpec()
    start_turn = engine.turn
    while not engine.is_over:
        phase = engine.phase
        if phase == "training":
            if engine.turn != start_turn:
                return
            engine.confirm_training(choose_training(engine, spec))
        elif phase == "action":
            place_hand(engine, spec)
            engine.execute_actions()
        elif phase == "meeting":
            engine.confirm_meeting(choose_deletions(engine, spec))
        if not engine.advance_phase().ok:
            return


def ai_play_game(engine: TurnEngine, spec: AISpec | None = None) -> ScoreRecord:
    """Play a freshly initialized game to the end and return its score."""
    spec = spec or AISpec()
    while not engine.is_over:
        before = (engine.turn, engine.phase)
        ai_play_turn(engine, spec)
        if (engine.turn, engine.phase) == before:
            break
    return engine.score()
