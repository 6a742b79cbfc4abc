from __future__ import annotations

from .types import Card, OwnedCard
from .turns import TurnEngine


def _card_to_dict(c: Card) -> dict[str, object]:
    d: dict[str, object] = {
        "category": c.category,
        "rarity": c.rarity,
        "card_name": c.card_name,
        "effect_text": c.effect_text,
    }
    if isinstance(c, OwnedCard):
        d["acquired_turn"] = c.acquired_turn
        d["uid"] = c.uid
    return d


def snapshot(engine: TurnEngine) -> dict[str, object]:
    """Return a JSON-serializable canonical snapshot of the session."""
    st = engine.state
    return {
        "seed": engine.seed,
        "turn": engine.context.turn,
        "phase": engine.context.phase,
        "counters": st.counters(),
        "deck": [_card_to_dict(c) for c in st.deck],
        "hand": [_card_to_dict(c) for c in st.hand],
        "placed": {role: (_card_to_dict(c) if c is not None else None) for role, c in st.placed.items()},
        "offer": [_card_to_dict(c) for c in engine.offer],
        "event_log": [dict(e) for e in engine.events.records],
    }
