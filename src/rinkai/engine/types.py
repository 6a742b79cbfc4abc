from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

Resource = Literal["experience", "enrollment", "satisfaction", "accounting"]
Role = Literal["leader", "teacher", "staff"]
Rarity = Literal["N", "R", "SR", "SSR"]
Phase = Literal["start", "training", "action", "meeting", "end"]

RESOURCES: tuple[Resource, ...] = ("experience", "enrollment", "satisfaction", "accounting")
# Resolution order during the action phase.
ROLES: tuple[Role, ...] = ("leader", "teacher", "staff")
# Lowest tier first.
RARITIES: tuple[Rarity, ...] = ("N", "R", "SR", "SSR")
PHASES: tuple[Phase, ...] = ("start", "training", "action", "meeting", "end")


@dataclass(frozen=True)
class Card:
    category: str
    rarity: str
    card_name: str
    effect_text: str


@dataclass(frozen=True)
class OwnedCard(Card):
    """A card in the player's possession.

    `acquired_turn` is fixed at acquisition; `uid` is a per-session serial
    that also defines deck order.
    """

    acquired_turn: int = 0
    uid: int = 0

    @staticmethod
    def acquire(card: Card, turn: int, uid: int) -> "OwnedCard":
        return OwnedCard(
            category=card.category,
            rarity=card.rarity,
            card_name=card.card_name,
            effect_text=card.effect_text,
            acquired_turn=turn,
            uid=uid,
        )


@dataclass(frozen=True)
class ResourceDelta:
    resource: Resource
    delta: int


@dataclass(frozen=True)
class ConditionalDelta:
    resource: Resource
    delta: int
    condition: Role


@dataclass(frozen=True)
class DeferredEffect:
    """A threshold-conditioned effect that needs live game state.

    These are reported when a card resolves but never executed.
    """

    raw_condition: str
    raw_effect: str


ConditionalEntry = ConditionalDelta | DeferredEffect


@dataclass(frozen=True)
class ParsedEffect:
    base: tuple[ResourceDelta, ...] = ()
    conditional: tuple[ConditionalEntry, ...] = ()
    restrictions: frozenset[Role] = frozenset()

    @property
    def resolved(self) -> tuple[ConditionalDelta, ...]:
        return tuple(e for e in self.conditional if isinstance(e, ConditionalDelta))

    @property
    def deferred(self) -> tuple[DeferredEffect, ...]:
        return tuple(e for e in self.conditional if isinstance(e, DeferredEffect))


@dataclass(frozen=True)
class TurnConfig:
    name: str
    training: str
    delete: int
    recommended: str | None = None


@dataclass(frozen=True)
class EngineConfig:
    max_turns: int = 8
    hand_size: int = 5
    basic_copies: int = 2
    first_offer_rarity: str = "R"
    first_offer_size: int = 4
    first_picks: int = 2
    offer_size: int = 3
    picks: int = 1
