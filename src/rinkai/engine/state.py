from __future__ import annotations

import bisect
import random
from dataclasses import dataclass, field

from .types import PHASES, RESOURCES, ROLES, Card, OwnedCard, Phase, Resource, Role

# Legal phase edges. meeting -> training also advances the turn counter.
_SUCCESSORS: dict[str, tuple[str, ...]] = {
    "start": ("training",),
    "training": ("action",),
    "action": ("meeting",),
    "meeting": ("training", "end"),
    "end": (),
}


def _empty_placements() -> dict[Role, OwnedCard | None]:
    return {role: None for role in ROLES}


@dataclass
class TurnContext:
    turn: int = 0
    phase: Phase = "start"

    def __post_init__(self) -> None:
        self._check()

    def _check(self) -> None:
        if not isinstance(self.turn, int) or self.turn < 0:
            raise ValueError(f"turn must be a non-negative int, got {self.turn!r}")
        if self.phase not in PHASES:
            raise ValueError(f"unknown phase: {self.phase!r}")

    def move_to(self, phase: Phase) -> None:
        if phase not in _SUCCESSORS[self.phase]:
            raise ValueError(f"illegal phase transition {self.phase} -> {phase}")
        if self.phase == "meeting":
            self.turn += 1
        self.phase = phase
        self._check()

    def reset(self) -> None:
        self.turn = 0
        self.phase = "start"


@dataclass
class ResourceState:
    """Counters and card zones for the single player of a session."""

    experience: int = 0
    enrollment: int = 0
    satisfaction: int = 0
    accounting: int = 0
    deck: list[OwnedCard] = field(default_factory=list)
    hand: list[OwnedCard] = field(default_factory=list)
    placed: dict[Role, OwnedCard | None] = field(default_factory=_empty_placements)
    next_uid: int = 1

    def __post_init__(self) -> None:
        self._check()

    def _check(self) -> None:
        for res in RESOURCES:
            v = getattr(self, res)
            if not isinstance(v, int) or isinstance(v, bool):
                raise ValueError(f"{res} must be an int, got {v!r}")
        if set(self.placed.keys()) != set(ROLES) or len(self.placed) != len(ROLES):
            raise ValueError(f"placed must have exactly the slots {ROLES}")
        uids = [c.uid for c in self.owned_cards()]
        if len(uids) != len(set(uids)):
            raise ValueError("a card may only be in one zone at a time")

    # -------- Counters --------
    def get(self, resource: Resource) -> int:
        if resource not in RESOURCES:
            raise ValueError(f"unknown resource: {resource!r}")
        return int(getattr(self, resource))

    def update(self, resource: Resource, delta: int) -> None:
        setattr(self, resource, self.get(resource) + int(delta))
        self._check()

    def counters(self) -> dict[str, int]:
        return {res: self.get(res) for res in RESOURCES}

    # -------- Zones --------
    def owned_cards(self) -> list[OwnedCard]:
        cards = list(self.deck) + list(self.hand)
        cards.extend(c for c in self.placed.values() if c is not None)
        return cards

    def acquire(self, card: Card, turn: int) -> OwnedCard:
        owned = OwnedCard.acquire(card, turn=turn, uid=self.next_uid)
        self.next_uid += 1
        self.add_to_deck(owned)
        return owned

    def add_to_deck(self, card: OwnedCard) -> None:
        keys = [c.uid for c in self.deck]
        self.deck.insert(bisect.bisect_right(keys, card.uid), card)
        self._check()

    def find_in_deck(self, uid: int) -> OwnedCard | None:
        for c in self.deck:
            if c.uid == uid:
                return c
        return None

    def remove_from_deck(self, uid: int) -> OwnedCard | None:
        for i, c in enumerate(self.deck):
            if c.uid == uid:
                return self.deck.pop(i)
        return None

    def draw_hand(self, rng: random.Random, count: int) -> list[OwnedCard]:
        """Move up to `count` random deck cards into the hand."""
        count = max(0, min(count, len(self.deck)))
        picked = sorted(rng.sample(range(len(self.deck)), count))
        drawn = [self.deck[i] for i in picked]
        for i in reversed(picked):
            self.deck.pop(i)
        self.hand.extend(drawn)
        self._check()
        return drawn

    def return_hand(self) -> int:
        returned = len(self.hand)
        cards, self.hand = self.hand, []
        for c in cards:
            self.add_to_deck(c)
        return returned

    def place(self, role: Role, hand_index: int) -> OwnedCard:
        if role not in ROLES:
            raise ValueError(f"unknown role: {role!r}")
        if self.placed[role] is not None:
            raise ValueError(f"{role} already has a card")
        if hand_index < 0 or hand_index >= len(self.hand):
            raise ValueError("invalid hand index")
        card = self.hand.pop(hand_index)
        self.placed[role] = card
        self._check()
        return card

    def unplace(self, role: Role) -> OwnedCard | None:
        if role not in ROLES:
            raise ValueError(f"unknown role: {role!r}")
        card = self.placed[role]
        if card is None:
            return None
        self.placed[role] = None
        self.hand.append(card)
        self._check()
        return card

    def return_placed(self) -> list[OwnedCard]:
        cards = [c for c in self.placed.values() if c is not None]
        self.placed = _empty_placements()
        for c in cards:
            self.add_to_deck(c)
        return cards

    def reset(self) -> None:
        for res in RESOURCES:
            setattr(self, res, 0)
        self.deck = []
        self.hand = []
        self.placed = _empty_placements()
        self.next_uid = 1
