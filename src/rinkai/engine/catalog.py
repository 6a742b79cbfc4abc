from __future__ import annotations

import dataclasses
import random
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from .events import EventSink, notify
from .types import RARITIES, Card


class DataFormatError(ValueError):
    pass


def card_from_row(row: Sequence[str]) -> Card:
    """Build a card from a `category, rarity, cardName, effectText` row.

    Extra fields are ignored.
    """
    if len(row) < 4:
        raise DataFormatError(f"expected at least 4 fields, got {len(row)}")
    category, rarity, name, effect = (str(f).strip() for f in row[:4])
    return Card(category=category, rarity=rarity, card_name=name, effect_text=effect)


def _shuffle(rng: random.Random, items: list[Card]) -> None:
    rng.shuffle(items)


@dataclass
class CardCatalog:
    """All known cards plus one draw pile per rarity tier.

    The draw piles are consumed by `draw` (top of the pile is the end of the
    list) and rebuilt by `reset_decks`.
    """

    all_cards: list[Card]
    rng: random.Random = field(default_factory=random.Random)
    sink: EventSink | None = None
    basic_copies: int = 2
    decks: dict[str, list[Card]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.decks:
            self.reset_decks()

    @staticmethod
    def from_rows(
        rows: Iterable[Sequence[str]],
        rng: random.Random | None = None,
        sink: EventSink | None = None,
    ) -> "CardCatalog":
        cards: list[Card] = []
        for line_no, row in enumerate(rows, start=1):
            try:
                cards.append(card_from_row(row))
            except DataFormatError as e:
                notify(sink, "error", "ROW_SKIPPED", row=line_no, reason=str(e))
        catalog = CardCatalog(all_cards=cards, rng=rng or random.Random(), sink=sink)
        notify(sink, "info", "CARDS_LOADED", count=len(cards))
        return catalog

    def reset_decks(self) -> None:
        self.decks = {r: [] for r in RARITIES}
        for card in self.all_cards:
            if card.rarity in self.decks:
                self.decks[card.rarity].append(card)

    def deck_size(self, rarity: str) -> int:
        return len(self.decks.get(rarity, []))

    def shuffle(self, rarity: str) -> None:
        deck = self.decks.get(rarity)
        if deck is None:
            notify(self.sink, "error", "UNKNOWN_RARITY", rarity=rarity)
            return
        _shuffle(self.rng, deck)

    def shuffle_all(self) -> None:
        for rarity in self.decks:
            self.shuffle(rarity)

    def draw(self, rarity: str, count: int) -> list[Card]:
        deck = self.decks.get(rarity)
        if deck is None:
            notify(self.sink, "error", "UNKNOWN_RARITY", rarity=rarity)
            return []
        drawn: list[Card] = []
        for _ in range(max(0, count)):
            if not deck:
                notify(self.sink, "info", "DECK_EMPTY", rarity=rarity, requested=count, drawn=len(drawn))
                break
            drawn.append(dataclasses.replace(deck.pop()))
        return drawn

    def basic_cards(self) -> list[Card]:
        lowest = RARITIES[0]
        out: list[Card] = []
        for card in self.all_cards:
            if card.rarity != lowest:
                continue
            for _ in range(self.basic_copies):
                out.append(dataclasses.replace(card))
        return out
