from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from .catalog import CardCatalog
from .effects import apply_effect
from .events import Event, EventLog, EventSink, notify
from .scoring import ScoreRecord, score
from .state import ResourceState, TurnContext
from .types import ROLES, Card, EngineConfig, OwnedCard, Role, TurnConfig


@dataclass
class StepResult:
    ok: bool
    events: list[Event]
    error: str | None = None


@dataclass(frozen=True)
class ActionEntry:
    role: Role
    card: OwnedCard
    applied: bool


@dataclass
class ActionReport:
    ok: bool
    entries: list[ActionEntry] = field(default_factory=list)
    events: list[Event] = field(default_factory=list)
    error: str | None = None

    @property
    def executed(self) -> list[ActionEntry]:
        return [e for e in self.entries if e.applied]

    @property
    def rejected(self) -> list[ActionEntry]:
        return [e for e in self.entries if not e.applied]


class TurnEngine:
    """One game session: phase state machine over a single player's state.

    start -> training -> action -> meeting -> training ... -> end

    The catalog is owned by the engine for the length of the session; its
    RNG and notification sink are replaced by the engine's own so a seeded
    session is reproducible.
    """

    def __init__(
        self,
        catalog: CardCatalog,
        turns: Sequence[TurnConfig],
        config: EngineConfig | None = None,
        seed: int = 0,
        sink: EventSink | None = None,
        context: TurnContext | None = None,
        state: ResourceState | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        if len(turns) < self.config.max_turns:
            raise ValueError(f"Turn table needs at least {self.config.max_turns} entries.")
        self.turns = tuple(turns)
        self.seed = seed
        self.rng = random.Random(seed)
        self.events = EventLog(forward=sink)
        self.catalog = catalog
        self.catalog.rng = self.rng
        self.catalog.sink = self.events
        self.catalog.basic_copies = self.config.basic_copies
        self.context = context or TurnContext()
        self.state = state or ResourceState()

        self.offer: list[Card] = []
        self.picks_required = 0
        self.training_done = False
        self.actions_done = False
        self.meeting_done = False

    # -------- Queries --------
    @property
    def turn(self) -> int:
        return self.context.turn

    @property
    def phase(self) -> str:
        return self.context.phase

    @property
    def is_over(self) -> bool:
        return self.context.phase == "end"

    def get_current_turn_config(self) -> TurnConfig | None:
        if self.context.turn >= self.config.max_turns:
            return None
        return self.turns[self.context.turn]

    def score(self) -> ScoreRecord:
        return score(self.state)

    def _since(self, mark: int) -> list[Event]:
        return self.events.records[mark:]

    def _fail(self, mark: int, error: str) -> StepResult:
        notify(self.events, "error", "STEP_REJECTED", phase=self.context.phase, error=error)
        return StepResult(ok=False, events=self._since(mark), error=error)

    # -------- Setup --------
    def initialize_game(self) -> StepResult:
        mark = len(self.events.records)
        self.context.reset()
        self.state.reset()
        self.catalog.reset_decks()
        self.catalog.shuffle_all()
        for card in self.catalog.basic_cards():
            self.state.acquire(card, turn=0)
        self.meeting_done = False
        self.actions_done = False
        notify(self.events, "info", "GAME_STARTED", seed=self.seed, deck=len(self.state.deck))
        self._prepare_training(
            self.config.first_offer_rarity, self.config.first_offer_size, self.config.first_picks
        )
        return StepResult(ok=True, events=self._since(mark))

    def _prepare_training(self, rarity: str, size: int, picks: int) -> None:
        self.offer = self.catalog.draw(rarity, size)
        self.picks_required = min(picks, len(self.offer))
        self.training_done = False
        notify(
            self.events,
            "info",
            "TRAINING_OFFERED",
            turn=self.context.turn,
            rarity=rarity,
            cards=[c.card_name for c in self.offer],
            picks=self.picks_required,
        )

    # -------- Player choices --------
    def confirm_training(self, indices: Iterable[int]) -> StepResult:
        mark = len(self.events.records)
        if self.context.phase != "training":
            return self._fail(mark, "Not in the training phase.")
        if self.training_done:
            return self._fail(mark, "Training already confirmed.")
        chosen = sorted(set(indices))
        if any(i < 0 or i >= len(self.offer) for i in chosen):
            return self._fail(mark, "Invalid training card index.")
        if len(chosen) != self.picks_required:
            return self._fail(mark, f"Select exactly {self.picks_required} card(s).")

        for i in chosen:
            owned = self.state.acquire(self.offer[i], turn=self.context.turn)
            notify(self.events, "action", "CARD_ACQUIRED", card=owned.card_name, uid=owned.uid)
        self.offer = []
        self.training_done = True
        return StepResult(ok=True, events=self._since(mark))

    def place_card(self, role: Role, hand_index: int) -> StepResult:
        mark = len(self.events.records)
        if self.context.phase != "action" or self.actions_done:
            return self._fail(mark, "Cards can only be placed before actions resolve.")
        if role not in ROLES:
            return self._fail(mark, f"Unknown role: {role}.")
        if self.state.placed[role] is not None:
            return self._fail(mark, f"{role} already has a card.")
        if hand_index < 0 or hand_index >= len(self.state.hand):
            return self._fail(mark, "Invalid hand index.")
        card = self.state.place(role, hand_index)
        notify(self.events, "info", "CARD_PLACED", role=role, card=card.card_name)
        return StepResult(ok=True, events=self._since(mark))

    def unplace_card(self, role: Role) -> StepResult:
        mark = len(self.events.records)
        if self.context.phase != "action" or self.actions_done:
            return self._fail(mark, "Cards can only be moved before actions resolve.")
        if role not in ROLES:
            return self._fail(mark, f"Unknown role: {role}.")
        card = self.state.unplace(role)
        if card is None:
            return self._fail(mark, f"No card placed on {role}.")
        notify(self.events, "info", "CARD_UNPLACED", role=role, card=card.card_name)
        return StepResult(ok=True, events=self._since(mark))

    def execute_actions(self) -> ActionReport:
        mark = len(self.events.records)
        if self.context.phase != "action":
            res = self._fail(mark, "Not in the action phase.")
            return ActionReport(ok=False, events=res.events, error=res.error)
        if self.actions_done:
            res = self._fail(mark, "Actions already resolved this turn.")
            return ActionReport(ok=False, events=res.events, error=res.error)

        entries: list[ActionEntry] = []
        for role in ROLES:
            card = self.state.placed[role]
            if card is None:
                continue
            applied = apply_effect(card, role, self.state, self.events)
            entries.append(ActionEntry(role=role, card=card, applied=applied))
        self.actions_done = True
        notify(self.events, "info", "ACTIONS_RESOLVED", turn=self.context.turn, **self.state.counters())
        return ActionReport(ok=True, entries=entries, events=self._since(mark))

    def confirm_meeting(self, uids: Iterable[int] = ()) -> StepResult:
        mark = len(self.events.records)
        if self.context.phase != "meeting":
            return self._fail(mark, "Not in the meeting phase.")
        if self.meeting_done:
            return self._fail(mark, "Meeting already confirmed.")
        cfg = self.get_current_turn_config()
        limit = cfg.delete if cfg is not None else 0
        chosen = list(dict.fromkeys(uids))
        if len(chosen) > limit:
            return self._fail(mark, f"At most {limit} card(s) may be removed this turn.")
        if any(self.state.find_in_deck(uid) is None for uid in chosen):
            return self._fail(mark, "Card is not in the deck.")

        for uid in chosen:
            removed = self.state.remove_from_deck(uid)
            assert removed is not None
            notify(self.events, "action", "CARD_REMOVED", card=removed.card_name, uid=uid)
        self.meeting_done = True
        return StepResult(ok=True, events=self._since(mark))

    # -------- Transitions --------
    def advance_phase(self) -> StepResult:
        mark = len(self.events.records)
        phase = self.context.phase

        if phase == "end":
            return self._fail(mark, "Game already ended.")

        if phase == "start":
            self.context.move_to("training")

        elif phase == "training":
            if not self.training_done:
                return self._fail(mark, "Confirm the training selection first.")
            self.context.move_to("action")
            self.state.return_placed()
            self.actions_done = False
            drawn = self.state.draw_hand(self.rng, self.config.hand_size)
            notify(self.events, "info", "HAND_DRAWN", cards=[c.card_name for c in drawn])

        elif phase == "action":
            if not self.actions_done:
                return self._fail(mark, "Execute actions before the meeting.")
            self.state.return_placed()
            self.context.move_to("meeting")
            self.meeting_done = False

        elif phase == "meeting":
            returned = self.state.return_hand()
            if returned:
                notify(self.events, "info", "HAND_RETURNED", count=returned)
            if self.context.turn + 1 >= self.config.max_turns:
                self.context.move_to("end")
                notify(self.events, "info", "GAME_ENDED", **self.score().to_dict())
            else:
                self.context.move_to("training")
                cfg = self.turns[self.context.turn]
                self._prepare_training(cfg.training, self.config.offer_size, self.config.picks)

        notify(self.events, "info", "PHASE_CHANGED", turn=self.context.turn, phase=self.context.phase)
        return StepResult(ok=True, events=self._since(mark))
