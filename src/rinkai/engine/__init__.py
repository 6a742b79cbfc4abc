"""Deterministic, headless rules engine for Rinkai.

IMPORTANT: This package does no I/O; content and persistence live in
`rinkai.services`.
"""

from .catalog import CardCatalog, DataFormatError
from .effects import apply_effect, can_place, parse_effect
from .events import EventLog, EventSink
from .scoring import ScoreRecord, score
from .state import ResourceState, TurnContext
from .turns import ActionReport, StepResult, TurnEngine
from .types import Card, EngineConfig, OwnedCard, ParsedEffect, Rarity, Resource, Role, TurnConfig

__all__ = [
    "ActionReport",
    "Card",
    "CardCatalog",
    "DataFormatError",
    "EngineConfig",
    "EventLog",
    "EventSink",
    "OwnedCard",
    "ParsedEffect",
    "Rarity",
    "Resource",
    "ResourceState",
    "Role",
    "ScoreRecord",
    "StepResult",
    "TurnConfig",
    "TurnContext",
    "TurnEngine",
    "apply_effect",
    "can_place",
    "parse_effect",
    "score",
]
