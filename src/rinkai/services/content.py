from __future__ import annotations

import json
import random
from pathlib import Path
from typing import Mapping

from jsonschema import Draft202012Validator

from rinkai.engine.catalog import CardCatalog
from rinkai.engine.events import EventSink
from rinkai.engine.types import TurnConfig


class ContentError(RuntimeError):
    pass


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ContentError(f"Missing content file: {path}") from e
    except UnicodeDecodeError as e:
        raise ContentError(f"Content file is not UTF-8: {path}") from e


def _load_json(path: Path) -> object:
    try:
        return json.loads(_read_text(path))
    except json.JSONDecodeError as e:
        raise ContentError(f"Invalid JSON in {path}: {e}") from e


def validate_json(instance: object, schema: object, *, context: str) -> None:
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: e.path)
    if errors:
        lines = [f"Schema validation failed for {context}:"]
        for err in errors[:10]:
            loc = "/".join(str(p) for p in err.absolute_path)
            lines.append(f"- {loc}: {err.message}")
        raise ContentError("\n".join(lines))


def split_csv(text: str) -> list[list[str]]:
    """Split card CSV text into rows.

    The first line is a header and is dropped. Fields are split on every
    comma; quoting is not supported.
    """
    rows: list[list[str]] = []
    for line in text.strip().splitlines()[1:]:
        line = line.strip()
        if not line:
            continue
        rows.append([part.strip() for part in line.split(",")])
    return rows


def _turn_from_dict(raw: Mapping[str, object]) -> TurnConfig:
    recommended = raw.get("recommended")
    delete = raw.get("delete", 0)
    return TurnConfig(
        name=str(raw.get("name", "")),
        training=str(raw.get("training", "")),
        delete=delete if isinstance(delete, int) else 0,
        recommended=recommended if isinstance(recommended, str) and recommended else None,
    )


class ContentService:
    def __init__(self, data_dir: Path, schema_dir: Path) -> None:
        self._data_dir = data_dir
        self._schema_dir = schema_dir

    @property
    def cards_path(self) -> Path:
        return self._data_dir / "cards.csv"

    def load_card_rows(self, path: Path | None = None) -> list[list[str]]:
        return split_csv(_read_text(path or self.cards_path))

    def load_card_catalog(
        self,
        path: Path | None = None,
        rng: random.Random | None = None,
        sink: EventSink | None = None,
    ) -> CardCatalog:
        rows = self.load_card_rows(path)
        catalog = CardCatalog.from_rows(rows, rng=rng, sink=sink)
        if not catalog.all_cards:
            raise ContentError(f"No cards in {path or self.cards_path}")
        return catalog

    def load_turn_configs(self, path: Path | None = None) -> tuple[TurnConfig, ...]:
        turns_path = path or (self._data_dir / "turns.json")
        raw = _load_json(turns_path)
        schema = _load_json(self._schema_dir / "turns.schema.json")
        validate_json(raw, schema, context=str(turns_path))

        if not isinstance(raw, dict):
            raise ContentError("turns.json must be an object")
        raw_turns = raw.get("turns")
        if not isinstance(raw_turns, list):
            raise ContentError("turns.json.turns must be a list")
        return tuple(_turn_from_dict(t) for t in raw_turns if isinstance(t, dict))

    def validate_all(self) -> None:
        # Load is validation (schema + parse)
        _ = self.load_card_catalog()
        _ = self.load_turn_configs()
