from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

from rinkai.engine.events import EventSink, notify
from rinkai.engine.scoring import ScoreRecord

HIGHSCORE_KEY = "rinkai_highscore"


class JsonKeyValueStore:
    """A flat key/value store kept as one JSON object on disk."""

    def __init__(self, path: Path) -> None:
        self._path = path

    def _read(self) -> dict[str, object]:
        if not self._path.exists():
            return {}
        raw = json.loads(self._path.read_text(encoding="utf-8"))
        if not isinstance(raw, dict):
            raise ValueError(f"{self._path} must hold a JSON object")
        return raw

    def get(self, key: str) -> object | None:
        return self._read().get(key)

    def set(self, key: str, value: object) -> None:
        try:
            data = self._read()
        except ValueError:
            data = {}
        data[key] = value
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")


class HighScoreService:
    def __init__(self, store: JsonKeyValueStore, sink: EventSink | None = None) -> None:
        self._store = store
        self._sink = sink

    def get_high_score(self) -> dict[str, object] | None:
        try:
            saved = self._store.get(HIGHSCORE_KEY)
        except (OSError, ValueError) as e:
            # json.JSONDecodeError is a ValueError too.
            notify(self._sink, "error", "HIGHSCORE_READ_FAILED", reason=str(e))
            return None
        if not isinstance(saved, dict) or not isinstance(saved.get("points"), int):
            return None
        return saved

    def save_high_score(self, score: ScoreRecord, now: datetime | None = None) -> bool:
        """Store `score` if it beats the saved record. Returns True if stored."""
        current = self.get_high_score()
        best = current.get("points") if current is not None else None
        if isinstance(best, int) and score.points <= best:
            return False
        when = now or datetime.now(tz=timezone.utc)
        record: dict[str, object] = {"points": score.points, "date": when.isoformat()}
        record.update(score.to_dict())
        try:
            self._store.set(HIGHSCORE_KEY, record)
        except OSError as e:
            notify(self._sink, "error", "HIGHSCORE_WRITE_FAILED", reason=str(e))
            return False
        notify(self._sink, "action", "HIGHSCORE_SAVED", points=score.points)
        return True
