from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping

from rinkai.engine.events import Event


@dataclass
class TelemetryService:
    """Append-only JSON lines log; usable as an engine event sink."""

    path: Path

    def log(self, event_type: str, payload: Mapping[str, object]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        rec = {
            "ts": datetime.now(tz=timezone.utc).isoformat(),
            "type": event_type,
            "payload": dict(payload),
        }
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(rec, ensure_ascii=False) + "\n")

    def emit(self, event: Event) -> None:
        payload = {k: v for k, v in event.items() if k != "type"}
        self.log(str(event.get("type", "UNKNOWN")), payload)
