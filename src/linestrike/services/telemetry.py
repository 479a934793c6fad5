from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping


@dataclass
class TelemetryService:
    path: Path
    # Set when a match event could not be written; see `record`.
    last_error: OSError | None = None

    def log(self, event_type: str, payload: Mapping[str, object]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        rec = {
            "ts": datetime.now(tz=timezone.utc).isoformat(),
            "type": event_type,
            "payload": dict(payload),
        }
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(rec, ensure_ascii=False) + "\n")

    def record(self, event: Mapping[str, object]) -> None:
        """Match event listener: one line per engine event.

        Runs inside engine transitions, so a failed write is kept in
        `last_error` instead of raised.
        """
        payload = {k: v for k, v in event.items() if k != "type"}
        try:
            self.log(f"match.{str(event.get('type', 'unknown')).lower()}", payload)
        except OSError as e:
            self.last_error = e

    def read(self) -> list[dict[str, object]]:
        if not self.path.exists():
            return []
        lines = self.path.read_text(encoding="utf-8").splitlines()
        return [json.loads(line) for line in lines if line.strip()]
