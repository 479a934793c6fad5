from __future__ import annotations

from pathlib import Path

from linestrike.engine.actions import PlaceMarkAction
from linestrike.engine.match import new_match, step, subscribe
from linestrike.services.telemetry import TelemetryService


def test_log_appends_json_lines(tmp_path: Path) -> None:
    telemetry = TelemetryService(tmp_path / "logs" / "telemetry.jsonl")
    telemetry.log("boot", {"ok": True})
    telemetry.log("boot", {"ok": False, "error": "bad"})
    records = telemetry.read()
    assert [r["type"] for r in records] == ["boot", "boot"]
    assert records[1]["payload"] == {"ok": False, "error": "bad"}
    assert "ts" in records[0]


def test_records_match_events(tmp_path: Path) -> None:
    telemetry = TelemetryService(tmp_path / "telemetry.jsonl")
    state = new_match(seed=3)
    subscribe(state, telemetry.record)
    step(state, PlaceMarkAction(index=4))

    records = telemetry.read()
    types = [r["type"] for r in records]
    assert types[0] == "match.cell_filled"
    assert records[0]["payload"] == {"index": 4, "mark": "X", "side": "player"}
    assert "match.status_changed" in types


def test_failed_write_does_not_break_a_step(tmp_path: Path) -> None:
    # The target is a directory, so every append fails.
    telemetry = TelemetryService(tmp_path)
    state = new_match(seed=3)
    subscribe(state, telemetry.record)

    res = step(state, PlaceMarkAction(index=4))
    assert res.ok
    assert state.phase == "ai_thinking"
    assert isinstance(telemetry.last_error, OSError)
