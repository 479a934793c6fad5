from __future__ import annotations

from .actions import Action, EndTurnAction, PlaceMarkAction, PlayCardAction, ResetAction, SetDifficultyAction
from .match import Character, MatchState
from .types import SIDES, Card, Side


def action_to_dict(a: Action) -> dict[str, object]:
    if isinstance(a, PlaceMarkAction):
        return {"type": "place", "index": a.index}
    if isinstance(a, PlayCardAction):
        return {"type": "play", "card_id": a.card_id, "index": a.index}
    if isinstance(a, EndTurnAction):
        return {"type": "end_turn"}
    if isinstance(a, ResetAction):
        return {"type": "reset"}
    if isinstance(a, SetDifficultyAction):
        return {"type": "difficulty", "skill": a.skill}
    # should be unreachable
    return {"type": "unknown"}


def _card_to_dict(c: Card) -> dict[str, object]:
    return {"id": c.id, "type": c.type, "mark": c.mark, "name": c.name}


def _character_to_dict(c: Character) -> dict[str, object]:
    return {
        "name": c.name,
        "health": c.health,
        "max_health": c.max_health,
        "damage_dealt": c.damage_dealt,
    }


def _side_to_dict(state: MatchState, side: Side) -> dict[str, object]:
    pool = state.economy.pools[side]
    return {
        "character": _character_to_dict(state.characters[side]),
        "hand": [_card_to_dict(c) for c in pool.hand],
        "draw_pile": [c.id for c in pool.draw_pile],
        "discard_pile": [c.id for c in pool.discard_pile],
    }


def snapshot(state: MatchState) -> dict[str, object]:
    """Return a JSON-serializable canonical snapshot of the current match state."""
    return {
        "seed": state.seed,
        "variant": state.variant,
        "phase": state.phase,
        "winner": state.winner,
        "skill": state.ai_spec.skill,
        "board": list(state.board.cells),
        "cleared_lines": [list(p) for p in state.board.cleared_lines],
        "score": state.score.as_dict(),
        "status": {"key": state.status[0], "category": state.status[1]},
        "sides": {side: _side_to_dict(state, side) for side in SIDES},
        "pending": state.scheduler.pending(),
        "action_log": [action_to_dict(a) for a in state.action_log],
        "action_times": list(state.action_times),
    }
