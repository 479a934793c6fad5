from __future__ import annotations

from dataclasses import replace

import linestrike.engine as engine
from linestrike.engine.actions import EndTurnAction, PlaceMarkAction, PlayCardAction, ResetAction, SetDifficultyAction
from linestrike.engine.ai import AISpec
from linestrike.engine.match import (
    MatchConfig,
    MatchState,
    advance,
    board_snapshot,
    current_phase,
    deck_counts,
    flush,
    hand_snapshot,
    new_match,
    score_snapshot,
    step,
    subscribe,
)
from linestrike.engine.types import SIDES


def _classic(seed: int = 0, skill: float = 1.0) -> MatchState:
    return new_match(MatchConfig(), seed=seed, ai_spec=AISpec(skill=skill))


def _cards(seed: int = 0) -> MatchState:
    return new_match(replace(MatchConfig(), variant="cards"), seed=seed)


def _types(events: list[dict[str, object]]) -> list[object]:
    return [e["type"] for e in events]


def _set_cells(state: MatchState, marks: dict[int, str]) -> None:
    for i, m in marks.items():
        state.board.cells[i] = m  # type: ignore[call-overload]


def test_new_match_starting_state() -> None:
    state = _classic()
    assert current_phase(state) == "waiting_player"
    assert board_snapshot(state) == ("",) * 9
    assert state.characters["player"].health == 12
    assert state.characters["ai"].health == 3
    assert score_snapshot(state) == {"player": 0, "ai": 0, "ties": 0}
    assert state.score.summary() == "Player: 0 | AI: 0 | Ties: 0"


def test_player_line_damages_opponent_and_ends_game() -> None:
    state = _classic()
    _set_cells(state, {1: "X", 2: "X", 4: "O", 8: "O"})

    res = step(state, PlaceMarkAction(index=0))
    assert res.ok
    completed = [e for e in res.events if e["type"] == "LINES_COMPLETED"]
    assert len(completed) == 1
    assert completed[0]["lines"] == [[0, 1, 2]]
    assert completed[0]["mark"] == "X"
    damage = [e for e in res.events if e["type"] == "DAMAGE_APPLIED"]
    assert damage[0]["target"] == "ai"
    assert damage[0]["amount"] == 3
    assert state.characters["ai"].health == 0
    assert state.characters["player"].damage_dealt == 3
    assert current_phase(state) == "resolving"

    events = flush(state)
    assert "LINES_CLEARED" in _types(events)
    assert "GAME_OVER" in _types(events)
    assert state.winner == "player"
    assert current_phase(state) == "game_over"
    assert score_snapshot(state)["player"] == 1
    assert board_snapshot(state) == ("", "", "", "", "O", "", "", "", "O")


def test_double_line_deals_double_damage() -> None:
    state = _classic()
    _set_cells(state, {1: "X", 2: "X", 3: "X", 6: "X", 4: "O", 5: "O", 7: "O"})

    res = step(state, PlaceMarkAction(index=0))
    assert res.ok
    completed = [e for e in res.events if e["type"] == "LINES_COMPLETED"]
    assert len(completed[0]["lines"]) == 2  # type: ignore[arg-type]
    damage = [e for e in res.events if e["type"] == "DAMAGE_APPLIED"]
    assert damage[0]["amount"] == 6
    assert state.characters["ai"].health == -3
    assert state.characters["ai"].display_health == 0


def test_ai_line_damages_player_and_play_continues() -> None:
    state = _classic()
    _set_cells(state, {0: "O", 1: "O", 3: "X", 4: "X"})

    res = step(state, PlaceMarkAction(index=8))
    assert res.ok
    assert current_phase(state) == "ai_thinking"

    events = advance(state, 0.5)
    assert "CELL_FILLED" in _types(events)
    assert state.characters["player"].health == 9
    assert state.characters["ai"].damage_dealt == 3
    assert current_phase(state) == "resolving"

    advance(state, 0.8)
    assert current_phase(state) == "waiting_player"
    assert board_snapshot(state) == ("", "", "", "X", "X", "", "", "", "X")
    assert state.board.cleared_lines == [(0, 1, 2)]


def test_input_rejected_while_ai_thinking() -> None:
    state = _classic()
    assert step(state, PlaceMarkAction(index=0)).ok
    assert current_phase(state) == "ai_thinking"

    before_board = board_snapshot(state)
    before_events = len(state.event_log)
    res = step(state, PlaceMarkAction(index=4))
    assert not res.ok
    assert res.events == []
    assert board_snapshot(state) == before_board
    assert len(state.event_log) == before_events


def test_invalid_cells_rejected() -> None:
    state = _classic()
    assert not step(state, PlaceMarkAction(index=9)).ok
    assert not step(state, PlaceMarkAction(index=-1)).ok
    assert state.event_log[-1]["type"] == "STATUS_CHANGED"
    assert step(state, PlaceMarkAction(index=4)).ok
    flush(state)
    res = step(state, PlaceMarkAction(index=4))
    assert not res.ok
    assert res.error == "Invalid cell."


def test_ai_reply_returns_turn_to_player() -> None:
    state = _classic(seed=11)
    step(state, PlaceMarkAction(index=4))
    events = advance(state, 0.5)
    assert _types(events).count("CELL_FILLED") == 1
    assert current_phase(state) == "waiting_player"
    assert sum(1 for c in board_snapshot(state) if c == "O") == 1


def test_full_board_is_a_tie_and_resets_board_only() -> None:
    state = _classic()
    _set_cells(state, {0: "X", 1: "O", 2: "X", 3: "X", 4: "O", 5: "O", 6: "O", 7: "X"})
    state.characters["player"].health = 7

    res = step(state, PlaceMarkAction(index=8))
    assert res.ok
    assert "TIE_DETECTED" in _types(res.events)
    assert score_snapshot(state)["ties"] == 1
    assert current_phase(state) == "resolving"
    assert not step(state, PlaceMarkAction(index=0)).ok

    assert advance(state, 1.0) == []
    events = advance(state, 0.6)
    assert "BOARD_RESET" in _types(events)
    assert current_phase(state) == "waiting_player"
    assert board_snapshot(state) == ("",) * 9
    assert state.characters["player"].health == 7


def test_reset_cancels_pending_ai_move() -> None:
    state = _classic()
    state.score.player = 2
    step(state, PlaceMarkAction(index=0))
    assert state.scheduler.pending() == ["ai_turn"]

    res = step(state, ResetAction())
    assert res.ok
    reset = [e for e in res.events if e["type"] == "MATCH_RESET"][0]
    assert reset["cancelled_tasks"] == 1
    assert state.scheduler.pending() == []
    assert current_phase(state) == "waiting_player"
    assert board_snapshot(state) == ("",) * 9
    assert advance(state, 5.0) == []
    assert score_snapshot(state)["player"] == 2


def _assert_fresh_after_reset(state: MatchState, res_events: list[dict[str, object]], task: str) -> None:
    reset = [e for e in res_events if e["type"] == "MATCH_RESET"][0]
    assert reset["cancelled_tasks"] == 1
    assert state.scheduler.pending() == []
    assert current_phase(state) == "waiting_player"
    assert board_snapshot(state) == ("",) * 9
    for side in SIDES:
        c = state.characters[side]
        assert c.health == c.max_health
        assert c.damage_dealt == 0
    assert advance(state, 5.0) == [], f"{task} ran after reset"


def test_reset_cancels_pending_line_clear() -> None:
    state = _classic()
    _set_cells(state, {1: "X", 2: "X"})
    step(state, PlaceMarkAction(index=0))
    assert state.scheduler.pending() == ["clear_lines"]
    assert state.characters["ai"].health == 0

    res = step(state, ResetAction())
    assert res.ok
    _assert_fresh_after_reset(state, res.events, "clear_lines")
    assert state.winner is None
    assert score_snapshot(state) == {"player": 0, "ai": 0, "ties": 0}
    assert state.board.cleared_lines == []


def test_reset_cancels_pending_line_clear_in_cards_variant() -> None:
    state = _cards()
    _set_cells(state, {1: "X", 2: "X"})
    card = hand_snapshot(state, "player")[0]
    step(state, PlayCardAction(card_id=card.id, index=0))
    assert current_phase(state) == "resolving"
    assert state.scheduler.pending() == ["clear_lines"]

    res = step(state, ResetAction())
    assert res.ok
    _assert_fresh_after_reset(state, res.events, "clear_lines")
    assert score_snapshot(state) == {"player": 0, "ai": 0, "ties": 0}
    for side in SIDES:
        assert deck_counts(state, side) == {"draw": 9, "discard": 0, "hand": 3}


def test_reset_cancels_pending_tie_reset() -> None:
    state = _classic()
    _set_cells(state, {0: "X", 1: "O", 2: "X", 3: "X", 4: "O", 5: "O", 6: "O", 7: "X"})
    state.characters["player"].health = 7
    step(state, PlaceMarkAction(index=8))
    assert state.scheduler.pending() == ["tie_reset"]

    res = step(state, ResetAction())
    assert res.ok
    _assert_fresh_after_reset(state, res.events, "tie_reset")
    # The tie was already counted when it was detected.
    assert score_snapshot(state) == {"player": 0, "ai": 0, "ties": 1}


def test_reset_cancels_pending_tie_reset_in_cards_variant() -> None:
    state = _cards()
    _set_cells(state, {0: "X", 1: "O", 2: "X", 3: "X", 4: "O", 5: "O", 6: "O", 7: "X"})
    card = hand_snapshot(state, "player")[0]
    step(state, PlayCardAction(card_id=card.id, index=8))
    assert state.scheduler.pending() == ["tie_reset"]

    res = step(state, ResetAction())
    assert res.ok
    _assert_fresh_after_reset(state, res.events, "tie_reset")
    assert score_snapshot(state)["ties"] == 1
    for side in SIDES:
        assert deck_counts(state, side) == {"draw": 9, "discard": 0, "hand": 3}


def test_game_over_is_terminal_until_reset() -> None:
    state = _classic()
    _set_cells(state, {1: "X", 2: "X"})
    step(state, PlaceMarkAction(index=0))
    flush(state)
    assert current_phase(state) == "game_over"

    assert not step(state, PlaceMarkAction(index=4)).ok

    step(state, ResetAction())
    assert current_phase(state) == "waiting_player"
    assert state.winner is None
    for side in SIDES:
        c = state.characters[side]
        assert c.health == c.max_health
        assert c.damage_dealt == 0
    assert score_snapshot(state) == {"player": 1, "ai": 0, "ties": 0}


def test_player_defeat_scores_for_ai() -> None:
    state = _classic()
    state.characters["player"].health = 3
    _set_cells(state, {0: "O", 1: "O", 3: "X", 4: "X"})
    step(state, PlaceMarkAction(index=8))
    flush(state)
    assert state.winner == "ai"
    assert score_snapshot(state)["ai"] == 1
    assert state.status == ("defeat", "bad")


def test_set_difficulty() -> None:
    state = _classic()
    assert not step(state, SetDifficultyAction(skill=1.5)).ok
    assert not step(state, SetDifficultyAction(skill=-0.1)).ok
    res = step(state, SetDifficultyAction(skill=0.25))
    assert res.ok
    assert _types(res.events) == ["DIFFICULTY_CHANGED"]
    assert state.ai_spec.skill == 0.25


def test_variant_specific_actions_rejected() -> None:
    classic = _classic()
    assert not step(classic, PlayCardAction(card_id="player_0", index=0)).ok
    assert not step(classic, EndTurnAction()).ok

    cards = _cards()
    assert not step(cards, PlaceMarkAction(index=0)).ok


def test_subscribers_receive_events() -> None:
    state = _classic()
    got: list[dict[str, object]] = []
    unsubscribe = subscribe(state, got.append)
    res = step(state, PlaceMarkAction(index=4))
    assert got == res.events
    unsubscribe()
    advance(state, 1.0)
    assert got == res.events


def test_cards_match_deals_hands() -> None:
    state = _cards()
    for side in SIDES:
        assert len(hand_snapshot(state, side)) == 3
        assert deck_counts(state, side) == {"draw": 9, "discard": 0, "hand": 3}


def test_card_turn_cycle() -> None:
    state = _cards(seed=4)
    assert not step(state, PlayCardAction(card_id="ai_0", index=4)).ok

    card = hand_snapshot(state, "player")[0]
    res = step(state, PlayCardAction(card_id=card.id, index=4))
    assert res.ok
    assert _types(res.events)[:3] == ["CARD_PLAYED", "HAND_CHANGED", "CELL_FILLED"]
    assert current_phase(state) == "waiting_end_turn"
    assert deck_counts(state, "player") == {"draw": 9, "discard": 1, "hand": 2}
    assert not step(state, PlayCardAction(card_id=hand_snapshot(state, "player")[0].id, index=0)).ok

    res = step(state, EndTurnAction())
    assert res.ok
    assert deck_counts(state, "player")["hand"] == 3
    assert current_phase(state) == "ai_thinking"

    advance(state, 0.5)
    assert current_phase(state) == "waiting_player"
    assert sum(1 for c in board_snapshot(state) if c == "O") == 1
    assert deck_counts(state, "ai") == {"draw": 8, "discard": 1, "hand": 3}
    for side in SIDES:
        counts = deck_counts(state, side)
        assert counts["draw"] + counts["discard"] + counts["hand"] == 12


def test_scoring_with_near_empty_hand_refills() -> None:
    state = _cards()
    eco = state.economy
    hand = hand_snapshot(state, "player")
    for card in hand[:2]:
        eco.discard(eco.play(card.id, "player"), "player")  # type: ignore[arg-type]
    _set_cells(state, {1: "X", 2: "X"})

    res = step(state, PlayCardAction(card_id=hand[2].id, index=0))
    assert res.ok
    types = _types(res.events)
    assert "LINES_COMPLETED" in types
    assert "DECK_RESHUFFLED" in types
    assert deck_counts(state, "player") == {"draw": 9, "discard": 0, "hand": 3}


def test_empty_hand_may_pass() -> None:
    state = _cards()
    eco = state.economy
    for card in hand_snapshot(state, "player"):
        eco.discard(eco.play(card.id, "player"), "player")  # type: ignore[arg-type]
    assert current_phase(state) == "waiting_player"

    res = step(state, EndTurnAction())
    assert res.ok
    assert deck_counts(state, "player")["hand"] == 1
    assert current_phase(state) == "ai_thinking"


def test_tie_in_cards_variant_deals_fresh_round() -> None:
    state = _cards()
    _set_cells(state, {0: "X", 1: "O", 2: "X", 3: "X", 4: "O", 5: "O", 6: "O", 7: "X"})
    card = hand_snapshot(state, "player")[0]
    step(state, PlayCardAction(card_id=card.id, index=8))
    events = flush(state)
    assert _types(events).count("HAND_CHANGED") == 2
    for side in SIDES:
        assert deck_counts(state, side) == {"draw": 9, "discard": 0, "hand": 3}


def test_package_exports_queries() -> None:
    for name in ("board_snapshot", "score_snapshot", "current_phase", "hand_snapshot", "deck_counts", "replay"):
        assert name in engine.__all__
        assert callable(getattr(engine, name))
