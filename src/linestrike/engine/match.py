from __future__ import annotations

import math
import random
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field

from .actions import Action, EndTurnAction, PlaceMarkAction, PlayCardAction, ResetAction, SetDifficultyAction
from .ai import AISpec, choose_move
from .board import Board
from .cards import DEFAULT_DECK_SIZE, DEFAULT_HAND_SIZE, CardEconomy
from .scheduler import Scheduler
from .types import (
    SIDE_MARKS,
    SIDES,
    Card,
    CardTemplate,
    Cell,
    LineCompletion,
    LinePattern,
    Mark,
    Phase,
    Side,
    StatusCategory,
    Variant,
    other_side,
    side_for_mark,
)

Event = dict[str, object]
Listener = Callable[[Event], None]

DAMAGE_PER_LINE = 3


def default_card_templates() -> dict[Side, CardTemplate]:
    return {
        "player": CardTemplate(type="normal_x", name="X Normal", description="A basic X mark."),
        "ai": CardTemplate(type="normal_o", name="O Normal", description="A basic O mark."),
    }


@dataclass(frozen=True)
class CharacterConfig:
    name: str
    max_health: int


@dataclass(frozen=True)
class MatchConfig:
    variant: Variant = "classic"
    damage_per_line: int = DAMAGE_PER_LINE
    player: CharacterConfig = field(default_factory=lambda: CharacterConfig(name="Hero", max_health=12))
    ai: CharacterConfig = field(default_factory=lambda: CharacterConfig(name="Rival", max_health=3))
    deck_size: int = DEFAULT_DECK_SIZE
    hand_size: int = DEFAULT_HAND_SIZE
    card_templates: Mapping[Side, CardTemplate] = field(default_factory=default_card_templates)
    ai_think_delay: float = 0.5
    line_clear_delay: float = 0.8
    tie_reset_delay: float = 1.5
    skill: float = 1.0

    def character(self, side: Side) -> CharacterConfig:
        return self.player if side == "player" else self.ai


@dataclass
class Character:
    name: str
    max_health: int
    health: int
    damage_dealt: int = 0

    @property
    def display_health(self) -> int:
        return max(0, self.health)

    @property
    def defeated(self) -> bool:
        return self.health <= 0

    def reset(self) -> None:
        self.health = self.max_health
        self.damage_dealt = 0


@dataclass
class Score:
    player: int = 0
    ai: int = 0
    ties: int = 0

    def as_dict(self) -> dict[str, int]:
        return {"player": self.player, "ai": self.ai, "ties": self.ties}

    def summary(self) -> str:
        return f"Player: {self.player} | AI: {self.ai} | Ties: {self.ties}"


@dataclass
class StepResult:
    ok: bool
    events: list[Event]
    error: str | None = None


@dataclass
class MatchState:
    config: MatchConfig
    seed: int
    rng: random.Random
    board: Board
    economy: CardEconomy
    characters: dict[Side, Character]
    ai_spec: AISpec
    score: Score = field(default_factory=Score)
    scheduler: Scheduler = field(default_factory=Scheduler)
    phase: Phase = "waiting_player"
    winner: Side | None = None
    status: tuple[str, StatusCategory] = ("your_turn", "info")
    action_log: list[Action] = field(default_factory=list)
    action_times: list[float] = field(default_factory=list)
    event_log: list[Event] = field(default_factory=list)
    listeners: list[Listener] = field(default_factory=list)

    @property
    def variant(self) -> Variant:
        return self.config.variant


def _emit(state: MatchState, event: Event) -> None:
    state.event_log.append(event)
    for listener in list(state.listeners):
        listener(event)


def _set_status(state: MatchState, key: str, category: StatusCategory, **params: object) -> None:
    state.status = (key, category)
    _emit(state, {"type": "STATUS_CHANGED", "key": key, "category": category, "params": dict(params)})


def _hand_changed(state: MatchState, side: Side) -> None:
    _emit(
        state,
        {"type": "HAND_CHANGED", "side": side, "hand": [c.id for c in state.economy.hand(side)]},
    )


def _draw_for(state: MatchState, side: Side) -> Card | None:
    card = state.economy.draw(side)
    if card is not None:
        _emit(state, {"type": "CARD_DRAWN", "side": side, "card_id": card.id})
        _hand_changed(state, side)
    return card


def _deal(state: MatchState) -> None:
    state.economy.initialize_all()
    for side in SIDES:
        state.economy.draw_initial_hand(side)
        _hand_changed(state, side)


def _to_player(state: MatchState) -> None:
    state.phase = "waiting_player"
    _set_status(state, "your_turn", "info")


def _place(state: MatchState, side: Side, index: int) -> None:
    mark = SIDE_MARKS[side]
    state.board.apply_move(index, mark)
    _emit(state, {"type": "CELL_FILLED", "index": index, "mark": mark, "side": side})


def _play_from_hand(state: MatchState, side: Side, card_id: str) -> Card | None:
    card = state.economy.play(card_id, side)
    if card is None:
        return None
    state.economy.discard(card, side)
    _emit(state, {"type": "CARD_PLAYED", "side": side, "card_id": card.id})
    _hand_changed(state, side)
    return card


def _group_by_mark(lines: Iterable[LineCompletion]) -> dict[Mark, list[LinePattern]]:
    grouped: dict[Mark, list[LinePattern]] = {}
    for line in lines:
        grouped.setdefault(line.mark, []).append(line.pattern)
    return grouped


def _score_lines(state: MatchState, lines: list[LineCompletion]) -> None:
    for mark, patterns in _group_by_mark(lines).items():
        attacker = side_for_mark(mark)
        target = other_side(attacker)
        amount = len(patterns) * state.config.damage_per_line

        # Health may drop below zero; display clamps.
        state.characters[target].health -= amount
        state.characters[attacker].damage_dealt += amount

        _emit(
            state,
            {"type": "LINES_COMPLETED", "lines": [list(p) for p in patterns], "mark": mark, "side": attacker},
        )
        _emit(
            state,
            {
                "type": "DAMAGE_APPLIED",
                "target": target,
                "amount": amount,
                "health": state.characters[target].health,
                "attacker": attacker,
                "damage_dealt": state.characters[attacker].damage_dealt,
            },
        )
        if attacker == "player":
            _set_status(state, "combo_player", "good", lines=len(patterns), damage=amount)
        else:
            _set_status(state, "combo_ai", "bad", lines=len(patterns), damage=amount)

        if state.variant == "cards":
            drawn = state.economy.refill_after_score(attacker)
            if drawn:
                _hand_changed(state, attacker)

    state.phase = "resolving"
    patterns_to_clear = [line.pattern for line in lines]
    state.scheduler.schedule(
        state.config.line_clear_delay,
        lambda: _finish_scoring(state, patterns_to_clear),
        name="clear_lines",
    )


def _finish_scoring(state: MatchState, patterns: list[LinePattern]) -> None:
    cleared = state.board.clear_lines(patterns)
    _emit(state, {"type": "LINES_CLEARED", "lines": [list(p) for p in patterns], "cells": sorted(cleared)})
    if any(c.defeated for c in state.characters.values()):
        _game_over(state)
    else:
        _to_player(state)


def _tie(state: MatchState) -> None:
    state.score.ties += 1
    state.phase = "resolving"
    _emit(state, {"type": "TIE_DETECTED"})
    _emit(state, {"type": "SCORE_CHANGED", "score": state.score.as_dict()})
    _set_status(state, "tie", "warn")
    state.scheduler.schedule(state.config.tie_reset_delay, lambda: _new_round(state), name="tie_reset")


def _new_round(state: MatchState) -> None:
    state.board.reset()
    _emit(state, {"type": "BOARD_RESET"})
    if state.variant == "cards":
        _deal(state)
    _to_player(state)


def _game_over(state: MatchState) -> None:
    state.phase = "game_over"
    if state.characters["player"].defeated:
        state.winner = "ai"
        state.score.ai += 1
    else:
        state.winner = "player"
        state.score.player += 1
    _emit(state, {"type": "SCORE_CHANGED", "score": state.score.as_dict()})
    _emit(state, {"type": "GAME_OVER", "winner": state.winner})
    if state.winner == "player":
        _set_status(state, "victory", "good")
    else:
        _set_status(state, "defeat", "bad")


def _after_move(state: MatchState, side: Side) -> None:
    lines = state.board.evaluate_lines()
    if lines:
        _score_lines(state, lines)
        return
    if state.board.is_full():
        _tie(state)
        return
    if side == "ai":
        _to_player(state)
    elif state.variant == "classic":
        _begin_ai_turn(state)
    else:
        state.phase = "waiting_end_turn"
        _set_status(state, "end_turn", "info")


def _begin_ai_turn(state: MatchState) -> None:
    state.phase = "ai_thinking"
    _set_status(state, "ai_thinking", "info")
    state.scheduler.schedule(state.config.ai_think_delay, lambda: _ai_turn(state), name="ai_turn")


def _ai_turn(state: MatchState) -> None:
    if state.phase != "ai_thinking":
        return
    if state.variant == "cards":
        if not state.economy.hand("ai"):
            _draw_for(state, "ai")
        hand = state.economy.hand("ai")
        if not hand:
            # Nothing left to play: the turn passes straight back.
            _to_player(state)
            return
        card = state.rng.choice(hand)
        _play_from_hand(state, "ai", card.id)

    index = choose_move(state.board.cells, state.rng, state.ai_spec)
    _place(state, "ai", index)
    if state.variant == "cards":
        _draw_for(state, "ai")
    _after_move(state, "ai")


def _reject(msg: str) -> StepResult:
    return StepResult(ok=False, events=[], error=msg)


def _place_mark(state: MatchState, action: PlaceMarkAction) -> StepResult:
    if state.variant != "classic":
        return _reject("Marks are placed by playing cards.")
    if state.phase != "waiting_player":
        return _reject("Not your turn.")
    if not state.board.is_valid_move(action.index):
        return _reject("Invalid cell.")
    _place(state, "player", action.index)
    _after_move(state, "player")
    return StepResult(ok=True, events=[])


def _play_card(state: MatchState, action: PlayCardAction) -> StepResult:
    if state.variant != "cards":
        return _reject("No cards in this variant.")
    if state.phase != "waiting_player":
        return _reject("Not your turn.")
    if not state.board.is_valid_move(action.index):
        return _reject("Invalid cell.")
    if state.economy.find(action.card_id, "player") is None:
        return _reject("Card not in hand.")
    _play_from_hand(state, "player", action.card_id)
    _place(state, "player", action.index)
    _after_move(state, "player")
    return StepResult(ok=True, events=[])


def _end_turn(state: MatchState, action: EndTurnAction) -> StepResult:
    if state.variant != "cards":
        return _reject("No end turn in this variant.")
    passing = state.phase == "waiting_player" and not state.economy.hand("player")
    if state.phase != "waiting_end_turn" and not passing:
        return _reject("Cannot end turn now.")
    _draw_for(state, "player")
    _begin_ai_turn(state)
    return StepResult(ok=True, events=[])


def _reset(state: MatchState, action: ResetAction) -> StepResult:
    # Pending continuations belong to the old game and never run.
    cancelled = state.scheduler.cancel_all()
    state.board.reset()
    for character in state.characters.values():
        character.reset()
    state.winner = None
    _emit(
        state,
        {
            "type": "MATCH_RESET",
            "cancelled_tasks": cancelled,
            "health": {side: c.health for side, c in state.characters.items()},
        },
    )
    _emit(state, {"type": "BOARD_RESET"})
    if state.variant == "cards":
        _deal(state)
    _to_player(state)
    return StepResult(ok=True, events=[])


def _set_difficulty(state: MatchState, action: SetDifficultyAction) -> StepResult:
    skill = action.skill
    if not isinstance(skill, (int, float)) or math.isnan(skill) or not 0.0 <= skill <= 1.0:
        return _reject("Skill must be within [0, 1].")
    state.ai_spec = AISpec(skill=float(skill))
    _emit(state, {"type": "DIFFICULTY_CHANGED", "skill": float(skill)})
    return StepResult(ok=True, events=[])


def step(state: MatchState, action: Action) -> StepResult:
    """Apply a single inbound request to the match state.

    Invalid requests change nothing and emit nothing; the returned result says
    why. Accepted requests return every event they emitted.
    """
    # Log first so replay has a full record of attempted actions
    state.action_log.append(action)
    state.action_times.append(state.scheduler.now)
    start = len(state.event_log)

    if isinstance(action, PlaceMarkAction):
        result = _place_mark(state, action)
    elif isinstance(action, PlayCardAction):
        result = _play_card(state, action)
    elif isinstance(action, EndTurnAction):
        result = _end_turn(state, action)
    elif isinstance(action, ResetAction):
        result = _reset(state, action)
    elif isinstance(action, SetDifficultyAction):
        result = _set_difficulty(state, action)
    else:
        return _reject("Unknown action.")

    if result.ok:
        result.events = state.event_log[start:]
    return result


def advance(state: MatchState, dt: float) -> list[Event]:
    """Let `dt` seconds pass and return the events emitted by deferred continuations."""
    start = len(state.event_log)
    state.scheduler.advance(dt)
    return state.event_log[start:]


def flush(state: MatchState) -> list[Event]:
    """Run every pending continuation regardless of its delay."""
    start = len(state.event_log)
    state.scheduler.run_all()
    return state.event_log[start:]


def subscribe(state: MatchState, listener: Listener) -> Callable[[], None]:
    """Register `listener` for every event emitted from now on.

    Listeners run synchronously inside `step` and `advance` and must not raise:
    an exception escapes mid-transition and leaves the match half-updated.
    Returns a function that removes the listener again.
    """
    state.listeners.append(listener)

    def unsubscribe() -> None:
        if listener in state.listeners:
            state.listeners.remove(listener)

    return unsubscribe


def new_match(
    config: MatchConfig | None = None,
    seed: int = 0,
    ai_spec: AISpec | None = None,
) -> MatchState:
    cfg = config or MatchConfig()
    rng = random.Random(seed)
    economy = CardEconomy(
        rng=rng,
        templates=cfg.card_templates,
        deck_size=cfg.deck_size,
        hand_size=cfg.hand_size,
    )
    characters = {
        side: Character(
            name=cfg.character(side).name,
            max_health=cfg.character(side).max_health,
            health=cfg.character(side).max_health,
        )
        for side in SIDES
    }
    state = MatchState(
        config=cfg,
        seed=seed,
        rng=rng,
        board=Board(),
        economy=economy,
        characters=characters,
        ai_spec=ai_spec or AISpec(skill=cfg.skill),
    )
    economy.on_reshuffle = lambda side, moved: _emit(
        state, {"type": "DECK_RESHUFFLED", "side": side, "cards": moved}
    )
    if cfg.variant == "cards":
        _deal(state)
    _to_player(state)
    return state


def replay(
    actions: Iterable[Action],
    seed: int,
    config: MatchConfig | None = None,
    ai_spec: AISpec | None = None,
    times: Sequence[float] | None = None,
    until: float | None = None,
) -> MatchState:
    """Rebuild a match from its action log.

    With `times` (a recorded `action_times`), the clock is advanced to each
    action's arrival time before it is applied, so deferred work interleaves
    with the actions exactly as it did live; `until` then advances the clock
    to a final time. Without `times`, pending work is flushed after every
    action, which matches logs recorded with `flush` between actions.
    """
    state = new_match(config=config, seed=seed, ai_spec=ai_spec)
    if times is None:
        for a in actions:
            step(state, a)
            flush(state)
        return state

    for a, t in zip(actions, times, strict=True):
        state.scheduler.advance_to(t)
        step(state, a)
    if until is not None:
        state.scheduler.advance_to(until)
    return state


# Read-only queries for the presentation layer.


def board_snapshot(state: MatchState) -> tuple[Cell, ...]:
    return state.board.snapshot()


def score_snapshot(state: MatchState) -> dict[str, int]:
    return state.score.as_dict()


def current_phase(state: MatchState) -> Phase:
    return state.phase


def hand_snapshot(state: MatchState, side: Side) -> tuple[Card, ...]:
    return tuple(state.economy.hand(side))


def deck_counts(state: MatchState, side: Side) -> dict[str, int]:
    return state.economy.counts(side)
