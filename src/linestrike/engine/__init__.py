"""Headless rules engine for LineStrike.

IMPORTANT: This package must never import pygame.
"""

from .actions import EndTurnAction, PlaceMarkAction, PlayCardAction, ResetAction, SetDifficultyAction
from .ai import AISpec, choose_move
from .board import Board
from .cards import CardEconomy
from .match import (
    MatchConfig,
    MatchState,
    StepResult,
    advance,
    board_snapshot,
    current_phase,
    deck_counts,
    flush,
    hand_snapshot,
    new_match,
    replay,
    score_snapshot,
    step,
    subscribe,
)
from .types import Card, LineCompletion, Mark, Phase, Side

__all__ = [
    "AISpec",
    "Board",
    "Card",
    "CardEconomy",
    "EndTurnAction",
    "LineCompletion",
    "Mark",
    "MatchConfig",
    "MatchState",
    "Phase",
    "PlaceMarkAction",
    "PlayCardAction",
    "ResetAction",
    "SetDifficultyAction",
    "StepResult",
    "Side",
    "advance",
    "board_snapshot",
    "choose_move",
    "current_phase",
    "deck_counts",
    "flush",
    "hand_snapshot",
    "new_match",
    "replay",
    "score_snapshot",
    "step",
    "subscribe",
]
