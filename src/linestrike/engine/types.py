from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

Mark = Literal["X", "O"]
Cell = Literal["", "X", "O"]
Side = Literal["player", "ai"]
Variant = Literal["classic", "cards"]
Phase = Literal["waiting_player", "waiting_end_turn", "ai_thinking", "resolving", "game_over"]
StatusCategory = Literal["info", "good", "bad", "warn"]

EMPTY: Cell = ""
MARK_X: Mark = "X"
MARK_O: Mark = "O"
MARKS: tuple[Mark, Mark] = (MARK_X, MARK_O)

SIDES: tuple[Side, Side] = ("player", "ai")
SIDE_MARKS: dict[Side, Mark] = {"player": MARK_X, "ai": MARK_O}

GRID_SIZE = 3
CELL_COUNT = GRID_SIZE * GRID_SIZE

LinePattern = tuple[int, int, int]

LINE_PATTERNS: tuple[LinePattern, ...] = (
    # rows
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    # columns
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    # diagonals
    (0, 4, 8),
    (2, 4, 6),
)


def other_side(side: Side) -> Side:
    return "ai" if side == "player" else "player"


def side_for_mark(mark: Mark) -> Side:
    return "player" if mark == MARK_X else "ai"


@dataclass(frozen=True)
class LineCompletion:
    pattern: LinePattern
    mark: Mark


@dataclass(frozen=True)
class CardTemplate:
    """Static description shared by every card of one side's deck."""

    type: str
    name: str
    description: str


@dataclass(frozen=True)
class Card:
    id: str
    type: str
    mark: Mark
    name: str
    description: str
