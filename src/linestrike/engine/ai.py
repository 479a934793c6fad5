from __future__ import annotations

import random
from collections.abc import Sequence
from dataclasses import dataclass
from functools import lru_cache

from .board import completed_lines, empty_indices
from .types import MARK_O, MARK_X, Cell, Mark

WIN_SCORE = 10


@dataclass(frozen=True)
class AISpec:
    """Opponent tuning.

    skill:
      0.0 = every move picked uniformly at random
      1.0 = every move picked by exhaustive minimax
    Values in between blend the two per move.
    """

    skill: float = 1.0

    def __post_init__(self) -> None:
        if not 0.0 <= self.skill <= 1.0:
            raise ValueError(f"skill must be within [0, 1], got {self.skill}")


def _terminal_score(cells: tuple[Cell, ...], depth: int, ai_mark: Mark, human_mark: Mark) -> int | None:
    marks = {line.mark for line in completed_lines(cells)}
    if ai_mark in marks:
        return WIN_SCORE - depth
    if human_mark in marks:
        return -(WIN_SCORE - depth)
    if "" not in cells:
        return 0
    return None


@lru_cache(maxsize=None)
def _minimax(
    cells: tuple[Cell, ...], to_move: Mark, depth: int, ai_mark: Mark, human_mark: Mark
) -> tuple[int, int | None]:
    terminal = _terminal_score(cells, depth, ai_mark, human_mark)
    if terminal is not None:
        return terminal, None

    next_mark = human_mark if to_move == ai_mark else ai_mark
    best: tuple[int, int | None] | None = None
    for move in empty_indices(cells):
        child = cells[:move] + (to_move,) + cells[move + 1 :]
        score, _ = _minimax(child, next_mark, depth + 1, ai_mark, human_mark)
        if best is None:
            best = (score, move)
        elif to_move == ai_mark and score > best[0]:
            best = (score, move)
        elif to_move != ai_mark and score < best[0]:
            best = (score, move)
    assert best is not None
    return best


def minimax_move(cells: Sequence[Cell], ai_mark: Mark = MARK_O, human_mark: Mark = MARK_X) -> int:
    """Best index for `ai_mark` to play; ties go to the lowest index."""
    moves = empty_indices(cells)
    if not moves:
        raise ValueError("No moves available on a full board.")
    _, index = _minimax(tuple(cells), ai_mark, 0, ai_mark, human_mark)
    # A root that already holds a completed line is terminal; fall back to the first free cell.
    return index if index is not None else moves[0]


def choose_move(
    cells: Sequence[Cell],
    rng: random.Random,
    spec: AISpec | None = None,
    ai_mark: Mark = MARK_O,
    human_mark: Mark = MARK_X,
) -> int:
    """Pick the opponent's next cell. `cells` is never mutated."""
    spec = spec or AISpec()
    moves = empty_indices(cells)
    if not moves:
        raise ValueError("No moves available on a full board.")
    if rng.random() >= spec.skill:
        return rng.choice(moves)
    return minimax_move(cells, ai_mark=ai_mark, human_mark=human_mark)
