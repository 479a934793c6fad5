from __future__ import annotations

from collections.abc import Iterable, Sequence

from .types import CELL_COUNT, EMPTY, LINE_PATTERNS, MARKS, Cell, LineCompletion, LinePattern, Mark


def completed_lines(cells: Sequence[Cell]) -> list[LineCompletion]:
    """Return every line pattern whose three cells hold the same mark."""
    found: list[LineCompletion] = []
    for pattern in LINE_PATTERNS:
        a, b, c = pattern
        mark = cells[a]
        if mark != EMPTY and mark == cells[b] and mark == cells[c]:
            found.append(LineCompletion(pattern=pattern, mark=mark))  # type: ignore[arg-type]
    return found


def empty_indices(cells: Sequence[Cell]) -> list[int]:
    return [i for i, cell in enumerate(cells) if cell == EMPTY]


class Board:
    """The 3x3 grid.

    Cells only ever go Empty -> mark (placement) or mark -> Empty (line clear).
    Turn order is not tracked here.
    """

    def __init__(self) -> None:
        self.cells: list[Cell] = []
        self.cleared_lines: list[LinePattern] = []
        self.reset()

    def reset(self) -> None:
        self.cells = [EMPTY] * CELL_COUNT
        self.cleared_lines = []

    def is_valid_move(self, index: int) -> bool:
        return 0 <= index < CELL_COUNT and self.cells[index] == EMPTY

    def apply_move(self, index: int, mark: Mark) -> bool:
        if mark not in MARKS:
            raise ValueError(f"Unknown mark: {mark!r}")
        if not self.is_valid_move(index):
            return False
        self.cells[index] = mark
        return True

    def available_moves(self) -> list[int]:
        return empty_indices(self.cells)

    def evaluate_lines(self) -> list[LineCompletion]:
        return completed_lines(self.cells)

    def is_full(self) -> bool:
        return EMPTY not in self.cells

    def clear_lines(self, patterns: Iterable[LinePattern]) -> set[int]:
        """Empty the union of the given patterns' cells and return that union.

        Cells outside the union are left alone, even when they form a line.
        """
        to_clear: set[int] = set()
        for pattern in patterns:
            to_clear.update(pattern)
            self.cleared_lines.append(tuple(pattern))  # type: ignore[arg-type]
        for index in to_clear:
            self.cells[index] = EMPTY
        return to_clear

    def snapshot(self) -> tuple[Cell, ...]:
        return tuple(self.cells)
