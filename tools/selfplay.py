from __future__ import annotations

import argparse
import random
from collections import Counter

from linestrike.engine.ai import AISpec, choose_move
from linestrike.engine.board import Board
from linestrike.engine.types import MARK_O, MARK_X, Mark


def play_round(rng: random.Random, skills: dict[Mark, float], max_moves: int = 60) -> tuple[Counter[str], int]:
    """Play one board until it fills up, clearing lines as they complete.

    Returns the lines completed per mark and the number of moves made.
    """
    board = Board()
    lines: Counter[str] = Counter()
    to_move: Mark = MARK_X
    moves = 0
    while not board.is_full() and moves < max_moves:
        other: Mark = MARK_O if to_move == MARK_X else MARK_X
        index = choose_move(board.cells, rng, AISpec(skill=skills[to_move]), ai_mark=to_move, human_mark=other)
        board.apply_move(index, to_move)
        moves += 1
        completed = board.evaluate_lines()
        if completed:
            for line in completed:
                lines[line.mark] += 1
            board.clear_lines([line.pattern for line in completed])
        to_move = other
    return lines, moves


def main() -> int:
    parser = argparse.ArgumentParser(prog="selfplay", description="Run AI-vs-AI boards and summarize line counts.")
    parser.add_argument("--rounds", type=int, default=20)
    parser.add_argument("--seed", type=int, default=1)
    parser.add_argument("--skill-x", type=float, default=1.0)
    parser.add_argument("--skill-o", type=float, default=1.0)
    args = parser.parse_args()

    rng = random.Random(args.seed)
    skills: dict[Mark, float] = {MARK_X: args.skill_x, MARK_O: args.skill_o}
    totals: Counter[str] = Counter()
    clean = 0
    for _ in range(args.rounds):
        lines, _moves = play_round(rng, skills)
        totals.update(lines)
        if not lines:
            clean += 1
    print(f"rounds={args.rounds} lines_x={totals[MARK_X]} lines_o={totals[MARK_O]} no_line_rounds={clean}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
