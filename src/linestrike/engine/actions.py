from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PlaceMarkAction:
    index: int


@dataclass(frozen=True)
class PlayCardAction:
    card_id: str
    index: int


@dataclass(frozen=True)
class EndTurnAction:
    pass


@dataclass(frozen=True)
class ResetAction:
    pass


@dataclass(frozen=True)
class SetDifficultyAction:
    skill: float


Action = PlaceMarkAction | PlayCardAction | EndTurnAction | ResetAction | SetDifficultyAction
