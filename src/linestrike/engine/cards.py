from __future__ import annotations

import random
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

from .types import SIDE_MARKS, SIDES, Card, CardTemplate, Side

DEFAULT_DECK_SIZE = 12
DEFAULT_HAND_SIZE = 3
REFILL_THRESHOLD = 1


@dataclass
class SidePool:
    """One side's fixed card set, split between draw pile, discard pile and hand.

    The draw pile is a stack: draws pop from the end.
    """

    draw_pile: list[Card] = field(default_factory=list)
    discard_pile: list[Card] = field(default_factory=list)
    hand: list[Card] = field(default_factory=list)

    def total(self) -> int:
        return len(self.draw_pile) + len(self.discard_pile) + len(self.hand)


def _shuffle(rng: random.Random, items: list[Card]) -> None:
    # random.shuffle is an unbiased Fisher-Yates shuffle.
    rng.shuffle(items)


class CardEconomy:
    """Decks and hands for both sides. Both sides follow identical rules."""

    def __init__(
        self,
        rng: random.Random,
        templates: Mapping[Side, CardTemplate],
        deck_size: int = DEFAULT_DECK_SIZE,
        hand_size: int = DEFAULT_HAND_SIZE,
        on_reshuffle: Callable[[Side, int], None] | None = None,
    ) -> None:
        self.rng = rng
        self.templates = dict(templates)
        self.deck_size = deck_size
        self.hand_size = hand_size
        self.on_reshuffle = on_reshuffle
        self.pools: dict[Side, SidePool] = {side: SidePool() for side in SIDES}

    def initialize(self, side: Side) -> None:
        tpl = self.templates[side]
        cards = [
            Card(
                id=f"{side}_{i}",
                type=tpl.type,
                mark=SIDE_MARKS[side],
                name=tpl.name,
                description=tpl.description,
            )
            for i in range(self.deck_size)
        ]
        _shuffle(self.rng, cards)
        self.pools[side] = SidePool(draw_pile=cards)

    def initialize_all(self) -> None:
        for side in SIDES:
            self.initialize(side)

    def _reshuffle(self, side: Side) -> None:
        pool = self.pools[side]
        moved = len(pool.discard_pile)
        pool.draw_pile.extend(pool.discard_pile)
        pool.discard_pile = []
        _shuffle(self.rng, pool.draw_pile)
        if self.on_reshuffle is not None:
            self.on_reshuffle(side, moved)

    def is_hand_full(self, side: Side) -> bool:
        return len(self.pools[side].hand) >= self.hand_size

    def draw(self, side: Side) -> Card | None:
        """Move the top card of the draw pile into the hand.

        Returns None when the hand is full, or when both piles are empty.
        """
        pool = self.pools[side]
        if self.is_hand_full(side):
            return None
        if not pool.draw_pile and pool.discard_pile:
            self._reshuffle(side)
        if not pool.draw_pile:
            return None
        card = pool.draw_pile.pop()
        pool.hand.append(card)
        return card

    def draw_initial_hand(self, side: Side) -> list[Card]:
        drawn: list[Card] = []
        while not self.is_hand_full(side):
            card = self.draw(side)
            if card is None:
                break
            drawn.append(card)
        return drawn

    def play(self, card_id: str, side: Side) -> Card | None:
        """Take a card out of the hand. The caller is responsible for discarding it."""
        hand = self.pools[side].hand
        for i, card in enumerate(hand):
            if card.id == card_id:
                return hand.pop(i)
        return None

    def discard(self, card: Card, side: Side) -> None:
        self.pools[side].discard_pile.append(card)

    def refill_after_score(self, side: Side) -> list[Card]:
        """Reshuffle and draw back up to a full hand once the hand is nearly empty."""
        pool = self.pools[side]
        if len(pool.hand) > REFILL_THRESHOLD:
            return []
        if pool.discard_pile:
            self._reshuffle(side)
        return self.draw_initial_hand(side)

    def find(self, card_id: str, side: Side) -> Card | None:
        for card in self.pools[side].hand:
            if card.id == card_id:
                return card
        return None

    def hand(self, side: Side) -> list[Card]:
        return list(self.pools[side].hand)

    def counts(self, side: Side) -> dict[str, int]:
        pool = self.pools[side]
        return {
            "draw": len(pool.draw_pile),
            "discard": len(pool.discard_pile),
            "hand": len(pool.hand),
        }
