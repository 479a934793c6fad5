from __future__ import annotations

from dataclasses import dataclass

import pygame  # type: ignore[import-not-found]

from linestrike.engine.actions import EndTurnAction, PlaceMarkAction, PlayCardAction, ResetAction, SetDifficultyAction
from linestrike.engine.match import (
    Event,
    MatchState,
    advance,
    board_snapshot,
    current_phase,
    deck_counts,
    hand_snapshot,
    step,
    subscribe,
)
from linestrike.engine.types import CELL_COUNT, GRID_SIZE, Side

from ..app import GameContext, SceneTransition
from ..ui import MARK_COLORS, SKILL_LEVELS, STATUS_COLORS, Button, draw_health_bar, draw_text

CELL_SIZE = 120
CELL_GAP = 10

STATUS_TEXT: dict[str, str] = {
    "your_turn": "Your turn! (X)",
    "end_turn": "Mark placed. End your turn.",
    "ai_thinking": "Rival is thinking...",
    "combo_player": "Combo! {lines} line(s)! -{damage} damage",
    "combo_ai": "Rival combo! {lines} line(s)! -{damage} damage",
    "tie": "Tie! Resetting the board...",
    "victory": "You win!",
    "defeat": "You were defeated!",
}


@dataclass
class FloatingText:
    text: str
    x: int
    y: int
    elapsed: float = 0.0
    duration: float = 1.0


class BoardScene:
    def __init__(self, ctx: GameContext, match_state: MatchState) -> None:
        self.ctx = ctx
        self.state = match_state
        self._next: SceneTransition | None = None
        self._selected_card: str | None = None
        self._floating: list[FloatingText] = []
        self._status: tuple[str, str, dict[str, object]] = ("your_turn", "info", {})

        self._unsubscribe = [
            subscribe(self.state, self._on_event),
            subscribe(self.state, self.ctx.telemetry.record),
        ]

        w, h = self.ctx.screen.get_size()
        self.btn_menu = Button(rect=pygame.Rect(w - 160, 20, 140, 40), text="Menu", on_click=self._on_menu)
        self.btn_reset = Button(rect=pygame.Rect(w // 2 - 90, h - 60, 180, 44), text="New Game", on_click=self._on_reset)
        self.btn_end = Button(rect=pygame.Rect(w - 180, h - 130, 160, 50), text="End Turn", on_click=self._on_end_turn)
        self._skill_buttons = [
            (
                Button(
                    rect=pygame.Rect(20 + i * 90, 20, 80, 36),
                    text=label,
                    on_click=lambda s=skill: step(self.state, SetDifficultyAction(skill=s)),
                ),
                skill,
            )
            for i, (label, skill) in enumerate(SKILL_LEVELS)
        ]

    # Engine events

    def _on_event(self, event: Event) -> None:
        etype = event.get("type")
        if etype == "STATUS_CHANGED":
            params = event.get("params")
            self._status = (
                str(event.get("key", "")),
                str(event.get("category", "info")),
                dict(params) if isinstance(params, dict) else {},
            )
        elif etype == "DAMAGE_APPLIED":
            target = str(event.get("target"))
            rect = self._character_rect("player" if target == "player" else "ai")
            self._floating.append(FloatingText(text=f"-{event.get('amount')}", x=rect.centerx, y=rect.y + 60))
        elif etype == "HAND_CHANGED" and event.get("side") == "player":
            hand_ids = {c.id for c in hand_snapshot(self.state, "player")}
            if self._selected_card not in hand_ids:
                self._selected_card = None
        elif etype in ("MATCH_RESET", "BOARD_RESET"):
            self._selected_card = None

    # Controls

    def _leave(self) -> None:
        for unsubscribe in self._unsubscribe:
            unsubscribe()

    def _on_menu(self) -> None:
        from .main_menu import MainMenuScene

        self._leave()
        self._next = SceneTransition(MainMenuScene(self.ctx))

    def _on_reset(self) -> None:
        self._floating = []
        step(self.state, ResetAction())

    def _on_end_turn(self) -> None:
        step(self.state, EndTurnAction())

    def _cell_rect(self, index: int) -> pygame.Rect:
        w, h = self.ctx.screen.get_size()
        span = GRID_SIZE * CELL_SIZE + (GRID_SIZE - 1) * CELL_GAP
        x0 = w // 2 - span // 2
        y0 = h // 2 - span // 2
        row, col = divmod(index, GRID_SIZE)
        return pygame.Rect(x0 + col * (CELL_SIZE + CELL_GAP), y0 + row * (CELL_SIZE + CELL_GAP), CELL_SIZE, CELL_SIZE)

    def _character_rect(self, side: Side) -> pygame.Rect:
        w, h = self.ctx.screen.get_size()
        x = 60 if side == "player" else w - 260
        return pygame.Rect(x, h // 2 - 150, 200, 300)

    def _hand_rect(self, i: int) -> pygame.Rect:
        w, h = self.ctx.screen.get_size()
        return pygame.Rect(w // 2 - 170 + i * 115, h - 140, 105, 70)

    def _hit_test_cell(self, pos: tuple[int, int]) -> int | None:
        for i in range(CELL_COUNT):
            if self._cell_rect(i).collidepoint(pos):
                return i
        return None

    def _hit_test_hand(self, pos: tuple[int, int]) -> str | None:
        for i, card in enumerate(hand_snapshot(self.state, "player")):
            if self._hand_rect(i).collidepoint(pos):
                return card.id
        return None

    def _handle_click(self, pos: tuple[int, int]) -> None:
        if self.state.variant == "cards":
            card_id = self._hit_test_hand(pos)
            if card_id is not None:
                self._selected_card = None if card_id == self._selected_card else card_id
                return
        index = self._hit_test_cell(pos)
        if index is None:
            return
        if self.state.variant == "classic":
            step(self.state, PlaceMarkAction(index=index))
        elif self._selected_card is not None:
            res = step(self.state, PlayCardAction(card_id=self._selected_card, index=index))
            if res.ok:
                self._selected_card = None

    def handle_event(self, event: pygame.event.Event) -> None:
        if self.btn_menu.handle_event(event) or self.btn_reset.handle_event(event):
            return
        for b, _ in self._skill_buttons:
            if b.handle_event(event):
                return
        if self.state.variant == "cards" and self.btn_end.handle_event(event):
            return
        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            self._handle_click(event.pos)
        if event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
            self._selected_card = None

    def update(self, dt: float) -> SceneTransition | None:
        advance(self.state, dt)
        for f in self._floating:
            f.elapsed += dt
        self._floating = [f for f in self._floating if f.elapsed < f.duration]
        return self._next

    # Rendering

    def render(self, screen: pygame.Surface) -> None:
        screen.fill((30, 39, 46))
        fonts = self.ctx.fonts
        w, h = screen.get_size()

        draw_text(screen, fonts.big, "LINESTRIKE", (w // 2, 60), center=True)
        key, category, params = self._status
        text = STATUS_TEXT.get(key, key).format(**params)
        draw_text(screen, fonts.ui, text, (w // 2, 100), color=STATUS_COLORS.get(category, (240, 240, 240)), center=True)

        draw_text(screen, fonts.ui, self.state.score.summary(), (w // 2, h - 90), center=True)

        self.btn_menu.draw(screen, fonts.ui)
        self.btn_reset.draw(screen, fonts.ui)
        for b, skill in self._skill_buttons:
            b.selected = abs(skill - self.state.ai_spec.skill) < 1e-9
            b.draw(screen, fonts.small)

        self._draw_character(screen, "player", (30, 144, 255))
        self._draw_character(screen, "ai", (255, 71, 87))
        self._draw_board(screen)

        if self.state.variant == "cards":
            self._draw_hand(screen)
            phase = current_phase(self.state)
            self.btn_end.enabled = phase == "waiting_end_turn" or (
                phase == "waiting_player" and not hand_snapshot(self.state, "player")
            )
            self.btn_end.draw(screen, fonts.ui)

        for f in self._floating:
            y = int(f.y - 50 * (f.elapsed / f.duration))
            draw_text(screen, fonts.big, f.text, (f.x, y), color=(255, 107, 107), center=True)

    def _draw_character(self, screen: pygame.Surface, side: Side, color: tuple[int, int, int]) -> None:
        fonts = self.ctx.fonts
        c = self.state.characters[side]
        rect = self._character_rect(side)
        pygame.draw.rect(screen, color, rect, border_radius=10)
        pygame.draw.rect(screen, (255, 255, 255), rect, width=3, border_radius=10)
        draw_text(screen, fonts.ui, c.name, (rect.centerx, rect.y + 30), center=True)
        draw_health_bar(screen, pygame.Rect(rect.x + 25, rect.y + 60, 150, 20), c.health, c.max_health)
        draw_text(screen, fonts.small, f"HP: {c.display_health}/{c.max_health}", (rect.centerx, rect.y + 100), center=True)
        draw_text(
            screen, fonts.small, f"DMG: {c.damage_dealt}", (rect.centerx, rect.y + 125), color=(255, 165, 2), center=True
        )
        if self.state.variant == "cards":
            counts = deck_counts(self.state, side)
            draw_text(
                screen,
                fonts.small,
                f"Deck {counts['draw']}  Discard {counts['discard']}",
                (rect.centerx, rect.y + 150),
                center=True,
            )

    def _draw_board(self, screen: pygame.Surface) -> None:
        cells = board_snapshot(self.state)
        hover = self._hit_test_cell(pygame.mouse.get_pos())
        for i, mark in enumerate(cells):
            rect = self._cell_rect(i)
            bg = (55, 66, 250) if hover == i and mark == "" else (47, 53, 66)
            pygame.draw.rect(screen, bg, rect, border_radius=6)
            pygame.draw.rect(screen, (87, 96, 111), rect, width=2, border_radius=6)
            if mark:
                draw_text(screen, self.ctx.fonts.mark, mark, rect.center, color=MARK_COLORS[mark], center=True)

    def _draw_hand(self, screen: pygame.Surface) -> None:
        for i, card in enumerate(hand_snapshot(self.state, "player")):
            rect = self._hand_rect(i)
            border = (255, 165, 2) if card.id == self._selected_card else (0, 0, 0)
            pygame.draw.rect(screen, (40, 44, 56), rect, border_radius=8)
            pygame.draw.rect(screen, border, rect, width=3, border_radius=8)
            draw_text(screen, self.ctx.fonts.ui, card.mark, (rect.centerx, rect.y + 22), color=MARK_COLORS[card.mark], center=True)
            draw_text(screen, self.ctx.fonts.small, card.name, (rect.centerx, rect.y + 50), center=True)
