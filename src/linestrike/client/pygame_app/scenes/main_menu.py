from __future__ import annotations

import random
from dataclasses import replace

import pygame  # type: ignore[import-not-found]

from linestrike.engine.ai import AISpec
from linestrike.engine.match import new_match
from linestrike.engine.types import Variant

from ..app import GameContext, SceneTransition
from ..ui import SKILL_LEVELS, Button, draw_text
from .board import BoardScene


class MainMenuScene:
    def __init__(self, ctx: GameContext) -> None:
        self.ctx = ctx
        self._next: SceneTransition | None = None
        self._skill = ctx.config.skill if ctx.config is not None else 1.0
        self._buttons: list[Button] = []
        self._skill_buttons: list[tuple[Button, float]] = []
        self._build_ui()

    def _build_ui(self) -> None:
        x = 60
        y = 160
        w = 320
        h = 56
        gap = 14

        self._buttons = [
            Button(
                rect=pygame.Rect(x, y, w, h),
                text="Classic (vs AI)",
                on_click=lambda: self._start("classic"),
            ),
            Button(
                rect=pygame.Rect(x, y + (h + gap) * 1, w, h),
                text="Cards (vs AI)",
                on_click=lambda: self._start("cards"),
            ),
            Button(
                rect=pygame.Rect(x, y + (h + gap) * 2, w, h),
                text="Quit",
                on_click=lambda: pygame.event.post(pygame.event.Event(pygame.QUIT)),
            ),
        ]
        for i, (label, skill) in enumerate(SKILL_LEVELS):
            btn = Button(
                rect=pygame.Rect(x + i * 110, y + (h + gap) * 3 + 40, 100, 44),
                text=label,
                on_click=lambda s=skill: self._set_skill(s),
            )
            self._skill_buttons.append((btn, skill))

    def _set_skill(self, skill: float) -> None:
        self._skill = skill

    def _start(self, variant: Variant) -> None:
        cfg = self.ctx.config
        if cfg is None:
            return
        seed = self.ctx.seed if self.ctx.seed is not None else random.randrange(1, 2**31 - 1)
        state = new_match(replace(cfg, variant=variant), seed=seed, ai_spec=AISpec(skill=self._skill))
        self.ctx.telemetry.log("match_started", {"variant": variant, "seed": seed, "skill": self._skill})
        self._next = SceneTransition(BoardScene(self.ctx, state))

    def handle_event(self, event: pygame.event.Event) -> None:
        for b in self._buttons:
            if b.handle_event(event):
                return
        for b, _ in self._skill_buttons:
            if b.handle_event(event):
                return

    def update(self, dt: float) -> SceneTransition | None:
        return self._next

    def render(self, screen: pygame.Surface) -> None:
        screen.fill((30, 39, 46))
        fonts = self.ctx.fonts
        draw_text(screen, fonts.big, "LineStrike", (60, 40))
        draw_text(screen, fonts.ui, "Complete lines to strike. Lines clear, play goes on.", (60, 100))
        for b in self._buttons:
            b.draw(screen, fonts.ui)
        draw_text(screen, fonts.ui, "Opponent skill", (60, 160 + 70 * 3 + 10))
        for b, skill in self._skill_buttons:
            b.selected = abs(skill - self._skill) < 1e-9
            b.draw(screen, fonts.ui)
