from __future__ import annotations

import pygame  # type: ignore[import-not-found]

from linestrike.engine.match import MatchConfig
from linestrike.services.content import ContentError

from ..app import GameContext, SceneTransition
from ..ui import STATUS_COLORS, Button, draw_text
from .main_menu import MainMenuScene


def _describe(cfg: MatchConfig) -> list[str]:
    return [
        f"{cfg.player.name} ({cfg.player.max_health} HP) vs {cfg.ai.name} ({cfg.ai.max_health} HP)",
        f"{cfg.damage_per_line} damage per completed line",
        f"Decks of {cfg.deck_size}, hands of {cfg.hand_size}",
    ]


class BootScene:
    """Loads rules.json once and hands off to the menu, or shows why it could not."""

    def __init__(self, ctx: GameContext) -> None:
        self.ctx = ctx
        self._attempted = False
        self._problems: list[str] = []
        w, h = ctx.screen.get_size()
        self._buttons = [
            Button(rect=pygame.Rect(20, h - 64, 140, 44), text="Retry", on_click=self._retry),
            Button(
                rect=pygame.Rect(180, h - 64, 140, 44),
                text="Quit",
                on_click=lambda: pygame.event.post(pygame.event.Event(pygame.QUIT)),
            ),
        ]

    def _retry(self) -> None:
        self._attempted = False
        self._problems = []

    def _load(self) -> SceneTransition | None:
        try:
            cfg = self.ctx.content.load_config()
        except ContentError as e:
            self._problems = str(e).splitlines()
            self.ctx.telemetry.log("boot", {"ok": False, "error": str(e)})
            return None
        self.ctx.config = cfg
        self.ctx.telemetry.log("boot", {"ok": True, "variant": cfg.variant, "rules": _describe(cfg)})
        return SceneTransition(MainMenuScene(self.ctx))

    def handle_event(self, event: pygame.event.Event) -> None:
        if not self._problems:
            return
        for b in self._buttons:
            if b.handle_event(event):
                return

    def update(self, dt: float) -> SceneTransition | None:
        if self._attempted:
            return None
        self._attempted = True
        return self._load()

    def render(self, screen: pygame.Surface) -> None:
        screen.fill((30, 39, 46))
        fonts = self.ctx.fonts
        draw_text(screen, fonts.big, "LineStrike", (20, 20))
        if not self._problems:
            draw_text(screen, fonts.ui, "Loading rules...", (20, 80))
            return

        draw_text(screen, fonts.ui, "Could not load rules.json", (20, 80), color=STATUS_COLORS["bad"])
        y = 120
        for line in self._problems[:24]:
            draw_text(screen, fonts.small, line[:120], (20, y))
            y += 18
        for b in self._buttons:
            b.draw(screen, fonts.ui)
