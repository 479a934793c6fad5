from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

import pygame  # type: ignore[import-not-found]


Color = tuple[int, int, int]

STATUS_COLORS: dict[str, Color] = {
    "info": (255, 165, 2),
    "good": (46, 213, 115),
    "bad": (255, 71, 87),
    "warn": (255, 165, 2),
}

SKILL_LEVELS: tuple[tuple[str, float], ...] = (
    ("Easy", 0.3),
    ("Normal", 0.7),
    ("Hard", 1.0),
)

MARK_COLORS: dict[str, Color] = {
    "X": (255, 71, 87),
    "O": (83, 82, 237),
}


@dataclass
class Fonts:
    ui: pygame.font.Font
    small: pygame.font.Font
    big: pygame.font.Font
    mark: pygame.font.Font


def load_fonts() -> Fonts:
    pygame.font.init()
    return Fonts(
        ui=pygame.font.SysFont(None, 24),
        small=pygame.font.SysFont(None, 18),
        big=pygame.font.SysFont(None, 34),
        mark=pygame.font.SysFont(None, 96),
    )


def draw_text(
    screen: pygame.Surface,
    font: pygame.font.Font,
    text: str,
    pos: tuple[int, int],
    color: Color = (240, 240, 240),
    center: bool = False,
) -> None:
    img = font.render(text, True, color)
    if center:
        screen.blit(img, img.get_rect(center=pos).topleft)
    else:
        screen.blit(img, pos)


def draw_health_bar(screen: pygame.Surface, rect: pygame.Rect, health: int, max_health: int) -> None:
    pygame.draw.rect(screen, (47, 53, 66), rect)
    pct = max(0, health) / max_health if max_health > 0 else 0.0
    fill = pygame.Rect(rect.x, rect.y, int(rect.width * pct), rect.height)
    pygame.draw.rect(screen, (46, 213, 115), fill)
    pygame.draw.rect(screen, (0, 0, 0), rect, width=2)


@dataclass
class Button:
    rect: pygame.Rect
    text: str
    on_click: Callable[[], None]
    enabled: bool = True
    selected: bool = False

    def handle_event(self, event: pygame.event.Event) -> bool:
        if not self.enabled:
            return False
        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            if self.rect.collidepoint(event.pos):
                self.on_click()
                return True
        return False

    def draw(self, screen: pygame.Surface, font: pygame.font.Font) -> None:
        bg = (60, 60, 60) if self.enabled else (30, 30, 30)
        if self.selected:
            bg = (55, 66, 250)
        pygame.draw.rect(screen, bg, self.rect, border_radius=8)
        pygame.draw.rect(screen, (0, 0, 0), self.rect, width=2, border_radius=8)
        img = font.render(self.text, True, (240, 240, 240))
        r = img.get_rect(center=self.rect.center)
        screen.blit(img, r.topleft)
