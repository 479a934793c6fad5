from __future__ import annotations

import argparse
from pathlib import Path

import pygame  # type: ignore[import-not-found]

from linestrike.paths import get_paths
from linestrike.services.content import ContentService
from linestrike.services.telemetry import TelemetryService

from .app import App, GameContext
from .scenes.boot import BootScene
from .ui import load_fonts


def main() -> int:
    parser = argparse.ArgumentParser(prog="linestrike")
    parser.add_argument("--width", type=int, default=1024)
    parser.add_argument("--height", type=int, default=768)
    parser.add_argument("--seed", type=int, default=None, help="fixed seed for a reproducible match")
    parser.add_argument("--fps", type=int, default=60)
    parser.add_argument("--telemetry", type=Path, default=None, help="JSONL file for match events")
    args = parser.parse_args()

    pygame.init()
    screen = pygame.display.set_mode((args.width, args.height))
    pygame.display.set_caption("LineStrike")

    clock = pygame.time.Clock()
    paths = get_paths()

    content = ContentService(data_dir=paths.data_dir, schema_dir=paths.schema_dir)
    telemetry = TelemetryService(args.telemetry or paths.userdata_dir / "telemetry.jsonl")

    ctx = GameContext(
        screen=screen,
        clock=clock,
        paths=paths,
        fonts=load_fonts(),
        content=content,
        telemetry=telemetry,
        seed=args.seed,
        fps=args.fps,
    )

    app = App(ctx, BootScene(ctx))
    return app.run()


if __name__ == "__main__":
    raise SystemExit(main())
