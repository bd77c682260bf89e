"""
Scrapline - headless tower-defense simulation runner.

Usage:
    python main.py [--seed N] [--waves N] [--auto-build] [--realtime] [--json]

Runs waves back to back on a generated map and prints a summary. Rendering is a
separate concern; this host only drives `GameEngine.update()` at a fixed tick.
"""
import os
import sys
import json
import argparse

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

import pygame

from config import FPS, SIM_TICK_HZ, SIM_SEED, DETERMINISTIC_SIM, GAME_TITLE, STRUCTURE_STATS
from scrapline.engine import GameEngine
from scrapline.mapgen import TileType
from scrapline.sim.determinism import get_rng
from scrapline.systems import perf_stats


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description=f"{GAME_TITLE} - headless runner")
    parser.add_argument("--seed", type=int, default=SIM_SEED, help=f"Simulation seed (default: {SIM_SEED})")
    parser.add_argument("--waves", type=int, default=5, help="Waves to play before stopping (default: 5)")
    parser.add_argument(
        "--max-seconds",
        type=float,
        default=600.0,
        help="Sim-time cap per wave in seconds (default: 600)",
    )
    parser.add_argument(
        "--auto-build",
        action="store_true",
        help="Spend scraps on sentries before each wave (seeded, reproducible)",
    )
    parser.add_argument(
        "--realtime",
        action="store_true",
        help="Pace ticks to wall-clock FPS instead of running as fast as possible",
    )
    parser.add_argument("--show-map", action="store_true", help="Print the generated map")
    parser.add_argument("--json", action="store_true", help="Emit the final snapshot as JSON")
    return parser.parse_args(argv)


def render_ascii(engine: GameEngine) -> str:
    starts = set(engine.game_map.start_points)
    ends = set(engine.game_map.end_points)
    lines = []
    for y in range(engine.grid.rows):
        row = []
        for x in range(engine.grid.cols):
            if (x, y) in starts:
                row.append("S")
            elif (x, y) in ends:
                row.append("H")
            elif engine.game_map.get_tile(x, y) == TileType.OBSTACLE:
                row.append("#")
            elif engine.grid.structure_id_at(x, y) is not None:
                row.append("T")
            else:
                row.append(".")
        lines.append("".join(row))
    return "\n".join(lines)


def auto_build(engine: GameEngine, rng, structure_type: str = "sentry", keep: int = 0) -> int:
    """Place `structure_type` at random free cells until scraps run low. Returns placements."""
    cost = STRUCTURE_STATS[structure_type]["cost"]
    cells = [(x, y) for y in range(engine.grid.rows) for x in range(engine.grid.cols)]
    rng.shuffle(cells)
    placed = 0
    for x, y in cells:
        if engine.economy.scraps - cost < keep:
            break
        if engine.place_structure(x, y, structure_type):
            placed += 1
    return placed


def run_wave(engine: GameEngine, dt: float, max_seconds: float, clock=None) -> bool:
    """Play one wave to completion. Returns False if it hit the time cap."""
    if not engine.start_next_wave():
        return False
    ticks = 0
    max_ticks = int(max_seconds / dt)
    while engine.spawner.wave_active and not engine.game_over:
        if clock is not None:
            clock.tick(FPS)
        engine.update(dt)
        ticks += 1
        if ticks >= max_ticks:
            return False
    return True


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    print("=" * 50)
    print(f"  {GAME_TITLE}")
    print("=" * 50)

    pygame.init()
    clock = pygame.time.Clock() if args.realtime else None
    if DETERMINISTIC_SIM or clock is None:
        dt = 1.0 / max(1, int(SIM_TICK_HZ))
    else:
        dt = 1.0 / FPS

    engine = GameEngine(seed=args.seed)
    build_rng = get_rng("auto_build")
    print(f"[main] seed={args.seed} map={engine.grid.cols}x{engine.grid.rows} "
          f"valid={engine.game_map.valid} attempts={engine.game_map.attempts}")
    if args.show_map:
        print(render_ascii(engine))

    for _ in range(args.waves):
        if args.auto_build:
            placed = auto_build(engine, build_rng, keep=60)
            if placed:
                print(f"[main] placed {placed} sentries (scraps left: {engine.economy.scraps})")
        finished = run_wave(engine, dt, args.max_seconds, clock)
        state = engine.get_game_state()
        print(f"[wave {state['wave']}] lives={state['lives']} scraps={state['scraps']} "
              f"structures={len(state['structures'])} finished={finished}")
        if engine.game_over or not finished:
            break

    if args.show_map:
        print(render_ascii(engine))
    print(f"[main] wave reached: {engine.spawner.wave_reached} game_over={engine.game_over}")
    print(f"[perf] {perf_stats.summary()}")
    if args.json:
        print(json.dumps(engine.snapshot().to_dict(), indent=2))

    pygame.quit()
    return 1 if engine.game_over else 0


if __name__ == "__main__":
    sys.exit(main())
