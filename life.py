#!/usr/bin/env python3
"""
  Terminal viewer for a toroidal Game of Life universe.

  Draws the grid with half-block characters (two cells per terminal row),
  advances one generation per frame and shows generation, population and
  a population sparkline in the status bar. Use --text to skip curses and
  print each generation's glyph rendering to stdout instead.

  Controls:
    q         quit               SPACE     pause / resume
    n         single step (while paused)
    r         reseed             c         clear
    +/-       speed              s         toggle stats overlay
    mouse     toggle cells

  Stats are logged to life_stats.csv in the working directory unless --no-log.
"""

from __future__ import annotations

import argparse
import curses
import sys
import time
from collections import deque
from pathlib import Path
from typing import IO, ClassVar, Sequence, TextIO

import numpy as np
from numpy.typing import NDArray

from universe import (
    DEFAULT_ALIVE_PROBABILITY,
    PATTERNS,
    Universe,
    pattern_size,
)

# ── Half-block characters ───────────────────────────────────────────────
UPPER_HALF = "\u2580"  # ▀  top pixel alive
LOWER_HALF = "\u2584"  # ▄  bottom pixel alive
FULL_BLOCK = "\u2588"  # █  both alive

# ── Sparkline characters ────────────────────────────────────────────────
SPARKS = "▁▂▃▄▅▆▇█"

# ── Defaults ────────────────────────────────────────────────────────────
HEADLESS_WIDTH = 64
HEADLESS_HEIGHT = 32
DEFAULT_DELAY_MS = 50.0
MIN_DELAY_MS = 10.0
MAX_DELAY_MS = 500.0

# Relative: resolved against the working directory when the log is opened
LOG_PATH = Path("life_stats.csv")


# ═══════════════════════════════════════════════════════════════════════
#  Stats logger
# ═══════════════════════════════════════════════════════════════════════

class StatsLogger:
    """Writes per-generation telemetry to CSV."""

    HEADER: ClassVar[str] = "gen,time_s,population,births,deaths,event\n"

    def __init__(self, path: Path | None) -> None:
        self._path = path
        self._fh: IO[str] | None = None
        self._t0: float = time.monotonic()

    @property
    def enabled(self) -> bool:
        return self._fh is not None

    def open(self) -> None:
        if self._path is None:
            return
        try:
            self._fh = open(self._path, "w")
            self._fh.write(self.HEADER)
            self._fh.flush()
        except OSError:
            self._fh = None

    def log(
        self,
        gen: int,
        pop: int,
        births: int = 0,
        deaths: int = 0,
        event: str = "",
    ) -> None:
        if self._fh is None:
            return
        t = time.monotonic() - self._t0
        self._fh.write(f"{gen},{t:.1f},{pop},{births},{deaths},{event}\n")
        # Flush on events or periodically
        if event or gen % 50 == 0:
            try:
                self._fh.flush()
            except OSError:
                pass

    def close(self) -> None:
        if self._fh is not None:
            try:
                self._fh.close()
            except OSError:
                pass
            self._fh = None


# ═══════════════════════════════════════════════════════════════════════
#  Session
# ═══════════════════════════════════════════════════════════════════════

class LifeSession:
    """
    Host-side state around a Universe: seeding policy, pause/speed,
    population history and the per-tick event classification the
    viewer and logger share.
    """

    def __init__(
        self,
        width: int,
        height: int,
        probability: float = DEFAULT_ALIVE_PROBABILITY,
        seed: int | None = None,
        pattern: str | None = None,
    ) -> None:
        if pattern is not None and pattern not in PATTERNS:
            raise ValueError(
                f"unknown pattern {pattern!r} (choose from {', '.join(sorted(PATTERNS))})"
            )
        self.probability = probability
        self.pattern = pattern
        self._rng = np.random.default_rng(seed)

        self.paused: bool = False
        self.delay: float = DEFAULT_DELAY_MS
        self.pop_history: deque[int] = deque(maxlen=500)
        self.births: int = 0
        self.deaths: int = 0
        self.last_event: str = ""

        self.universe: Universe = self._seed(width, height)
        self.pop_history.append(self.universe.population())

    def _seed(self, width: int, height: int) -> Universe:
        if self.pattern is None:
            return Universe.random(width, height, self.probability, self._rng)
        universe = Universe.dead(width, height)
        rows, cols = pattern_size(self.pattern)
        universe.place(self.pattern, (height - rows) // 2, (width - cols) // 2)
        return universe

    @property
    def generation(self) -> int:
        return self.universe.generation

    def population(self) -> int:
        return self.pop_history[-1] if self.pop_history else 0

    def step(self, force: bool = False) -> str:
        """Advance one generation. Returns event string (empty if none)."""
        if self.paused and not force:
            return ""

        before = self.universe.cells()
        self.universe.tick()
        after = self.universe.cells()

        self.births = int(np.count_nonzero(after > before))
        self.deaths = int(np.count_nonzero(after < before))
        pop = self.universe.population()
        self.pop_history.append(pop)

        if pop == 0 and (self.births or self.deaths):
            event = "extinct"
        elif pop > 0 and not (self.births or self.deaths):
            event = "still"
        else:
            event = ""
        if event and event != self.last_event:
            self.last_event = event
            return event
        if not event:
            self.last_event = ""
        return ""

    def reseed(self) -> None:
        self.universe = self._seed(self.universe.width, self.universe.height)
        self.pop_history.clear()
        self.pop_history.append(self.universe.population())
        self.births = self.deaths = 0
        self.last_event = ""

    def clear(self) -> None:
        self.universe.clear()
        self.pop_history.clear()
        self.pop_history.append(0)
        self.births = self.deaths = 0
        self.last_event = ""

    def toggle_cell(self, term_y: int, term_x: int) -> None:
        """Toggle the cell under a terminal position (half-block: 2 rows/char)."""
        row = term_y * 2
        if 0 <= row < self.universe.height and 0 <= term_x < self.universe.width:
            self.universe.toggle(row, term_x)
            self.pop_history[-1] = self.universe.population()

    def sparkline(self, width: int = 24) -> str:
        ph_len = len(self.pop_history)
        if ph_len < 2:
            return ""
        start = max(0, ph_len - width)
        window = [self.pop_history[i] for i in range(start, ph_len)]
        lo, hi = min(window), max(window)
        n_sparks = len(SPARKS) - 1
        mid_spark = SPARKS[len(SPARKS) // 2]
        if hi == lo:
            return mid_spark * len(window)
        return "".join(SPARKS[int((v - lo) / (hi - lo) * n_sparks)] for v in window)


# ═══════════════════════════════════════════════════════════════════════
#  Rendering
# ═══════════════════════════════════════════════════════════════════════

def half_block_rows(grid: NDArray[np.uint8]) -> list[str]:
    """Fold a (height, width) grid into terminal rows, two cells per char.

    An odd last row is paired with an all-dead row.
    """
    height, width = grid.shape
    if height % 2:
        grid = np.vstack([grid, np.zeros((1, width), dtype=grid.dtype)])
    top = grid[0::2] > 0
    bot = grid[1::2] > 0
    # 0 = empty, 1 = top only, 2 = bottom only, 3 = both
    code = top.astype(np.uint8) + 2 * bot.astype(np.uint8)
    chars = np.array([" ", UPPER_HALF, LOWER_HALF, FULL_BLOCK])
    return ["".join(line) for line in chars[code].tolist()]


def render(
    stdscr: curses.window,
    session: LifeSession,
    show_stats: bool = False,
) -> None:
    """Draw the universe, optional stats overlay and the status bar."""
    max_y, max_x = stdscr.getmaxyx()
    rows = half_block_rows(session.universe.as_grid())

    for y, line in enumerate(rows[: max_y - 1]):
        try:
            stdscr.addstr(y, 0, line[:max_x], curses.A_BOLD)
        except curses.error:
            pass

    if show_stats:
        _draw_stats_overlay(stdscr, session, max_y, max_x)

    pop = session.population()
    spark = session.sparkline()
    state = "paused" if session.paused else f"{session.delay:.0f}ms"
    left = f"  gen {session.generation:,}  pop {pop:,}  {spark}"
    right = f"{state}  q spc n r c +/- s  "
    gap = max(1, max_x - len(left) - len(right) - 1)
    status = (left + " " * gap + right)[: max_x - 1]
    try:
        stdscr.addstr(max_y - 1, 0, status, curses.A_DIM)
    except curses.error:
        pass


def _draw_stats_overlay(
    stdscr: curses.window, session: LifeSession, max_y: int, max_x: int
) -> None:
    """Draw the telemetry panel in the bottom-right."""
    panel_w = 32
    universe = session.universe
    lines = [
        f"{'':─<{panel_w - 2}}",
        " universe",
        f" size        : {universe.width}x{universe.height}",
        f" generation  : {universe.generation:,}",
        f" population  : {session.population():,}",
        f" births      : {session.births:,}",
        f" deaths      : {session.deaths:,}",
        f" last event  : {session.last_event or 'none'}",
    ]
    x0 = max_x - panel_w - 2
    y0 = max_y - len(lines) - 2
    if x0 < 0 or y0 < 0:
        return

    for i, line in enumerate(lines):
        padded = f" {line:<{panel_w - 1}}"[:panel_w]
        try:
            stdscr.addstr(y0 + i, x0, padded, curses.A_DIM)
        except curses.error:
            pass


# ═══════════════════════════════════════════════════════════════════════
#  Main loops
# ═══════════════════════════════════════════════════════════════════════

def run_text(args: argparse.Namespace, out: TextIO = sys.stdout) -> LifeSession:
    """Headless mode: print each generation's glyph rendering."""
    session = LifeSession(
        args.width or HEADLESS_WIDTH,
        args.height or HEADLESS_HEIGHT,
        probability=args.prob,
        seed=args.seed,
        pattern=args.pattern,
    )
    logger = StatsLogger(None if args.no_log else args.log)
    logger.open()
    try:
        logger.log(gen=0, pop=session.population(), event="seed")
        out.write(f"generation 0\n{session.universe.render()}\n")
        generations = args.generations if args.generations is not None else 10
        for _ in range(generations):
            event = session.step()
            logger.log(
                gen=session.generation,
                pop=session.population(),
                births=session.births,
                deaths=session.deaths,
                event=event,
            )
            out.write(f"generation {session.generation}\n{session.universe.render()}\n")
            if args.delay:
                time.sleep(args.delay / 1000.0)
    finally:
        logger.close()
    return session


def main(stdscr: curses.window, args: argparse.Namespace) -> None:
    curses.curs_set(0)
    stdscr.nodelay(True)
    stdscr.timeout(0)
    curses.mousemask(curses.ALL_MOUSE_EVENTS)

    max_y, max_x = stdscr.getmaxyx()
    width = args.width or max_x
    height = args.height or (max_y - 1) * 2
    session = LifeSession(
        width, height, probability=args.prob, seed=args.seed, pattern=args.pattern
    )
    session.delay = args.delay

    logger = StatsLogger(None if args.no_log else args.log)
    logger.open()
    logger.log(gen=0, pop=session.population(), event="seed")

    show_stats = False

    try:
        while True:
            # ── Input ──────────────────────────────────────────────
            try:
                key = stdscr.getch()
            except curses.error:
                key = -1

            event = ""
            if key in (ord("q"), ord("Q")):
                break
            elif key in (ord("r"), ord("R")):
                session.reseed()
                event = "reseed"
            elif key == ord(" "):
                session.paused = not session.paused
            elif key in (ord("n"), ord("N")):
                if session.paused:
                    event = session.step(force=True)
            elif key in (ord("+"), ord("=")):
                session.delay = max(MIN_DELAY_MS, session.delay - 10)
            elif key in (ord("-"), ord("_")):
                session.delay = min(MAX_DELAY_MS, session.delay + 10)
            elif key in (ord("c"), ord("C")):
                session.clear()
                event = "clear"
            elif key in (ord("s"), ord("S")):
                show_stats = not show_stats
            elif key == curses.KEY_MOUSE:
                try:
                    _, mx, my, _, _ = curses.getmouse()
                    session.toggle_cell(my, mx)
                except curses.error:
                    pass

            # ── Simulate ───────────────────────────────────────────
            if not session.paused:
                event = session.step() or event

            # ── Log ────────────────────────────────────────────────
            if event or (not session.paused and session.generation % 10 == 0):
                logger.log(
                    gen=session.generation,
                    pop=session.population(),
                    births=session.births,
                    deaths=session.deaths,
                    event=event,
                )

            # ── Render ─────────────────────────────────────────────
            stdscr.erase()
            render(stdscr, session, show_stats=show_stats)
            stdscr.refresh()

            if args.generations is not None and session.generation >= args.generations:
                break

            time.sleep(session.delay / 1000.0)

    finally:
        logger.close()


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Conway's Game of Life on a torus")
    parser.add_argument("--width", type=int, default=None,
                        help="Grid columns (default: terminal width, "
                             f"{HEADLESS_WIDTH} with --text)")
    parser.add_argument("--height", type=int, default=None,
                        help="Grid rows (default: fill the terminal, "
                             f"{HEADLESS_HEIGHT} with --text)")
    parser.add_argument("--prob", type=float, default=DEFAULT_ALIVE_PROBABILITY,
                        help="Live-cell probability for the random seed "
                             f"(default: {DEFAULT_ALIVE_PROBABILITY})")
    parser.add_argument("--seed", type=int, default=None,
                        help="Random seed for a reproducible start")
    parser.add_argument("--pattern", choices=sorted(PATTERNS), default=None,
                        help="Start from a named pattern centred on a dead grid")
    parser.add_argument("--delay", type=float, default=DEFAULT_DELAY_MS,
                        help=f"Milliseconds between generations (default: {DEFAULT_DELAY_MS:.0f})")
    parser.add_argument("--generations", type=int, default=None,
                        help="Stop after this many generations (--text default: 10)")
    parser.add_argument("--text", action="store_true",
                        help="Print glyph renderings to stdout instead of using curses")
    parser.add_argument("--log", type=Path, default=LOG_PATH,
                        help="CSV stats file (default: life_stats.csv in the working directory)")
    parser.add_argument("--no-log", action="store_true",
                        help="Disable the CSV stats log")
    args = parser.parse_args(argv)

    for name in ("width", "height"):
        value = getattr(args, name)
        if value is not None and value < 1:
            parser.error(f"--{name} must be at least 1")
    if not 0.0 <= args.prob <= 1.0:
        parser.error("--prob must be between 0 and 1")
    if args.generations is not None and args.generations < 0:
        parser.error("--generations must not be negative")
    if args.delay < 0:
        parser.error("--delay must not be negative")
    return args


def run(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    if args.text:
        run_text(args)
        return
    try:
        curses.wrapper(main, args)
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
