#!/usr/bin/env python3
"""
Profiling harness for the Universe engine.

Runs tick() (plus the text and half-block renderers) headlessly under
cProfile, then prints a ranked breakdown of where time is spent.

Usage:
  python3 life_bench.py                  # 500 generations, summary
  python3 life_bench.py -n 1000          # 1000 generations
  python3 life_bench.py --line-timing    # per-generation component timing
  python3 life_bench.py --dump prof.out  # dump cProfile binary for snakeviz etc.
"""

from __future__ import annotations

import argparse
import cProfile
import pstats
import time
from io import StringIO
from typing import Sequence

import numpy as np

from life import half_block_rows
from universe import DEFAULT_ALIVE_PROBABILITY, Universe


def time_generation(universe: Universe) -> dict[str, float]:
    """Advance one generation and render it, timing each component.

    Returns a dict of component → seconds.
    """
    timings: dict[str, float] = {}

    t0 = time.perf_counter()
    universe.tick()
    timings["tick()"] = time.perf_counter() - t0

    t0 = time.perf_counter()
    universe.render()
    timings["render()"] = time.perf_counter() - t0

    t0 = time.perf_counter()
    half_block_rows(universe.as_grid())
    timings["half_block_rows()"] = time.perf_counter() - t0

    t0 = time.perf_counter()
    universe.packed_cells()
    timings["packed_cells()"] = time.perf_counter() - t0

    return timings


def stats_line(name: str, data: list[float]) -> str:
    arr = np.array(data) * 1000  # to ms
    return (f"{name:<25} {arr.mean():8.3f} {np.median(arr):8.3f} "
            f"{np.percentile(arr, 95):8.3f} {np.percentile(arr, 99):8.3f} "
            f"{arr.max():8.3f}")


def run_benchmark(
    n_generations: int,
    width: int = 256,
    height: int = 256,
    seed: int | None = None,
    line_timing: bool = False,
    dump_path: str | None = None,
) -> None:
    """Run the benchmark for n_generations and report results."""

    universe = Universe.random(width, height, DEFAULT_ALIVE_PROBABILITY, seed)

    print(f"Universe: {width}x{height}  "
          f"Cells: {len(universe):,}  "
          f"Generations: {n_generations}")
    print()

    # ── Per-generation component timing ────────────────────────────
    if line_timing:
        timings: dict[str, list[float]] = {}
        total_times: list[float] = []

        for gen in range(n_generations):
            gen_t0 = time.perf_counter()
            for k, v in time_generation(universe).items():
                timings.setdefault(k, []).append(v)
            total_times.append(time.perf_counter() - gen_t0)

            if (gen + 1) % 100 == 0:
                avg_ms = sum(total_times[-100:]) / 100 * 1000
                print(f"  gen {gen + 1}/{n_generations}  "
                      f"avg {avg_ms:.2f}ms/gen  "
                      f"pop {universe.population():,}")

        print()
        print("=== Per-Generation Component Breakdown (ms) ===")
        print(f"{'Component':<25} {'Mean':>8} {'P50':>8} {'P95':>8} {'P99':>8} {'Max':>8}")
        print("-" * 73)
        for k in sorted(timings):
            print(stats_line(k, timings[k]))
        print(stats_line("TOTAL", total_times))

        cells = len(universe)
        tick_mean = float(np.mean(timings["tick()"])) if n_generations else 0.0
        if tick_mean > 0:
            print(f"\nCell updates/s (tick only): {cells / tick_mean:,.0f}")
        return

    # ── cProfile run ───────────────────────────────────────────────
    def profiled_run() -> None:
        for _ in range(n_generations):
            time_generation(universe)

    profiler = cProfile.Profile()
    wall_t0 = time.perf_counter()
    profiler.runctx("profiled_run()", globals(), locals())
    wall_dt = time.perf_counter() - wall_t0

    per_gen = wall_dt / max(n_generations, 1) * 1000
    print(f"Wall time: {wall_dt:.2f}s  ({per_gen:.2f}ms/generation)")
    if wall_dt > 0:
        print(f"Generations/s: {n_generations / wall_dt:.1f}")
    print(f"Final population: {universe.population():,}")
    print()

    if dump_path:
        profiler.dump_stats(dump_path)
        print(f"Profile data saved to: {dump_path}")
        print(f"  View with: python3 -m pstats {dump_path}")
        print()

    buf = StringIO()
    ps = pstats.Stats(profiler, stream=buf)
    ps.sort_stats("cumulative")
    ps.print_stats(25)
    print(buf.getvalue())

    buf2 = StringIO()
    ps2 = pstats.Stats(profiler, stream=buf2)
    ps2.sort_stats("tottime")
    ps2.print_stats(20)
    print("\n=== By Self-Time (tottime) ===")
    print(buf2.getvalue())


def main(argv: Sequence[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Profile the Universe engine")
    parser.add_argument("-n", "--generations", type=int, default=500,
                        help="Number of generations to simulate (default: 500)")
    parser.add_argument("--width", type=int, default=256,
                        help="Grid columns (default: 256)")
    parser.add_argument("--height", type=int, default=256,
                        help="Grid rows (default: 256)")
    parser.add_argument("--seed", type=int, default=None,
                        help="Random seed for the initial soup")
    parser.add_argument("--line-timing", action="store_true",
                        help="Per-generation component timing instead of cProfile")
    parser.add_argument("--dump", type=str, default=None,
                        help="Dump cProfile binary to this path")
    args = parser.parse_args(argv)

    run_benchmark(
        n_generations=args.generations,
        width=args.width,
        height=args.height,
        seed=args.seed,
        line_timing=args.line_timing,
        dump_path=args.dump,
    )


if __name__ == "__main__":
    main()
