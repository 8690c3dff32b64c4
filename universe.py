"""
  Conway's Game of Life on a fixed-size torus.

  The universe is a flat, row-major buffer of width × height cells. Every
  edge wraps: the row above row 0 is the last row, the column left of
  column 0 is the last column. One call to tick() computes the whole next
  generation from a snapshot of the current one and swaps it in.

  Seeding policies, the pattern library and the glyph renderer live here
  too; the terminal viewer in life.py only drives this module.
"""

from __future__ import annotations

import enum
from typing import Callable, Iterable, Sequence, Union

import numpy as np
from numpy.typing import NDArray

# ── Limits ──────────────────────────────────────────────────────────────
# Cell indices must stay addressable by an unsigned 32-bit integer.
MAX_CELLS: int = 2**32 - 1

# ── Seeding ─────────────────────────────────────────────────────────────
DEFAULT_ALIVE_PROBABILITY: float = 0.54

# ── Glyphs ──────────────────────────────────────────────────────────────
DEAD_GLYPH = "\u25fb"   # ◻
ALIVE_GLYPH = "\u25fc"  # ◼

# ── Neighbourhood ───────────────────────────────────────────────────────
NEIGHBOR_OFFSETS: tuple[tuple[int, int], ...] = tuple(
    (dr, dc) for dr in (-1, 0, 1) for dc in (-1, 0, 1) if dr or dc
)

# ── Pattern library ─────────────────────────────────────────────────────
# Offsets are (row, column) relative to the pattern's top-left corner.
PATTERNS: dict[str, list[tuple[int, int]]] = {
    # still lifes
    "block": [(0, 0), (0, 1), (1, 0), (1, 1)],
    "beehive": [(0, 1), (0, 2), (1, 0), (1, 3), (2, 1), (2, 2)],
    "loaf": [(0, 1), (0, 2), (1, 0), (1, 3), (2, 1), (2, 3), (3, 2)],
    "boat": [(0, 0), (0, 1), (1, 0), (1, 2), (2, 1)],
    # oscillators
    "blinker": [(0, 0), (0, 1), (0, 2)],
    "toad": [(0, 1), (0, 2), (0, 3), (1, 0), (1, 1), (1, 2)],
    "beacon": [(0, 0), (0, 1), (1, 0), (2, 3), (3, 2), (3, 3)],
    "pulsar": [
        (0, 2), (0, 3), (0, 4), (0, 8), (0, 9), (0, 10),
        (2, 0), (2, 5), (2, 7), (2, 12),
        (3, 0), (3, 5), (3, 7), (3, 12),
        (4, 0), (4, 5), (4, 7), (4, 12),
        (5, 2), (5, 3), (5, 4), (5, 8), (5, 9), (5, 10),
        (7, 2), (7, 3), (7, 4), (7, 8), (7, 9), (7, 10),
        (8, 0), (8, 5), (8, 7), (8, 12),
        (9, 0), (9, 5), (9, 7), (9, 12),
        (10, 0), (10, 5), (10, 7), (10, 12),
        (12, 2), (12, 3), (12, 4), (12, 8), (12, 9), (12, 10),
    ],
    # travellers
    "glider": [(0, 1), (1, 2), (2, 0), (2, 1), (2, 2)],
    "lwss": [
        (0, 1), (0, 4), (1, 0), (2, 0), (2, 4),
        (3, 0), (3, 1), (3, 2), (3, 3),
    ],
    # methuselahs
    "r_pentomino": [(0, 1), (0, 2), (1, 0), (1, 1), (2, 1)],
    "acorn": [(0, 1), (1, 3), (2, 0), (2, 1), (2, 4), (2, 5), (2, 6)],
    "diehard": [(0, 6), (1, 0), (1, 1), (2, 1), (2, 5), (2, 6), (2, 7)],
}


class Cell(enum.IntEnum):
    """State of a single grid slot."""

    DEAD = 0
    ALIVE = 1


CellLike = Union[Cell, bool, int]
Initializer = Callable[[int, int], CellLike]


# ═══════════════════════════════════════════════════════════════════════
#  Initializers
# ═══════════════════════════════════════════════════════════════════════

class RandomSeed:
    """Each cell is alive with ``probability``, drawn from ``rng``.

    The universe fills the whole grid with one draw of ``rng.random``;
    calling the seed per cell draws one scalar at a time instead.
    """

    def __init__(
        self,
        probability: float = DEFAULT_ALIVE_PROBABILITY,
        rng: np.random.Generator | int | None = None,
    ) -> None:
        if not 0.0 <= probability <= 1.0:
            raise ValueError(f"probability must be in [0, 1], got {probability}")
        self.probability = probability
        self.rng = rng if isinstance(rng, np.random.Generator) else np.random.default_rng(rng)

    def fill(self, size: int) -> NDArray[np.uint8]:
        return (self.rng.random(size) < self.probability).astype(np.uint8)

    def __call__(self, row: int, column: int) -> Cell:
        return Cell.ALIVE if self.rng.random() < self.probability else Cell.DEAD


def random_cells(
    probability: float = DEFAULT_ALIVE_PROBABILITY,
    rng: np.random.Generator | int | None = None,
) -> RandomSeed:
    """Pass a Generator (or a seed) to make construction reproducible."""
    return RandomSeed(probability, rng)


def dead_cells(row: int, column: int) -> Cell:
    return Cell.DEAD


class PatternSeed:
    """Alive exactly at the given coordinates, everything else dead.

    Coordinates outside the grid are wrapped onto it when the universe
    is built.
    """

    def __init__(self, alive: Iterable[tuple[int, int]]) -> None:
        self.alive: frozenset[tuple[int, int]] = frozenset(
            (int(r), int(c)) for r, c in alive
        )

    def __call__(self, row: int, column: int) -> Cell:
        return Cell.ALIVE if (row, column) in self.alive else Cell.DEAD


def pattern_cells(alive: Iterable[tuple[int, int]]) -> PatternSeed:
    return PatternSeed(alive)


def _check_dimensions(width: int, height: int) -> None:
    for name, value in (("width", width), ("height", height)):
        if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
            raise TypeError(f"{name} must be an integer, got {type(value).__name__}")
        if value < 1:
            raise ValueError(f"{name} must be >= 1, got {value}")
    if int(width) * int(height) > MAX_CELLS:
        raise ValueError(
            f"grid of {width}x{height} cells exceeds the addressable size {MAX_CELLS}"
        )


# ═══════════════════════════════════════════════════════════════════════
#  The universe
# ═══════════════════════════════════════════════════════════════════════

class Universe:
    """
    A fixed-size toroidal Game of Life grid.

    Cells live in a flat uint8 array (0 dead, 1 alive) in row-major
    order. Every state change (tick or host-side edit) builds a new array
    and replaces the old one in a single assignment, so a caller never
    sees a half-updated generation.
    """

    def __init__(
        self, width: int, height: int, initializer: Initializer | None = None
    ) -> None:
        _check_dimensions(width, height)
        self._width: int = int(width)
        self._height: int = int(height)
        self.generation: int = 0

        if initializer is None:
            initializer = random_cells()

        size = self._width * self._height
        cells: NDArray[np.uint8]
        if isinstance(initializer, RandomSeed):
            cells = initializer.fill(size)
        else:
            cells = np.zeros(size, dtype=np.uint8)
            if isinstance(initializer, PatternSeed):
                for row, column in initializer.alive:
                    cells[self._wrapped_index(row, column)] = Cell.ALIVE
            elif initializer is not dead_cells:
                # Arbitrary callables are asked once per cell, row-major
                index = 0
                for row in range(self._height):
                    for column in range(self._width):
                        cells[index] = Cell.ALIVE if initializer(row, column) else Cell.DEAD
                        index += 1
        self._cells: NDArray[np.uint8] = cells

    # ── Alternate constructors ──────────────────────────────────────

    @classmethod
    def dead(cls, width: int, height: int) -> Universe:
        return cls(width, height, dead_cells)

    @classmethod
    def random(
        cls,
        width: int,
        height: int,
        probability: float = DEFAULT_ALIVE_PROBABILITY,
        seed: np.random.Generator | int | None = None,
    ) -> Universe:
        return cls(width, height, random_cells(probability, seed))

    @classmethod
    def from_pattern(
        cls, width: int, height: int, alive: Iterable[tuple[int, int]]
    ) -> Universe:
        return cls(width, height, pattern_cells(alive))

    @classmethod
    def from_cells(cls, width: int, height: int, cells: Sequence | NDArray) -> Universe:
        """Build a universe from a flat or (height, width) sequence of 0/1 values."""
        arr = np.asarray(cells)
        if arr.size != int(width) * int(height):
            raise ValueError(
                f"expected {int(width) * int(height)} cells for a {width}x{height} "
                f"grid, got {arr.size}"
            )
        if arr.ndim not in (1, 2):
            raise ValueError(f"expected a flat or 2D sequence, got {arr.ndim} dimensions")
        if arr.ndim == 2 and arr.shape != (height, width):
            raise ValueError(f"expected shape {(height, width)}, got {arr.shape}")
        universe = cls.dead(width, height)
        universe._cells = (arr.reshape(-1) != 0).astype(np.uint8)
        return universe

    # ── Accessors ───────────────────────────────────────────────────

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    def __len__(self) -> int:
        return self._cells.size

    def index_of(self, row: int, column: int) -> int:
        """Flat index of (row, column): ``row * width + column``."""
        for name, value in (("row", row), ("column", column)):
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                raise TypeError(f"{name} must be an integer, got {type(value).__name__}")
        if not 0 <= row < self._height:
            raise IndexError(f"row {row} out of range [0, {self._height})")
        if not 0 <= column < self._width:
            raise IndexError(f"column {column} out of range [0, {self._width})")
        return int(row) * self._width + int(column)

    def _wrapped_index(self, row: int, column: int) -> int:
        return (row % self._height) * self._width + (column % self._width)

    def cell(self, row: int, column: int) -> Cell:
        return Cell(int(self._cells[self.index_of(row, column)]))

    def cells(self) -> NDArray[np.uint8]:
        """Read-only view of the flat cell buffer (no copy).

        The view tracks the buffer it was taken from. tick() and every
        edit swap in a new buffer, so fetch a fresh view afterwards.
        """
        view = self._cells.view()
        view.flags.writeable = False
        return view

    def as_grid(self) -> NDArray[np.uint8]:
        """Read-only (height, width) view of the cell buffer."""
        return self.cells().reshape(self._height, self._width)

    def packed_cells(self) -> NDArray[np.uint32]:
        """Cells packed one bit per cell into little-endian 32-bit words.

        Cell ``i`` lives in word ``i // 32`` at bit ``i % 32`` (LSB first).
        Unused high bits of the last word are zero.
        """
        n_words = -(-self._cells.size // 32)
        bits = np.zeros(n_words * 32, dtype=np.uint8)
        bits[: self._cells.size] = self._cells
        packed = np.packbits(bits, bitorder="little")
        return packed.view("<u4").astype(np.uint32)

    def population(self) -> int:
        return int(self._cells.sum(dtype=np.int64))

    # ── Neighbourhood ───────────────────────────────────────────────

    def live_neighbor_count(self, row: int, column: int) -> int:
        """Live cells among the 8 toroidal neighbours of (row, column).

        On grids with a side of 1 or 2 some offsets land on the same cell
        (or on the cell itself); each offset is counted anyway.
        """
        self.index_of(row, column)
        h, w = self._height, self._width
        cells = self._cells
        count = 0
        for dr, dc in NEIGHBOR_OFFSETS:
            # Python's % is floor modulo, so row - 1 == -1 wraps to h - 1
            r = (row + dr) % h
            c = (column + dc) % w
            count += int(cells[r * w + c])
        return count

    def neighbor_counts(self) -> NDArray[np.uint8]:
        """(height, width) array of live neighbour counts for every cell."""
        g = self._cells.reshape(self._height, self._width)
        n = np.zeros_like(g, dtype=np.uint8)
        for dr, dc in NEIGHBOR_OFFSETS:
            # roll by -dr puts cell (r + dr) at position r, modulo the axis
            n += np.roll(np.roll(g, -dr, axis=0), -dc, axis=1)
        return n

    # ── Simulation ──────────────────────────────────────────────────

    def next_generation(self) -> NDArray[np.uint8]:
        """The next generation as a new flat buffer; the universe is untouched."""
        g = self._cells.reshape(self._height, self._width)
        n = self.neighbor_counts()
        alive = g == Cell.ALIVE
        n_is_3 = n == 3
        birth = ~alive & n_is_3
        survive = alive & (n_is_3 | (n == 2))
        return (birth | survive).astype(np.uint8).reshape(-1)

    def tick(self, n: int = 1) -> int:
        """Advance ``n`` generations. Returns the new generation number."""
        if n < 0:
            raise ValueError(f"cannot tick a negative number of generations ({n})")
        for _ in range(n):
            self._cells = self.next_generation()
            self.generation += 1
        return self.generation

    # ── Host-side edits ─────────────────────────────────────────────

    def set_cells(
        self, coords: Iterable[tuple[int, int]], state: CellLike = Cell.ALIVE
    ) -> None:
        """Set every (row, column) in ``coords`` to ``state``."""
        nxt = self._cells.copy()
        value = Cell.ALIVE if state else Cell.DEAD
        for row, column in coords:
            nxt[self.index_of(row, column)] = value
        self._cells = nxt

    def toggle(self, row: int, column: int) -> Cell:
        """Flip one cell; returns its new state."""
        index = self.index_of(row, column)
        nxt = self._cells.copy()
        nxt[index] ^= 1
        self._cells = nxt
        return Cell(int(nxt[index]))

    def place(self, name: str, row: int, column: int) -> None:
        """Stamp a named pattern with its top-left corner at (row, column).

        The pattern wraps around the edges like everything else.
        """
        offsets = PATTERNS[name]
        nxt = self._cells.copy()
        for dr, dc in offsets:
            nxt[self._wrapped_index(row + dr, column + dc)] = Cell.ALIVE
        self._cells = nxt

    def clear(self) -> None:
        self._cells = np.zeros_like(self._cells)
        self.generation = 0

    # ── Rendering ───────────────────────────────────────────────────

    def render(self) -> str:
        """One glyph per cell, one line per row, each line ending in a newline."""
        glyphs = np.array([DEAD_GLYPH, ALIVE_GLYPH])
        rows = glyphs[self._cells].reshape(self._height, self._width)
        return "".join("".join(line) + "\n" for line in rows.tolist())

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return (
            f"Universe(width={self._width}, height={self._height}, "
            f"generation={self.generation}, population={self.population()})"
        )


def pattern_size(name: str) -> tuple[int, int]:
    """(rows, columns) bounding box of a named pattern."""
    offsets = PATTERNS[name]
    return (
        max(r for r, _ in offsets) + 1,
        max(c for _, c in offsets) + 1,
    )
