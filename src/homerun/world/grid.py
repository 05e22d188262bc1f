from __future__ import annotations

import logging
from typing import Iterator, List, Optional, Sequence, Tuple

from .tiles import Tile

logger = logging.getLogger(__name__)

CARDINALS: Tuple[Tuple[int, int], ...] = ((0, -1), (0, 1), (-1, 0), (1, 0))


class TileGrid:
    """A bounds-checked 2D tile grid addressed by (x, y), origin top-left.

    Reads outside the grid return None via safe_get; bulk writes through
    fill_rect silently clip to the grid so recipes never index out of range.
    """

    __slots__ = ("_w", "_h", "_tiles")

    def __init__(self, width: int, height: int, default_tile: Tile = Tile.FLOOR) -> None:
        if width <= 0 or height <= 0:
            raise ValueError("TileGrid dimensions must be positive")
        self._w = int(width)
        self._h = int(height)
        # tiles[y][x]
        self._tiles: List[List[Tile]] = [[default_tile for _ in range(self._w)] for _ in range(self._h)]

    @property
    def width(self) -> int:
        return self._w

    @property
    def height(self) -> int:
        return self._h

    def is_within(self, x: int, y: int) -> bool:
        """True when (x, y) is inside the grid. Never raises."""
        return 0 <= x < self._w and 0 <= y < self._h

    def get(self, x: int, y: int) -> Tile:
        """Return the tile at (x, y).

        Raises IndexError when out of bounds; movement and pursuit code uses
        safe_get instead so stepping off the map is a blocked move, not a crash.
        """
        if not self.is_within(x, y):
            raise IndexError(f"Coordinates out of bounds: ({x}, {y}) for grid {self._w}x{self._h}")
        return self._tiles[y][x]

    def safe_get(self, x: int, y: int) -> Optional[Tile]:
        """Return the tile at (x, y), or None when out of bounds."""
        if not self.is_within(x, y):
            return None
        return self._tiles[y][x]

    def set(self, x: int, y: int, tile: Tile) -> None:
        """Write a single tile.

        Raises TypeError for anything but a Tile member and IndexError when
        out of bounds. Layout recipes go through fill_rect, which clips.
        """
        if not isinstance(tile, Tile):
            raise TypeError("tile must be a Tile enum member")
        if not self.is_within(x, y):
            raise IndexError(f"Coordinates out of bounds: ({x}, {y}) for grid {self._w}x{self._h}")
        self._tiles[y][x] = tile

    def fill_rect(self, x: int, y: int, w: int, h: int, tile: Tile) -> int:
        """Write tile over the rectangle, skipping cells outside the grid.

        Returns the number of cells written.
        """
        written = 0
        for yy in range(max(0, y), min(self._h, y + h)):
            row = self._tiles[yy]
            for xx in range(max(0, x), min(self._w, x + w)):
                row[xx] = tile
                written += 1
        if written < max(0, w) * max(0, h):
            logger.debug("fill_rect %s at (%d,%d,%d,%d) clipped to %d cells", tile.name, x, y, w, h, written)
        return written

    def is_walkable(self, x: int, y: int) -> bool:
        """In bounds and FLOOR or EXIT; obstacles and walls are not walkable."""
        tile = self.safe_get(x, y)
        return tile is not None and tile.walkable

    def neighbors4(self, x: int, y: int) -> Iterator[Tuple[int, int]]:
        """Yield the in-bounds cardinal neighbours of (x, y).

        Args:
            x: X coordinate
            y: Y coordinate

        Yields:
            (nx, ny) tuples in CARDINALS order: up, down, left, right.
        """
        for dx, dy in CARDINALS:
            nx, ny = x + dx, y + dy
            if self.is_within(nx, ny):
                yield nx, ny

    def cells(self) -> Iterator[Tuple[int, int, Tile]]:
        for y, row in enumerate(self._tiles):
            for x, tile in enumerate(row):
                yield x, y, tile

    def positions_of(self, tile: Tile) -> List[Tuple[int, int]]:
        return [(x, y) for x, y, t in self.cells() if t is tile]

    def copy(self) -> "TileGrid":
        clone = TileGrid(self._w, self._h)
        clone._tiles = [row[:] for row in self._tiles]
        return clone

    # ------------------------ Text form ------------------------
    @classmethod
    def from_lines(cls, lines: Sequence[str]) -> "TileGrid":
        """Build a grid from ASCII rows.

        Args:
            lines: One string per row, all the same width. Glyphs are the
                tile glyphs ('.' floor, '#' wall, '>' exit, 's v p t b d'
                obstacles).

        Returns:
            A new TileGrid. Raises ValueError for empty input, ragged rows or
            an unknown glyph.
        """
        if not lines:
            raise ValueError("from_lines requires at least one row")
        width = len(lines[0])
        if any(len(row) != width for row in lines):
            raise ValueError("All rows must share the same width")
        grid = cls(width, len(lines))
        for y, row in enumerate(lines):
            for x, ch in enumerate(row):
                grid._tiles[y][x] = Tile.from_glyph(ch)
        return grid

    def to_lines(self) -> List[str]:
        return ["".join(t.glyph for t in row) for row in self._tiles]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TileGrid):
            return NotImplemented
        return self._w == other._w and self._h == other._h and self._tiles == other._tiles

    def __repr__(self) -> str:
        return f"TileGrid({self._w}x{self._h})"


__all__ = ["TileGrid", "CARDINALS"]
