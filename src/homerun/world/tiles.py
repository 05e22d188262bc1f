from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet


class Tile(Enum):
    """Cell kinds of a level grid.

    Only FLOOR and EXIT can be entered. Obstacles block like walls but carry
    flavor text when bumped.
    """

    FLOOR = "FLOOR"
    WALL = "WALL"
    EXIT = "EXIT"
    SOFA = "SOFA"
    TV = "TV"
    PLANT = "PLANT"
    TABLE = "TABLE"
    BED = "BED"
    DESK = "DESK"

    @property
    def walkable(self) -> bool:
        return self in WALKABLE_TILES

    @property
    def is_obstacle(self) -> bool:
        return self in OBSTACLE_TILES

    @property
    def glyph(self) -> str:
        return _GLYPHS[self]

    @classmethod
    def from_glyph(cls, ch: str) -> "Tile":
        try:
            return _BY_GLYPH[ch]
        except KeyError:
            raise ValueError(f"Unknown tile glyph: {ch!r}") from None


WALKABLE_TILES: FrozenSet[Tile] = frozenset({Tile.FLOOR, Tile.EXIT})
OBSTACLE_TILES: FrozenSet[Tile] = frozenset({Tile.SOFA, Tile.TV, Tile.PLANT, Tile.TABLE, Tile.BED, Tile.DESK})

_GLYPHS: Dict[Tile, str] = {
    Tile.FLOOR: ".",
    Tile.WALL: "#",
    Tile.EXIT: ">",
    Tile.SOFA: "s",
    Tile.TV: "v",
    Tile.PLANT: "p",
    Tile.TABLE: "t",
    Tile.BED: "b",
    Tile.DESK: "d",
}
_BY_GLYPH: Dict[str, Tile] = {g: t for t, g in _GLYPHS.items()}


__all__ = ["Tile", "WALKABLE_TILES", "OBSTACLE_TILES"]
