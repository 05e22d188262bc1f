from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from ..content.models import Archetype, LayoutSpec
from ..errors import ContentError
from .grid import TileGrid
from .tiles import Tile

logger = logging.getLogger(__name__)

Point = Tuple[int, int]


def _span(raw: Iterable[int]) -> range:
    start, stop, step = (int(v) for v in raw)
    if step <= 0:
        raise ContentError(f"Lattice step must be positive, got {step}")
    return range(start, stop, step)


class LayoutOp(ABC):
    """One declarative write into a grid, relative to an origin."""

    @abstractmethod
    def apply(self, grid: TileGrid, ox: int = 0, oy: int = 0) -> None:
        raise NotImplementedError


@dataclass(frozen=True)
class FillOp(LayoutOp):
    tile: Tile
    rect: Tuple[int, int, int, int]

    def apply(self, grid: TileGrid, ox: int = 0, oy: int = 0) -> None:
        x, y, w, h = self.rect
        grid.fill_rect(ox + x, oy + y, w, h, self.tile)


@dataclass(frozen=True)
class PointsOp(LayoutOp):
    tile: Tile
    points: Tuple[Point, ...]

    def apply(self, grid: TileGrid, ox: int = 0, oy: int = 0) -> None:
        for x, y in self.points:
            grid.fill_rect(ox + x, oy + y, 1, 1, self.tile)


@dataclass(frozen=True)
class LatticeOp(LayoutOp):
    tile: Tile
    xs: range
    ys: range

    def apply(self, grid: TileGrid, ox: int = 0, oy: int = 0) -> None:
        for y in self.ys:
            for x in self.xs:
                grid.fill_rect(ox + x, oy + y, 1, 1, self.tile)


@dataclass(frozen=True)
class StampOp(LayoutOp):
    """Replays nested ops at every origin, e.g. identical classrooms."""

    origins: Tuple[Point, ...]
    ops: Tuple[LayoutOp, ...]

    def apply(self, grid: TileGrid, ox: int = 0, oy: int = 0) -> None:
        for sx, sy in self.origins:
            for op in self.ops:
                op.apply(grid, ox + sx, oy + sy)


def _tile(raw: Mapping[str, Any]) -> Tile:
    try:
        return Tile[raw["tile"]]
    except KeyError:
        raise ContentError(f"Layout op {raw!r} needs a known 'tile'") from None


def parse_op(raw: Mapping[str, Any]) -> LayoutOp:
    kind = raw.get("op")
    if kind == "fill":
        x, y, w, h = (int(v) for v in raw["rect"])
        return FillOp(_tile(raw), (x, y, w, h))
    if kind == "points":
        return PointsOp(_tile(raw), tuple((int(x), int(y)) for x, y in raw["at"]))
    if kind == "lattice":
        return LatticeOp(_tile(raw), _span(raw["xs"]), _span(raw["ys"]))
    if kind == "stamp":
        if "origins" in raw:
            origins = tuple((int(x), int(y)) for x, y in raw["origins"])
        else:
            origins = tuple((x, y) for y in _span(raw["ys"]) for x in _span(raw["xs"]))
        return StampOp(origins, tuple(parse_op(o) for o in raw["ops"]))
    raise ContentError(f"Unknown layout op: {kind!r}")


@dataclass(frozen=True)
class LayoutRecipe:
    archetype: Archetype
    ops: Tuple[LayoutOp, ...]
    spawn_points: Tuple[Point, ...]
    exit_points: Tuple[Point, ...]

    @classmethod
    def from_spec(cls, spec: LayoutSpec) -> "LayoutRecipe":
        ops: List[LayoutOp] = [parse_op(raw) for raw in spec.ops]
        logger.debug("Parsed %d layout ops for %s", len(ops), spec.archetype.value)
        return cls(spec.archetype, tuple(ops), tuple(spec.spawn), tuple(spec.exits))


def recipes_from_specs(specs: Mapping[Archetype, LayoutSpec]) -> Dict[Archetype, LayoutRecipe]:
    return {arch: LayoutRecipe.from_spec(spec) for arch, spec in specs.items()}


__all__ = [
    "LayoutOp",
    "FillOp",
    "PointsOp",
    "LatticeOp",
    "StampOp",
    "LayoutRecipe",
    "parse_op",
    "recipes_from_specs",
]
