from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from ..content.models import Archetype
from .entities import Antagonist, Entity, Item, Player, Position
from .grid import TileGrid
from .tiles import Tile

logger = logging.getLogger(__name__)


@dataclass
class World:
    """Grid plus entities for one run.

    The entity list is owned here; only the simulation mutates positions,
    liveness and membership.
    """

    archetype: Archetype
    grid: TileGrid
    entities: List[Entity] = field(default_factory=list)
    turn: int = 0
    spawn: Optional[Position] = None
    exits: Tuple[Position, ...] = ()

    @property
    def width(self) -> int:
        return self.grid.width

    @property
    def height(self) -> int:
        return self.grid.height

    @property
    def player(self) -> Player:
        for e in self.entities:
            if isinstance(e, Player):
                return e
        raise LookupError("World has no player entity")

    def antagonists(self, include_dead: bool = False) -> List[Antagonist]:
        return [e for e in self.entities if isinstance(e, Antagonist) and (include_dead or e.alive)]

    def items(self) -> List[Item]:
        return [e for e in self.entities if isinstance(e, Item)]

    def get(self, entity_id: str) -> Optional[Entity]:
        for e in self.entities:
            if e.id == entity_id:
                return e
        return None

    def _blocking(self) -> Iterator[Entity]:
        for e in self.entities:
            if isinstance(e, Antagonist) and not e.alive:
                continue
            yield e

    def entity_at(self, pos: Position) -> Optional[Entity]:
        """First live entity on a tile, dead antagonists ignored."""
        for e in self._blocking():
            if e.pos == pos:
                return e
        return None

    def live_antagonist_at(self, pos: Position) -> Optional[Antagonist]:
        for a in self.antagonists():
            if a.pos == pos:
                return a
        return None

    def item_at(self, pos: Position) -> Optional[Item]:
        for i in self.items():
            if i.pos == pos:
                return i
        return None

    def is_occupied(self, pos: Position, ignore: Optional[str] = None) -> bool:
        return any(e.pos == pos and e.id != ignore for e in self._blocking())

    def occupied_positions(self) -> Dict[Position, str]:
        return {e.pos: e.id for e in self._blocking()}

    def free_floor_near(
        self, origin: Position, offsets: Iterable[Tuple[int, int]], ignore: Optional[str] = None
    ) -> Optional[Position]:
        """First offset from origin that lands on an unoccupied FLOOR tile.

        Args:
            origin: Position the offsets are relative to.
            offsets: Candidate (dx, dy) steps, tried in order.
            ignore: Entity id that does not count as occupying a tile.

        Returns:
            The chosen position, or None once the offsets run out.
        """
        for dx, dy in offsets:
            target = origin.offset(dx, dy)
            if self.grid.safe_get(target.x, target.y) is not Tile.FLOOR:
                continue
            if self.is_occupied(target, ignore=ignore):
                continue
            return target
        return None

    def remove(self, entity_id: str) -> None:
        self.entities = [e for e in self.entities if e.id != entity_id]

    def to_lines(self) -> List[str]:
        """ASCII dump: grid glyphs overlaid with @ player, A antagonist, $ currency, * loot."""
        rows = [list(line) for line in self.grid.to_lines()]
        for e in self._blocking():
            if isinstance(e, Player):
                ch = "@"
            elif isinstance(e, Antagonist):
                ch = "A"
            else:
                ch = "*" if e.loot_id else "$"
            rows[e.pos.y][e.pos.x] = ch
        return ["".join(r) for r in rows]


__all__ = ["World"]
