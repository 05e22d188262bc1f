from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union


@dataclass(frozen=True, order=True)
class Position:
    x: int
    y: int

    def offset(self, dx: int, dy: int) -> "Position":
        return Position(self.x + dx, self.y + dy)

    def distance_to(self, other: "Position") -> float:
        """Euclidean distance, used for spacing, chase range and threat."""
        return math.hypot(self.x - other.x, self.y - other.y)

    def as_tuple(self) -> Tuple[int, int]:
        return (self.x, self.y)


class EntityKind(str, Enum):
    PLAYER = "player"
    ANTAGONIST = "antagonist"
    ITEM = "item"


class ItemKind(str, Enum):
    CURRENCY = "currency"
    CONSUMABLE = "consumable"
    UNIQUE = "unique"


@dataclass
class Player:
    id: str
    pos: Position
    kind: EntityKind = EntityKind.PLAYER


@dataclass
class Antagonist:
    """A roaming hostile. Dead antagonists stay in the world but never move or collide."""

    id: str
    pos: Position
    type_id: str
    aggression: float
    alive: bool = True
    kind: EntityKind = EntityKind.ANTAGONIST


@dataclass
class Item:
    id: str
    pos: Position
    item_kind: ItemKind
    loot_id: Optional[str] = None
    kind: EntityKind = EntityKind.ITEM


Entity = Union[Player, Antagonist, Item]


@dataclass(frozen=True)
class InventoryEntry:
    """Logical record of a picked-up item; the world entity itself is destroyed."""

    item_kind: ItemKind
    loot_id: Optional[str] = None


__all__ = [
    "Position",
    "EntityKind",
    "ItemKind",
    "Player",
    "Antagonist",
    "Item",
    "Entity",
    "InventoryEntry",
]
