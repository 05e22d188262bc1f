from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ..errors import UnknownArchetypeError


class Archetype(str, Enum):
    HOME = "home"
    SCHOOL = "school"
    COMPANY = "company"

    @classmethod
    def parse(cls, value: "Archetype | str") -> "Archetype":
        if isinstance(value, Archetype):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise UnknownArchetypeError(str(value)) from None


class LootRarity(str, Enum):
    BLUE = "blue"
    PURPLE = "purple"
    ORANGE = "orange"
    RED = "red"


@dataclass(frozen=True)
class LootEntry:
    """One unique collectible in the catalog."""

    id: str
    archetype: Archetype
    rarity: LootRarity
    name: str
    value: int


@dataclass(frozen=True)
class AntagonistProfile:
    type_id: str
    name: str
    aggression: float


@dataclass(frozen=True)
class BattleRules:
    """Ruleset parameters for an archetype's battles.

    kind is one of "best_of", "ladder" or "meter".
    """

    kind: str
    wins_needed: int = 3
    checkpoints: Tuple[int, ...] = ()
    max_rounds: int = 0
    meter_start: int = 50
    meter_step: int = 10
    meter_min: int = 0
    meter_max: int = 100


@dataclass(frozen=True)
class ArchetypeProfile:
    archetype: Archetype
    width: int
    height: int
    currency_name: str
    roster: Tuple[AntagonistProfile, ...]
    rules: BattleRules

    def antagonist(self, type_id: str) -> Optional[AntagonistProfile]:
        for a in self.roster:
            if a.type_id == type_id:
                return a
        return None


@dataclass(frozen=True)
class BattleCard:
    id: str
    text: str
    correct: bool


@dataclass(frozen=True)
class Scenario:
    """A battle prompt with its authored answer cards.

    When types is empty the scenario can be drawn against any antagonist of
    its archetype.
    """

    id: str
    archetype: Archetype
    topic: str
    prompt: str
    cards: Tuple[BattleCard, ...]
    types: Tuple[str, ...] = ()

    def applies_to(self, type_id: str) -> bool:
        return not self.types or type_id in self.types


@dataclass(frozen=True)
class ConsumableSpec:
    id: str
    name: str
    price: int
    description: str = ""


@dataclass(frozen=True)
class LayoutSpec:
    """Raw recipe data for one archetype; parsed into ops by homerun.world.recipes."""

    archetype: Archetype
    spawn: Tuple[Tuple[int, int], ...]
    exits: Tuple[Tuple[int, int], ...]
    ops: Tuple[Dict[str, Any], ...]


@dataclass(frozen=True)
class ContentCatalog:
    """Immutable view over every bundled content table."""

    archetypes: Dict[Archetype, ArchetypeProfile]
    layouts: Dict[Archetype, LayoutSpec]
    loot: Tuple[LootEntry, ...]
    scenarios: Tuple[Scenario, ...]
    obstacle_quotes: Dict[Archetype, Dict[str, Tuple[str, ...]]]
    payouts: Tuple[int, ...]
    consumables: Dict[str, ConsumableSpec] = field(default_factory=dict)

    def profile(self, archetype: Archetype) -> ArchetypeProfile:
        try:
            return self.archetypes[archetype]
        except KeyError:
            raise UnknownArchetypeError(str(getattr(archetype, "value", archetype))) from None

    def loot_for(self, archetype: Archetype, rarity: Optional[LootRarity] = None) -> List[LootEntry]:
        return [e for e in self.loot if e.archetype == archetype and (rarity is None or e.rarity == rarity)]

    def loot_by_id(self, loot_id: str) -> Optional[LootEntry]:
        for e in self.loot:
            if e.id == loot_id:
                return e
        return None

    def scenarios_for(self, archetype: Archetype, type_id: str) -> List[Scenario]:
        """Scenarios an antagonist type can open a battle with.

        Untyped scenarios apply to every member of the archetype's roster; a
        type_id that is not on the roster gets no scenarios at all.
        """
        profile = self.archetypes.get(archetype)
        if profile is None or profile.antagonist(type_id) is None:
            return []
        return [s for s in self.scenarios if s.archetype == archetype and s.applies_to(type_id)]

    def quotes_for(self, archetype: Archetype, tile_name: str) -> Tuple[str, ...]:
        return self.obstacle_quotes.get(archetype, {}).get(tile_name, ())


__all__ = [
    "Archetype",
    "LootRarity",
    "LootEntry",
    "AntagonistProfile",
    "BattleRules",
    "ArchetypeProfile",
    "BattleCard",
    "Scenario",
    "ConsumableSpec",
    "LayoutSpec",
    "ContentCatalog",
]
