"""Bundled content tables: archetypes, layouts, loot, scenarios and economy."""

from .loader import load_catalog, load_catalog_from
from .models import (
    AntagonistProfile,
    Archetype,
    ArchetypeProfile,
    BattleCard,
    BattleRules,
    ConsumableSpec,
    ContentCatalog,
    LayoutSpec,
    LootEntry,
    LootRarity,
    Scenario,
)

__all__ = [
    "load_catalog",
    "load_catalog_from",
    "AntagonistProfile",
    "Archetype",
    "ArchetypeProfile",
    "BattleCard",
    "BattleRules",
    "ConsumableSpec",
    "ContentCatalog",
    "LayoutSpec",
    "LootEntry",
    "LootRarity",
    "Scenario",
]
