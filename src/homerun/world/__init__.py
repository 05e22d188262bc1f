"""Grid, entities, layout generation and population."""

from .entities import Antagonist, Entity, EntityKind, InventoryEntry, Item, ItemKind, Player, Position
from .factory import WorldFactory, generate_world
from .generator import Layout, LayoutGenerator, RecipeLayoutGenerator
from .grid import CARDINALS, TileGrid
from .pathfinding import flood_fill, is_reachable, path_length
from .population import PopulationSampler
from .tiles import Tile
from .world import World

__all__ = [
    "Antagonist",
    "Entity",
    "EntityKind",
    "InventoryEntry",
    "Item",
    "ItemKind",
    "Player",
    "Position",
    "WorldFactory",
    "generate_world",
    "Layout",
    "LayoutGenerator",
    "RecipeLayoutGenerator",
    "CARDINALS",
    "TileGrid",
    "flood_fill",
    "is_reachable",
    "path_length",
    "PopulationSampler",
    "Tile",
    "World",
]
