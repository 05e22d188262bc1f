from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Mapping, Tuple

from ..content.models import Archetype, ArchetypeProfile, ContentCatalog
from ..errors import UnknownArchetypeError
from .grid import TileGrid
from .recipes import LayoutRecipe, recipes_from_specs
from .tiles import Tile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Layout:
    """A carved grid plus its named anchors. Exits are not yet marked on the grid."""

    archetype: Archetype
    grid: TileGrid
    spawn_points: Tuple[Tuple[int, int], ...]
    exit_points: Tuple[Tuple[int, int], ...]


class LayoutGenerator(ABC):
    """Abstract base for layout generators."""

    @abstractmethod
    def generate(self, archetype: Archetype) -> Layout:
        """Build the floor plan for an archetype."""
        raise NotImplementedError


class RecipeLayoutGenerator(LayoutGenerator):
    """Runs an archetype's recipe ops, in order, over a blank wall grid.

    Output depends only on the recipe, so repeated calls give identical
    structure. Connectivity comes from the door gaps each recipe carves.
    """

    def __init__(self, profiles: Mapping[Archetype, ArchetypeProfile], recipes: Mapping[Archetype, LayoutRecipe]):
        self._profiles = dict(profiles)
        self._recipes: Dict[Archetype, LayoutRecipe] = dict(recipes)

    @classmethod
    def from_catalog(cls, catalog: ContentCatalog) -> "RecipeLayoutGenerator":
        return cls(catalog.archetypes, recipes_from_specs(catalog.layouts))

    def generate(self, archetype: Archetype) -> Layout:
        arch = Archetype.parse(archetype)
        profile = self._profiles.get(arch)
        recipe = self._recipes.get(arch)
        if profile is None or recipe is None:
            raise UnknownArchetypeError(arch.value)

        grid = TileGrid(profile.width, profile.height, default_tile=Tile.WALL)
        for op in recipe.ops:
            op.apply(grid)

        logger.debug(
            "Generated %s layout %dx%d (%d floor cells)",
            arch.value,
            grid.width,
            grid.height,
            len(grid.positions_of(Tile.FLOOR)),
        )
        return Layout(arch, grid, recipe.spawn_points, recipe.exit_points)


__all__ = ["Layout", "LayoutGenerator", "RecipeLayoutGenerator"]
