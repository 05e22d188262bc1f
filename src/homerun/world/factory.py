from __future__ import annotations

import logging
from typing import Optional, Set

from ..config import EngineSettings
from ..content.loader import load_catalog
from ..content.models import Archetype, ContentCatalog
from ..rng import RandomSource
from .generator import LayoutGenerator, RecipeLayoutGenerator
from .population import PopulationSampler
from .world import World

logger = logging.getLogger(__name__)


class WorldFactory:
    """Layout generation followed by population: one fresh world per run start."""

    def __init__(
        self,
        catalog: Optional[ContentCatalog] = None,
        settings: Optional[EngineSettings] = None,
        rng: Optional[RandomSource] = None,
        generator: Optional[LayoutGenerator] = None,
    ) -> None:
        self.catalog = catalog or load_catalog()
        self.settings = settings or EngineSettings()
        self.rng = rng or RandomSource()
        self.generator = generator or RecipeLayoutGenerator.from_catalog(self.catalog)
        self.sampler = PopulationSampler(self.catalog, self.settings, self.rng)

    def create(self, archetype: "Archetype | str", drawn_loot: Optional[Set[str]] = None) -> World:
        arch = Archetype.parse(archetype)
        layout = self.generator.generate(arch)
        return self.sampler.populate(layout, drawn_loot)


def generate_world(
    archetype: "Archetype | str",
    *,
    seed: Optional[int] = None,
    catalog: Optional[ContentCatalog] = None,
    settings: Optional[EngineSettings] = None,
) -> World:
    """Convenience wrapper building a one-off factory."""
    return WorldFactory(catalog=catalog, settings=settings, rng=RandomSource(seed)).create(archetype)


__all__ = ["WorldFactory", "generate_world"]
