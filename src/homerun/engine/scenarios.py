from __future__ import annotations

import logging
from typing import MutableSet, Tuple

from ..content.models import Archetype, BattleCard, ContentCatalog, Scenario
from ..errors import ContentError
from ..rng import RandomSource

logger = logging.getLogger(__name__)


class ScenarioDeck:
    """Draws battle scenarios for an antagonist type without repeats in a run.

    The caller owns the used-id set (it lives on the run state). Once every
    eligible scenario has been used the deck reshuffles the full pool for that
    type rather than stalling the battle.
    """

    def __init__(self, catalog: ContentCatalog, rng: RandomSource):
        self.catalog = catalog
        self.rng = rng

    def draw(self, archetype: Archetype, type_id: str, used: MutableSet[str]) -> Scenario:
        """Draw a scenario this run has not used yet and record it in used.

        Falls back to the whole eligible pool, with a warning, once every
        scenario has been used. Raises ContentError when the type has none.
        """
        eligible = self.catalog.scenarios_for(archetype, type_id)
        if not eligible:
            raise ContentError(f"No scenarios for {archetype.value}/{type_id}")
        fresh = [s for s in eligible if s.id not in used]
        if not fresh:
            logger.warning(
                "All %d scenarios for %s/%s used this run; reusing the pool",
                len(eligible),
                archetype.value,
                type_id,
            )
            fresh = eligible
        scenario = self.rng.choice(fresh)
        used.add(scenario.id)
        logger.debug("Drew scenario %s for %s", scenario.id, type_id)
        return scenario

    def deal(self, scenario: Scenario) -> Tuple[BattleCard, ...]:
        """The scenario's cards in random order."""
        hand = list(scenario.cards)
        self.rng.shuffle(hand)
        return tuple(hand)


__all__ = ["ScenarioDeck"]
