from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set

from ..content.models import Archetype
from ..world.entities import InventoryEntry, ItemKind

logger = logging.getLogger(__name__)


class RunPhase(str, Enum):
    EXPLORING = "exploring"
    SPOTTED = "spotted"
    IN_BATTLE = "in_battle"
    VICTORY = "victory"
    GAME_OVER = "game_over"

    @property
    def terminal(self) -> bool:
        return self in (RunPhase.VICTORY, RunPhase.GAME_OVER)


@dataclass
class RunState:
    """Per-run player resources and control phase."""

    archetype: Archetype
    max_sanity: int = 5
    sanity: int = -1
    inventory: List[InventoryEntry] = field(default_factory=list)
    untrackable: int = 0
    total_steps: int = 0
    used_scenario_ids: Set[str] = field(default_factory=set)
    drawn_loot_ids: Set[str] = field(default_factory=set)
    phase: RunPhase = RunPhase.EXPLORING
    pending_encounter: Optional[str] = None
    consumables: Dict[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.sanity < 0:
            self.sanity = self.max_sanity

    @classmethod
    def new(cls, archetype: "Archetype | str", max_sanity: int = 5, consumables: Optional[Dict[str, int]] = None) -> "RunState":
        run = cls(archetype=Archetype.parse(archetype), max_sanity=max_sanity, consumables=dict(consumables or {}))
        logger.debug("New run for %s with sanity %d", run.archetype.value, run.sanity)
        return run

    @property
    def currency_count(self) -> int:
        return sum(1 for e in self.inventory if e.item_kind is ItemKind.CURRENCY)

    @property
    def collected_loot_ids(self) -> List[str]:
        return [e.loot_id for e in self.inventory if e.item_kind is ItemKind.UNIQUE and e.loot_id]

    @property
    def accepts_moves(self) -> bool:
        return self.phase is RunPhase.EXPLORING

    def lose_sanity(self) -> int:
        self.sanity = max(0, self.sanity - 1)
        if self.sanity == 0:
            self.phase = RunPhase.GAME_OVER
            logger.info("Sanity depleted; run over")
        return self.sanity


__all__ = ["RunPhase", "RunState"]
