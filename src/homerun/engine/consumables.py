from __future__ import annotations

import logging
from enum import Enum
from typing import List

from ..config import EngineSettings
from ..rng import RandomSource
from ..world.world import World
from .events import ActionIgnored, ConsumableFailed, ConsumableUsed, GameEvent
from .run_state import RunState

logger = logging.getLogger(__name__)


class Consumable(str, Enum):
    SPRAY = "spray"
    DICE = "dice"


def use_consumable(
    world: World, run: RunState, kind: "Consumable | str", settings: EngineSettings, rng: RandomSource
) -> List[GameEvent]:
    """Spend one charge of a consumable carried into the run.

    SPRAY makes the player untrackable for a few steps. DICE teleports the
    player to a random free floor tile nearby; a failed roll keeps the charge.
    Neither advances the turn or the antagonists.
    """
    try:
        item = Consumable(kind)
    except ValueError:
        return [ActionIgnored("use_consumable", f"unknown_consumable:{kind}")]
    if not run.accepts_moves:
        return [ActionIgnored("use_consumable", run.phase.value)]
    if run.consumables.get(item.value, 0) <= 0:
        return [ConsumableFailed(item.value, "none_left")]

    if item is Consumable.SPRAY:
        run.untrackable = settings.untrackable_steps
        run.consumables[item.value] -= 1
        logger.info("Spray used; untrackable for %d steps", run.untrackable)
        return [ConsumableUsed(item.value)]

    player = world.player
    offsets = rng.scatter(settings.teleport_radius, settings.teleport_attempts)
    target = world.free_floor_near(player.pos, offsets, ignore=player.id)
    if target is None:
        return [ConsumableFailed(item.value, "no_free_tile")]
    logger.info("Dice teleported player %s -> %s", player.pos.as_tuple(), target.as_tuple())
    player.pos = target
    run.consumables[item.value] -= 1
    return [ConsumableUsed(item.value, target)]


__all__ = ["Consumable", "use_consumable"]
