from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple

from ..config import EngineSettings
from ..rng import RandomSource
from ..world.entities import Position
from ..world.grid import CARDINALS
from ..world.tiles import Tile
from ..world.world import World
from .events import AntagonistMoved, GameEvent, PlayerSpotted
from .run_state import RunState

logger = logging.getLogger(__name__)

Step = Tuple[int, int]


def _sign(v: int) -> int:
    return (v > 0) - (v < 0)


def aggression_probability(base: float, total_steps: int, settings: EngineSettings) -> float:
    """Base disposition plus a step bonus that grows linearly up to its cap."""
    bonus = min(settings.max_chase_bonus, total_steps * settings.aggression_per_step)
    return base + bonus


def pursuit_steps(source: Position, target: Position) -> List[Step]:
    """Greedy axis-priority candidate steps from source toward target.

    The axis with the larger absolute delta goes first, ties go vertical, and
    an axis with zero delta is never offered.
    """
    dx = target.x - source.x
    dy = target.y - source.y
    horizontal: Optional[Step] = (_sign(dx), 0) if dx else None
    vertical: Optional[Step] = (0, _sign(dy)) if dy else None
    ordered = [horizontal, vertical] if abs(dx) > abs(dy) else [vertical, horizontal]
    return [s for s in ordered if s is not None]


def threat_level(world: World, settings: EngineSettings) -> int:
    """0-3 alert from the nearest live antagonist; advisory only."""
    live = world.antagonists()
    if not live:
        return 0
    player = world.player.pos
    nearest = min(a.pos.distance_to(player) for a in live)
    close, near, far = settings.threat_bands
    if nearest <= close:
        return 3
    if nearest <= near:
        return 2
    if nearest <= far:
        return 1
    return 0


@dataclass
class PursuitResult:
    events: List[GameEvent] = field(default_factory=list)
    encounter: Optional[str] = None


def advance_antagonists(
    world: World, run: RunState, settings: EngineSettings, rng: RandomSource
) -> PursuitResult:
    """Move every live antagonist at most one step.

    Iterates over a snapshot of the live antagonists and keeps a running
    occupancy set, so nobody moves twice or steps onto a tile another
    antagonist already took this pass. A step onto the player's tile is the
    encounter: the antagonist holds its tile and the pass stops there.
    """
    result = PursuitResult()
    player_pos = world.player.pos
    snapshot = list(world.antagonists())
    blocked: Set[Position] = {a.pos for a in snapshot}
    blocked.update(i.pos for i in world.items())

    for antagonist in snapshot:
        distance = antagonist.pos.distance_to(player_pos)
        chance = aggression_probability(antagonist.aggression, run.total_steps, settings)
        rolled = rng.chance(chance)
        aggressive = rolled and distance < settings.chase_distance and run.untrackable <= 0

        if aggressive:
            candidates = pursuit_steps(antagonist.pos, player_pos)
        else:
            candidates = [rng.choice(CARDINALS)]

        for dx, dy in candidates:
            target = antagonist.pos.offset(dx, dy)
            if target == player_pos:
                result.encounter = antagonist.id
                result.events.append(PlayerSpotted(antagonist.id, settings.spotted_delay_ms))
                logger.info("Player spotted by %s (%s) at %s", antagonist.id, antagonist.type_id, antagonist.pos.as_tuple())
                return result
            if world.grid.safe_get(target.x, target.y) is not Tile.FLOOR or target in blocked:
                continue
            source = antagonist.pos
            blocked.discard(source)
            blocked.add(target)
            antagonist.pos = target
            result.events.append(AntagonistMoved(antagonist.id, source, target, aggressive))
            break

    logger.debug("Antagonist pass done: %d moved", sum(1 for e in result.events if isinstance(e, AntagonistMoved)))
    return result


__all__ = ["aggression_probability", "pursuit_steps", "threat_level", "advance_antagonists", "PursuitResult"]
