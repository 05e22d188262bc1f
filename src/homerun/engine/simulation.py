from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..config import EngineSettings
from ..content.loader import load_catalog
from ..content.models import Archetype, ContentCatalog
from ..rng import RandomSource
from ..world.entities import Antagonist, InventoryEntry
from ..world.factory import WorldFactory
from ..world.grid import CARDINALS
from ..world.tiles import Tile
from ..world.world import World
from .battle import BattleEngine, BattleResult, BattleState, CardChoice
from .consumables import Consumable, use_consumable
from .events import (
    ActionIgnored,
    ExitRejected,
    GameEvent,
    ItemPickedUp,
    MoveBlocked,
    ObstacleInspected,
    PlayerMoved,
    Victory,
)
from .pursuit import advance_antagonists, threat_level
from .run_state import RunPhase, RunState
from .scenarios import ScenarioDeck

logger = logging.getLogger(__name__)


@dataclass
class TurnResult:
    """Ordered events of one player action, plus a battle if one started."""

    events: List[GameEvent] = field(default_factory=list)
    battle: Optional[BattleState] = None
    threat: int = 0


class Simulation:
    """Movement loop, pursuit and battle hand-off for a single run.

    World, run and battle state are passed in and mutated in place; whichever
    of the loop or the battle machine holds control is the only writer.
    """

    def __init__(
        self,
        catalog: Optional[ContentCatalog] = None,
        settings: Optional[EngineSettings] = None,
        rng: Optional[RandomSource] = None,
    ) -> None:
        self.catalog = catalog or load_catalog()
        self.settings = settings or EngineSettings()
        self.rng = rng or RandomSource()
        self.worlds = WorldFactory(self.catalog, self.settings, self.rng)
        self.deck = ScenarioDeck(self.catalog, self.rng)
        self.battles = BattleEngine(self.catalog, self.settings, self.rng, self.deck)

    # ------------------------ Run start ------------------------
    def new_run(self, archetype: "Archetype | str", consumables: Optional[Dict[str, int]] = None) -> RunState:
        """Fresh run state at full sanity, exploring."""
        return RunState.new(archetype, max_sanity=self.settings.max_sanity, consumables=consumables)

    def generate_world(self, archetype: "Archetype | str", run: Optional[RunState] = None) -> World:
        """Build a populated world; loot already drawn this run is not drawn again."""
        drawn = run.drawn_loot_ids if run is not None else None
        return self.worlds.create(archetype, drawn)

    # ------------------------ Movement ------------------------
    def apply_player_move(self, world: World, run: RunState, dx: int, dy: int) -> TurnResult:
        """Resolve one player move and the antagonist pass that follows it.

        Moving into a live antagonist starts a battle at once; the turn does
        not advance and the player keeps their tile. Blocked moves, pickups
        and exits are reported as events.

        Args:
            world: World to mutate.
            run: Run state; moves are ignored unless it is exploring.
            dx: Horizontal step.
            dy: Vertical step; (dx, dy) must be one of CARDINALS.

        Returns:
            TurnResult with the events in order, the battle when one started
            and the threat level after the move.
        """
        if not run.accepts_moves:
            return self._result(world, [ActionIgnored("move", run.phase.value)])

        player = world.player
        target = player.pos.offset(dx, dy)
        if (dx, dy) not in CARDINALS:
            return self._result(world, [MoveBlocked(target, "invalid_direction")])

        tile = world.grid.safe_get(target.x, target.y)
        if tile is None:
            return self._result(world, [MoveBlocked(target, "out_of_bounds")])
        if not tile.walkable:
            events: List[GameEvent] = [MoveBlocked(target, "obstacle" if tile.is_obstacle else "wall")]
            if tile.is_obstacle:
                quotes = self.catalog.quotes_for(world.archetype, tile.value)
                events.append(ObstacleInspected(target, tile, self.rng.choice(quotes) if quotes else None))
            return self._result(world, events)

        antagonist = world.live_antagonist_at(target)
        if antagonist is not None:
            return self._begin_battle(world, run, antagonist, [])

        events = []
        item = world.item_at(target)
        if item is not None:
            world.remove(item.id)
            run.inventory.append(InventoryEntry(item.item_kind, item.loot_id))
            events.append(ItemPickedUp(item.id, item.item_kind, item.loot_id))
            logger.debug("Picked up %s (%s)", item.id, item.loot_id or item.item_kind.value)

        if tile is Tile.EXIT:
            if not run.inventory:
                events.append(ExitRejected(target))
                return self._result(world, events)
            payout = sum(self.rng.choice(self.catalog.payouts) for _ in range(run.currency_count))
            player.pos = target
            run.phase = RunPhase.VICTORY
            events.append(Victory(payout, run.currency_count))
            logger.info("Victory on %s with %d items, payout %d", world.archetype.value, len(run.inventory), payout)
            return self._result(world, events)

        source = player.pos
        player.pos = target
        world.turn += 1
        run.total_steps += 1
        run.untrackable = max(0, run.untrackable - 1)
        events.append(PlayerMoved(source, target, world.turn))

        pursuit = advance_antagonists(world, run, self.settings, self.rng)
        events.extend(pursuit.events)
        if pursuit.encounter is not None:
            run.phase = RunPhase.SPOTTED
            run.pending_encounter = pursuit.encounter
        return self._result(world, events)

    def confirm_spotted(self, world: World, run: RunState) -> TurnResult:
        """Second stage of an encounter, called once the spotted notice has been shown."""
        if run.phase is not RunPhase.SPOTTED or run.pending_encounter is None:
            return self._result(world, [ActionIgnored("confirm_spotted", run.phase.value)])
        antagonist = world.get(run.pending_encounter)
        if not isinstance(antagonist, Antagonist) or not antagonist.alive:
            logger.warning("Pending encounter %s is gone; resuming exploration", run.pending_encounter)
            run.phase = RunPhase.EXPLORING
            run.pending_encounter = None
            return self._result(world, [ActionIgnored("confirm_spotted", "antagonist_gone")])
        return self._begin_battle(world, run, antagonist, [])

    def _begin_battle(self, world: World, run: RunState, antagonist: Antagonist, events: List[GameEvent]) -> TurnResult:
        battle, started = self.battles.start(antagonist, run)
        events.append(started)
        return self._result(world, events, battle)

    def _result(self, world: World, events: List[GameEvent], battle: Optional[BattleState] = None) -> TurnResult:
        return TurnResult(events=events, battle=battle, threat=threat_level(world, self.settings))

    # ------------------------ Battle ------------------------
    def submit_battle_choice(self, battle: BattleState, run: RunState, card: CardChoice) -> List[GameEvent]:
        """Play one card from the current hand; ignored outside a battle."""
        if run.phase is not RunPhase.IN_BATTLE:
            return [ActionIgnored("choose", run.phase.value)]
        return self.battles.submit(battle, run, card)

    def acknowledge_battle_result(
        self, world: World, run: RunState, battle: BattleState, won: Optional[bool] = None
    ) -> List[GameEvent]:
        """Apply the battle's consequences and hand control back to the loop.

        won is optional; when given it must agree with the battle's own result.
        """
        if run.phase is not RunPhase.IN_BATTLE:
            return [ActionIgnored("acknowledge", run.phase.value)]
        if won is not None and battle.resolved and won != (battle.result is BattleResult.WIN):
            return [ActionIgnored("acknowledge", "outcome_mismatch")]
        return self.battles.acknowledge(world, run, battle)

    # ------------------------ Extras ------------------------
    def use_consumable(self, world: World, run: RunState, kind: "Consumable | str") -> List[GameEvent]:
        """Spend a consumable charge. See engine.consumables.use_consumable."""
        return use_consumable(world, run, kind, self.settings, self.rng)

    def threat_level(self, world: World) -> int:
        return threat_level(world, self.settings)


_default: Optional[Simulation] = None


def default_simulation() -> Simulation:
    global _default
    if _default is None:
        _default = Simulation()
    return _default


def generate_world(archetype: "Archetype | str", run: Optional[RunState] = None) -> World:
    return default_simulation().generate_world(archetype, run)


def apply_player_move(world: World, run: RunState, dx: int, dy: int) -> TurnResult:
    return default_simulation().apply_player_move(world, run, dx, dy)


def submit_battle_choice(battle: BattleState, run: RunState, card: CardChoice) -> List[GameEvent]:
    return default_simulation().submit_battle_choice(battle, run, card)


def acknowledge_battle_result(
    world: World, run: RunState, battle: BattleState, won: Optional[bool] = None
) -> List[GameEvent]:
    return default_simulation().acknowledge_battle_result(world, run, battle, won)


__all__ = [
    "TurnResult",
    "Simulation",
    "default_simulation",
    "generate_world",
    "apply_player_move",
    "submit_battle_choice",
    "acknowledge_battle_result",
]
