from __future__ import annotations

import logging
from typing import List, Optional

from .content.models import Archetype, BattleCard
from .engine.battle import BattleState, CardChoice
from .engine.events import ActionIgnored, GameEvent
from .engine.run_state import RunPhase, RunState
from .engine.simulation import Simulation, TurnResult
from .profile import PlayerProfile
from .world.world import World

logger = logging.getLogger(__name__)


class GameSession:
    """Single-writer facade over one run.

    Owns the world, run and battle state, routes each action to whichever of
    the movement loop or the battle machine currently holds control, and folds
    every event batch into the player profile.
    """

    def __init__(self, simulation: Optional[Simulation] = None, profile: Optional[PlayerProfile] = None):
        self.sim = simulation or Simulation()
        self.profile = profile or PlayerProfile()
        self.world: Optional[World] = None
        self.run: Optional[RunState] = None
        self.battle: Optional[BattleState] = None
        self.threat: int = 0

    @property
    def phase(self) -> Optional[RunPhase]:
        return self.run.phase if self.run else None

    @property
    def active(self) -> bool:
        return self.run is not None and not self.run.phase.terminal

    def start(self, archetype: "Archetype | str") -> World:
        self.run = self.sim.new_run(archetype, consumables=self.profile.consumables)
        self.world = self.sim.generate_world(self.run.archetype, self.run)
        self.battle = None
        self.threat = self.sim.threat_level(self.world)
        logger.info("Session started: %s", self.run.archetype.value)
        return self.world

    def _require_run(self, action: str) -> Optional[List[GameEvent]]:
        if self.world is None or self.run is None:
            return [ActionIgnored(action, "no_run")]
        return None

    def _absorb(self, result: TurnResult) -> List[GameEvent]:
        if result.battle is not None:
            self.battle = result.battle
        self.threat = result.threat
        self.profile = self.profile.apply_events(result.events)
        return result.events

    def move(self, dx: int, dy: int) -> List[GameEvent]:
        ignored = self._require_run("move")
        if ignored:
            return ignored
        return self._absorb(self.sim.apply_player_move(self.world, self.run, dx, dy))

    def confirm_spotted(self) -> List[GameEvent]:
        ignored = self._require_run("confirm_spotted")
        if ignored:
            return ignored
        return self._absorb(self.sim.confirm_spotted(self.world, self.run))

    def hand(self) -> List[BattleCard]:
        return list(self.battle.hand) if self.battle else []

    def choose(self, card: "CardChoice | int") -> List[GameEvent]:
        """Play a card by object, id, or 0-based index into the current hand."""
        if self.battle is None or self.run is None:
            return [ActionIgnored("choose", "no_battle")]
        if isinstance(card, int):
            if not 0 <= card < len(self.battle.hand):
                return [ActionIgnored("choose", "card_not_in_hand")]
            card = self.battle.hand[card]
        events = self.sim.submit_battle_choice(self.battle, self.run, card)
        self.profile = self.profile.apply_events(events)
        return events

    def acknowledge(self) -> List[GameEvent]:
        if self.battle is None or self.world is None or self.run is None:
            return [ActionIgnored("acknowledge", "no_battle")]
        events = self.sim.acknowledge_battle_result(self.world, self.run, self.battle)
        if self.battle.acknowledged:
            self.battle = None
            self.threat = self.sim.threat_level(self.world)
        self.profile = self.profile.apply_events(events)
        return events

    def use_consumable(self, kind: str) -> List[GameEvent]:
        ignored = self._require_run("use_consumable")
        if ignored:
            return ignored
        events = self.sim.use_consumable(self.world, self.run, kind)
        self.profile = self.profile.apply_events(events)
        self.threat = self.sim.threat_level(self.world)
        return events


__all__ = ["GameSession"]
