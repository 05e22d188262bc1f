from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple, Union

from ..config import EngineSettings
from ..content.models import Archetype, BattleCard, BattleRules, ContentCatalog, Scenario
from ..errors import ContentError
from ..rng import RandomSource
from ..world.entities import Antagonist, Position
from ..world.world import World
from .events import (
    ActionIgnored,
    AntagonistDefeated,
    BattleEnded,
    BattleLost,
    BattleStarted,
    BattleWon,
    CardResolved,
    GameEvent,
    GameOver,
    PlayerRetreated,
    RoundAdvanced,
    SanityLost,
)
from .run_state import RunPhase, RunState
from .scenarios import ScenarioDeck

logger = logging.getLogger(__name__)


class BattleResult(str, Enum):
    WIN = "win"
    LOSE = "lose"


@dataclass
class BattleState:
    """Round state for one encounter; discarded once acknowledged."""

    antagonist_id: str
    type_id: str
    archetype: Archetype
    rules: BattleRules
    scenario: Scenario
    hand: Tuple[BattleCard, ...]
    round: int = 1
    player_wins: int = 0
    antagonist_wins: int = 0
    result: Optional[BattleResult] = None
    score: int = 0
    meter: int = 0
    acknowledged: bool = False
    history: List[str] = field(default_factory=list)

    @property
    def resolved(self) -> bool:
        return self.result is not None


# ------------------------ Rulesets ------------------------
class BattleRuleset(ABC):
    """Archetype-specific scoring applied after each tally update."""

    def reset(self, state: BattleState) -> None:
        state.score = 0
        state.meter = 0

    @abstractmethod
    def score(self, state: BattleState, correct: bool) -> Optional[BattleResult]:
        """Update trackers and return a terminal result, if any."""
        raise NotImplementedError


class BestOfRules(BattleRuleset):
    """First side to the win threshold takes the battle."""

    def __init__(self, wins_needed: int = 3):
        self.wins_needed = wins_needed

    def score(self, state: BattleState, correct: bool) -> Optional[BattleResult]:
        if state.player_wins >= self.wins_needed:
            return BattleResult.WIN
        if state.antagonist_wins >= self.wins_needed:
            return BattleResult.LOSE
        return None


class LadderRules(BattleRuleset):
    """Correct answers climb score checkpoints; the top checkpoint wins.

    Running out of rounds before the top is reached loses.
    """

    def __init__(self, checkpoints: Tuple[int, ...], max_rounds: int):
        self.checkpoints = checkpoints
        self.max_rounds = max_rounds

    def score(self, state: BattleState, correct: bool) -> Optional[BattleResult]:
        if correct:
            idx = min(state.player_wins, len(self.checkpoints)) - 1
            state.score = self.checkpoints[idx]
        if state.player_wins >= len(self.checkpoints):
            return BattleResult.WIN
        if state.round >= self.max_rounds:
            return BattleResult.LOSE
        return None


class MeterRules(BestOfRules):
    """Best-of with a presentational tug meter."""

    def __init__(self, wins_needed: int, start: int, step: int, low: int, high: int):
        super().__init__(wins_needed)
        self.start = start
        self.step = step
        self.low = low
        self.high = high

    def reset(self, state: BattleState) -> None:
        super().reset(state)
        state.meter = self.start

    def score(self, state: BattleState, correct: bool) -> Optional[BattleResult]:
        delta = self.step if correct else -self.step
        state.meter = max(self.low, min(self.high, state.meter + delta))
        return super().score(state, correct)


def ruleset_for(rules: BattleRules) -> BattleRuleset:
    if rules.kind == "best_of":
        return BestOfRules(rules.wins_needed)
    if rules.kind == "ladder":
        return LadderRules(tuple(rules.checkpoints), rules.max_rounds)
    if rules.kind == "meter":
        return MeterRules(rules.wins_needed, rules.meter_start, rules.meter_step, rules.meter_min, rules.meter_max)
    raise ContentError(f"Unknown battle ruleset: {rules.kind!r}")


# ------------------------ Machine ------------------------
CardChoice = Union[BattleCard, str]


class BattleEngine:
    """Runs encounters from start through acknowledgement.

    Only the methods here mutate a BattleState; the run state is touched for
    the used-scenario set on every draw and for consequences on acknowledgement.
    """

    def __init__(self, catalog: ContentCatalog, settings: EngineSettings, rng: RandomSource, deck: Optional[ScenarioDeck] = None):
        self.catalog = catalog
        self.settings = settings
        self.rng = rng
        self.deck = deck or ScenarioDeck(catalog, rng)

    def start(self, antagonist: Antagonist, run: RunState) -> Tuple[BattleState, BattleStarted]:
        """Open a battle against antagonist and switch the run to IN_BATTLE.

        Args:
            antagonist: The antagonist being fought; it keeps its tile.
            run: Run state; its used scenario ids feed the first draw.

        Returns:
            The new battle state and the BattleStarted event for it.
        """
        profile = self.catalog.profile(run.archetype)
        scenario = self.deck.draw(run.archetype, antagonist.type_id, run.used_scenario_ids)
        state = BattleState(
            antagonist_id=antagonist.id,
            type_id=antagonist.type_id,
            archetype=run.archetype,
            rules=profile.rules,
            scenario=scenario,
            hand=self.deck.deal(scenario),
        )
        ruleset_for(profile.rules).reset(state)
        state.history.append(scenario.id)
        run.phase = RunPhase.IN_BATTLE
        run.pending_encounter = None
        logger.info("Battle started against %s (%s), scenario %s", antagonist.id, antagonist.type_id, scenario.id)
        return state, BattleStarted(antagonist.id, antagonist.type_id, scenario)

    def submit(self, state: BattleState, run: RunState, card: CardChoice) -> List[GameEvent]:
        """Resolve one card, then either end the battle or deal the next round.

        card may be a BattleCard or its id; anything not in the current hand is
        ignored and leaves the state untouched.
        """
        if state.resolved:
            return [ActionIgnored("choose", "battle_resolved")]
        card_id = card.id if isinstance(card, BattleCard) else str(card)
        chosen = next((c for c in state.hand if c.id == card_id), None)
        if chosen is None:
            return [ActionIgnored("choose", "card_not_in_hand")]

        if chosen.correct:
            state.player_wins += 1
        else:
            state.antagonist_wins += 1
        result = ruleset_for(state.rules).score(state, chosen.correct)
        events: List[GameEvent] = [
            CardResolved(chosen.id, chosen.correct, state.player_wins, state.antagonist_wins)
        ]
        logger.debug(
            "Round %d: %s (%s) -> %d/%d",
            state.round,
            chosen.id,
            "correct" if chosen.correct else "wrong",
            state.player_wins,
            state.antagonist_wins,
        )

        if result is not None:
            state.result = result
            logger.info("Battle against %s resolved: %s", state.antagonist_id, result.value)
            events.append(BattleWon(state.antagonist_id) if result is BattleResult.WIN else BattleLost(state.antagonist_id))
            return events

        state.scenario = self.deck.draw(state.archetype, state.type_id, run.used_scenario_ids)
        state.hand = self.deck.deal(state.scenario)
        state.round += 1
        state.history.append(state.scenario.id)
        events.append(RoundAdvanced(state.round, state.scenario))
        return events

    def acknowledge(self, world: World, run: RunState, state: BattleState) -> List[GameEvent]:
        """Apply a resolved battle once: defeat the antagonist, or cost sanity and retreat."""
        if not state.resolved:
            return [ActionIgnored("acknowledge", "battle_pending")]
        if state.acknowledged:
            return [ActionIgnored("acknowledge", "already_acknowledged")]
        state.acknowledged = True
        won = state.result is BattleResult.WIN
        events: List[GameEvent] = []

        if won:
            antagonist = world.get(state.antagonist_id)
            if isinstance(antagonist, Antagonist):
                antagonist.alive = False
            events.append(AntagonistDefeated(state.antagonist_id))
            run.phase = RunPhase.EXPLORING
        else:
            sanity = run.lose_sanity()
            events.append(SanityLost(sanity))
            moved = self._retreat(world)
            if moved is not None:
                events.append(PlayerRetreated(*moved))
            if run.phase is RunPhase.GAME_OVER:
                events.append(GameOver())
            else:
                run.phase = RunPhase.EXPLORING

        events.append(BattleEnded(state.antagonist_id, won))
        return events

    def _retreat(self, world: World) -> Optional[Tuple[Position, Position]]:
        """Push the player to a free floor tile nearby; stay put if none is found."""
        player = world.player
        offsets = self.rng.scatter(self.settings.retreat_radius, self.settings.retreat_attempts)
        target = world.free_floor_near(player.pos, offsets, ignore=player.id)
        if target is None:
            logger.debug("No retreat tile found within %d attempts", self.settings.retreat_attempts)
            return None
        source = player.pos
        player.pos = target
        logger.debug("Player retreated from %s to %s", source.as_tuple(), target.as_tuple())
        return source, target


__all__ = [
    "BattleResult",
    "BattleState",
    "BattleRuleset",
    "BestOfRules",
    "LadderRules",
    "MeterRules",
    "ruleset_for",
    "BattleEngine",
    "CardChoice",
]
