"""Movement loop, pursuit AI and battle resolution."""

from .battle import BattleEngine, BattleResult, BattleState, BestOfRules, LadderRules, MeterRules, ruleset_for
from .consumables import Consumable, use_consumable
from .pursuit import advance_antagonists, aggression_probability, pursuit_steps, threat_level
from .run_state import RunPhase, RunState
from .scenarios import ScenarioDeck
from .simulation import (
    Simulation,
    TurnResult,
    acknowledge_battle_result,
    apply_player_move,
    default_simulation,
    generate_world,
    submit_battle_choice,
)

__all__ = [
    "BattleEngine",
    "BattleResult",
    "BattleState",
    "BestOfRules",
    "LadderRules",
    "MeterRules",
    "ruleset_for",
    "Consumable",
    "use_consumable",
    "advance_antagonists",
    "aggression_probability",
    "pursuit_steps",
    "threat_level",
    "RunPhase",
    "RunState",
    "ScenarioDeck",
    "Simulation",
    "TurnResult",
    "acknowledge_battle_result",
    "apply_player_move",
    "default_simulation",
    "generate_world",
    "submit_battle_choice",
]
