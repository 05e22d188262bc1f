from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional

from ..content.models import Scenario
from ..world.entities import ItemKind, Position
from ..world.tiles import Tile


@dataclass(frozen=True)
class GameEvent:
    """Base for every outcome the engine reports to the presentation layer.

    kind is a stable tag for narration, sound cues and profile bookkeeping.
    """

    kind: ClassVar[str] = "event"


# ------------------------ Movement ------------------------
@dataclass(frozen=True)
class PlayerMoved(GameEvent):
    kind: ClassVar[str] = "moved"
    source: Position
    target: Position
    turn: int


@dataclass(frozen=True)
class MoveBlocked(GameEvent):
    """reason is one of: invalid_direction, out_of_bounds, wall, obstacle."""

    kind: ClassVar[str] = "blocked"
    target: Position
    reason: str


@dataclass(frozen=True)
class ObstacleInspected(GameEvent):
    kind: ClassVar[str] = "inspected"
    target: Position
    tile: Tile
    quote: Optional[str]


@dataclass(frozen=True)
class ItemPickedUp(GameEvent):
    kind: ClassVar[str] = "picked_up_item"
    item_id: str
    item_kind: ItemKind
    loot_id: Optional[str] = None


@dataclass(frozen=True)
class ExitRejected(GameEvent):
    kind: ClassVar[str] = "rejected_at_exit"
    exit_position: Position
    message: str = "You can't leave empty-handed."


@dataclass(frozen=True)
class Victory(GameEvent):
    kind: ClassVar[str] = "victory"
    payout: int
    currency_items: int


@dataclass(frozen=True)
class AntagonistMoved(GameEvent):
    kind: ClassVar[str] = "antagonist_moved"
    antagonist_id: str
    source: Position
    target: Position
    aggressive: bool


@dataclass(frozen=True)
class PlayerSpotted(GameEvent):
    """Encounter detected during the antagonist pass; the battle waits for confirm_spotted."""

    kind: ClassVar[str] = "spotted_by"
    antagonist_id: str
    delay_ms: int


# ------------------------ Battle ------------------------
@dataclass(frozen=True)
class BattleStarted(GameEvent):
    kind: ClassVar[str] = "battle_started"
    antagonist_id: str
    type_id: str
    scenario: Scenario


@dataclass(frozen=True)
class CardResolved(GameEvent):
    kind: ClassVar[str] = "card_resolved"
    card_id: str
    correct: bool
    player_wins: int
    antagonist_wins: int


@dataclass(frozen=True)
class RoundAdvanced(GameEvent):
    kind: ClassVar[str] = "round_advanced"
    round: int
    scenario: Scenario


@dataclass(frozen=True)
class BattleWon(GameEvent):
    kind: ClassVar[str] = "win"
    antagonist_id: str


@dataclass(frozen=True)
class BattleLost(GameEvent):
    kind: ClassVar[str] = "lose"
    antagonist_id: str


@dataclass(frozen=True)
class AntagonistDefeated(GameEvent):
    kind: ClassVar[str] = "antagonist_defeated"
    antagonist_id: str


@dataclass(frozen=True)
class SanityLost(GameEvent):
    kind: ClassVar[str] = "sanity_lost"
    sanity: int


@dataclass(frozen=True)
class PlayerRetreated(GameEvent):
    kind: ClassVar[str] = "player_retreated"
    source: Position
    target: Position


@dataclass(frozen=True)
class BattleEnded(GameEvent):
    """Control returns to the movement loop with the boolean outcome."""

    kind: ClassVar[str] = "battle_ended"
    antagonist_id: str
    won: bool


@dataclass(frozen=True)
class GameOver(GameEvent):
    kind: ClassVar[str] = "game_over"


# ------------------------ Misc ------------------------
@dataclass(frozen=True)
class ActionIgnored(GameEvent):
    kind: ClassVar[str] = "ignored"
    action: str
    reason: str


@dataclass(frozen=True)
class ConsumableUsed(GameEvent):
    kind: ClassVar[str] = "consumable_used"
    consumable: str
    target: Optional[Position] = None


@dataclass(frozen=True)
class ConsumableFailed(GameEvent):
    kind: ClassVar[str] = "consumable_failed"
    consumable: str
    reason: str


__all__ = [
    "GameEvent",
    "PlayerMoved",
    "MoveBlocked",
    "ObstacleInspected",
    "ItemPickedUp",
    "ExitRejected",
    "Victory",
    "AntagonistMoved",
    "PlayerSpotted",
    "BattleStarted",
    "CardResolved",
    "RoundAdvanced",
    "BattleWon",
    "BattleLost",
    "AntagonistDefeated",
    "SanityLost",
    "PlayerRetreated",
    "BattleEnded",
    "GameOver",
    "ActionIgnored",
    "ConsumableUsed",
    "ConsumableFailed",
]
