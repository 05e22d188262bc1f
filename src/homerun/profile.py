from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping

from .content.models import ContentCatalog
from .engine.events import ConsumableUsed, GameEvent, ItemPickedUp, Victory
from .errors import HomerunError, InsufficientFunds

logger = logging.getLogger(__name__)


@dataclass
class PlayerProfile:
    """Cross-run bookkeeping: banked money, collectible unlocks, consumable stock.

    The engine never stores or persists this; callers fold each batch of events
    into it and save it however they like (to_dict/from_dict give a plain form).
    """

    money: int = 0
    unlocked: Dict[str, int] = field(default_factory=dict)
    consumables: Dict[str, int] = field(default_factory=dict)

    def apply_events(self, events: Iterable[GameEvent]) -> "PlayerProfile":
        """Return a new profile with the events folded in; self is untouched."""
        out = self.copy()
        for ev in events:
            if isinstance(ev, Victory):
                out.money += ev.payout
            elif isinstance(ev, ItemPickedUp) and ev.loot_id:
                out.unlocked[ev.loot_id] = out.unlocked.get(ev.loot_id, 0) + 1
            elif isinstance(ev, ConsumableUsed):
                out.consumables[ev.consumable] = max(0, out.consumables.get(ev.consumable, 0) - 1)
        return out

    def purchase(self, consumable_id: str, catalog: ContentCatalog, quantity: int = 1) -> "PlayerProfile":
        spec = catalog.consumables.get(consumable_id)
        if spec is None:
            raise HomerunError(f"Unknown consumable: {consumable_id!r}")
        if quantity < 1:
            raise ValueError("quantity must be >= 1")
        cost = spec.price * quantity
        if cost > self.money:
            raise InsufficientFunds(f"{spec.name} x{quantity} costs {cost}, only {self.money} banked")
        out = self.copy()
        out.money -= cost
        out.consumables[consumable_id] = out.consumables.get(consumable_id, 0) + quantity
        logger.info("Purchased %s x%d for %d", consumable_id, quantity, cost)
        return out

    def unlocked_count(self, catalog: ContentCatalog) -> int:
        return sum(1 for loot_id in self.unlocked if catalog.loot_by_id(loot_id) is not None)

    def copy(self) -> "PlayerProfile":
        return PlayerProfile(self.money, dict(self.unlocked), dict(self.consumables))

    def to_dict(self) -> Dict[str, Any]:
        return {"money": self.money, "unlocked": dict(self.unlocked), "consumables": dict(self.consumables)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PlayerProfile":
        return cls(
            money=int(data.get("money", 0)),
            unlocked={str(k): int(v) for k, v in (data.get("unlocked") or {}).items()},
            consumables={str(k): int(v) for k, v in (data.get("consumables") or {}).items()},
        )


__all__ = ["PlayerProfile"]
