from __future__ import annotations

import bisect
import itertools
import logging
import random
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Mapping, MutableSequence, Optional, Tuple

logger = logging.getLogger(__name__)

Offset = Tuple[int, int]


@dataclass
class RandomSource:
    """Every random decision of a run, drawn from one seeded stream.

    World population, aggression rolls, scenario draws, payouts and the
    retreat/teleport scatter all pull from here, so one seed replays a whole
    run. Tests subclass it to script individual rolls and picks.
    """

    seed: Optional[int] = None
    _rng: random.Random = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._rng = random.Random(self.seed)
        logger.debug("RandomSource ready (seed=%s)", "system" if self.seed is None else self.seed)

    # ------------------------ Primitives ------------------------
    def randint(self, a: int, b: int) -> int:
        return self._rng.randint(a, b)

    def random(self) -> float:
        return self._rng.random()

    def choice(self, seq: Iterable[Any]) -> Any:
        options = list(seq)
        if not options:
            raise ValueError("Nothing to choose from")
        return self._rng.choice(options)

    def shuffle(self, seq: MutableSequence[Any]) -> None:
        self._rng.shuffle(seq)

    # ------------------------ Engine draws ------------------------
    def chance(self, probability: float) -> bool:
        """Roll once against probability; values of 1 or more always pass.

        The roll is drawn even when the outcome is already certain, so the
        stream stays aligned across runs with different odds.
        """
        return self.random() < probability

    def cell(self, width: int, height: int) -> Offset:
        """Uniform (x, y) inside a width x height grid."""
        return self.randint(0, width - 1), self.randint(0, height - 1)

    def scatter(self, radius: int, attempts: int) -> Iterator[Offset]:
        """Yield random non-zero offsets within a square of the given radius.

        Each attempt draws one offset; a (0, 0) draw spends the attempt without
        yielding, so callers get at most `attempts` candidates.

        Args:
            radius: Largest absolute dx or dy.
            attempts: Number of draws before giving up.

        Yields:
            (dx, dy) pairs, never (0, 0).
        """
        for _ in range(attempts):
            dx = self.randint(-radius, radius)
            dy = self.randint(-radius, radius)
            if dx or dy:
                yield dx, dy

    def weighted_choice(self, weights: Mapping[Any, float]) -> Any:
        """Pick a key with probability proportional to its weight.

        Zero-weight keys are never picked. Raises ValueError for an empty
        mapping, a negative weight, or no positive weight at all.
        """
        if not weights:
            raise ValueError("weighted_choice needs at least one option")
        if any(w < 0 for w in weights.values()):
            raise ValueError(f"Negative weight in {dict(weights)!r}")
        live = [(k, w) for k, w in weights.items() if w > 0]
        if not live:
            raise ValueError(f"No positive weight in {dict(weights)!r}")
        bounds = list(itertools.accumulate(w for _, w in live))
        idx = bisect.bisect_right(bounds, self._rng.random() * bounds[-1])
        return live[min(idx, len(live) - 1)][0]


__all__ = ["RandomSource", "Offset"]
