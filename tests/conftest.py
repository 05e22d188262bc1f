import sys
from pathlib import Path

import pytest

# Ensure 'src' is on sys.path for test imports without installing the package
ROOT = Path(__file__).resolve().parents[1]
src = ROOT / "src"
if str(src) not in sys.path:
    sys.path.insert(0, str(src))

from homerun.content.loader import load_catalog  # noqa: E402
from homerun.content.models import Archetype  # noqa: E402
from homerun.rng import RandomSource  # noqa: E402
from homerun.world.entities import Antagonist, Item, ItemKind, Player, Position  # noqa: E402
from homerun.world.grid import TileGrid  # noqa: E402
from homerun.world.tiles import Tile  # noqa: E402
from homerun.world.world import World  # noqa: E402


class ScriptedRandom(RandomSource):
    """RandomSource whose random() rolls and choice() picks can be queued.

    Unqueued random() calls return `default_roll` (0.99 keeps antagonists
    passive); unqueued choice() returns the first element; shuffle is a no-op
    so hands keep their authored order.
    """

    def __init__(self, rolls=(), picks=(), default_roll=0.99, seed=7):
        super().__init__(seed=seed)
        self.rolls = list(rolls)
        self.picks = list(picks)
        self.default_roll = default_roll

    def random(self):
        if self.rolls:
            return self.rolls.pop(0)
        return self.default_roll

    def choice(self, seq):
        seq_list = list(seq)
        if self.picks:
            pick = self.picks.pop(0)
            if pick in seq_list:
                return pick
        return seq_list[0]

    def shuffle(self, seq):
        return None


@pytest.fixture(scope="session")
def catalog():
    return load_catalog()


@pytest.fixture
def build_world():
    """Build a World from ASCII rows.

    Glyphs: '.' floor, '#' wall, '>' exit, obstacles 's v p t b d'.
    antagonists: list of (x, y, type_id, aggression); items: list of (x, y, kind, loot_id).
    """

    def _build(lines, player, antagonists=(), items=(), archetype=Archetype.HOME):
        grid = TileGrid.from_lines(lines)
        entities = [Player(id="player", pos=Position(*player))]
        for i, (x, y, type_id, aggression) in enumerate(antagonists):
            entities.append(Antagonist(id=f"npc-{i}", pos=Position(x, y), type_id=type_id, aggression=aggression))
        for i, (x, y, kind, loot_id) in enumerate(items):
            entities.append(Item(id=f"item-{i}", pos=Position(x, y), item_kind=ItemKind(kind), loot_id=loot_id))
        exits = tuple(Position(x, y) for x, y in grid.positions_of(Tile.EXIT))
        return World(archetype=archetype, grid=grid, entities=entities, spawn=Position(*player), exits=exits)

    return _build


@pytest.fixture
def scripted():
    """The ScriptedRandom class, for tests that queue their own rolls."""
    return ScriptedRandom
