from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Set, Tuple

from ..config import EngineSettings
from ..content.models import ArchetypeProfile, ContentCatalog, LootEntry, LootRarity
from ..rng import RandomSource
from .entities import Antagonist, Entity, Item, ItemKind, Player, Position
from .generator import Layout
from .grid import TileGrid
from .tiles import Tile
from .world import World

logger = logging.getLogger(__name__)

PLAYER_ID = "player"


class PopulationSampler:
    """Scatters the player, exits, loot, currency and antagonists over a layout.

    Every optional placement is bounded rejection sampling; an exhausted cap
    skips that placement and is logged, never raised. Items and antagonists
    only ever land on FLOOR cells, so exits and the player are never covered.
    """

    def __init__(self, catalog: ContentCatalog, settings: EngineSettings, rng: RandomSource):
        self.catalog = catalog
        self.settings = settings
        self.rng = rng

    # ------------------------ Public API ------------------------
    def populate(self, layout: Layout, drawn_loot: Optional[Set[str]] = None) -> World:
        """Turn a layout into a world; drawn_loot collects the unique ids used."""
        profile = self.catalog.profile(layout.archetype)
        grid = layout.grid
        drawn = drawn_loot if drawn_loot is not None else set()
        occupied: Set[Position] = set()
        entities: List[Entity] = []

        spawn = self._place_player(grid, layout.spawn_points)
        occupied.add(spawn)
        entities.append(Player(id=PLAYER_ID, pos=spawn))

        exits = self._mark_exits(grid, layout.exit_points, spawn)

        entities.extend(self._place_loot(grid, profile, occupied, drawn))
        entities.extend(self._place_currency(grid, occupied))
        entities.extend(self._place_antagonists(grid, profile, spawn, occupied))

        world = World(
            archetype=layout.archetype,
            grid=grid,
            entities=entities,
            turn=0,
            spawn=spawn,
            exits=tuple(exits),
        )
        logger.info(
            "Populated %s world: spawn=%s exits=%s items=%d antagonists=%d",
            layout.archetype.value,
            spawn.as_tuple(),
            [e.as_tuple() for e in exits],
            len(world.items()),
            len(world.antagonists()),
        )
        return world

    # ------------------------ Steps ------------------------
    def _place_player(self, grid: TileGrid, preferred: Tuple[Tuple[int, int], ...]) -> Position:
        """First preferred FLOOR cell, else a sampled floor tile, else any floor tile.

        Raises ValueError when the layout has no floor at all.
        """
        for x, y in preferred:
            if grid.safe_get(x, y) is Tile.FLOOR:
                return Position(x, y)
        pos = self._sample_floor(grid, self.settings.spawn_attempts, lambda p: True)
        if pos is None:
            # Cap exhausted: pick from the full floor list.
            floors = grid.positions_of(Tile.FLOOR)
            if not floors:
                raise ValueError("Layout has no floor tiles to spawn on")
            pos = Position(*self.rng.choice(floors))
        logger.debug("Preferred spawn unavailable, spawned at %s", pos.as_tuple())
        return pos

    def _mark_exits(self, grid: TileGrid, preferred: Tuple[Tuple[int, int], ...], spawn: Position) -> List[Position]:
        """Turn the usable preferred cells into EXIT tiles.

        When none is usable, one fallback exit goes on a floor tile more than
        half the short side away from spawn, or the farthest floor tile when
        sampling runs out.

        Args:
            grid: Grid to mark in place.
            preferred: Candidate exit cells from the layout, in order.
            spawn: Player spawn; never turned into an exit.

        Returns:
            The exit positions, at least one.
        """
        exits: List[Position] = []
        for x, y in preferred:
            pos = Position(x, y)
            if pos != spawn and grid.safe_get(x, y) is Tile.FLOOR:
                grid.set(x, y, Tile.EXIT)
                exits.append(pos)
        if exits:
            return exits

        min_dist = min(grid.width, grid.height) / 2
        pos = self._sample_floor(
            grid,
            self.settings.exit_fallback_attempts,
            lambda p: p != spawn and p.distance_to(spawn) > min_dist,
        )
        if pos is None:
            candidates = [Position(x, y) for x, y in grid.positions_of(Tile.FLOOR) if (x, y) != spawn.as_tuple()]
            if not candidates:
                raise ValueError("Layout has no floor tile left for an exit")
            pos = max(candidates, key=lambda p: p.distance_to(spawn))
        grid.set(pos.x, pos.y, Tile.EXIT)
        logger.debug("No preferred exit usable, marked fallback exit at %s", pos.as_tuple())
        return [pos]

    def draw_loot(self, profile: ArchetypeProfile, drawn: Set[str]) -> Optional[LootEntry]:
        """Pick one undrawn collectible: weighted tier first, any undrawn entry as fallback."""
        weights: Dict[LootRarity, float] = {
            LootRarity(name): float(w) for name, w in self.settings.rarity_weights.items()
        }
        rarity = self.rng.weighted_choice(weights)
        pool = [e for e in self.catalog.loot_for(profile.archetype, rarity) if e.id not in drawn]
        if not pool:
            pool = [e for e in self.catalog.loot_for(profile.archetype) if e.id not in drawn]
            logger.debug("Tier %s exhausted for %s, drawing from any tier", rarity.value, profile.archetype.value)
        if not pool:
            return None
        entry = self.rng.choice(pool)
        drawn.add(entry.id)
        return entry

    def _place_loot(
        self, grid: TileGrid, profile: ArchetypeProfile, occupied: Set[Position], drawn: Set[str]
    ) -> List[Item]:
        """Draw and place the scaled number of unique collectibles."""
        target = self.settings.scaled_count(self.settings.loot_count, grid.width)
        placed: List[Item] = []
        for i in range(target):
            entry = self.draw_loot(profile, drawn)
            if entry is None:
                logger.warning("Loot catalog for %s exhausted after %d draws", profile.archetype.value, i)
                break
            pos = self._sample_free_floor(grid, occupied, self.settings.item_attempts)
            if pos is None:
                logger.warning("Skipped loot %s: no free floor within %d attempts", entry.id, self.settings.item_attempts)
                continue
            occupied.add(pos)
            placed.append(Item(id=f"loot-{i}", pos=pos, item_kind=ItemKind.UNIQUE, loot_id=entry.id))
        return placed

    def _place_currency(self, grid: TileGrid, occupied: Set[Position]) -> List[Item]:
        """Scatter the scaled number of currency pickups on free floor."""
        target = self.settings.scaled_count(self.settings.currency_count, grid.width)
        placed: List[Item] = []
        for i in range(target):
            pos = self._sample_free_floor(grid, occupied, self.settings.item_attempts)
            if pos is None:
                logger.warning("Skipped currency item %d: no free floor within %d attempts", i, self.settings.item_attempts)
                continue
            occupied.add(pos)
            placed.append(Item(id=f"cash-{i}", pos=pos, item_kind=ItemKind.CURRENCY))
        return placed

    def _place_antagonists(
        self, grid: TileGrid, profile: ArchetypeProfile, spawn: Position, occupied: Set[Position]
    ) -> List[Antagonist]:
        """Place antagonists away from spawn and from each other.

        A candidate must be free floor, farther than min_player_distance from
        spawn and at least min_antagonist_spacing from every antagonist placed
        so far. Each antagonist gets antagonist_attempts tries and is skipped
        with a warning when none succeeds; its type is drawn from the roster.
        """
        target = self.settings.scaled_count(self.settings.antagonist_count, grid.width)
        placed: List[Antagonist] = []
        for i in range(target):
            pos = None
            for _ in range(self.settings.antagonist_attempts):
                cand = self._random_cell(grid)
                if grid.get(cand.x, cand.y) is not Tile.FLOOR or cand in occupied:
                    continue
                if cand.distance_to(spawn) <= self.settings.min_player_distance:
                    continue
                if any(cand.distance_to(a.pos) < self.settings.min_antagonist_spacing for a in placed):
                    continue
                pos = cand
                break
            if pos is None:
                logger.warning("Skipped antagonist %d: spacing not met within %d attempts", i, self.settings.antagonist_attempts)
                continue
            kind = self.rng.choice(profile.roster)
            occupied.add(pos)
            placed.append(Antagonist(id=f"npc-{i}", pos=pos, type_id=kind.type_id, aggression=kind.aggression))
        return placed

    # ------------------------ Sampling helpers ------------------------
    def _random_cell(self, grid: TileGrid) -> Position:
        return Position(*self.rng.cell(grid.width, grid.height))

    def _sample_floor(self, grid: TileGrid, attempts: int, accept: Callable[[Position], bool]) -> Optional[Position]:
        """Sample random cells until one is FLOOR and passes accept.

        Args:
            grid: Grid to sample.
            attempts: Number of cells to draw before giving up.
            accept: Extra predicate on the candidate position.

        Returns:
            The first accepted position, or None once attempts run out.
        """
        for _ in range(attempts):
            pos = self._random_cell(grid)
            if grid.get(pos.x, pos.y) is Tile.FLOOR and accept(pos):
                return pos
        return None

    def _sample_free_floor(self, grid: TileGrid, occupied: Set[Position], attempts: int) -> Optional[Position]:
        return self._sample_floor(grid, attempts, lambda p: p not in occupied)


__all__ = ["PopulationSampler", "PLAYER_ID"]
