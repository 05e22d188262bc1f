import itertools

import pytest

from homerun.config import EngineSettings
from homerun.content.models import Archetype, LootRarity
from homerun.rng import RandomSource
from homerun.world.entities import Antagonist, Item, ItemKind
from homerun.world.factory import WorldFactory
from homerun.world.generator import Layout
from homerun.world.grid import TileGrid
from homerun.world.population import PopulationSampler
from homerun.world.tiles import Tile

ARCHETYPES = list(Archetype)


@pytest.mark.parametrize("archetype", ARCHETYPES)
@pytest.mark.parametrize("seed", [0, 5, 9, 21])
def test_no_two_entities_share_a_tile(catalog, archetype, seed):
    world = WorldFactory(catalog, rng=RandomSource(seed)).create(archetype)
    positions = [e.pos for e in world.entities]
    assert len(positions) == len(set(positions))


@pytest.mark.parametrize("archetype", ARCHETYPES)
@pytest.mark.parametrize("seed", [0, 5, 9])
def test_placements_respect_tiles_and_spacing(catalog, archetype, seed):
    settings = EngineSettings()
    world = WorldFactory(catalog, settings, RandomSource(seed)).create(archetype)
    spawn = world.player.pos
    antagonists = world.antagonists()
    for entity in world.entities:
        if isinstance(entity, (Item, Antagonist)):
            assert world.grid.get(entity.pos.x, entity.pos.y) is Tile.FLOOR
    for a in antagonists:
        assert a.pos.distance_to(spawn) > settings.min_player_distance
    for a, b in itertools.combinations(antagonists, 2):
        assert a.pos.distance_to(b.pos) >= settings.min_antagonist_spacing
    roster = {p.type_id: p.aggression for p in catalog.profile(archetype).roster}
    for a in antagonists:
        assert roster[a.type_id] == a.aggression


@pytest.mark.parametrize(
    "archetype,loot,currency,antagonists",
    [(Archetype.HOME, 8, 7, 10), (Archetype.SCHOOL, 12, 10, 15), (Archetype.COMPANY, 12, 10, 15)],
)
def test_counts_never_exceed_scaled_targets(catalog, archetype, loot, currency, antagonists):
    world = WorldFactory(catalog, rng=RandomSource(4)).create(archetype)
    items = world.items()
    assert len([i for i in items if i.item_kind is ItemKind.UNIQUE]) <= loot
    assert len([i for i in items if i.item_kind is ItemKind.CURRENCY]) <= currency
    assert 0 < len(world.antagonists()) <= antagonists


def test_wide_grids_get_more_items(catalog):
    world = WorldFactory(catalog, rng=RandomSource(2)).create(Archetype.SCHOOL)
    # 30x30 with plenty of floor: every scaled item placement succeeds
    assert len([i for i in world.items() if i.item_kind is ItemKind.UNIQUE]) == 12
    assert len([i for i in world.items() if i.item_kind is ItemKind.CURRENCY]) == 10


def test_loot_ids_unique_and_from_archetype(catalog):
    drawn = set()
    world = WorldFactory(catalog, rng=RandomSource(8)).create(Archetype.COMPANY, drawn)
    loot_ids = [i.loot_id for i in world.items() if i.item_kind is ItemKind.UNIQUE]
    assert len(loot_ids) == len(set(loot_ids))
    assert set(loot_ids) <= drawn
    assert all(catalog.loot_by_id(lid).archetype is Archetype.COMPANY for lid in loot_ids)


def test_draw_loot_falls_back_when_tier_exhausted(catalog):
    settings = EngineSettings(rarity_weights={"red": 1.0, "blue": 0.0, "purple": 0.0, "orange": 0.0})
    sampler = PopulationSampler(catalog, settings, RandomSource(1))
    profile = catalog.profile(Archetype.HOME)
    drawn = {e.id for e in catalog.loot_for(Archetype.HOME, LootRarity.RED)}
    entry = sampler.draw_loot(profile, drawn)
    assert entry is not None
    assert entry.rarity is not LootRarity.RED
    assert entry.id in drawn


def test_draw_loot_returns_none_when_catalog_exhausted(catalog):
    sampler = PopulationSampler(catalog, EngineSettings(), RandomSource(1))
    drawn = {e.id for e in catalog.loot_for(Archetype.HOME)}
    assert sampler.draw_loot(catalog.profile(Archetype.HOME), drawn) is None


def _open_layout(spawn=(), exits=()):
    return Layout(Archetype.HOME, TileGrid(15, 15, default_tile=Tile.FLOOR), spawn, exits)


def test_fallback_exit_is_far_from_spawn(catalog):
    sampler = PopulationSampler(catalog, EngineSettings(), RandomSource(3))
    world = sampler.populate(_open_layout(spawn=((0, 0),)))
    assert len(world.exits) == 1
    exit_pos = world.exits[0]
    assert world.grid.get(exit_pos.x, exit_pos.y) is Tile.EXIT
    assert exit_pos.distance_to(world.player.pos) > 7.5


def test_fallback_spawn_when_preferred_is_blocked(catalog):
    layout = _open_layout(spawn=((3, 3),), exits=((14, 14),))
    layout.grid.set(3, 3, Tile.WALL)
    world = PopulationSampler(catalog, EngineSettings(), RandomSource(3)).populate(layout)
    spawn = world.player.pos
    assert spawn.as_tuple() != (3, 3)
    assert world.grid.get(spawn.x, spawn.y) is Tile.FLOOR


def test_crowded_grid_skips_instead_of_failing(catalog):
    layout = Layout(
        Archetype.HOME,
        TileGrid.from_lines(["....", "....", "...."]),
        ((0, 0),),
        ((3, 2),),
    )
    settings = EngineSettings(item_attempts=5, antagonist_attempts=5)
    world = PopulationSampler(catalog, settings, RandomSource(5)).populate(layout)
    # nothing is far enough from the spawn for an antagonist on a 4x3 grid
    assert world.antagonists() == []
    positions = [e.pos for e in world.entities]
    assert len(positions) == len(set(positions))
