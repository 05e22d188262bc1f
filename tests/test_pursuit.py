import pytest

from homerun.config import EngineSettings
from homerun.engine.events import AntagonistMoved, PlayerSpotted
from homerun.engine.pursuit import advance_antagonists, aggression_probability, pursuit_steps, threat_level
from homerun.engine.run_state import RunState
from homerun.engine.simulation import Simulation
from homerun.world.entities import Position

OPEN = ["." * 12] * 12


@pytest.mark.parametrize(
    "source,target,expected",
    [
        ((0, 0), (3, 1), [(1, 0), (0, 1)]),
        ((5, 5), (4, 1), [(0, -1), (-1, 0)]),
        ((0, 0), (2, 2), [(0, 1), (1, 0)]),
        ((0, 0), (-2, -2), [(0, -1), (-1, 0)]),
        ((0, 0), (0, -3), [(0, -1)]),
        ((4, 4), (1, 4), [(-1, 0)]),
        ((4, 4), (4, 4), []),
    ],
)
def test_pursuit_step_order(source, target, expected):
    assert pursuit_steps(Position(*source), Position(*target)) == expected


def test_aggression_bonus_grows_then_caps():
    settings = EngineSettings()
    assert aggression_probability(0.5, 0, settings) == 0.5
    assert aggression_probability(0.5, 100, settings) == pytest.approx(1.0)
    assert aggression_probability(0.5, 1000, settings) == pytest.approx(1.3)


def _run(steps=1, untrackable=0):
    run = RunState.new("home")
    run.total_steps = steps
    run.untrackable = untrackable
    return run


def test_aggressive_antagonist_closes_in(build_world, scripted):
    world = build_world(OPEN, player=(2, 5), antagonists=[(5, 5, "AUNT", 0.75)])
    result = advance_antagonists(world, _run(), EngineSettings(), scripted(rolls=[0.0]))
    assert result.events == [AntagonistMoved("npc-0", Position(5, 5), Position(4, 5), True)]
    assert result.encounter is None


def test_blocked_primary_axis_falls_back_to_secondary(build_world, scripted):
    lines = list(OPEN)
    lines[5] = "....#......."
    world = build_world(lines, player=(3, 4), antagonists=[(5, 5, "AUNT", 0.75)])
    advance_antagonists(world, _run(), EngineSettings(), scripted(rolls=[0.0]))
    assert world.get("npc-0").pos == Position(5, 4)


def test_untrackable_player_is_not_chased(build_world, scripted):
    world = build_world(OPEN, player=(3, 5), antagonists=[(5, 5, "AUNT", 1.0)])
    result = advance_antagonists(world, _run(untrackable=2), EngineSettings(), scripted(rolls=[0.0]))
    moved = result.events[0]
    assert moved.aggressive is False
    # passive steps follow the scripted first cardinal (up)
    assert moved.target == Position(5, 4)


def test_far_antagonist_wanders(build_world, scripted):
    world = build_world(OPEN, player=(0, 5), antagonists=[(5, 5, "AUNT", 1.0)])
    result = advance_antagonists(world, _run(), EngineSettings(), scripted(rolls=[0.0]))
    assert result.events[0].aggressive is False


def test_step_bonus_counts_the_move_just_made(catalog, build_world, scripted):
    # base 0: only the bonus from one committed step (0.005) beats a 0.004 roll
    sim = Simulation(catalog, EngineSettings(), scripted(rolls=[0.004]))
    world = build_world(OPEN, player=(2, 5), antagonists=[(5, 5, "KID", 0.0)])
    run = sim.new_run("home")
    result = sim.apply_player_move(world, run, 1, 0)
    assert result.events[-1] == AntagonistMoved("npc-0", Position(5, 5), Position(4, 5), True)


def test_each_antagonist_moves_at_most_once(build_world, scripted):
    settings = EngineSettings(chase_distance=10.0)
    world = build_world(OPEN, player=(2, 5), antagonists=[(5, 5, "AUNT", 1.0), (6, 5, "UNCLE", 1.0)])
    result = advance_antagonists(world, _run(), settings, scripted(rolls=[0.0, 0.0]))
    ids = [e.antagonist_id for e in result.events]
    assert ids == ["npc-0", "npc-1"]
    # the second one took the tile the first just vacated
    assert world.get("npc-0").pos == Position(4, 5)
    assert world.get("npc-1").pos == Position(5, 5)


def test_antagonists_never_stack(build_world, scripted):
    settings = EngineSettings(chase_distance=10.0)
    world = build_world(OPEN, player=(2, 5), antagonists=[(5, 5, "AUNT", 1.0), (4, 5, "UNCLE", 1.0)])
    advance_antagonists(world, _run(), settings, scripted(rolls=[0.0, 0.0]))
    assert world.get("npc-0").pos == Position(5, 5)
    assert world.get("npc-1").pos == Position(3, 5)


def test_items_block_antagonists(build_world, scripted):
    world = build_world(OPEN, player=(2, 5), antagonists=[(5, 5, "AUNT", 1.0)], items=[(4, 5, "currency", None)])
    result = advance_antagonists(world, _run(), EngineSettings(), scripted(rolls=[0.0]))
    assert result.events == []
    assert world.get("npc-0").pos == Position(5, 5)


def test_antagonists_only_step_onto_floor(build_world, scripted):
    lines = list(OPEN)
    lines[4] = ".....>......"
    world = build_world(lines, player=(0, 9), antagonists=[(5, 5, "AUNT", 0.0)])
    result = advance_antagonists(world, _run(), EngineSettings(), scripted())
    assert result.events == []


def test_encounter_stops_the_pass(build_world, scripted):
    world = build_world(
        OPEN, player=(3, 5), antagonists=[(4, 5, "AUNT", 1.0), (9, 9, "UNCLE", 0.0)]
    )
    result = advance_antagonists(world, _run(), EngineSettings(), scripted(rolls=[0.0]))
    assert result.encounter == "npc-0"
    assert result.events == [PlayerSpotted("npc-0", 1000)]
    assert world.get("npc-0").pos == Position(4, 5)
    assert world.get("npc-1").pos == Position(9, 9)


def test_dead_antagonists_stay_put(build_world, scripted):
    world = build_world(OPEN, player=(3, 5), antagonists=[(4, 5, "AUNT", 1.0)])
    world.get("npc-0").alive = False
    result = advance_antagonists(world, _run(), EngineSettings(), scripted(rolls=[0.0]))
    assert result.events == []
    assert result.encounter is None


@pytest.mark.parametrize(
    "antagonist,expected",
    [((5, 3), 3), ((4, 4), 3), ((3, 0), 2), ((6, 3), 2), ((8, 3), 1), ((6, 7), 1), ((9, 3), 0), ((7, 7), 0)],
)
def test_threat_bands(build_world, antagonist, expected):
    world = build_world(OPEN, player=(3, 3), antagonists=[(*antagonist, "AUNT", 0.5)])
    assert threat_level(world, EngineSettings()) == expected


def test_threat_zero_without_live_antagonists(build_world):
    world = build_world(OPEN, player=(3, 3), antagonists=[(4, 3, "AUNT", 0.5)])
    world.get("npc-0").alive = False
    assert threat_level(world, EngineSettings()) == 0
    assert threat_level(build_world(OPEN, player=(3, 3)), EngineSettings()) == 0
