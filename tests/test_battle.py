import logging

import pytest

from homerun.config import EngineSettings
from homerun.content.models import Archetype, BattleRules
from homerun.engine import events as ev
from homerun.engine.battle import BattleResult, MeterRules, ruleset_for
from homerun.engine.run_state import RunPhase
from homerun.engine.scenarios import ScenarioDeck
from homerun.engine.simulation import Simulation
from homerun.errors import ContentError
from homerun.rng import RandomSource
from homerun.world.entities import Position

OPEN = ["." * 12] * 12

ROSTER = {Archetype.HOME: "GRANDMA", Archetype.SCHOOL: "TEACHER_MATH", Archetype.COMPANY: "BOSS"}


@pytest.fixture
def sim(catalog, scripted):
    return Simulation(catalog, EngineSettings(), scripted())


@pytest.fixture
def start(sim, build_world):
    def _start(archetype=Archetype.HOME):
        world = build_world(OPEN, player=(5, 5), antagonists=[(5, 4, ROSTER[archetype], 0.5)], archetype=archetype)
        run = sim.new_run(archetype)
        battle = sim.apply_player_move(world, run, 0, -1).battle
        assert battle is not None
        return world, run, battle

    return _start


def _play(sim, battle, run, answers):
    events = []
    for correct in answers:
        card = next(c for c in battle.hand if c.correct == correct)
        events.extend(sim.submit_battle_choice(battle, run, card))
    return events


def _kinds(events):
    return [type(e) for e in events]


# ------------------------ Home: best of five ------------------------
def test_best_of_three_wins(sim, start):
    world, run, battle = start()

    first = _play(sim, battle, run, [True])
    assert _kinds(first) == [ev.CardResolved, ev.RoundAdvanced]
    assert first[1].round == 2
    assert battle.round == 2

    rest = _play(sim, battle, run, [True, True])
    assert _kinds(rest)[-2:] == [ev.CardResolved, ev.BattleWon]
    assert battle.result is BattleResult.WIN
    assert (battle.player_wins, battle.antagonist_wins, battle.round) == (3, 0, 3)


def test_best_of_three_loses(sim, start):
    world, run, battle = start()
    events = _play(sim, battle, run, [True, False, False, False])
    assert isinstance(events[-1], ev.BattleLost)
    assert battle.result is BattleResult.LOSE
    assert (battle.player_wins, battle.antagonist_wins, battle.round) == (1, 3, 4)


def test_card_resolution_reports_running_tally(sim, start):
    world, run, battle = start()
    events = _play(sim, battle, run, [False])
    resolved = events[0]
    assert resolved.correct is False
    assert (resolved.player_wins, resolved.antagonist_wins) == (0, 1)


def test_rounds_never_repeat_a_scenario(sim, start, catalog):
    world, run, battle = start()
    _play(sim, battle, run, [True, False, True, False])
    eligible = catalog.scenarios_for(Archetype.HOME, "GRANDMA")
    assert len(eligible) >= 5
    assert len(battle.history) == len(set(battle.history)) == 5
    assert set(battle.history) <= run.used_scenario_ids


def test_acknowledged_win_removes_antagonist(sim, start):
    world, run, battle = start()
    _play(sim, battle, run, [True, True, True])

    events = sim.acknowledge_battle_result(world, run, battle)

    assert events == [ev.AntagonistDefeated("npc-0"), ev.BattleEnded("npc-0", True)]
    assert world.get("npc-0").alive is False
    assert world.antagonists() == []
    assert run.phase is RunPhase.EXPLORING
    assert run.sanity == run.max_sanity
    # the defeated antagonist's tile is free to walk onto
    moved = sim.apply_player_move(world, run, 0, -1)
    assert world.player.pos == Position(5, 4)
    assert isinstance(moved.events[0], ev.PlayerMoved)


def test_acknowledged_loss_costs_sanity_and_retreats(sim, start):
    world, run, battle = start()
    _play(sim, battle, run, [False, False, False])

    events = sim.acknowledge_battle_result(world, run, battle)

    assert events[0] == ev.SanityLost(4)
    assert isinstance(events[-1], ev.BattleEnded) and events[-1].won is False
    retreats = [e for e in events if isinstance(e, ev.PlayerRetreated)]
    assert len(retreats) == 1
    pos = world.player.pos
    assert retreats[0].target == pos
    assert pos != Position(5, 4)
    assert abs(pos.x - 5) <= 2 and abs(pos.y - 5) <= 2
    assert world.get("npc-0").alive is True
    assert run.sanity == 4
    assert run.phase is RunPhase.EXPLORING


def test_last_sanity_point_ends_the_run(sim, start):
    world, run, battle = start()
    run.sanity = 1
    _play(sim, battle, run, [False, False, False])

    events = sim.acknowledge_battle_result(world, run, battle)

    assert events[0] == ev.SanityLost(0)
    assert ev.GameOver() in events
    assert run.phase is RunPhase.GAME_OVER
    ignored = sim.apply_player_move(world, run, 1, 0)
    assert _kinds(ignored.events) == [ev.ActionIgnored]

    # no input of any kind is accepted once the run is over
    npc = world.get("npc-0")
    toward_npc = sim.apply_player_move(world, run, npc.pos.x - world.player.pos.x, 0)
    assert _kinds(toward_npc.events) == [ev.ActionIgnored]
    assert toward_npc.battle is None
    spotted = sim.confirm_spotted(world, run)
    assert spotted.events == [ev.ActionIgnored("confirm_spotted", "game_over")]
    assert spotted.battle is None
    assert sim.submit_battle_choice(battle, run, battle.hand[0]) == [ev.ActionIgnored("choose", "game_over")]
    run.consumables["spray"] = 1
    assert sim.use_consumable(world, run, "spray") == [ev.ActionIgnored("use_consumable", "game_over")]
    assert run.consumables["spray"] == 1
    assert _kinds(sim.acknowledge_battle_result(world, run, battle)) == [ev.ActionIgnored]
    assert run.sanity == 0
    assert run.phase is RunPhase.GAME_OVER


# ------------------------ School: score ladder ------------------------
def test_ladder_climbs_checkpoints(sim, start):
    world, run, battle = start(Archetype.SCHOOL)
    scores = []
    for _ in range(3):
        _play(sim, battle, run, [True])
        scores.append(battle.score)
    assert scores == [28, 59, 100]
    assert battle.result is BattleResult.WIN
    assert battle.round == 3


def test_ladder_runs_out_of_rounds(sim, start):
    world, run, battle = start(Archetype.SCHOOL)
    events = _play(sim, battle, run, [False] * 5)
    assert battle.result is BattleResult.LOSE
    assert battle.round == 5
    assert battle.score == 0
    assert sum(isinstance(e, ev.RoundAdvanced) for e in events) == 4


def test_ladder_partial_climb_still_loses(sim, start):
    world, run, battle = start(Archetype.SCHOOL)
    _play(sim, battle, run, [True, True, False, False, False])
    assert battle.result is BattleResult.LOSE
    assert battle.score == 59


def test_ladder_win_on_final_round(sim, start):
    world, run, battle = start(Archetype.SCHOOL)
    _play(sim, battle, run, [False, False, True, True, True])
    assert battle.result is BattleResult.WIN
    assert battle.round == 5


# ------------------------ Company: tug meter ------------------------
def test_meter_moves_with_answers(sim, start):
    world, run, battle = start(Archetype.COMPANY)
    assert battle.meter == 50
    _play(sim, battle, run, [False])
    assert battle.meter == 40
    _play(sim, battle, run, [True, True])
    assert battle.meter == 60
    _play(sim, battle, run, [True])
    assert battle.result is BattleResult.WIN
    assert battle.meter == 70


def test_meter_clamps_to_range(start):
    world, run, battle = start(Archetype.COMPANY)
    rules = MeterRules(wins_needed=3, start=50, step=10, low=0, high=100)
    battle.meter = 95
    rules.score(battle, True)
    assert battle.meter == 100
    battle.meter = 5
    rules.score(battle, False)
    assert battle.meter == 0


def test_unknown_ruleset_rejected():
    with pytest.raises(ContentError):
        ruleset_for(BattleRules(kind="chess"))


# ------------------------ Guard rails ------------------------
def test_card_not_in_hand_is_ignored(sim, start):
    world, run, battle = start()
    events = sim.submit_battle_choice(battle, run, "not-a-card")
    assert events == [ev.ActionIgnored("choose", "card_not_in_hand")]
    assert (battle.round, battle.player_wins, battle.antagonist_wins) == (1, 0, 0)


def test_choice_after_resolution_is_ignored(sim, start):
    world, run, battle = start()
    _play(sim, battle, run, [True, True, True])
    card = battle.hand[0]
    assert sim.submit_battle_choice(battle, run, card) == [ev.ActionIgnored("choose", "battle_resolved")]
    assert battle.player_wins == 3


def test_card_id_accepted(sim, start):
    world, run, battle = start()
    card = next(c for c in battle.hand if c.correct)
    events = sim.submit_battle_choice(battle, run, card.id)
    assert events[0].card_id == card.id
    assert battle.player_wins == 1


def test_acknowledge_requires_a_result(sim, start):
    world, run, battle = start()
    events = sim.acknowledge_battle_result(world, run, battle)
    assert events == [ev.ActionIgnored("acknowledge", "battle_pending")]
    assert run.phase is RunPhase.IN_BATTLE


def test_acknowledge_rejects_wrong_outcome(sim, start):
    world, run, battle = start()
    _play(sim, battle, run, [True, True, True])
    assert sim.acknowledge_battle_result(world, run, battle, won=False) == [
        ev.ActionIgnored("acknowledge", "outcome_mismatch")
    ]
    events = sim.acknowledge_battle_result(world, run, battle, won=True)
    assert ev.BattleEnded("npc-0", True) in events


def test_acknowledge_only_once(sim, start):
    world, run, battle = start()
    _play(sim, battle, run, [True, True, True])
    sim.acknowledge_battle_result(world, run, battle)
    again = sim.acknowledge_battle_result(world, run, battle)
    assert _kinds(again) == [ev.ActionIgnored]
    assert battle.acknowledged is True


# ------------------------ Scenario deck ------------------------
def test_deck_exhausts_before_repeating(catalog, caplog):
    deck = ScenarioDeck(catalog, RandomSource(4))
    eligible = catalog.scenarios_for(Archetype.HOME, "KID")
    used = set()
    drawn = [deck.draw(Archetype.HOME, "KID", used).id for _ in eligible]
    assert sorted(drawn) == sorted(s.id for s in eligible)

    with caplog.at_level(logging.WARNING, logger="homerun.engine.scenarios"):
        extra = deck.draw(Archetype.HOME, "KID", used)
    assert extra.id in drawn
    assert "reusing the pool" in caplog.text


def test_deck_without_scenarios_raises(catalog):
    deck = ScenarioDeck(catalog, RandomSource(4))
    with pytest.raises(ContentError):
        deck.draw(Archetype.HOME, "DRAGON", set())


def test_deal_keeps_every_card(catalog):
    deck = ScenarioDeck(catalog, RandomSource(9))
    scenario = catalog.scenarios_for(Archetype.COMPANY, "PM")[0]
    hand = deck.deal(scenario)
    assert isinstance(hand, tuple)
    assert sorted(c.id for c in hand) == sorted(c.id for c in scenario.cards)
