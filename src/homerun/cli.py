from __future__ import annotations

import argparse
import logging
import sys
from typing import Iterable, List, Optional, TextIO

from . import __version__
from .config import EngineSettings
from .content.loader import load_catalog
from .content.models import Archetype
from .engine import events as ev
from .engine.simulation import Simulation
from .errors import HomerunError
from .logging_config import configure_logging
from .profile import PlayerProfile
from .rng import RandomSource
from .session import GameSession

logger = logging.getLogger(__name__)

MOVES = {"w": (0, -1), "s": (0, 1), "a": (-1, 0), "d": (1, 0)}


def describe(event: ev.GameEvent) -> Optional[str]:
    """One line of narration per event; None for events not worth printing."""
    if isinstance(event, ev.MoveBlocked):
        return None if event.reason == "obstacle" else f"Blocked ({event.reason.replace('_', ' ')})."
    if isinstance(event, ev.ObstacleInspected):
        return event.quote or f"A {event.tile.value.lower()} is in the way."
    if isinstance(event, ev.ItemPickedUp):
        return f"Picked up {event.loot_id or event.item_kind.value}."
    if isinstance(event, ev.ExitRejected):
        return event.message
    if isinstance(event, ev.Victory):
        return f"You made it out! Payout: {event.payout}."
    if isinstance(event, ev.PlayerSpotted):
        return f"Spotted by {event.antagonist_id}! (press enter)"
    if isinstance(event, ev.BattleStarted):
        return f"Battle with {event.type_id}: {event.scenario.prompt}"
    if isinstance(event, ev.CardResolved):
        verdict = "Good answer" if event.correct else "Bad answer"
        return f"{verdict} ({event.player_wins}-{event.antagonist_wins})."
    if isinstance(event, ev.RoundAdvanced):
        return f"Round {event.round}: {event.scenario.prompt}"
    if isinstance(event, ev.BattleWon):
        return "You won the argument. (press enter)"
    if isinstance(event, ev.BattleLost):
        return "You lost the argument. (press enter)"
    if isinstance(event, ev.SanityLost):
        return f"Sanity down to {event.sanity}."
    if isinstance(event, ev.GameOver):
        return "Game over."
    if isinstance(event, ev.ConsumableUsed):
        return f"Used {event.consumable}."
    if isinstance(event, ev.ConsumableFailed):
        return f"Couldn't use {event.consumable} ({event.reason.replace('_', ' ')})."
    return None


def play(session: GameSession, commands: Iterable[str], out: TextIO) -> int:
    """Drive a session from text commands; returns the number of commands handled."""
    handled = 0
    for raw in commands:
        cmd = raw.strip().lower()
        if cmd in ("q", "quit"):
            break
        handled += 1
        if cmd in MOVES:
            events = session.move(*MOVES[cmd])
        elif cmd == "":
            events = session.confirm_spotted() if session.battle is None else session.acknowledge()
        elif cmd.isdigit():
            events = session.choose(int(cmd) - 1)
        elif cmd in ("spray", "dice"):
            events = session.use_consumable(cmd)
        else:
            out.write(f"Unknown command: {cmd!r}\n")
            continue
        for event in events:
            line = describe(event)
            if line:
                out.write(line + "\n")
        _render(session, out)
        if not session.active:
            break
    return handled


def _render(session: GameSession, out: TextIO) -> None:
    if session.battle is not None and not session.battle.resolved:
        for i, card in enumerate(session.battle.hand, start=1):
            out.write(f"  {i}. {card.text}\n")
        return
    if session.world is not None and session.run is not None and session.battle is None:
        out.write("\n".join(session.world.to_lines()) + "\n")
        out.write(
            f"sanity {session.run.sanity}/{session.run.max_sanity}  items {len(session.run.inventory)}"
            f"  threat {session.threat}\n"
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="homerun", description="Search, fight, evacuate")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase log verbosity (-v, -vv)")
    parser.add_argument("--seed", type=int, default=None, help="Seed the random source")
    parser.add_argument("--settings", default=None, help="YAML engine settings file")
    sub = parser.add_subparsers(dest="command", required=True)

    choices = [a.value for a in Archetype]
    p_map = sub.add_parser("map", help="Print a generated world as ASCII")
    p_map.add_argument("archetype", choices=choices)

    p_play = sub.add_parser("play", help="Play a run in the terminal (w/a/s/d, 1-3, enter, spray, dice, q)")
    p_play.add_argument("archetype", choices=choices)
    p_play.add_argument("--spray", type=int, default=0, help="Spray charges to start with")
    p_play.add_argument("--dice", type=int, default=0, help="Dice charges to start with")
    return parser


def main(argv: Optional[List[str]] = None, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(verbosity=args.verbose)
    out = stdout or sys.stdout

    try:
        settings = EngineSettings.from_sources(file_path=args.settings)
        sim = Simulation(load_catalog(), settings, RandomSource(args.seed))
    except HomerunError as exc:
        logger.error("Startup failed: %s", exc)
        return 2

    if args.command == "map":
        world = sim.generate_world(args.archetype)
        out.write("\n".join(world.to_lines()) + "\n")
        return 0

    profile = PlayerProfile(consumables={"spray": args.spray, "dice": args.dice})
    session = GameSession(sim, profile)
    session.start(args.archetype)
    _render(session, out)
    play(session, stdin or sys.stdin, out)
    return 0


__all__ = ["main", "play", "describe", "build_parser"]
