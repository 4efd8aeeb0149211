"""
Folletto CLI - Command-line interface for the engine.

Usage:
    folletto serve [--host H] [--port P]        Run the WebSocket server
    folletto simulate [--players N] [--seed S]  Play a full game automatically
"""

import argparse
import logging
import os
import sys

from .engine_core.dice import DiceRoller
from .engine_core.reducer import Reducer
from .engine_core.state import RoomState, TurnPhase
from .session import RoomManager

SIMULATION_CONNECTION = "cli"

# Hard stop for simulations; a game ends well before this
MAX_SIMULATED_INTENTS = 1000


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Folletto's Vault - multiplayer dice and coin game server",
        prog="folletto",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    serve_parser = subparsers.add_parser("serve", help="Run the WebSocket server")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=int(os.getenv("PORT", "3000")), help="Bind port")
    serve_parser.add_argument("--reload", action="store_true", help="Reload on code changes")

    simulate_parser = subparsers.add_parser("simulate", help="Play a full game automatically")
    simulate_parser.add_argument("--players", type=int, default=3, help="Number of seats (3-6)")
    simulate_parser.add_argument("--seed", type=int, default=None, help="Dice seed")

    args = parser.parse_args(argv)

    if args.command == "serve":
        cmd_serve(args)
    elif args.command == "simulate":
        cmd_simulate(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_serve(args):
    """Run the server with uvicorn."""
    import uvicorn

    logging.basicConfig(level=os.getenv("FOLLETTO_LOG_LEVEL", "INFO").upper())
    print(f"✅ Server starting on {args.host}:{args.port}")
    uvicorn.run("folletto.api.app:app", host=args.host, port=args.port, reload=args.reload)


def simulate_game(players: int = 3, seed: int | None = None) -> RoomState:
    """
    Play one game to the end, always confirming the right sum.

    Every seat is left vacant, so the single CLI connection plays them all.
    """
    manager = RoomManager(reducer=Reducer(roller=DiceRoller(seed=seed)))
    code = manager.create_room(players, SIMULATION_CONNECTION).new_state.room_code

    for _ in range(MAX_SIMULATED_INTENTS):
        state = manager.get_state(code)
        if state.turn_phase == TurnPhase.TERMINAL:
            break
        if state.turn_phase == TurnPhase.AWAITING_ROLL:
            manager.roll(code, SIMULATION_CONNECTION)
        elif state.turn_phase == TurnPhase.AWAITING_CONFIRM:
            manager.confirm_sum(code, state.last_roll.total, SIMULATION_CONNECTION)
        else:
            result = manager.do_action(code, SIMULATION_CONNECTION)
            if not result.success:
                raise RuntimeError(f"Simulation stuck: {result.error}")
    return manager.get_state(code)


def cmd_simulate(args):
    """Play a game and print its log."""
    state = simulate_game(args.players, args.seed)

    for line in reversed(state.event_log):
        print(line)

    print()
    print(f"Coins: {state.coins}")
    print(f"Center: {state.center_pool}  Borders: {state.occupied_borders}")
    if state.winners:
        print(f"Winner(s): {', '.join(state.label(i) for i in state.winners)}")
    else:
        print("No winner")


if __name__ == "__main__":
    main()
