#!/usr/bin/env python3
"""
CLI tool for querying a UCI engine.

Usage:
    python tools/ask_engine.py bestmove \\
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1" \\
        --difficulty 5

    python tools/ask_engine.py checkers "<FEN>"

    python tools/ask_engine.py move "<FEN>" e2e4 e7e5

    python tools/ask_engine.py fen "<FEN>"

Engine selection comes from STOCKFISH_* environment variables unless
--engine is given.
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from stockfish_client.config.settings import Settings
from stockfish_client.engine import Option, Stockfish, StockfishError


def setup_logging(verbose: bool = False):
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def build_settings(args) -> Settings:
    """Environment settings, overridden by command line flags."""
    settings = Settings.from_env()
    if args.engine:
        settings.engine_path = args.engine
    if args.movetime:
        settings.move_time_ms = args.movetime
    return settings


def best_move(engine: Stockfish, args):
    move = engine.get_best_move(args.fen, args.difficulty)
    print(move if move else "(no move)")


def checkers(engine: Stockfish, args):
    squares = engine.get_checkers(args.fen)
    print(" ".join(squares) if squares else "(not in check)")


def make_move(engine: Stockfish, args):
    print(engine.make_move(args.fen, args.moves))


def current_fen(engine: Stockfish, args):
    if args.fen is None:
        print(engine.get_fen())
    else:
        # No moves: the engine echoes its own rendering of args.fen
        print(engine.make_move(args.fen, []))


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Ask a UCI engine about a chess position",
    )
    parser.add_argument("--engine", type=str, default=None, help="Engine executable path")
    parser.add_argument("--movetime", type=int, default=None, help="Think time in ms")
    parser.add_argument("--skill", type=int, default=None, help="Skill Level set at startup")
    parser.add_argument("--verbose", action="store_true", help="Log protocol traffic")

    subparsers = parser.add_subparsers(dest="command", required=True)

    bestmove_parser = subparsers.add_parser("bestmove", help="Best move for a position")
    bestmove_parser.add_argument("fen", type=str)
    bestmove_parser.add_argument("--difficulty", type=int, default=20)
    bestmove_parser.set_defaults(func=best_move)

    checkers_parser = subparsers.add_parser("checkers", help="Squares giving check")
    checkers_parser.add_argument("fen", type=str)
    checkers_parser.set_defaults(func=checkers)

    move_parser = subparsers.add_parser("move", help="Apply moves, print resulting FEN")
    move_parser.add_argument("fen", type=str)
    move_parser.add_argument("moves", nargs="+", type=str)
    move_parser.set_defaults(func=make_move)

    fen_parser = subparsers.add_parser("fen", help="Engine FEN, of its current position or of a given one")
    fen_parser.add_argument("fen", type=str, nargs="?", default=None)
    fen_parser.set_defaults(func=current_fen)

    args = parser.parse_args()
    setup_logging(args.verbose)

    options = []
    if args.skill is not None:
        options.append(Option("Skill Level", args.skill))

    try:
        with Stockfish(*options, settings=build_settings(args)) as engine:
            args.func(engine, args)
    except StockfishError as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
