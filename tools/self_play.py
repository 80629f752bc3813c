#!/usr/bin/env python3
"""
Engine vs Engine Self-Play

Plays one game between two skill levels on a single engine session.
The engine is only asked for moves and positions; python-chess decides
when the game is over.

Usage:
    python tools/self_play.py [--white-skill 5] [--black-skill 15] [--max-plies 200]
"""

import argparse
import logging
import sys
from pathlib import Path

import chess
from tqdm import tqdm

sys.path.insert(0, str(Path(__file__).parent.parent))

from stockfish_client.config.settings import Settings
from stockfish_client.engine import ChessEngine, Stockfish, StockfishError

logger = logging.getLogger(__name__)


def play_game(
    engine: ChessEngine,
    white_skill: int,
    black_skill: int,
    max_plies: int = 200,
    start_fen: str = chess.STARTING_FEN,
):
    """
    Play a game between two skill levels.

    Args:
        engine: Engine session shared by both sides
        white_skill: Skill Level used for White's moves
        black_skill: Skill Level used for Black's moves
        max_plies: Stop after this many half-moves
        start_fen: Starting position

    Returns:
        Tuple of (moves played, final FEN, result string)
    """
    fen = start_fen
    moves = []

    for _ in tqdm(range(max_plies), desc="Self-play", unit="ply"):
        board = chess.Board(fen)
        if board.is_game_over():
            break

        skill = white_skill if board.turn == chess.WHITE else black_skill
        move = engine.get_best_move(fen, skill)
        if not move:
            logger.warning(f"Engine returned no move for {fen}")
            break

        checkers = engine.get_checkers(fen)
        if checkers:
            logger.info(f"{move} played out of check from {', '.join(checkers)}")

        fen = engine.make_move(fen, move)
        moves.append(move)

    result = chess.Board(fen).result(claim_draw=True)
    return moves, fen, result


def main():
    parser = argparse.ArgumentParser(description="Play an engine vs engine game")
    parser.add_argument("--white-skill", type=int, default=5)
    parser.add_argument("--black-skill", type=int, default=15)
    parser.add_argument("--max-plies", type=int, default=200)
    parser.add_argument("--movetime", type=int, default=100, help="Think time in ms")
    parser.add_argument("--verbose", action="store_true")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    settings = Settings.from_env()
    settings.move_time_ms = args.movetime

    try:
        with Stockfish(settings=settings) as engine:
            moves, fen, result = play_game(
                engine, args.white_skill, args.black_skill, args.max_plies
            )
    except StockfishError as e:
        print(f"\n\nEngine error: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        print("\n\nGame interrupted by user")
        sys.exit(1)

    print(f"\nMoves ({len(moves)}): {' '.join(moves)}")
    print(f"Final position: {fen}")
    print(f"Result: {result}")


if __name__ == "__main__":
    main()
