"""
Fake UCI Engine

A small UCI engine backed by python-chess. It answers the subset of the
protocol the client uses, with Stockfish's output formats, so the client
can be exercised end to end without a Stockfish binary.

UCI Commands Supported:
    - uci: Identify engine
    - isready: Synchronization check
    - setoption: Store an option value
    - ucinewgame: Reset to the starting position
    - position: Set board position
    - go: Answer immediately with the first legal move in UCI order
    - d: Print the board diagram with Fen, Key and Checkers lines
    - quit: Shutdown engine

Usage:
    python -m stockfish_client.utils.fake_engine [--log-file PATH] [--debug]
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

import chess
import chess.polyglot

from stockfish_client.config.settings import setup_logger


class FakeEngine:
    """
    Deterministic UCI engine for tests.

    Attributes:
        board: Current chess position
        options: Option values received through setoption
        running: False once 'quit' has been handled

    Methods:
        run: Main UCI command loop
        handle_uci: Respond to 'uci' command
        handle_isready: Respond to 'isready' command
        handle_setoption: Store an option
        handle_position: Set board position
        handle_go: Print a best move
        handle_d: Print the board diagram
        handle_quit: Stop the command loop
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.board = chess.Board()
        self.options: Dict[str, str] = {"Skill Level": "20"}
        self.running = True

        self.name = "FakeFish"
        self.author = "stockfish_client"

        self.logger = logger if logger else logging.getLogger(__name__)

    def run(self):
        """
        Main UCI command loop.

        Reads commands from stdin until 'quit' or end of input.
        """
        while self.running:
            try:
                command = input().strip()
            except EOFError:
                self.logger.info("EOF received, shutting down")
                break

            if not command:
                continue

            self.logger.debug(f">>> {command}")
            self.handle(command)

    def handle(self, command: str):
        """Dispatch one command line."""
        tokens = command.split()
        cmd = tokens[0].lower()

        if cmd == "uci":
            self.handle_uci()
        elif cmd == "isready":
            self.handle_isready()
        elif cmd == "setoption":
            self.handle_setoption(tokens)
        elif cmd == "ucinewgame":
            self.board = chess.Board()
        elif cmd == "position":
            self.handle_position(tokens)
        elif cmd == "go":
            self.handle_go(tokens)
        elif cmd == "d":
            self.handle_d()
        elif cmd == "quit":
            self.handle_quit()
        else:
            # Unknown command - UCI protocol says to ignore
            self.logger.debug(f"Unknown command ignored: {command}")

    def send(self, *lines: str):
        for line in lines:
            print(line)
            self.logger.debug(f"<<< {line}")
        sys.stdout.flush()

    def handle_uci(self):
        self.send(
            f"id name {self.name}",
            f"id author {self.author}",
            "option name Skill Level type spin default 20 min 0 max 20",
            "uciok",
        )

    def handle_isready(self):
        self.send("readyok")

    def handle_setoption(self, tokens: List[str]):
        """
        Handle 'setoption name <NAME> value <VALUE>'.

        Option names may contain spaces ("Skill Level").
        """
        if "name" not in tokens:
            self.logger.warning(f"setoption without name: {' '.join(tokens)}")
            return

        name_index = tokens.index("name") + 1
        if "value" in tokens:
            value_index = tokens.index("value")
            name = " ".join(tokens[name_index:value_index])
            value = " ".join(tokens[value_index + 1:])
        else:
            name = " ".join(tokens[name_index:])
            value = ""

        self.options[name] = value
        self.logger.info(f"Option set: {name}={value}")

    def handle_position(self, tokens: List[str]):
        """
        Handle 'position' command.

        Formats:
            position startpos [moves e2e4 e7e5]
            position fen <FEN string> [moves e2e4]

        Moves are applied until the first illegal one.
        """
        if len(tokens) < 2:
            self.logger.warning("Position command with insufficient arguments")
            return

        if tokens[1] == "startpos":
            board = chess.Board()
            move_index = 2
        elif tokens[1] == "fen":
            if "moves" in tokens:
                move_index = tokens.index("moves")
            else:
                move_index = len(tokens)
            fen = " ".join(tokens[2:move_index])

            try:
                board = chess.Board(fen)
            except ValueError as e:
                self.logger.error(f"Invalid FEN: {e}")
                return
        else:
            self.logger.warning(f"Unknown position type: {tokens[1]}")
            return

        if move_index < len(tokens) and tokens[move_index] == "moves":
            for move_str in tokens[move_index + 1:]:
                try:
                    move = chess.Move.from_uci(move_str)
                except ValueError:
                    self.logger.error(f"Invalid move format: {move_str}")
                    break
                if move not in board.legal_moves:
                    self.logger.error(f"Illegal move: {move_str}")
                    break
                board.push(move)

        self.board = board
        self.logger.debug(f"Position updated: {self.board.fen()}")

    def handle_go(self, tokens: List[str]):
        """
        Handle 'go' command.

        Search limits are accepted and ignored. The answer is the first
        legal move in UCI order, with the reply to it as the ponder move.
        """
        moves = sorted(self.board.legal_moves, key=lambda m: m.uci())
        if not moves:
            self.send("info depth 0 score mate 0", "bestmove (none)")
            return

        best = moves[0]
        self.board.push(best)
        replies = sorted(self.board.legal_moves, key=lambda m: m.uci())
        self.board.pop()

        info = f"info depth 1 seldepth 1 score cp 0 nodes {len(moves)} time 0 pv {best.uci()}"
        if replies:
            self.send(info, f"bestmove {best.uci()} ponder {replies[0].uci()}")
        else:
            self.send(info, f"bestmove {best.uci()}")

    def handle_d(self):
        """
        Handle 'd' command - print the board the way Stockfish does.

        Output ends with the "Checkers:" line.
        """
        separator = " +---+---+---+---+---+---+---+---+"
        lines = ["", separator]
        for rank in range(7, -1, -1):
            cells = []
            for file in range(8):
                piece = self.board.piece_at(chess.square(file, rank))
                cells.append(piece.symbol() if piece else " ")
            lines.append(" | " + " | ".join(cells) + f" | {rank + 1}")
            lines.append(separator)
        lines.append("   a   b   c   d   e   f   g   h")
        lines.append("")
        lines.append(f"Fen: {self.board.fen()}")
        lines.append(f"Key: {chess.polyglot.zobrist_hash(self.board):016X}")

        checkers = "".join(
            chess.square_name(square) + " " for square in self.board.checkers()
        )
        lines.append(f"Checkers: {checkers}")

        self.send(*lines)

    def handle_quit(self):
        self.logger.info("Handling: quit")
        self.running = False


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(description="Fake UCI engine for tests")
    parser.add_argument("--log-file", type=Path, default=None, help="Write a debug log here")
    parser.add_argument("--debug", action="store_true", help="Log at DEBUG level")
    args = parser.parse_args(argv)

    logger = setup_logger(debug=args.debug, log_file=args.log_file)
    FakeEngine(logger=logger).run()


if __name__ == "__main__":
    main()
