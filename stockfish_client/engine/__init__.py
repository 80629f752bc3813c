"""
Engine Session Module

This module implements the client side of the Universal Chess Interface
(UCI) protocol, driving an external engine process over its standard
input and output.

Protocol Flow:
    Client → "setoption name Skill Level value 5"
    Client → "isready"
    Engine → "readyok"
    Client → "position fen <FEN>"
    Client → "isready"
    Engine → "readyok"
    Client → "go movetime 1000"
    Engine → "info depth 12 score cp 25 nodes 12345"
    Engine → "bestmove e2e4 ponder e7e5"

Key Components:
    - ChessEngine: Abstract engine client interface
    - Stockfish: Synchronous UCI session with an engine process
    - LineChannel / ProcessChannel: Line-oriented pipes to the engine
    - Exceptions: InitializationError, ProtocolError, ShutdownError

Reference:
    UCI Protocol: https://www.chessprogramming.org/UCI
"""

from stockfish_client.engine.base import ChessEngine, Option
from stockfish_client.engine.channel import LineChannel, ProcessChannel
from stockfish_client.engine.exceptions import (
    StockfishError,
    InitializationError,
    ProtocolError,
    ShutdownError,
)
from stockfish_client.engine.stockfish import SessionState, Stockfish

__all__ = [
    'ChessEngine',
    'Option',
    'LineChannel',
    'ProcessChannel',
    'StockfishError',
    'InitializationError',
    'ProtocolError',
    'ShutdownError',
    'SessionState',
    'Stockfish',
]
