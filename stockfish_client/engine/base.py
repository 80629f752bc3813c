"""
Abstract Chess Engine Interface

This module defines the abstract base class for engine clients.
By defining a common interface, callers can swap between engine
backends without modifying game logic.

Key Principles:
    1. Positions are FEN strings, optionally followed by moves
    2. Moves are UCI long algebraic tokens (e2e4, e7e8q)
    3. Missing answers are empty values, never exceptions

Convention:
    - Squares are two-character coordinates ("e1", "h4")
    - Difficulty is an engine-specific integer skill scale
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, List, Union


@dataclass(frozen=True)
class Option:
    """
    A UCI engine option.

    Attributes:
        name: Option name as the engine declares it (e.g. "Skill Level")
        value: Integer value to set
    """
    name: str
    value: int

    def to_command(self) -> str:
        """Render the option as a UCI setoption command."""
        return f"setoption name {self.name} value {self.value}"


class ChessEngine(ABC):
    """
    Abstract base class for chess engine clients.

    Methods:
        get_best_move(fen, difficulty): Best move for a position
        get_checkers(fen): Squares of pieces giving check
        get_fen(): Canonical FEN of the current engine position
        make_move(fen, moves): FEN after applying moves
        is_alive(): Whether the engine is still running
        close(): Release the engine
    """

    @abstractmethod
    def get_best_move(self, fen: str, difficulty: int) -> str:
        """
        Ask the engine for its best move.

        Args:
            fen: Position in FEN notation
            difficulty: Engine skill level

        Returns:
            str: Move in UCI notation, or "" if the engine gave none
        """
        pass

    @abstractmethod
    def get_checkers(self, fen: str) -> List[str]:
        """
        List the squares of pieces giving check.

        Args:
            fen: Position in FEN notation

        Returns:
            List[str]: Square names, empty if the side to move is not in check
        """
        pass

    @abstractmethod
    def get_fen(self) -> str:
        """Return the engine's FEN for its current position."""
        pass

    @abstractmethod
    def make_move(self, fen: str, moves: Union[str, Iterable[str]]) -> str:
        """
        Apply moves to a position.

        Args:
            fen: Starting position in FEN notation
            moves: A move token, a space separated move list, or an iterable of tokens

        Returns:
            str: FEN of the resulting position
        """
        pass

    @abstractmethod
    def is_alive(self) -> bool:
        pass

    @abstractmethod
    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def __repr__(self) -> str:
        """String representation of engine."""
        return f"{self.__class__.__name__}()"
