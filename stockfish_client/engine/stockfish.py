"""
Stockfish Session

This module drives a Stockfish-compatible engine over the UCI text protocol.
It is a synchronous client: every operation sends commands and blocks until
the engine's answer has been read.

Protocol Flow (best move):
    Client → "isready"                          Engine → "readyok"
    Client → "setoption name Skill Level value 5"
    Client → "isready"                          Engine → "readyok"
    Client → "position fen <FEN>"
    Client → "isready"                          Engine → "readyok"
    Client → "go movetime 1000"                 Engine → "info ..." ...
                                                Engine → "bestmove e2e4 ponder e7e5"

Synchronization:
    UCI has no request identifiers. Responses are matched purely by arrival
    order, so a command is only sent once the previous reply has been read.
    Before every query the session sends "isready" and drains output up to
    "readyok", which guarantees the engine has processed all earlier input.

    SessionState makes this explicit: a command that expects a reply moves
    the session to AWAITING_ACK, and any further send is rejected with a
    ProtocolError until the reply's terminator line has been read.

Parsing:
    Replies are read line by line up to a terminator prefix. The data-bearing
    line may appear anywhere before the terminator, and later occurrences
    supersede earlier ones. Absent data yields "" or [] rather than an error.

Limitations:
    There is no client-side timeout. A hung or dead engine blocks the caller
    until the read fails; recovery means closing and recreating the session.

References:
    - UCI Protocol: https://www.chessprogramming.org/UCI
"""

import logging
import threading
from contextlib import contextmanager
from enum import Enum
from typing import Callable, Iterable, Iterator, List, Optional, Tuple, Union

from stockfish_client.config.settings import Settings, resolve_engine_path
from stockfish_client.engine.base import ChessEngine, Option
from stockfish_client.engine.channel import LineChannel, ProcessChannel
from stockfish_client.engine.exceptions import (
    InitializationError,
    ProtocolError,
    ShutdownError,
)

logger = logging.getLogger(__name__)

READY_PROBE = "isready"
READY_ACK = "readyok"
BESTMOVE_PREFIX = "bestmove"
BOARD_COMMAND = "d"
BOARD_TERMINATOR = "Checkers:"
CHECKERS_PREFIX = "Checkers: "
FEN_PREFIX = "Fen: "
SKILL_OPTION = "Skill Level"
SQUARE_LENGTH = 2

# Commands after which the engine owes a reply
REPLY_COMMANDS = (READY_PROBE, "go", BOARD_COMMAND)


class SessionState(Enum):
    """Exchange state of a session."""
    IDLE = "idle"
    AWAITING_ACK = "awaiting_ack"
    CLOSED = "closed"


def last_match(lines: Iterable[str], prefix: str) -> Optional[str]:
    """
    Find the text after the last line starting with prefix.

    Args:
        lines: Response lines in arrival order
        prefix: Line prefix to look for

    Returns:
        Remainder of the last matching line, or None if no line matches
    """
    found = None
    for line in lines:
        if line.startswith(prefix):
            found = line[len(prefix):]
    return found


class Stockfish(ChessEngine):
    """
    UCI session with a Stockfish engine process.

    The session owns the process and both of its streams for its whole
    lifetime. It is not thread-safe in the sense of allowing overlapping
    calls: a call made while another is in flight fails with ProtocolError.

    Attributes:
        settings: Session configuration
        executable_path: Engine binary, resolved once at construction
        channel: Line channel to the engine
        state: Current exchange state

    Methods:
        get_best_move: Search a position for a fixed think time
        get_checkers: Squares of pieces giving check
        get_fen: FEN of the engine's current position
        make_move: Apply moves and read back the resulting FEN
        is_alive: Whether the engine process is running
        close: Quit and release the engine
    """

    def __init__(
        self,
        *options: Union[Option, Tuple[str, int]],
        settings: Optional[Settings] = None,
        channel: Optional[LineChannel] = None,
    ):
        """
        Start the engine and apply options.

        Args:
            *options: Option instances or (name, value) pairs
            settings: Session configuration (default: Settings())
            channel: Pre-built channel; when None the engine binary is spawned

        Raises:
            InitializationError: If the engine cannot be started or configured
        """
        self.settings = settings if settings else Settings()
        self.executable_path = resolve_engine_path(self.settings)
        self.state = SessionState.IDLE
        self._lock = threading.Lock()
        self._busy = threading.RLock()

        spawned = None
        try:
            if channel is None:
                channel = spawned = ProcessChannel(
                    self.executable_path, quit_timeout=self.settings.quit_timeout
                )
            self.channel = channel

            for option in options:
                if not isinstance(option, Option):
                    option = Option(*option)
                self._set_option(option.name, option.value)
        except (OSError, ValueError, TypeError, ProtocolError) as e:
            # An injected channel belongs to the caller
            if spawned is not None:
                try:
                    spawned.terminate()
                finally:
                    spawned.close()
            raise InitializationError(
                f"Could not start engine {self.executable_path}: {e}"
            ) from e

        logger.info(f"Engine session started: {self.executable_path}")

    def close(self) -> None:
        """
        Quit the engine and release its streams.

        Sending "quit" is best effort. The process is terminated and both
        streams are closed on every path. Calling close() again is a no-op.

        Raises:
            ShutdownError: If terminating the process or closing the streams
                fails. Stream closing is still attempted after a failed
                terminate.
        """
        with self._lock:
            if self.state is SessionState.CLOSED:
                return
            self.state = SessionState.CLOSED

        try:
            self._write("quit")
        except ProtocolError as e:
            logger.warning(f"Could not send quit: {e}")

        try:
            self.channel.terminate()
        except OSError as e:
            raise ShutdownError(f"Could not terminate engine: {e}") from e
        finally:
            try:
                self.channel.close()
            except (OSError, ValueError) as e:
                raise ShutdownError(f"Could not release engine streams: {e}") from e

        logger.info("Engine session closed")

    def get_best_move(self, fen: str, difficulty: int) -> str:
        """
        Search a position and return the engine's move.

        Args:
            fen: Position in FEN notation
            difficulty: Value for the "Skill Level" option

        Returns:
            str: First token after "bestmove", or "" if none was seen
        """
        with self._exclusive():
            self._wait_for_ready()
            self._set_option(SKILL_OPTION, difficulty)

            self._wait_for_ready()
            self._send(f"position fen {fen}")

            self._wait_for_ready()
            self._send(f"go movetime {self.settings.move_time_ms}")

            response = self._read_response(BESTMOVE_PREFIX)

        bestmove = last_match(response, BESTMOVE_PREFIX)
        if bestmove is None:
            return ""

        tokens = bestmove.split()
        return tokens[0] if tokens else ""

    def get_checkers(self, fen: str) -> List[str]:
        """
        List the squares of pieces giving check.

        Only two-character tokens are kept, anything else on the
        "Checkers:" line is discarded.
        """
        with self._exclusive():
            self._wait_for_ready()
            self._send(f"position fen {fen}")

            self._wait_for_ready()
            self._send(BOARD_COMMAND)

            response = self._read_response(BOARD_TERMINATOR)

        checkers = last_match(response, CHECKERS_PREFIX)
        if checkers is None:
            return []

        return [token for token in checkers.split() if len(token) == SQUARE_LENGTH]

    def get_fen(self) -> str:
        with self._exclusive():
            self._wait_for_ready()
            self._send(BOARD_COMMAND)

            response = self._read_response(BOARD_TERMINATOR)

        fen = last_match(response, FEN_PREFIX)
        return fen if fen is not None else ""

    def make_move(self, fen: str, moves: Union[str, Iterable[str]]) -> str:
        if not isinstance(moves, str):
            moves = " ".join(moves)

        with self._exclusive():
            self._wait_for_ready()
            self._send(f"position fen {fen} moves {moves}")
            return self.get_fen()

    def is_alive(self) -> bool:
        if self.state is SessionState.CLOSED:
            return False
        return self.channel.is_alive()

    @contextmanager
    def _exclusive(self):
        """Hold the session for one caller-visible operation."""
        if not self._busy.acquire(blocking=False):
            raise ProtocolError("Engine session is busy with another call")
        try:
            yield
        finally:
            self._busy.release()

    def _set_option(self, name: str, value: int) -> None:
        self._send(Option(name, value).to_command())

    def _wait_for_ready(self) -> None:
        """
        Readiness barrier.

        Sends "isready" and drains output up to and including the first
        "readyok". Blocks until the engine answers.
        """
        self._send(READY_PROBE)
        for _ in self._iter_response(lambda line: line.strip() == READY_ACK):
            pass

    def _read_response(self, expected: str) -> List[str]:
        """
        Collect lines until one starts with expected.

        Args:
            expected: Terminator prefix

        Returns:
            List[str]: Every line read, terminator last

        Raises:
            ProtocolError: If reading from the engine fails
        """
        return list(self._iter_response(lambda line: line.startswith(expected)))

    def _iter_response(self, is_terminator: Callable[[str], bool]) -> Iterator[str]:
        """Yield engine lines up to and including the terminator."""
        while True:
            try:
                line = self.channel.read_line()
            except (OSError, EOFError, ValueError) as e:
                raise ProtocolError(f"Failed to read from engine: {e}") from e

            logger.debug(f"<<< {line}")
            yield line

            if is_terminator(line):
                with self._lock:
                    if self.state is SessionState.AWAITING_ACK:
                        self.state = SessionState.IDLE
                return

    def _send(self, command: str) -> None:
        """
        Send a command, enforcing one outstanding exchange at a time.

        Raises:
            ProtocolError: If a reply is still pending, the session is
                closed, or the write fails
        """
        with self._lock:
            if self.state is SessionState.CLOSED:
                raise ProtocolError("Engine session is closed")
            if self.state is SessionState.AWAITING_ACK:
                raise ProtocolError(f"Cannot send {command!r} while awaiting a reply")
            if command.split(" ", 1)[0] in REPLY_COMMANDS:
                self.state = SessionState.AWAITING_ACK

        self._write(command)

    def _write(self, command: str) -> None:
        logger.debug(f">>> {command}")
        try:
            self.channel.send_line(command)
        except (OSError, ValueError) as e:
            raise ProtocolError(f"Failed to send {command!r}: {e}") from e

    def __repr__(self) -> str:
        return f"Stockfish(path={self.executable_path!r}, state={self.state.value})"
