"""
Unit Tests for the Stockfish Session

Tests the UCI client protocol against a scripted channel, focusing on:
    - Construction: option commands, initialization failures
    - Readiness barrier: draining up to exactly one readyok
    - Queries: command sequences and response parsing
    - Session state: one outstanding exchange at a time
    - Shutdown: release on every path
"""

import threading
from collections import deque

import pytest

from stockfish_client.config.settings import Settings
from stockfish_client.engine import (
    InitializationError,
    LineChannel,
    Option,
    ProtocolError,
    SessionState,
    ShutdownError,
    Stockfish,
)
from stockfish_client.engine.stockfish import last_match


START_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"
AFTER_E4_FEN = "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq - 0 1"


class ScriptedChannel(LineChannel):
    """
    In-memory channel that answers commands from a script.

    replies maps a command keyword ("isready", "go", "d") to the lines
    the engine prints in response.
    """

    def __init__(self, replies=None):
        self.replies = {"isready": ["readyok"]}
        self.replies.update(replies or {})
        self.sent = []
        self.pending = deque()
        self.alive = True
        self.terminated = False
        self.closed = False
        self.fail_on = None
        self.close_error = None
        self.terminate_error = None

    def send_line(self, line):
        if self.fail_on and line.startswith(self.fail_on):
            raise BrokenPipeError("[Errno 32] Broken pipe")
        self.sent.append(line)
        self.pending.extend(self.replies.get(line.split()[0], []))

    def read_line(self):
        if not self.pending:
            raise EOFError("Engine output closed")
        return self.pending.popleft()

    def is_alive(self):
        return self.alive

    def terminate(self):
        if self.terminate_error:
            raise self.terminate_error
        self.terminated = True
        self.alive = False

    def close(self):
        self.closed = True
        if self.close_error:
            raise self.close_error


def board_diagram(fen, checkers=""):
    """Lines Stockfish prints for 'd', ending with the Checkers line."""
    return [
        "",
        " +---+---+---+---+---+---+---+---+",
        " | r | n | b | q | k | b | n | r | 8",
        " +---+---+---+---+---+---+---+---+",
        "   a   b   c   d   e   f   g   h",
        "",
        f"Fen: {fen}",
        "Key: 8F8F01D4562F59FB",
        f"Checkers: {checkers}",
    ]


@pytest.fixture
def channel():
    return ScriptedChannel()


@pytest.fixture
def engine(channel):
    return Stockfish(channel=channel)


class TestConstruction:
    """Tests for session construction."""

    def test_options_applied(self, channel):
        """Test that each option becomes a setoption command."""
        Stockfish(("Skill Level", 5), Option("Threads", 2), channel=channel)

        assert channel.sent == [
            "setoption name Skill Level value 5",
            "setoption name Threads value 2",
        ]

    def test_no_options_sends_nothing(self, channel):
        Stockfish(channel=channel)

        assert channel.sent == []

    def test_alive_after_construction(self, engine):
        assert engine.is_alive()
        assert engine.state is SessionState.IDLE

    def test_option_send_failure(self, channel):
        """Test that a failed option write is an initialization error."""
        channel.fail_on = "setoption"

        with pytest.raises(InitializationError):
            Stockfish(("Skill Level", 5), channel=channel)

        assert not channel.terminated, "An injected channel is left to its owner"
        assert not channel.closed

    def test_malformed_option(self, channel):
        with pytest.raises(InitializationError):
            Stockfish(("Skill Level",), channel=channel)

    def test_spawn_failure(self):
        """Test that a missing binary raises InitializationError."""
        settings = Settings(engine_path="/nonexistent/stockfish")

        with pytest.raises(InitializationError) as exc_info:
            Stockfish(settings=settings)

        assert isinstance(exc_info.value.__cause__, OSError)

    def test_executable_path_resolved(self, channel):
        settings = Settings(platform="linux", variant="BMI2")
        engine = Stockfish(settings=settings, channel=channel)

        assert engine.executable_path == "assets/engines/stockfish-9-bmi2"


class TestReadinessBarrier:
    """Tests for the isready/readyok barrier."""

    def test_drains_up_to_readyok(self):
        """Test that lines before readyok are discarded and later ones kept."""
        channel = ScriptedChannel({"isready": ["info string stale", "readyok", "next"]})
        engine = Stockfish(channel=channel)

        engine._wait_for_ready()

        assert channel.sent == ["isready"]
        assert list(channel.pending) == ["next"], "Only one readyok should be consumed"
        assert engine.state is SessionState.IDLE

    def test_readyok_must_match_exactly(self):
        channel = ScriptedChannel({"isready": ["readyoknot", "readyok"]})
        engine = Stockfish(channel=channel)

        engine._wait_for_ready()

        assert len(channel.pending) == 0

    def test_consecutive_barriers(self):
        """Test that each barrier consumes its own readyok."""
        channel = ScriptedChannel()
        engine = Stockfish(channel=channel)

        engine._wait_for_ready()
        engine._wait_for_ready()

        assert channel.sent == ["isready", "isready"]
        assert len(channel.pending) == 0

    def test_barrier_on_closed_stream(self):
        channel = ScriptedChannel({"isready": []})
        engine = Stockfish(channel=channel)

        with pytest.raises(ProtocolError):
            engine._wait_for_ready()


class TestBestMove:
    """Tests for get_best_move."""

    def test_command_sequence(self):
        channel = ScriptedChannel({"go": ["bestmove e2e4"]})
        engine = Stockfish(channel=channel)

        engine.get_best_move(START_FEN, 5)

        assert channel.sent == [
            "isready",
            "setoption name Skill Level value 5",
            "isready",
            f"position fen {START_FEN}",
            "isready",
            "go movetime 1000",
        ]

    def test_movetime_from_settings(self):
        channel = ScriptedChannel({"go": ["bestmove e2e4"]})
        engine = Stockfish(settings=Settings(move_time_ms=250), channel=channel)

        engine.get_best_move(START_FEN, 5)

        assert channel.sent[-1] == "go movetime 250"

    def test_strips_ponder(self):
        """Test that only the move token is returned."""
        channel = ScriptedChannel({
            "go": [
                "info depth 10 score cp 30 nodes 5000 pv e2e4 e7e5",
                "bestmove e2e4 ponder e7e5",
            ]
        })
        engine = Stockfish(channel=channel)

        move = engine.get_best_move(START_FEN, 5)

        assert move == "e2e4"
        assert " " not in move

    def test_promotion_move(self):
        channel = ScriptedChannel({"go": ["bestmove e7e8q"]})
        engine = Stockfish(channel=channel)

        assert engine.get_best_move("4k3/4P3/8/8/8/8/8/4K3 w - - 0 1", 20) == "e7e8q"

    def test_last_bestmove_wins(self):
        """Test that the later of two bestmove lines is selected."""
        response = ["bestmove a2a3", "bestmove d2d4 ponder d7d5"]

        assert last_match(response, "bestmove").split()[0] == "d2d4"

    def test_bare_bestmove(self):
        """Test that a bestmove line without a move yields an empty string."""
        channel = ScriptedChannel({"go": ["bestmove"]})
        engine = Stockfish(channel=channel)

        assert engine.get_best_move(START_FEN, 5) == ""

    def test_no_legal_moves(self):
        channel = ScriptedChannel({"go": ["info depth 0 score mate 0", "bestmove (none)"]})
        engine = Stockfish(channel=channel)

        assert engine.get_best_move("7k/5Q2/6K1/8/8/8/8/8 b - - 0 1", 5) == "(none)"

    def test_write_failure_during_search(self):
        """Test that a broken pipe while sending the position is a ProtocolError."""
        channel = ScriptedChannel({"go": ["bestmove e2e4"]})
        engine = Stockfish(channel=channel)
        channel.fail_on = "position"

        with pytest.raises(ProtocolError) as exc_info:
            engine.get_best_move(START_FEN, 5)

        assert isinstance(exc_info.value.__cause__, BrokenPipeError)
        assert "go movetime 1000" not in channel.sent

    def test_engine_dies_during_search(self):
        channel = ScriptedChannel({"go": ["info depth 1 score cp 0"]})
        engine = Stockfish(channel=channel)

        with pytest.raises(ProtocolError):
            engine.get_best_move(START_FEN, 5)


class TestCheckers:
    """Tests for get_checkers."""

    def test_command_sequence(self):
        channel = ScriptedChannel({"d": board_diagram(START_FEN)})
        engine = Stockfish(channel=channel)

        engine.get_checkers(START_FEN)

        assert channel.sent == ["isready", f"position fen {START_FEN}", "isready", "d"]

    def test_not_in_check(self):
        channel = ScriptedChannel({"d": board_diagram(START_FEN)})
        engine = Stockfish(channel=channel)

        assert engine.get_checkers(START_FEN) == []

    def test_single_checker(self):
        fen = "rnb1kbnr/pppp1ppp/8/4p3/6Pq/5P2/PPPPP2P/RNBQKBNR w KQkq - 1 3"
        channel = ScriptedChannel({"d": board_diagram(fen, "h4 ")})
        engine = Stockfish(channel=channel)

        assert engine.get_checkers(fen) == ["h4"]

    def test_filters_non_square_tokens(self):
        """Test that only two-character tokens are kept."""
        channel = ScriptedChannel({"d": board_diagram(START_FEN, "e1 h4 ponder")})
        engine = Stockfish(channel=channel)

        assert engine.get_checkers(START_FEN) == ["e1", "h4"]

    def test_write_failure(self):
        """Test that a failed 'd' write is a ProtocolError."""
        channel = ScriptedChannel({"d": board_diagram(START_FEN)})
        engine = Stockfish(channel=channel)
        channel.fail_on = "d"

        with pytest.raises(ProtocolError):
            engine.get_checkers(START_FEN)

    def test_terminator_without_space(self):
        """Test a bare 'Checkers:' terminator line."""
        lines = board_diagram(START_FEN)[:-1] + ["Checkers:"]
        channel = ScriptedChannel({"d": lines})
        engine = Stockfish(channel=channel)

        assert engine.get_checkers(START_FEN) == []


class TestGetFen:
    """Tests for get_fen."""

    def test_reads_fen_line(self):
        channel = ScriptedChannel({"d": board_diagram(AFTER_E4_FEN)})
        engine = Stockfish(channel=channel)

        assert engine.get_fen() == AFTER_E4_FEN
        assert channel.sent == ["isready", "d"]

    def test_missing_fen_line(self):
        """Test that a diagram without a Fen line yields an empty string."""
        channel = ScriptedChannel({"d": ["", "Key: 0000000000000000", "Checkers: "]})
        engine = Stockfish(channel=channel)

        assert engine.get_fen() == ""

    def test_repeated_reads_are_stable(self):
        channel = ScriptedChannel({"d": board_diagram(AFTER_E4_FEN)})
        engine = Stockfish(channel=channel)

        assert engine.get_fen() == engine.get_fen()


class TestMakeMove:
    """Tests for make_move."""

    def test_single_move(self):
        channel = ScriptedChannel({"d": board_diagram(AFTER_E4_FEN)})
        engine = Stockfish(channel=channel)

        fen = engine.make_move(START_FEN, "e2e4")

        assert fen == AFTER_E4_FEN
        assert channel.sent == [
            "isready",
            f"position fen {START_FEN} moves e2e4",
            "isready",
            "d",
        ]

    def test_move_list(self):
        channel = ScriptedChannel({"d": board_diagram(START_FEN)})
        engine = Stockfish(channel=channel)

        engine.make_move(START_FEN, ["e2e4", "e7e5", "g1f3"])

        assert channel.sent[1] == f"position fen {START_FEN} moves e2e4 e7e5 g1f3"


class TestSessionState:
    """Tests for the one-exchange-at-a-time discipline."""

    def test_send_while_awaiting_reply(self, engine):
        engine._send("isready")
        assert engine.state is SessionState.AWAITING_ACK

        with pytest.raises(ProtocolError):
            engine._send("d")

    def test_reply_returns_to_idle(self, engine):
        engine._send("isready")
        engine._read_response("readyok")

        assert engine.state is SessionState.IDLE

    def test_commands_without_reply_stay_idle(self, engine, channel):
        engine._send("position fen " + START_FEN)
        engine._send("setoption name Hash value 16")

        assert engine.state is SessionState.IDLE
        assert len(channel.sent) == 2

    def test_concurrent_call_rejected(self, engine):
        """Test that a call is refused while another thread holds the session."""
        held = threading.Event()
        release = threading.Event()

        def hold():
            with engine._exclusive():
                held.set()
                release.wait(timeout=5.0)

        worker = threading.Thread(target=hold)
        worker.start()
        held.wait(timeout=5.0)

        try:
            with pytest.raises(ProtocolError, match="busy"):
                engine.get_fen()
        finally:
            release.set()
            worker.join(timeout=5.0)

    def test_calls_after_close_rejected(self, engine):
        engine.close()

        with pytest.raises(ProtocolError, match="closed"):
            engine.get_fen()


class TestShutdown:
    """Tests for close()."""

    def test_close_sends_quit_and_releases(self, engine, channel):
        engine.close()

        assert channel.sent[-1] == "quit"
        assert channel.terminated
        assert channel.closed
        assert not engine.is_alive()
        assert engine.state is SessionState.CLOSED

    def test_close_twice(self, engine, channel):
        engine.close()
        engine.close()

        assert channel.sent.count("quit") == 1

    def test_close_after_failed_send(self, engine, channel):
        """Test that a broken pipe on quit still terminates and releases."""
        channel.fail_on = "quit"

        engine.close()

        assert "quit" not in channel.sent
        assert channel.terminated
        assert channel.closed
        assert not engine.is_alive()

    def test_close_after_protocol_error(self):
        """Test that a session left awaiting a reply can still be closed."""
        channel = ScriptedChannel({"d": []})
        engine = Stockfish(channel=channel)

        with pytest.raises(ProtocolError):
            engine.get_fen()

        engine.close()

        assert channel.sent[-1] == "quit"
        assert channel.terminated

    def test_terminate_failure(self, engine, channel):
        """Test that a failed terminate is a ShutdownError and streams still close."""
        channel.terminate_error = PermissionError("[Errno 1] Operation not permitted")

        with pytest.raises(ShutdownError) as exc_info:
            engine.close()

        assert isinstance(exc_info.value.__cause__, PermissionError)
        assert channel.sent[-1] == "quit"
        assert channel.closed

    def test_stream_close_failure(self, engine, channel):
        """Test that stream errors surface as ShutdownError after termination."""
        channel.close_error = OSError("bad file descriptor")

        with pytest.raises(ShutdownError):
            engine.close()

        assert channel.terminated

    def test_context_manager(self, channel):
        with Stockfish(channel=channel) as engine:
            assert engine.is_alive()

        assert channel.closed
        assert not engine.is_alive()


class TestLastMatch:
    """Tests for the response extraction helper."""

    def test_later_line_wins(self):
        lines = ["bestmove a2a3", "info depth 5", "bestmove e2e4 ponder e7e5"]

        assert last_match(lines, "bestmove") == " e2e4 ponder e7e5"

    def test_no_match(self):
        assert last_match(["info depth 1", "readyok"], "Fen: ") is None

    def test_empty_remainder(self):
        assert last_match(["Checkers: "], "Checkers: ") == ""
