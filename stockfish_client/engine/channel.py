"""
Line channels to a UCI engine.

A channel is the duplex, line-oriented pipe the session talks through.
The session only depends on the LineChannel interface, so protocol logic
can be exercised against a scripted channel without spawning a process.
"""

import logging
import subprocess
from abc import ABC, abstractmethod
from typing import Sequence, Union

logger = logging.getLogger(__name__)


class LineChannel(ABC):
    """
    Abstract duplex line channel.

    Methods:
        send_line(line): Write one line and flush
        read_line(): Blocking read of one line, without its terminator
        is_alive(): Whether the other end is running
        terminate(): Stop the other end
        close(): Release both stream handles
    """

    @abstractmethod
    def send_line(self, line: str) -> None:
        pass

    @abstractmethod
    def read_line(self) -> str:
        """
        Read the next line.

        Returns:
            str: Line without the trailing newline

        Raises:
            EOFError: If the stream has ended
        """
        pass

    @abstractmethod
    def is_alive(self) -> bool:
        pass

    @abstractmethod
    def terminate(self) -> None:
        pass

    @abstractmethod
    def close(self) -> None:
        pass


class ProcessChannel(LineChannel):
    """
    Line channel over a child process's stdin and stdout.

    Attributes:
        command: Executable path, or full argument list
        process: Popen handle of the running engine
    """

    def __init__(
        self,
        command: Union[str, Sequence[str]],
        quit_timeout: float = 1.0,
    ):
        """
        Spawn the engine process.

        Args:
            command: Executable path, or argument list (e.g. [python, -m, module])
            quit_timeout: Seconds to wait for exit after terminate() before killing

        Raises:
            OSError: If the process cannot be spawned
        """
        self.command = [command] if isinstance(command, str) else list(command)
        self.quit_timeout = quit_timeout

        self.process = subprocess.Popen(
            self.command,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            bufsize=1,
        )

        if self.process.stdin is None or self.process.stdout is None:
            self.process.kill()
            raise OSError(f"Could not open engine streams: {self.command}")

        logger.debug(f"Spawned engine pid={self.process.pid}: {' '.join(self.command)}")

    def send_line(self, line: str) -> None:
        self.process.stdin.write(line + "\n")
        self.process.stdin.flush()

    def read_line(self) -> str:
        line = self.process.stdout.readline()
        if line == "":
            raise EOFError(f"Engine output closed (exit code {self.process.poll()})")
        return line.rstrip("\r\n")

    def is_alive(self) -> bool:
        return self.process.poll() is None

    def terminate(self) -> None:
        """Terminate the process, killing it if it outlives the grace period."""
        if not self.is_alive():
            return

        self.process.terminate()
        try:
            self.process.wait(timeout=self.quit_timeout)
        except subprocess.TimeoutExpired:
            logger.warning(f"Engine pid={self.process.pid} did not exit, killing")
            self.process.kill()
            self.process.wait()

    def close(self) -> None:
        """Close stdin then stdout. Both are attempted even if the first fails."""
        try:
            self.process.stdin.close()
        except BrokenPipeError:
            # stdin is closed even when flushing to an exited engine fails
            logger.debug("Engine stdin already broken on close")
        finally:
            self.process.stdout.close()

    def __repr__(self) -> str:
        return f"ProcessChannel({self.command!r})"
