"""
Exceptions raised by the engine session.

Every failure is fatal to the session that raised it. Nothing is retried:
the caller discards the session and constructs a new one.
"""


class StockfishError(Exception):
    """Base class for all engine session errors."""


class InitializationError(StockfishError):
    """The engine process could not be spawned or configured."""


class ProtocolError(StockfishError):
    """
    Reading from or writing to the engine failed during an operation.

    Also raised when a command is sent while a previous exchange is still
    outstanding, or when the session has already been closed. The session
    is in an undefined state afterwards.
    """


class ShutdownError(StockfishError):
    """Releasing the engine streams failed after the process was terminated."""
