"""
stockfish_client

A synchronous client for the Universal Chess Interface (UCI) protocol,
driving a Stockfish engine as a child process.

## Architecture

The client is organized into a few small modules:

1. **engine**: The UCI session
   - Process lifecycle: spawn, quit, terminate
   - Readiness barrier before every query
   - Line-oriented response parsing

2. **config**: Session settings
   - Platform and CPU variant binary selection
   - Search time per move
   - Logging setup

3. **utils**: Testing utilities
   - FakeEngine: a small python-chess backed UCI engine

## Quick Start

```python
from stockfish_client import Stockfish, Option

with Stockfish(Option("Skill Level", 5)) as engine:
    fen = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"
    move = engine.get_best_move(fen, difficulty=5)
    print(f"Best move: {move}")
    print(engine.make_move(fen, move))
```

The client never checks chess rules. Positions and moves are passed to
the engine as text and the engine's answers are parsed as text.

## Version

0.1.0
"""

__version__ = "0.1.0"
__license__ = "MIT"

from stockfish_client.config import Settings, resolve_engine_path
from stockfish_client.engine import (
    ChessEngine,
    Option,
    Stockfish,
    StockfishError,
    InitializationError,
    ProtocolError,
    ShutdownError,
)

__all__ = [
    'ChessEngine',
    'Option',
    'Settings',
    'Stockfish',
    'StockfishError',
    'InitializationError',
    'ProtocolError',
    'ShutdownError',
    'resolve_engine_path',
]
