"""
Utilities Module

Testing helpers for the engine client.

Key Components:
    - FakeEngine: a deterministic UCI engine built on python-chess that
      speaks the same output formats as Stockfish for 'go' and 'd'.
      Run it as a child process with:

          python -m stockfish_client.utils.fake_engine
"""

from stockfish_client.utils.fake_engine import FakeEngine

__all__ = [
    'FakeEngine',
]
