"""
Configuration Module

Settings for engine sessions: which engine binary to launch, search
time per move, and logging setup.

Binary Selection:
    platform x variant picks one pre-built binary under the assets directory

        windows + BMI2   -> stockfish_9_x64_bmi2.exe
        linux   + POPCNT -> stockfish-9-popcnt

    An explicit engine_path (or STOCKFISH_PATH) overrides the selection.
"""

from stockfish_client.config.settings import (
    Settings,
    resolve_engine_path,
    setup_logger,
)

__all__ = [
    'Settings',
    'resolve_engine_path',
    'setup_logger',
]
