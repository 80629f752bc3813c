"""
Client configuration and engine binary selection.
"""

import logging
import os
import platform as platform_module
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

VARIANTS = ("BMI2", "POPCNT", "DEFAULT")

WINDOWS_SUFFIXES = {
    "BMI2": "_bmi2.exe",
    "POPCNT": "_popcnt.exe",
    "DEFAULT": ".exe",
}

LINUX_SUFFIXES = {
    "BMI2": "-bmi2",
    "POPCNT": "-popcnt",
    "DEFAULT": "-popcnt",
}


@dataclass
class Settings:
    """Configuration for an engine session.

    Selects which pre-built engine binary to launch and how long the
    engine may think per move.
    """

    # Binary selection
    platform: str = "linux"
    """Target platform: 'windows' or 'linux'. Anything else autodetects."""

    variant: str = "DEFAULT"
    """CPU feature build: 'BMI2', 'POPCNT' or 'DEFAULT'"""

    assets_dir: Path = Path("assets/engines")
    """Directory holding the pre-built engine binaries"""

    engine_path: Optional[str] = None
    """Explicit engine executable, bypasses platform/variant selection"""

    # Search
    move_time_ms: int = 1000
    """Think time passed to 'go movetime' for best-move queries"""

    # Lifecycle
    quit_timeout: float = 1.0
    """Seconds to wait for the engine to exit before killing it"""

    def __post_init__(self):
        """Validate configuration after initialization."""
        self.assets_dir = Path(self.assets_dir)
        # Case-insensitive: "bmi2" is the BMI2 build, not DEFAULT
        self.variant = self.variant.upper()

        if self.variant not in VARIANTS:
            logger.debug(f"Unknown variant {self.variant!r}, using DEFAULT")
            self.variant = "DEFAULT"

        if self.move_time_ms <= 0:
            raise ValueError(f"move_time_ms must be positive, got {self.move_time_ms}")

        if self.quit_timeout < 0:
            raise ValueError(f"quit_timeout must not be negative, got {self.quit_timeout}")

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from STOCKFISH_* environment variables.

        Recognized variables:
            STOCKFISH_PLATFORM, STOCKFISH_VARIANT, STOCKFISH_ASSETS,
            STOCKFISH_PATH, STOCKFISH_MOVETIME

        Returns:
            Settings with defaults for anything unset
        """
        defaults = cls()
        return cls(
            platform=os.environ.get("STOCKFISH_PLATFORM", defaults.platform),
            variant=os.environ.get("STOCKFISH_VARIANT", defaults.variant),
            assets_dir=Path(os.environ.get("STOCKFISH_ASSETS", str(defaults.assets_dir))),
            engine_path=os.environ.get("STOCKFISH_PATH") or None,
            move_time_ms=int(os.environ.get("STOCKFISH_MOVETIME", defaults.move_time_ms)),
        )


def resolve_engine_path(settings: Settings) -> str:
    """
    Select the engine binary for a platform and CPU variant.

    The same settings always yield the same path.

    Platform and variant compare case-insensitively, so "bmi2" selects the
    BMI2 build rather than the default one. When the platform is unknown,
    the OS is detected by platform.system() starting with "win"; a
    substring match would take macOS ("Darwin") for Windows.

    Args:
        settings: Platform, variant and assets directory

    Returns:
        Path to the engine executable
    """
    if settings.engine_path:
        return settings.engine_path

    target = settings.platform.lower()

    if target == "windows":
        name = "stockfish_9_x64" + WINDOWS_SUFFIXES[settings.variant]
    elif target == "linux":
        name = "stockfish-9" + LINUX_SUFFIXES[settings.variant]
    else:
        logger.warning(
            "Error in configuration, autodetecting platform and loading defaults."
        )
        if platform_module.system().lower().startswith("win"):
            name = "stockfish_9_x64.exe"
        else:
            name = "stockfish-9-64"

    return str(settings.assets_dir / name)


def setup_logger(debug: bool = False, log_file: Optional[Path] = None) -> logging.Logger:
    """
    Setup logger for the stockfish_client package.

    Args:
        debug: If True, log at DEBUG level; otherwise INFO level
        log_file: Write to this file; None discards records

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger("stockfish_client")
    logger.setLevel(logging.DEBUG if debug else logging.INFO)

    logger.handlers.clear()

    if log_file is None:
        logger.addHandler(logging.NullHandler())
        return logger

    log_file = Path(log_file)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(log_file, mode='w')
    formatter = logging.Formatter(
        '%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%H:%M:%S'
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger
