"""Options handling for gut.

Global options live in a JSON file under the user's configuration directory.
Its path is always passed in explicitly so nothing here reads ambient state.
"""

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Optional

from gut.exceptions import ConfigError
from gut.logging_config import get_logger

logger = get_logger(__name__)

GLOBAL_OPTIONS_FILE_PATH = Path.home() / ".config" / "gut" / "gut-config.json"


@dataclass
class GutOptions:
    """Global options shared by every repository."""

    username: str

    def __post_init__(self):
        if not self.username or not self.username.strip():
            raise ConfigError("username cannot be empty")
        self.username = self.username.strip()

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, options: dict) -> "GutOptions":
        """Create options from a dictionary, ignoring unknown keys."""
        try:
            return cls(username=options["username"])
        except (KeyError, TypeError) as err:
            raise ConfigError(f"Missing option in global options: {err}") from err


@dataclass
class GutContext:
    """Per-invocation settings handed from the CLI callback to each command."""

    options_path: Path = field(default_factory=lambda: GLOBAL_OPTIONS_FILE_PATH)


def load_options(path: Path) -> Optional[GutOptions]:
    """Load global options, or None if they were never saved."""
    if not path.exists():
        logger.info(f"No options found at {path}")
        return None
    try:
        return GutOptions.from_dict(json.loads(path.read_text(encoding="utf-8")))
    except (OSError, json.JSONDecodeError) as err:
        raise ConfigError(f"Failed to read options from {path}: {err}") from err


def save_options(options: GutOptions, path: Path) -> None:
    """Write global options, creating the parent directory if needed."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(options.to_dict(), indent=2) + "\n", encoding="utf-8")
    except OSError as err:
        raise ConfigError(f"Failed to write options to {path}: {err}") from err
    logger.info(f"Saved options to {path}")

