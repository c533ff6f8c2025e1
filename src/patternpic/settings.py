import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path

from platformdirs import user_config_dir

logger = logging.getLogger(__name__)

APP_NAME = "patternpic"
SETTINGS_FILE = "settings.json"
FORMAT_VERSION = 1

# Full output is the 640x480 preview blown up 7x
DEFAULT_PREVIEW_SIZE = (640, 480)
DEFAULT_OUTPUT_SIZE = (640 * 7, 480 * 7)
DEFAULT_CELL_SIZE = (24.0, 10.0)

PATH_FIELDS = ("source_path", "stamp_path")
SIZE_FIELDS = ("output_width", "output_height", "preview_width", "preview_height")
CELL_FIELDS = ("cell_width", "cell_height")


def config_dir() -> Path:
    # PATTERNPIC_CONFIG_DIR overrides the platform's user config dir
    override = os.environ.get("PATTERNPIC_CONFIG_DIR")
    if override:
        return Path(os.path.expanduser(override)).resolve()
    return Path(user_config_dir(APP_NAME, appauthor=False)).resolve()


def config_path() -> Path:
    return config_dir() / SETTINGS_FILE


@dataclass
class Settings:
    source_path: str | None = None
    stamp_path: str | None = None
    output_width: int = DEFAULT_OUTPUT_SIZE[0]
    output_height: int = DEFAULT_OUTPUT_SIZE[1]
    preview_width: int = DEFAULT_PREVIEW_SIZE[0]
    preview_height: int = DEFAULT_PREVIEW_SIZE[1]
    cell_width: float = DEFAULT_CELL_SIZE[0]
    cell_height: float = DEFAULT_CELL_SIZE[1]

    def validate(self) -> None:
        for name in PATH_FIELDS:
            value = getattr(self, name)
            if value is not None and not isinstance(value, str):
                raise ValueError(f"{name} must be a path string, got {value!r}")
        for name in SIZE_FIELDS + CELL_FIELDS:
            value = getattr(self, name)
            allowed = int if name in SIZE_FIELDS else (int, float)
            # bool is an int subclass but never a valid size
            if isinstance(value, bool) or not isinstance(value, allowed):
                kind = "an integer" if name in SIZE_FIELDS else "a number"
                raise ValueError(f"{name} must be {kind}, got {value!r}")
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")

    def save(self, path: str | Path | None = None) -> Path:
        self.validate()
        path = Path(path) if path is not None else config_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"version": FORMAT_VERSION, **asdict(self)}
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        logger.info("Saved settings to %s", path)
        return path

    @classmethod
    def load(cls, path: str | Path | None = None) -> "Settings":
        """Read saved settings, or return defaults if none have been saved yet."""
        path = Path(path) if path is not None else config_path()
        if not path.exists():
            logger.debug("No settings at %s, using defaults", path)
            return cls()

        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"Malformed settings file {path}: {e}") from e
        if not isinstance(payload, dict):
            raise ValueError(f"Malformed settings file {path}: expected an object")

        version = payload.pop("version", None)
        if version != FORMAT_VERSION:
            raise ValueError(f"Unsupported settings version: {version}")

        known = {f.name for f in fields(cls)}
        unknown = set(payload) - known
        if unknown:
            raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")

        settings = cls(**payload)
        settings.validate()
        return settings
