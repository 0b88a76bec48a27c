"""Runtime settings for docrecall.

Settings come from defaults, overridden by ``DOCRECALL_*`` environment
variables. ``DOCRECALL_HOME`` relocates every on-disk artifact, which is how
tests and multiple instances keep their stores apart.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_MAX_CHUNK_SIZE = 2000
DEFAULT_OVERLAP = 200
DEFAULT_DECAY = 0.5
DEFAULT_ACTIVATION_WEIGHT = 2.0


def default_data_dir() -> Path:
    return Path.home() / ".docrecall"


@dataclass
class Settings:
    """Locations and tuning knobs shared by the store, indexer and CLI."""

    data_dir: Path = field(default_factory=default_data_dir)
    max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE
    overlap: int = DEFAULT_OVERLAP
    decay: float = DEFAULT_DECAY
    activation_weight: float = DEFAULT_ACTIVATION_WEIGHT

    @property
    def db_path(self) -> Path:
        return self.data_dir / "documents.db"

    @property
    def audit_path(self) -> Path:
        return self.data_dir / "logs" / "audit.jsonl"

    @property
    def staging_dir(self) -> Path:
        return self.data_dir / "tmp"


def _env_number(name: str, default, cast):
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


def load_settings() -> Settings:
    """Build settings from defaults plus environment overrides."""
    home = os.environ.get("DOCRECALL_HOME")
    data_dir = Path(home).expanduser() if home else default_data_dir()

    return Settings(
        data_dir=data_dir,
        max_chunk_size=_env_number("DOCRECALL_MAX_CHUNK_SIZE", DEFAULT_MAX_CHUNK_SIZE, int),
        overlap=_env_number("DOCRECALL_CHUNK_OVERLAP", DEFAULT_OVERLAP, int),
        decay=_env_number("DOCRECALL_DECAY", DEFAULT_DECAY, float),
        activation_weight=_env_number(
            "DOCRECALL_ACTIVATION_WEIGHT", DEFAULT_ACTIVATION_WEIGHT, float
        ),
    )
