"""Configuration settings for the File Manager server."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet

# Storage limits
MAX_STORAGE_LIMIT = 100 * 1024 * 1024  # 100MB

# File types that may never be created, uploaded or downloaded
BLOCKED_EXTENSIONS = frozenset({"php", "php5", "phtml", "exe", "sh"})

# Streaming
CHUNK_SIZE = 8192  # 8KB chunks

# Directory paths
STORAGE_DIR = "./storage"
TEMP_DIR = "./temp"
LOG_DIR = "./logs"

# Server
HOST = "0.0.0.0"
PORT = 8000


def _env(name: str, default):
    return os.getenv(f"FILE_MANAGER_{name}", default)


@dataclass(frozen=True)
class Settings:
    storage_root: Path
    temp_dir: Path
    max_storage_limit: int = MAX_STORAGE_LIMIT
    blocked_extensions: FrozenSet[str] = field(default=BLOCKED_EXTENSIONS)
    chunk_size: int = CHUNK_SIZE

    @classmethod
    def from_env(cls) -> 'Settings':
        """Create Settings from module defaults and FILE_MANAGER_* environment variables."""
        storage_dir = _env("STORAGE_DIR", STORAGE_DIR)
        if not storage_dir.strip():
            raise RuntimeError("Storage root must not be empty")

        blocked = _env("BLOCKED_EXTENSIONS", None)
        return cls(
            storage_root=Path(storage_dir),
            temp_dir=Path(_env("TEMP_DIR", TEMP_DIR)),
            max_storage_limit=int(_env("MAX_STORAGE_LIMIT", MAX_STORAGE_LIMIT)),
            blocked_extensions=(
                frozenset(ext.strip().lower() for ext in blocked.split(",") if ext.strip())
                if blocked is not None else BLOCKED_EXTENSIONS
            ),
            chunk_size=int(_env("CHUNK_SIZE", CHUNK_SIZE)),
        )

    def prepare(self) -> 'Settings':
        """Create the storage and temp directories and return canonical settings.

        Raises:
            RuntimeError: if the storage root is unusable. The server must not start.
        """
        try:
            self.storage_root.mkdir(parents=True, exist_ok=True)
            self.temp_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise RuntimeError(f"Cannot create storage directories: {e}") from e

        root = self.storage_root.resolve()
        if root == Path(root.anchor):
            raise RuntimeError(f"Refusing to use filesystem root {root} as storage root")
        if self.max_storage_limit < 0:
            raise RuntimeError("Storage limit must not be negative")

        return Settings(
            storage_root=root,
            temp_dir=self.temp_dir.resolve(),
            max_storage_limit=self.max_storage_limit,
            blocked_extensions=frozenset(ext.lower() for ext in self.blocked_extensions),
            chunk_size=self.chunk_size,
        )
