import os
from pathlib import Path
from typing import Optional

from app.exceptions import QuotaExceeded
from app.models.entry import QuotaState
from config import Settings
from logger_config import setup_logger

logger = setup_logger()


class QuotaTracker:
    """Global storage quota over the whole storage root.

    Usage is recomputed by walking the full tree on every check. This keeps
    no state between requests but costs O(number of files) per write, so it
    only suits bounded storage sizes.
    """

    def __init__(self, settings: Settings):
        self.root = settings.storage_root
        self.limit = settings.max_storage_limit

    def current_usage(self, root: Optional[Path] = None) -> int:
        """Sum of all file sizes below ``root`` (the storage root by default)."""
        usage = 0
        for folder_path, _, files in os.walk(root or self.root):
            for file in files:
                file_path = Path(folder_path) / file
                try:
                    if file_path.is_file():
                        usage += file_path.stat().st_size
                except FileNotFoundError:
                    # Removed between listing and stat
                    continue
        return usage

    def state(self) -> QuotaState:
        return QuotaState(limit_bytes=self.limit, used_bytes=self.current_usage())

    def admit(self, pending_bytes: int) -> None:
        """Raise QuotaExceeded if writing ``pending_bytes`` more would exceed the limit.

        Callers must perform the write right after this returns; there is no
        locking between concurrent requests.
        """
        if pending_bytes < 0:
            raise ValueError("Pending write size must not be negative")

        used = self.current_usage()
        logger.debug(f"Quota check: used {used}, pending {pending_bytes}, limit {self.limit}")
        if used + pending_bytes > self.limit:
            logger.warning(f"Quota exceeded: used {used} + pending {pending_bytes} > limit {self.limit}")
            raise QuotaExceeded(limit=self.limit, used=used, attempted=pending_bytes)
