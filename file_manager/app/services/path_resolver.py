import re
from pathlib import Path
from typing import Tuple

from app.exceptions import InvalidName, PathEscape
from config import Settings
from logger_config import setup_logger

logger = setup_logger()

# Only letters, digits, dot, underscore and minus
NAME_PATTERN = re.compile(r'[a-zA-Z0-9._-]+')

RelativePath = Tuple[str, ...]


class PathResolver:
    def __init__(self, settings: Settings):
        self.root = settings.storage_root
        self.blocked_extensions = settings.blocked_extensions

    @staticmethod
    def sanitize(raw_path: str) -> RelativePath:
        """Split a user supplied path into safe segments.

        Traversal segments are dropped rather than rejected so a stale or
        tampered ``path`` query still lands somewhere inside the root.
        """
        if not raw_path:
            return ()
        segments = raw_path.replace("\\", "/").split("/")
        return tuple(
            segment for segment in segments
            if segment not in ("", ".", "..") and "\x00" not in segment
        )

    def validate_name(self, name: str) -> None:
        """Raise InvalidName unless ``name`` is a single safe path segment."""
        if not name:
            raise InvalidName("File name must not be empty.")

        if not NAME_PATTERN.fullmatch(name):
            raise InvalidName(f"File name '{name}' contains illegal characters.")

        if ".." in name or name == ".":
            raise InvalidName(f"Illegal file path '{name}'.")

        extension = name.rsplit(".", 1)[1].lower() if "." in name else ""
        if extension in self.blocked_extensions:
            raise InvalidName(f"Files with the '.{extension}' extension are not allowed.")

    def resolve_dir(self, base: RelativePath) -> Path:
        """Absolute path of ``base`` inside the storage root."""
        path = self.root.joinpath(*base)
        self._ensure_contained(path, strict=False)
        return path

    def resolve(self, base: RelativePath, name: str) -> Path:
        """Absolute path of entry ``name`` inside directory ``base``."""
        self.validate_name(name)
        path = self.root.joinpath(*base, name)
        self._ensure_contained(path, strict=True)
        return path

    def _ensure_contained(self, path: Path, strict: bool) -> None:
        # Symlinks are followed so a link pointing outside the root is caught here
        canonical = path.resolve()
        if canonical == self.root and not strict:
            return
        if self.root in canonical.parents:
            return
        logger.warning(f"Blocked path escaping storage root: {path} -> {canonical}")
        raise PathEscape("Illegal file path.")
