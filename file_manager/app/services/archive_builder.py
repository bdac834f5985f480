import importlib.util
import os
import tempfile
import zipfile
from pathlib import Path
from typing import Iterator, Tuple

from app.exceptions import ArchiveUnavailable, ArchiveWriteFailed
from config import Settings
from logger_config import setup_logger

logger = setup_logger()


def deflate_available() -> bool:
    """ZIP_DEFLATED needs the interpreter to be built with zlib."""
    return importlib.util.find_spec("zlib") is not None


class Archive:
    """A temporary zip file that lives for one download response.

    Use it as a context manager or call ``release`` once the bytes are sent.
    Releasing twice is harmless.
    """

    def __init__(self, path: Path, filename: str):
        self.path = path
        self.filename = filename
        self.entry_count = 0
        self.released = False

    @property
    def size(self) -> int:
        return self.path.stat().st_size

    def release(self) -> None:
        if self.released:
            return
        self.released = True
        self.path.unlink(missing_ok=True)
        logger.debug(f"Released temporary archive {self.path}")

    def __enter__(self) -> 'Archive':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


class ArchiveBuilder:
    def __init__(self, settings: Settings):
        self.root = settings.storage_root
        self.temp_dir = settings.temp_dir

    def iter_files(self, directory: Path) -> Iterator[Tuple[Path, str]]:
        """Yield ``(file path, archive name)`` for every file below ``directory``.

        Directory symlinks are not descended into. File symlinks are read
        through unless they point outside the storage root.
        """
        for folder_path, _, files in os.walk(directory):
            for file in files:
                file_path = Path(folder_path) / file
                if file_path.is_symlink() and self.root not in file_path.resolve().parents:
                    logger.warning(f"Skipping symlink leaving storage root: {file_path}")
                    continue
                yield file_path, file_path.relative_to(directory).as_posix()

    def build(self, directory: Path) -> Archive:
        """Zip the subtree at ``directory`` into a temporary ``<name>.zip``."""
        if not deflate_available():
            raise ArchiveUnavailable("Zip support is not available on this server, folders cannot be downloaded.")

        try:
            fd, temp_name = tempfile.mkstemp(prefix="zip_", suffix=".zip", dir=self.temp_dir)
        except OSError as e:
            logger.error(f"Cannot create temporary archive in {self.temp_dir}: {e}", exc_info=True)
            raise ArchiveWriteFailed("Unable to create the ZIP file.") from e

        archive = Archive(Path(temp_name), f"{directory.name}.zip")
        try:
            with os.fdopen(fd, "wb") as raw, \
                    zipfile.ZipFile(raw, "w", compression=zipfile.ZIP_DEFLATED, allowZip64=True) as zf:
                for file_path, arc_name in self.iter_files(directory):
                    zf.write(file_path, arc_name)
                    archive.entry_count += 1
        except (OSError, ValueError, zipfile.LargeZipFile) as e:
            logger.error(f"Error archiving {directory}: {e}", exc_info=True)
            archive.release()
            raise ArchiveWriteFailed(f"Unable to add files to the ZIP archive: {e}") from e

        logger.info(f"Built archive {archive.filename} with {archive.entry_count} entries ({archive.size} bytes)")
        return archive
