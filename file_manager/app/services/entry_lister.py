import os
from datetime import datetime
from pathlib import Path
from typing import List

from app.exceptions import DirectoryNotFound
from app.models.entry import DirectoryEntry


class EntryLister:
    def list(self, directory: Path) -> List[DirectoryEntry]:
        """List the immediate children of ``directory``, folders before files.

        Within each group the filesystem enumeration order is kept.
        """
        if not directory.is_dir():
            raise DirectoryNotFound(f"Directory '{directory.name}' does not exist.")

        dirs: List[DirectoryEntry] = []
        files: List[DirectoryEntry] = []

        with os.scandir(directory) as scanned:
            for item in scanned:
                try:
                    stat = item.stat()
                except OSError:
                    # Dangling symlink
                    stat = item.stat(follow_symlinks=False)

                is_dir = item.is_dir()
                entry = DirectoryEntry(
                    name=item.name,
                    is_directory=is_dir,
                    size_bytes=None if is_dir else stat.st_size,
                    modified_at=datetime.fromtimestamp(stat.st_mtime),
                )
                if is_dir:
                    dirs.append(entry)
                else:
                    files.append(entry)

        return dirs + files
