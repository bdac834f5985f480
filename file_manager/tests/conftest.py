import os
import sys
import tempfile
from pathlib import Path

import pytest

# Add the parent directory to sys.path so we can import main, config and app
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# Keep test runs from writing into the working directory's logs/
os.environ.setdefault("FILE_MANAGER_LOG_DIR", tempfile.mkdtemp(prefix="file_manager_logs_"))

from config import Settings  # noqa: E402
from app.services.file_ops import FileOps  # noqa: E402


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings with an isolated storage root and a 1KB quota."""
    return Settings(
        storage_root=tmp_path / "storage",
        temp_dir=tmp_path / "temp",
        max_storage_limit=1024,
    ).prepare()


@pytest.fixture
def storage_root(settings) -> Path:
    return settings.storage_root


@pytest.fixture
def file_ops(settings) -> FileOps:
    return FileOps(settings)


@pytest.fixture
def outside_dir(tmp_path) -> Path:
    """A directory next to the storage root that must never be reachable."""
    outside = tmp_path / "outside"
    outside.mkdir()
    (outside / "secret.txt").write_text("top secret")
    return outside
