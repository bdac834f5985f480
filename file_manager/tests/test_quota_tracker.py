import pytest

from app.exceptions import QuotaExceeded
from app.services.quota_tracker import QuotaTracker


@pytest.fixture
def quota(settings):
    return QuotaTracker(settings)


def test_empty_storage_uses_nothing(quota):
    assert quota.current_usage() == 0


def test_usage_is_recursive(quota, storage_root):
    """Quota is global: files in every subfolder count."""
    (storage_root / "a.txt").write_bytes(b"x" * 10)
    nested = storage_root / "docs" / "deep"
    nested.mkdir(parents=True)
    (nested / "b.txt").write_bytes(b"y" * 20)
    (storage_root / "empty").mkdir()

    assert quota.current_usage() == 30


def test_moving_files_does_not_change_usage(quota, storage_root):
    (storage_root / "docs").mkdir()
    (storage_root / "a.txt").write_bytes(b"x" * 42)
    before = quota.current_usage()

    (storage_root / "a.txt").rename(storage_root / "docs" / "a.txt")

    assert quota.current_usage() == before == 42


def test_admit_within_limit(quota, storage_root):
    (storage_root / "a.txt").write_bytes(b"x" * 1000)
    quota.admit(24)  # exactly at the 1024 byte limit


def test_admit_over_limit(quota, storage_root):
    (storage_root / "a.txt").write_bytes(b"x" * 1000)

    with pytest.raises(QuotaExceeded) as exc_info:
        quota.admit(25)

    error = exc_info.value
    assert error.limit == 1024
    assert error.used == 1000
    assert error.attempted == 25
    assert "1.00 KB" in error.message
    assert "1000 bytes" in error.message


def test_admit_rejects_negative_size(quota):
    with pytest.raises(ValueError):
        quota.admit(-1)


def test_state(quota, storage_root):
    (storage_root / "a.txt").write_bytes(b"x" * 100)
    state = quota.state()
    assert state.limit_bytes == 1024
    assert state.used_bytes == 100
    assert state.available_bytes == 924
