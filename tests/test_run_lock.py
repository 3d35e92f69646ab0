try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import os
from pathlib import Path

import pytest

from activity_report.clients.run_lock import FileRunLock


def test_second_acquire_is_denied_until_release(tmp_path: Path) -> None:
    path = tmp_path / "state" / "job.lock"
    first = FileRunLock(path)
    second = FileRunLock(path)

    assert first.acquire() is True
    assert second.acquire() is False
    assert first.acquire() is False

    first.release()
    assert not path.exists()
    assert second.acquire() is True
    second.release()


def test_marker_records_owner_pid(tmp_path: Path) -> None:
    lock = FileRunLock(tmp_path / "job.lock")
    assert lock.owner() is None

    lock.acquire()
    owner = lock.owner()

    assert owner is not None
    assert owner["pid"] == str(os.getpid())
    assert owner["acquired_at"]
    lock.release()


def test_existing_marker_is_never_overwritten(tmp_path: Path) -> None:
    path = tmp_path / "job.lock"
    path.write_text("4242\nleft-behind\n", encoding="utf-8")

    assert FileRunLock(path).acquire() is False
    assert path.read_text(encoding="utf-8") == "4242\nleft-behind\n"


def test_release_without_marker_is_harmless(tmp_path: Path) -> None:
    lock = FileRunLock(tmp_path / "job.lock")
    lock.release()
    assert lock.held is False


def test_hold_releases_on_exception(tmp_path: Path) -> None:
    lock = FileRunLock(tmp_path / "job.lock")

    with pytest.raises(RuntimeError):
        with lock.hold() as granted:
            assert granted is True
            raise RuntimeError("boom")

    assert not lock.path.exists()


def test_denied_hold_leaves_foreign_marker(tmp_path: Path) -> None:
    path = tmp_path / "job.lock"
    owner = FileRunLock(path)
    owner.acquire()

    with FileRunLock(path).hold() as granted:
        assert granted is False

    assert path.exists()
    owner.release()
