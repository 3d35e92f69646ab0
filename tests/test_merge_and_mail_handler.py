try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

from pathlib import Path

import pytest

from activity_report.clients import FileRunLock, GoogleDriveSource, LocalDirectorySource
from activity_report.core.config import AppSettings, SourceSettings, StorageSettings
from activity_report.services import RunStatus
from jobs.merge_and_mail import handler


class ScriptedJob:
    def __init__(self, lock: FileRunLock, outcome=RunStatus.PROCESSED) -> None:
        self.lock = lock
        self.outcome = outcome
        self.lock_seen_held: list[bool] = []

    async def run_once(self) -> RunStatus:
        self.lock_seen_held.append(self.lock.path.exists())
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


def _settings(tmp_path: Path, **source: str) -> AppSettings:
    return AppSettings(
        storage=StorageSettings(
            state_db_path=str(tmp_path / "state" / "run_state.sqlite3"),
            lock_path=str(tmp_path / "state" / "job.lock"),
            download_dir=str(tmp_path / "downloads"),
        ),
        source=SourceSettings(inbox_dir=str(tmp_path / "inbox"), **source),
    )


@pytest.mark.asyncio
async def test_run_job_releases_lock_after_success(tmp_path: Path) -> None:
    lock = FileRunLock(tmp_path / "job.lock")
    job = ScriptedJob(lock)

    assert await handler.run_job(job, lock) is RunStatus.PROCESSED
    assert job.lock_seen_held == [True]
    assert not lock.path.exists()


@pytest.mark.asyncio
async def test_second_instance_exits_without_running(tmp_path: Path) -> None:
    holder = FileRunLock(tmp_path / "job.lock")
    assert holder.acquire()
    contender = FileRunLock(tmp_path / "job.lock")
    job = ScriptedJob(contender)

    assert await handler.run_job(job, contender) is RunStatus.LOCKED
    assert job.lock_seen_held == []
    assert holder.path.exists()

    holder.release()


@pytest.mark.asyncio
async def test_unhandled_fault_still_releases_lock(tmp_path: Path) -> None:
    lock = FileRunLock(tmp_path / "job.lock")
    job = ScriptedJob(lock, outcome=RuntimeError("boom"))

    assert await handler.run_job(job, lock) is RunStatus.FAILED
    assert not lock.path.exists()
    assert await handler.run_job(ScriptedJob(lock), lock) is RunStatus.PROCESSED


def test_local_source_is_the_default(tmp_path: Path) -> None:
    source = handler._build_source(_settings(tmp_path))

    assert isinstance(source, LocalDirectorySource)


def test_drive_source_requires_folder_id(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="GOOGLE_DRIVE_FOLDER_ID"):
        handler._build_source(_settings(tmp_path, kind="drive"))


def test_drive_source_is_built_from_settings(tmp_path: Path) -> None:
    settings = _settings(
        tmp_path,
        kind="drive",
        drive_folder_id="folder-123",
        service_account_file=str(tmp_path / "key.json"),
    )

    assert isinstance(handler._build_source(settings), GoogleDriveSource)


def test_bootstrap_wires_lock_path_from_settings(tmp_path: Path) -> None:
    components = handler._bootstrap(_settings(tmp_path))

    assert components["lock"].path == tmp_path / "state" / "job.lock"
    assert (tmp_path / "state" / "run_state.sqlite3").exists()


def test_main_maps_failure_to_exit_code(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    settings = _settings(tmp_path)
    lock = FileRunLock(tmp_path / "job.lock")
    monkeypatch.setattr(handler, "get_settings", lambda: settings)
    monkeypatch.setattr(handler, "configure_logging", lambda *args, **kwargs: None)
    monkeypatch.setattr(
        handler,
        "_bootstrap",
        lambda _settings: {"job": ScriptedJob(lock, outcome=RuntimeError("boom")), "lock": lock},
    )

    assert handler.main([]) == 1


def test_main_reports_invalid_configuration(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    settings = _settings(tmp_path, kind="drive")
    monkeypatch.setattr(handler, "get_settings", lambda: settings)
    monkeypatch.setattr(handler, "configure_logging", lambda *args, **kwargs: None)

    assert handler.main([]) == 2


@pytest.mark.asyncio
async def test_unusable_lock_location_fails_the_run_without_raising(tmp_path: Path) -> None:
    blocker = tmp_path / "state"
    blocker.write_text("not a directory", encoding="utf-8")
    lock = FileRunLock(blocker / "job.lock")
    job = ScriptedJob(lock)

    assert await handler.run_job(job, lock) is RunStatus.FAILED
    assert job.lock_seen_held == []


class _StopLoop(Exception):
    pass


@pytest.mark.asyncio
async def test_loop_survives_a_failed_invocation(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    lock = FileRunLock(tmp_path / "job.lock")
    job = ScriptedJob(lock, outcome=RuntimeError("boom"))
    sleeps: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)
        if len(sleeps) == 2:
            raise _StopLoop

    monkeypatch.setattr(handler.asyncio, "sleep", fake_sleep)

    with pytest.raises(_StopLoop):
        await handler.run_forever(job, lock, 60)

    assert sleeps == [60, 60]
    assert len(job.lock_seen_held) == 2
