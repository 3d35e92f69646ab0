"""Single-instance guard backed by an exclusively created marker file."""

from __future__ import annotations

import contextlib
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional

logger = logging.getLogger(__name__)


class FileRunLock:
    """At most one holder at a time, across processes on the same host.

    ``acquire`` creates the marker with ``O_CREAT | O_EXCL`` so it fails instead
    of overwriting a marker left by a concurrent run. A marker left behind by a
    crashed holder is not expired automatically; remove it by hand.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._held = False

    @property
    def path(self) -> Path:
        return self._path

    @property
    def held(self) -> bool:
        return self._held

    def acquire(self) -> bool:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        try:
            fd = os.open(self._path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            return False

        acquired_at = datetime.now(timezone.utc).isoformat()
        try:
            os.write(fd, f"{os.getpid()}\n{acquired_at}\n".encode("utf-8"))
        except OSError as exc:
            # Ownership is established by the create; the contents are diagnostic.
            logger.warning("Could not record lock owner in %s: %s", self._path, exc)
        finally:
            os.close(fd)
        self._held = True
        return True

    def release(self) -> None:
        with contextlib.suppress(FileNotFoundError):
            self._path.unlink()
        self._held = False

    def owner(self) -> Optional[dict]:
        """Return ``{"pid", "acquired_at"}`` from the marker, if one exists."""
        try:
            lines = self._path.read_text(encoding="utf-8").splitlines()
        except (FileNotFoundError, OSError):
            return None
        pid = lines[0].strip() if lines else ""
        acquired_at = lines[1].strip() if len(lines) > 1 else ""
        return {"pid": pid, "acquired_at": acquired_at}

    @contextlib.contextmanager
    def hold(self) -> Iterator[bool]:
        """Yield whether the lock was granted; release on exit if it was."""
        granted = self.acquire()
        try:
            yield granted
        finally:
            if granted:
                self.release()


__all__ = ["FileRunLock"]
