"""Preflight for the merge-and-mail job.

Run it after deploying or editing configuration, and from cron between runs:

* ``check`` loads ``AppSettings`` from the given ``.env`` (Resend key, sender,
  operator list, business window, time zone) and makes sure the report source
  and state locations are usable.
* ``record`` does the same and stores a SHA256 baseline of the ``.env`` file.
* ``verify`` does the same and fails when the file no longer matches it.

Example::

    python -m scripts.check_env record --env-file /opt/agent-report/.env \
        --hash-file /opt/agent-report/.env.sha256
    python -m scripts.check_env verify --env-file /opt/agent-report/.env \
        --hash-file /opt/agent-report/.env.sha256
"""

from __future__ import annotations

import argparse
import hashlib
import os
import sys
from pathlib import Path
from typing import List

from pydantic import ValidationError

from activity_report.clients.run_lock import FileRunLock
from activity_report.core.config import AppSettings, _load_env_file

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_CHECKSUM_ERROR = 3
EXIT_PATH_ERROR = 4
EXIT_RUNTIME_ERROR = 5


def _digest(env_file: Path) -> str:
    return hashlib.sha256(env_file.read_bytes()).hexdigest()


def load_settings(env_file: Path) -> AppSettings:
    """Export ``env_file`` into the process environment and build settings."""
    if not env_file.is_file():
        raise FileNotFoundError(f"Environment file {env_file} does not exist.")
    _load_env_file(str(env_file))
    return AppSettings(_env_file=env_file)  # type: ignore[call-arg]


def _writable_parent(path: Path) -> bool:
    for candidate in (path.parent, *path.parent.parents):
        if candidate.exists():
            return os.access(candidate, os.W_OK)
    return False


def find_path_problems(settings: AppSettings) -> List[str]:
    """Return human-readable problems that would stop a run before it emails anyone."""
    problems: List[str] = []
    source = settings.source
    if source.kind == "local":
        if not Path(source.inbox_dir).is_dir():
            problems.append(f"REPORT_INBOX_DIR {source.inbox_dir} is not a directory")
    else:
        if not source.drive_folder_id:
            problems.append("GOOGLE_DRIVE_FOLDER_ID is required when REPORT_SOURCE=drive")
        key_file = source.service_account_file
        if not key_file or not Path(key_file).is_file():
            problems.append(f"GOOGLE_SERVICE_ACCOUNT_FILE {key_file!r} is not a readable file")

    storage = settings.storage
    for label, raw in (
        ("STATE_DB_PATH", storage.state_db_path),
        ("LOCK_PATH", storage.lock_path),
        ("DOWNLOAD_DIR", str(Path(storage.download_dir) / "x")),
    ):
        if not _writable_parent(Path(raw)):
            problems.append(f"{label} {raw} is not under a writable directory")

    owner = FileRunLock(storage.lock_path).owner()
    if owner is not None:
        problems.append(
            f"Lock marker {storage.lock_path} exists (pid {owner['pid'] or '?'}, "
            f"since {owner['acquired_at'] or '?'}); remove it if no run is active"
        )
    return problems


def summarize(settings: AppSettings) -> str:
    schedule = settings.schedule
    return (
        f"Window {schedule.window_start_hour:02d}:00-{schedule.window_end_hour:02d}:00 "
        f"{schedule.timezone}, gap {schedule.min_gap_minutes:g} min, "
        f"source={settings.source.kind}, "
        f"operators={', '.join(settings.notifier.operator_recipients)}"
    )


def _record(env_file: Path, hash_file: Path) -> int:
    digest = _digest(env_file)
    hash_file.write_text(f"{digest}\n", encoding="utf-8")
    print(f"Baseline written to {hash_file} ({digest})")
    return EXIT_OK


def _verify(env_file: Path, hash_file: Path) -> int:
    if not hash_file.is_file():
        print(
            f"No baseline at {hash_file}; run 'record' first.",
            file=sys.stderr,
        )
        return EXIT_RUNTIME_ERROR

    expected = hash_file.read_text(encoding="utf-8").strip()
    actual = _digest(env_file)
    if expected != actual:
        print(
            f"{env_file} changed since the baseline was recorded\n"
            f"  baseline: {expected}\n"
            f"  current:  {actual}",
            file=sys.stderr,
        )
        return EXIT_CHECKSUM_ERROR
    print("Environment file matches the baseline.")
    return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate merge-and-mail configuration and detect .env drift."
    )
    parser.add_argument(
        "command",
        choices=("check", "record", "verify"),
        help="check: validate only; record/verify: also manage the checksum baseline.",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        type=Path,
        help="Environment file to validate (default: ./.env).",
    )
    parser.add_argument(
        "--hash-file",
        type=Path,
        default=None,
        help="Checksum baseline location (required for record and verify).",
    )
    parser.add_argument(
        "--skip-paths",
        action="store_true",
        help="Only validate settings; do not inspect source or state locations.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.command != "check" and args.hash_file is None:
        parser.error(f"--hash-file is required for {args.command}")

    try:
        settings = load_settings(args.env_file)
    except FileNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except ValidationError as exc:
        print(f"Invalid settings:\n{exc.json(indent=2)}", file=sys.stderr)
        return EXIT_VALIDATION_ERROR

    print(summarize(settings))

    if not args.skip_paths:
        problems = find_path_problems(settings)
        for problem in problems:
            print(f"- {problem}", file=sys.stderr)
        if problems:
            return EXIT_PATH_ERROR

    if args.command == "record":
        return _record(args.env_file, args.hash_file)
    if args.command == "verify":
        return _verify(args.env_file, args.hash_file)
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
