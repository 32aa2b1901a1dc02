"""Rewrite the output file under an exclusive lock.

Usage:
    from rebuild_fstab.fstab.writer import write_table

    write_table("/etc/fstab", buffer.text())

The sequence is open, lock, backup, truncate, write, sync, unlock, close.
Everything that can fail before the truncation raises an OutputFileError,
so a fatal error never leaves a half-written file behind.
"""

from __future__ import annotations

import fcntl
import os
import shutil
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Generator

from rebuild_fstab.logging import LoggerFactory
from rebuild_fstab.storage.exceptions import (
    BackupFailedError,
    LockFailedError,
    OutputFileError,
)


BACKUP_SUFFIX = ".old"

log = LoggerFactory.for_system()


def backup_path_for(path: Path) -> Path:
    return path.with_name(path.name + BACKUP_SUFFIX)


def backup_file(path: Path) -> Path | None:
    """Copy an existing file to <path>.old.

    Raises:
        BackupFailedError: If the copy cannot be made
    """
    if not path.exists():
        return None
    backup = backup_path_for(path)
    try:
        shutil.copy2(path, backup)
    except OSError as error:
        raise BackupFailedError(str(path), str(backup), error.strerror or str(error)) from error
    log.debug(f"Saved previous {path} as {backup}")
    return backup


@contextmanager
def locked_rewrite(path: str | os.PathLike) -> Generator[IO[str], None, None]:
    """Context manager yielding the output file, locked and truncated.

    The previous content is copied to <path>.old only once the lock is held,
    so a concurrent writer's file never ends up as the backup.

    Raises:
        LockFailedError: If another process holds the lock
        BackupFailedError: If the previous version cannot be backed up
        OutputFileError: If the file cannot be opened
    """
    target = Path(path)
    existed = target.exists()

    try:
        fd = os.open(target, os.O_RDWR | os.O_CREAT, 0o644)
    except OSError as error:
        raise OutputFileError(str(target), error.strerror or str(error)) from error

    # Undecodable mountpoints were read as surrogates and go back out as the same bytes.
    with os.fdopen(fd, "r+", encoding="utf-8", errors="surrogateescape") as f:
        try:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError as error:
            raise LockFailedError(str(target)) from error
        except OSError as error:
            raise OutputFileError(str(target), error.strerror or str(error)) from error

        try:
            if existed:
                backup_file(target)
            f.seek(0)
            f.truncate()
            yield f
            f.flush()
            os.fsync(f.fileno())
        finally:
            fcntl.flock(f.fileno(), fcntl.LOCK_UN)


def write_table(path: str | os.PathLike, text: str) -> None:
    with locked_rewrite(path) as f:
        f.write(text)
    log.info(f"Wrote {path}")
