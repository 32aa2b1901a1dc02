from __future__ import annotations

import sys
import time
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from loguru import Logger

from loguru import logger

# TRACE (5) is built into loguru, below DEBUG (10).

_CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[source]: <8}</cyan> | "
    "{message}"
)

_FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
    "{level: <8} | "
    "{extra[source]: <8} | "
    "{extra[job_id]: <16} | "
    "{extra[tags]} | "
    "{message}"
)


def _should_log_command_output(record) -> bool:
    """Filter raw helper stdout/stderr dumps - only show in TRACE mode."""
    message = record["message"]
    tags = record["extra"].get("tags", [])

    if "command" in tags:
        if message.startswith("stdout:") or message.startswith("stderr:"):
            return record["level"].no <= logger.level("TRACE").no

    return True


def _combined_filter(record) -> bool:
    """Combined filter for all log suppression rules."""
    # Warnings and errors always pass.
    if record["level"].no >= logger.level("WARNING").no:
        return True
    return _should_log_command_output(record)


def _console_level(verbose: int, quiet: bool) -> str:
    if quiet:
        return "WARNING"
    if verbose >= 2:
        return "TRACE"
    if verbose == 1:
        return "DEBUG"
    return "INFO"


def setup_logging(
    *,
    verbose: int = 0,
    quiet: bool = False,
    log_dir: Path | None = None,
) -> Logger:
    """
    Setup console logging and an optional persistent log file.

    Logging Tiers:
    - ERROR: fatal preconditions (privilege, helpers, output file)
    - WARNING: per-device soft failures, duplicate UUIDs and labels
    - INFO: progress of the rebuild pass
    - DEBUG: one line per decision taken for a device
    - TRACE: helper invocations and their raw output

    Args:
        verbose: 0 for INFO, 1 for DEBUG, 2 or more for TRACE
        quiet: Only report warnings and errors on the console
        log_dir: Directory for rebuild-fstab.log (no file sink when None)
    """
    logger.remove()
    logger.configure(extra={"job_id": "-", "tags": [], "source": "fstab"})

    console_level = _console_level(verbose, quiet)

    # SINK 1: Console (stderr); stdout is reserved for the generated table
    logger.add(
        sys.stderr,
        level=console_level,
        backtrace=False,
        diagnose=False,
        filter=_combined_filter,
        colorize=None,
        format=_CONSOLE_FORMAT,
    )

    # SINK 2: Run log - every rebuild, DEBUG+ so past decisions can be audited
    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_dir / "rebuild-fstab.log",
            level="TRACE" if verbose >= 2 else "DEBUG",
            rotation="1 MB",
            retention=5,
            backtrace=False,
            diagnose=False,
            format=_FILE_FORMAT,
            # Mountpoints read from the kernel may hold undecodable bytes.
            errors="backslashreplace",
        )

    return logger


def get_logger(
    *,
    job_id: str | None = None,
    tags: Iterable[str] | None = None,
    source: str | None = None,
) -> Logger:
    """
    Get a logger with bound context.

    Args:
        job_id: Identifier of the current rebuild pass
        tags: Tags for filtering (e.g., ["command"])
        source: Source component (e.g., "devices", "mounts")

    Returns:
        Logger with bound context
    """
    extras: dict[str, object] = {}
    if job_id is not None:
        extras["job_id"] = job_id
    if tags is not None:
        extras["tags"] = list(tags)
    if source is not None:
        extras["source"] = source
    return logger.bind(**extras)


@contextmanager
def operation_context(operation: str, **details):
    """
    Context manager that logs start, completion and failure of a pass with timing.

    Example:
        with operation_context("rebuild", write=True) as log:
            log.debug("Enumerating partitions")
    """
    job_id = f"{operation}-{uuid.uuid4().hex[:8]}"

    with logger.contextualize(job_id=job_id, operation=operation, **details):
        start_time = time.time()
        log = logger.bind(source=operation, job_id=job_id, tags=[operation])

        log.debug(f"{operation.capitalize()} started")

        try:
            yield log
            duration = time.time() - start_time
            log.debug(
                f"{operation.capitalize()} completed in {duration:.2f}s",
            )
        except Exception as e:
            duration = time.time() - start_time
            log.debug(
                f"{operation.capitalize()} failed after {duration:.2f}s: "
                f"{type(e).__name__}: {e}"
            )
            raise


class LoggerFactory:
    """
    Factory for creating component loggers with automatic context.
    """

    @staticmethod
    def for_devices() -> Logger:
        """Logger for partition enumeration and device identification."""
        return get_logger(source="devices", tags=["devices", "storage"])

    @staticmethod
    def for_commands() -> Logger:
        """Logger for helper processes (blkid, udevadm, findfs)."""
        return get_logger(source="command", tags=["command"])

    @staticmethod
    def for_mounts() -> Logger:
        """Logger for /proc/mounts parsing and reconciliation."""
        return get_logger(source="mounts", tags=["mounts", "storage"])

    @staticmethod
    def for_table() -> Logger:
        """Logger for row emission and naming decisions."""
        return get_logger(source="table", tags=["table"])

    @staticmethod
    def for_system() -> Logger:
        """Logger for startup, preconditions and output writing."""
        return get_logger(source="system", tags=["system"])


class EventLogger:
    """
    Structured event logger for the decisions taken per device.
    """

    @staticmethod
    def log_row_emitted(log: Logger, device: str, name: str, mountpoint: str) -> None:
        """Log a table row being added for a device."""
        log.bind(
            event_type="row_emitted",
            device=device,
            fstab_name=name,
            mountpoint=mountpoint,
        ).debug(f"Added {device} as {name} on {mountpoint}")

    @staticmethod
    def log_device_skipped(log: Logger, device: str, reason: str) -> None:
        """Log a device left out of the table."""
        log.bind(
            event_type="device_skipped",
            device=device,
            reason=reason,
        ).debug(f"Skipping {device}: {reason}")

    @staticmethod
    def log_duplicate(log: Logger, kind: str, value: str, device: str) -> None:
        """Log a UUID or label that already names another table entry."""
        log.bind(
            event_type="duplicate_identifier",
            kind=kind,
            value=value,
            device=device,
        ).warning(f"Duplicate {kind} {value!r} on {device}, skipping device")
