"""Header template, comment lines and mountpoint directories."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from rebuild_fstab.domain.models import OutputBuffer, TableRow
from rebuild_fstab.logging import LoggerFactory


HEADER = """\
# /etc/fstab: static file system information.
#
# Generated by rebuild-fstab from the partitions and mounts found on this
# system. Running it again replaces this file; the previous version is kept
# with an .old suffix.
#
# <file system>\t<mount point>\t<type>\t<options>\t<dump>\t<pass>

proc\t/proc\tproc\tdefaults\t0\t0
sysfs\t/sys\tsysfs\tnoauto\t0\t0
devpts\t/dev/pts\tdevpts\tmode=0620,gid=5\t0\t0
tmpfs\t/tmp\ttmpfs\tdefaults,nosuid,nodev\t0\t0

"""

log = LoggerFactory.for_table()


def device_comment(device: str, description: str = "") -> str:
    """Comment line placed above a device's row."""
    if description:
        return f"# {device} - {description}"
    return f"# {device}"


def make_mountpoint(path: str) -> bool:
    """Create a mountpoint directory; an existing directory is fine.

    Returns:
        True when the directory exists afterwards
    """
    try:
        Path(path).mkdir(parents=True, exist_ok=True)
    except OSError as error:
        log.warning(f"Cannot create mountpoint {path}: {error}")
        return False
    return True


def build_table(groups: Iterable[Iterable[TableRow]], header: str = HEADER) -> OutputBuffer:
    buffer = OutputBuffer()
    buffer.add_text(header)
    for rows in groups:
        for row in rows:
            buffer.add_row(row)
    return buffer
