"""Active mounts and device specifier resolution.

read_mounts() parses /proc/mounts into MountEntry records. resolve_device()
maps whatever the mount table (or an fstab) uses as a device specifier back
to the block-special node it names:

    LABEL=x, UUID=x        -> findfs
    /dev/disk/by-*/...     -> symlink target
    /dev/...               -> unchanged
    anything else          -> None

The result is only returned when it is an existing block device.

Mount table lines are raw bytes. Bytes that are not UTF-8 are kept as
surrogates so such mountpoints are written back unchanged.
"""

from __future__ import annotations

import os
import subprocess
from typing import Callable, Iterable, Optional

from rebuild_fstab.domain.models import MountEntry
from rebuild_fstab.logging import LoggerFactory
from rebuild_fstab.storage.devices import is_block_device, run_command


PROC_MOUNTS = "/proc/mounts"
BY_PATH_PREFIX = "/dev/disk/by-"

# Module logger
log = LoggerFactory.for_mounts()

Finder = Callable[[str], Optional[str]]


def read_mounts(path: str = PROC_MOUNTS) -> list[MountEntry]:
    mounts: list[MountEntry] = []
    with open(path, encoding="utf-8", errors="surrogateescape") as f:
        for line in f:
            entry = MountEntry.from_line(line)
            if entry is None:
                if line.strip():
                    log.debug(f"Ignoring malformed mount line: {line.strip()}")
                continue
            mounts.append(entry)
    return mounts


def is_excluded_mountpoint(mountpoint: str, roots: Iterable[str]) -> bool:
    """True when the mountpoint is one of the live-system roots or below one."""
    for root in roots:
        root = root.rstrip("/") or "/"
        if mountpoint == root or mountpoint.startswith(root + "/"):
            return True
    return False


def findfs(spec: str, command: str = "findfs") -> Optional[str]:
    """Look up LABEL=/UUID= through findfs; None when nothing matches."""
    try:
        result = run_command([command, spec], check=True)
    except (OSError, subprocess.CalledProcessError) as error:
        log.debug(f"findfs could not resolve {spec}: {error}")
        return None
    device = result.stdout.strip()
    return device or None


def resolve_device(spec: str, finder: Finder = findfs) -> Optional[str]:
    """Return the block device a specifier names, or None.

    Args:
        spec: Device field of a mount entry (e.g., 'UUID=...', '/dev/sda1')
        finder: Lookup used for LABEL= and UUID= specifiers

    Returns:
        Path of an existing block-special file, or None
    """
    if spec.startswith("LABEL=") or spec.startswith("UUID="):
        device = finder(spec)
    elif spec.startswith(BY_PATH_PREFIX):
        device = os.path.realpath(spec)
    elif spec.startswith("/dev/"):
        device = spec
    else:
        return None

    if device and is_block_device(device):
        return device
    return None
