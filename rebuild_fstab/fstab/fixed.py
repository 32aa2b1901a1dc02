"""Fixed-policy rows for optical and floppy drives.

These are listed whenever the device node exists, whatever the partition
enumeration found: the media changes, the entry does not.
"""

from __future__ import annotations

import glob
import os
from typing import Callable

from rebuild_fstab.domain.models import GeneratorOptions, TableRow
from rebuild_fstab.fstab.render import device_comment, make_mountpoint
from rebuild_fstab.logging import EventLogger, LoggerFactory
from rebuild_fstab.storage.devices import is_block_device
from rebuild_fstab.storage.identify import Descriptor


DEV_ROOT = "/dev"

log = LoggerFactory.for_table()


def _existing_block_devices(pattern: str) -> list[str]:
    return [path for path in sorted(glob.glob(pattern)) if is_block_device(path)]


def emit_optical(
    options: GeneratorOptions,
    descriptor: Descriptor,
    make_dir: Callable[[str], bool] = make_mountpoint,
    dev_root: str = DEV_ROOT,
) -> list[TableRow]:
    rows = []
    for path in _existing_block_devices(os.path.join(dev_root, "cdrom*")):
        mountpoint = options.media_path(os.path.basename(path))
        row = TableRow(
            name=path,
            mountpoint=mountpoint,
            fstype="udf,iso9660",
            options="user,noauto",
            comment=device_comment(path, descriptor.describe(path)),
        )
        EventLogger.log_row_emitted(log, path, row.name, mountpoint)
        rows.append(row)
        if options.make_dirs:
            make_dir(mountpoint)
    return rows


def emit_floppy(
    options: GeneratorOptions,
    make_dir: Callable[[str], bool] = make_mountpoint,
    dev_root: str = DEV_ROOT,
) -> list[TableRow]:
    rows = []
    for path in _existing_block_devices(os.path.join(dev_root, "fd*")):
        mountpoint = options.media_path(os.path.basename(path))
        row = TableRow(
            name=path,
            mountpoint=mountpoint,
            fstype="auto",
            options="rw,user,noauto",
            comment=device_comment(path),
        )
        EventLogger.log_row_emitted(log, path, row.name, mountpoint)
        rows.append(row)
        if options.make_dirs:
            make_dir(mountpoint)
    return rows
