"""Mount reconciliation: one row per block filesystem that is already mounted.

Rows keep the mountpoint and type of the live mount and are emitted in
/proc/mounts order. Devices matched here are marked seen so the residual
pass never lists them a second time.
"""

from __future__ import annotations

from typing import Callable, Iterable, Mapping, Optional

from rebuild_fstab.domain.models import (
    EmitState,
    GeneratorOptions,
    MountEntry,
    PartitionRecord,
    TableRow,
)
from rebuild_fstab.fstab.naming import choose_name, mounted_options
from rebuild_fstab.fstab.render import device_comment
from rebuild_fstab.logging import EventLogger, LoggerFactory
from rebuild_fstab.storage.identify import Descriptor
from rebuild_fstab.storage.mount import is_excluded_mountpoint, resolve_device


log = LoggerFactory.for_mounts()


def reconcile_mounts(
    mounts: Iterable[MountEntry],
    records: Mapping[str, PartitionRecord],
    state: EmitState,
    options: GeneratorOptions,
    descriptor: Descriptor,
    resolver: Callable[[str], Optional[str]] = resolve_device,
) -> list[TableRow]:
    rows: list[TableRow] = []
    for entry in mounts:
        device = resolver(entry.device)
        if device is None:
            # proc, sysfs, tmpfs, overlay ... or a vanished device
            log.trace(f"Skipping {entry.device} on {entry.mountpoint}: not a block device")
            continue
        if entry.fstype == "swap":
            EventLogger.log_device_skipped(log, device, "swap")
            continue
        if is_excluded_mountpoint(entry.mountpoint, options.excluded_mount_roots):
            EventLogger.log_device_skipped(log, device, f"live system mount {entry.mountpoint}")
            continue
        record = records.get(device)
        if record is None or not record.has_filesystem:
            EventLogger.log_device_skipped(log, device, "unrecognized device")
            continue
        if state.is_seen(device):
            # bind mounts repeat the device
            EventLogger.log_device_skipped(log, device, f"already listed, also on {entry.mountpoint}")
            continue
        state.mark_seen(device)

        choice = choose_name(record, state, options)
        if choice is None:
            continue

        mount_options, dump, passno = mounted_options(entry)
        row = TableRow(
            name=choice.name,
            mountpoint=entry.mountpoint,
            fstype=entry.fstype,
            options=mount_options,
            dump=dump,
            passno=passno,
            comment=device_comment(device, descriptor.describe(device)),
        )
        EventLogger.log_row_emitted(log, device, row.name, row.mountpoint)
        rows.append(row)
    return rows
