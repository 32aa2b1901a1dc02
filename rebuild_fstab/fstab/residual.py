"""Rows for partitions that are not mounted yet.

Devices are visited in sorted path order so repeated runs produce the same
table. Removable-bus devices, live media types and anything without a
mountable filesystem are left out.
"""

from __future__ import annotations

from typing import Callable, Mapping

from rebuild_fstab.domain.models import EmitState, GeneratorOptions, PartitionRecord, TableRow
from rebuild_fstab.fstab.naming import (
    MOUNTABLE_USAGES,
    SKIPPED_TYPES,
    choose_name,
    residual_options,
)
from rebuild_fstab.fstab.render import device_comment, make_mountpoint
from rebuild_fstab.logging import EventLogger, LoggerFactory
from rebuild_fstab.storage.devices import is_removable_bus
from rebuild_fstab.storage.identify import Descriptor


log = LoggerFactory.for_table()


def _skip_reason(record: PartitionRecord, options: GeneratorOptions) -> str:
    if not record.has_filesystem:
        return "no filesystem type"
    if record.fstype in SKIPPED_TYPES:
        return f"{record.fstype} is not listed"
    if record.usage not in MOUNTABLE_USAGES:
        return f"usage {record.usage or 'unknown'!r}"
    if record.fstype == "swap" and options.skip_swap:
        return "swap entries disabled"
    return ""


def emit_residual(
    records: Mapping[str, PartitionRecord],
    state: EmitState,
    options: GeneratorOptions,
    descriptor: Descriptor,
    make_dir: Callable[[str], bool] = make_mountpoint,
    removable: Callable[[str], bool] = is_removable_bus,
) -> list[TableRow]:
    rows: list[TableRow] = []
    for device in sorted(records):
        record = records[device]
        if state.is_seen(device):
            continue
        if removable(device):
            EventLogger.log_device_skipped(log, device, "on a removable bus")
            continue
        reason = _skip_reason(record, options)
        if reason:
            EventLogger.log_device_skipped(log, device, reason)
            continue

        choice = choose_name(record, state, options)
        if choice is None:
            continue

        if record.fstype == "swap":
            mountpoint = "none"
            mount_options, passno = "sw", 2
        else:
            mountpoint = choice.mountpoint or options.media_path(record.name)
            mount_options, passno = residual_options(record.fstype, options.auto, options.utf8)

        row = TableRow(
            name=choice.name,
            mountpoint=mountpoint,
            fstype=record.fstype,
            options=mount_options,
            dump=0,
            passno=passno,
            comment=device_comment(device, descriptor.describe(device)),
        )
        EventLogger.log_row_emitted(log, device, row.name, row.mountpoint)
        rows.append(row)

        if options.make_dirs and mountpoint != "none":
            make_dir(mountpoint)
    return rows
