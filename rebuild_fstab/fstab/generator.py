"""One rebuild pass: mounted filesystems, residual partitions, fixed drives."""

from __future__ import annotations

from typing import Callable, Iterable, Mapping, Optional

from rebuild_fstab.domain.models import (
    EmitState,
    GeneratorOptions,
    MountEntry,
    OutputBuffer,
    PartitionRecord,
)
from rebuild_fstab.fstab.fixed import DEV_ROOT, emit_floppy, emit_optical
from rebuild_fstab.fstab.reconcile import reconcile_mounts
from rebuild_fstab.fstab.render import HEADER, build_table, make_mountpoint
from rebuild_fstab.fstab.residual import emit_residual
from rebuild_fstab.storage.devices import is_removable_bus
from rebuild_fstab.storage.identify import Descriptor
from rebuild_fstab.storage.mount import resolve_device


def generate_table(
    records: Mapping[str, PartitionRecord],
    mounts: Iterable[MountEntry],
    options: GeneratorOptions,
    descriptor: Descriptor,
    *,
    resolver: Callable[[str], Optional[str]] = resolve_device,
    make_dir: Callable[[str], bool] = make_mountpoint,
    removable: Callable[[str], bool] = is_removable_bus,
    dev_root: str = DEV_ROOT,
    header: str = HEADER,
) -> OutputBuffer:
    """Assemble the complete table for the given system snapshot.

    Args:
        records: Enumerated partitions keyed by device path
        mounts: Active mounts in /proc/mounts order
        options: Effective flags of this run
        descriptor: Hardware description source for comments
        resolver: Maps mount device specifiers to block devices
        make_dir: Creates mountpoint directories when enabled
        removable: Tells whether a device sits on a removable bus
        dev_root: Where to look for cdrom* and fd* nodes
        header: Text placed before the device rows

    Returns:
        OutputBuffer holding header and one group per device
    """
    state = EmitState()
    mounted = reconcile_mounts(mounts, records, state, options, descriptor, resolver)
    residual = emit_residual(records, state, options, descriptor, make_dir, removable)
    optical = emit_optical(options, descriptor, make_dir, dev_root)
    floppy = emit_floppy(options, make_dir, dev_root)
    return build_table([mounted, residual, optical, floppy], header=header)
