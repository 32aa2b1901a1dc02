"""Partition enumeration from /proc/partitions.

Device Detection:
    Reads the kernel's partition table (major, minor, #blocks, name) and turns
    every surviving entry into a /dev path:

    1. Entries with a block count of exactly 1 are skipped (extended partition
       placeholders)
    2. Pseudo devices are skipped: ram*, cloop*, loop*
    3. Paths without a block-special node under /dev are skipped silently

    Each remaining device is handed to an identifier (blkid by default, see
    identify.py) and the ID_FS_* properties become a PartitionRecord. A failing
    identification only drops that device.

Removable Bus Detection:
    is_removable_bus() resolves /sys/class/block/<name> and looks for a USB or
    FireWire segment in the resulting sysfs path. Those devices are hot-plugged
    and never get a static entry.

Example:
    >>> from rebuild_fstab.storage.devices import enumerate_partitions
    >>> from rebuild_fstab.storage.identify import BlkidIdentifier
    >>> records = enumerate_partitions(BlkidIdentifier())
    >>> sorted(records)
    ['/dev/sda1', '/dev/sda2']
"""
from __future__ import annotations

import os
import re
import stat
import subprocess
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, NamedTuple, Optional

from rebuild_fstab.domain.models import PartitionRecord
from rebuild_fstab.logging import LoggerFactory

if TYPE_CHECKING:
    from rebuild_fstab.storage.identify import Identifier

PROC_PARTITIONS = "/proc/partitions"
SYS_CLASS_BLOCK = "/sys/class/block"

PSEUDO_DEVICE_PATTERN = re.compile(r"^(ram|cloop|loop)")
REMOVABLE_BUS_PATTERN = re.compile(r"^(usb\d*|fw\d*|firewire|ieee1394)$")

log = LoggerFactory.for_devices()
command_log = LoggerFactory.for_commands()


class PartitionEntry(NamedTuple):
    major: int
    minor: int
    blocks: int
    name: str


def run_command(command, check=True, log_output=True, log_command=True):
    if log_command:
        command_log.trace(f"Running command: {' '.join(command)}")
    try:
        result = subprocess.run(command, check=check, text=True, capture_output=True)
    except subprocess.CalledProcessError as error:
        command_log.debug(f"Command failed: {' '.join(command)}")
        if error.stdout:
            command_log.trace(f"stdout: {error.stdout.strip()}")
        if error.stderr:
            command_log.trace(f"stderr: {error.stderr.strip()}")
        raise
    if result.stdout and (log_output or result.returncode != 0):
        command_log.trace(f"stdout: {result.stdout.strip()}")
    if result.stderr and (log_output or result.returncode != 0):
        command_log.trace(f"stderr: {result.stderr.strip()}")
    if log_command:
        command_log.trace(f"Command completed with return code {result.returncode}")
    return result


def is_block_device(path: str) -> bool:
    try:
        return stat.S_ISBLK(os.stat(path).st_mode)
    except OSError:
        return False


def read_partitions(path: str = PROC_PARTITIONS) -> list[PartitionEntry]:
    """Parse /proc/partitions, skipping the header and malformed lines."""
    entries: list[PartitionEntry] = []
    with open(path, encoding="utf-8", errors="surrogateescape") as f:
        for line in f:
            words = line.split()
            if len(words) != 4:
                continue
            try:
                major, minor, blocks = (int(word) for word in words[:3])
            except ValueError:
                # header: "major minor  #blocks  name"
                continue
            entries.append(PartitionEntry(major, minor, blocks, words[3]))
    return entries


def candidate_devices(entries: Iterable[PartitionEntry]) -> list[str]:
    """Return /dev paths of the entries worth identifying, in table order."""
    devices = []
    for entry in entries:
        if entry.blocks == 1:
            continue
        if PSEUDO_DEVICE_PATTERN.match(entry.name):
            continue
        devices.append(f"/dev/{entry.name}")
    return devices


def enumerate_partitions(
    identifier: Identifier,
    partitions_path: str = PROC_PARTITIONS,
) -> dict[str, PartitionRecord]:
    """Identify every candidate partition.

    Args:
        identifier: Capability returning ID_FS_* properties for a device
        partitions_path: Location of the kernel partition table

    Returns:
        Records keyed by device path
    """
    records: dict[str, PartitionRecord] = {}
    for device in candidate_devices(read_partitions(partitions_path)):
        if not is_block_device(device):
            log.trace(f"No block device node for {device}")
            continue
        properties = identifier.identify(device)
        if not properties:
            log.debug(f"No filesystem information for {device}")
            continue
        record = PartitionRecord.from_properties(device, properties)
        log.debug(
            f"{device}: type={record.fstype or '-'} usage={record.usage or '-'} "
            f"uuid={record.uuid or '-'} label={record.label or '-'}"
        )
        records[device] = record

    if records:
        log.info(f"Found {len(records)} partitions: {', '.join(records)}")
    else:
        log.info("No partitions found")
    return records


def is_removable_bus(device: str, sys_root: str = SYS_CLASS_BLOCK) -> bool:
    """Return True when the device hangs off a USB or FireWire controller."""
    sys_path = Path(sys_root) / Path(device).name
    try:
        resolved = sys_path.resolve(strict=True)
    except (OSError, RuntimeError):
        return False
    return any(REMOVABLE_BUS_PATTERN.match(part) for part in resolved.parts)


def get_device_block_path(device: str, sys_root: str = SYS_CLASS_BLOCK) -> Path:
    """Sysfs directory of the whole disk a device belongs to."""
    sys_path = Path(sys_root) / Path(device).name
    if (sys_path / "partition").exists():
        return sys_path.resolve().parent
    return sys_path


def _read_sys_attribute(path: Path) -> Optional[str]:
    if path.exists():
        with open(path) as f:
            return f.read().strip()
    return None


def get_model(device: str, sys_root: str = SYS_CLASS_BLOCK) -> Optional[str]:
    return _read_sys_attribute(get_device_block_path(device, sys_root) / "device" / "model")


def get_vendor(device: str, sys_root: str = SYS_CLASS_BLOCK) -> Optional[str]:
    return _read_sys_attribute(get_device_block_path(device, sys_root) / "device" / "vendor")
