"""Naming precedence and mount option policy.

A row is named, in order of precedence, by:

1. ``UUID=<uuid>`` when UUID naming is enabled and the device has one
2. ``LABEL=<label>`` when label naming is enabled and the device has one;
   this also picks ``/media/<safe label>`` as mountpoint
3. the raw device path

Steps 1 and 2 run independently, so with both enabled the label wins the
name and both identifiers are claimed. Types mount(8) resolves reliably by
tag get the ``UUID=``/``LABEL=`` form, every other type the udev symlink
under /dev/disk/by-uuid or /dev/disk/by-label.

A UUID or label already claimed by an earlier row is a conflict: the device
is skipped entirely instead of falling back to its device path.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from rebuild_fstab.domain.models import EmitState, GeneratorOptions, MountEntry, PartitionRecord
from rebuild_fstab.logging import EventLogger, LoggerFactory


EXT_TYPES = frozenset({"ext2", "ext3", "ext4"})
NOATIME_TYPES = EXT_TYPES | {"reiserfs", "reiser4", "jfs", "xfs"}
TAG_NAMED_TYPES = NOATIME_TYPES | {"swap"}

# Never get a residual entry: live media and unidentified data.
SKIPPED_TYPES = frozenset({"unknown", "iso9660", "udf", "squashfs"})
MOUNTABLE_USAGES = frozenset({"filesystem", "other"})

BY_UUID_DIR = "/dev/disk/by-uuid"
BY_LABEL_DIR = "/dev/disk/by-label"

log = LoggerFactory.for_table()


@dataclass(frozen=True)
class NameChoice:
    name: str
    mountpoint: Optional[str] = None


def choose_name(
    record: PartitionRecord,
    state: EmitState,
    options: GeneratorOptions,
) -> Optional[NameChoice]:
    """Pick the first column of the row for a device.

    Returns:
        NameChoice, or None when the UUID or label is a duplicate and the
        device must be skipped
    """
    name = None
    mountpoint = None
    tag_named = record.fstype in TAG_NAMED_TYPES

    if options.use_uuid and record.uuid:
        if not state.claim_uuid(record.uuid):
            EventLogger.log_duplicate(log, "UUID", record.uuid, record.device)
            return None
        if tag_named:
            name = f"UUID={record.uuid}"
        else:
            name = f"{BY_UUID_DIR}/{record.uuid_enc}"

    if options.use_label and record.label:
        if not state.claim_label(record.label):
            EventLogger.log_duplicate(log, "LABEL", record.label, record.device)
            return None
        if tag_named:
            name = f"LABEL={record.label}"
        else:
            name = f"{BY_LABEL_DIR}/{record.label_enc}"
        if record.label_safe:
            mountpoint = options.media_path(record.label_safe)

    if name is None:
        name = record.device
    return NameChoice(name=name, mountpoint=mountpoint)


def residual_options(fstype: str, auto: bool, utf8: bool) -> tuple[str, int]:
    """Options and pass number of an unmounted, non-swap device.

    Args:
        fstype: Filesystem type reported by blkid
        auto: Mount at boot instead of on demand
        utf8: The system charmap is UTF-8

    Returns:
        Tuple of (options, pass number)
    """
    options = ("auto" if auto else "noauto") + ",users,exec"
    passno = 2

    if fstype == "ntfs":
        options += ",ro,dmask=0022,fmask=0133"
        if utf8:
            options += ",nls=utf8"
        passno = 0
    elif fstype == "msdos":
        options += ",quiet,umask=000"
        if utf8:
            options += ",iocharset=utf8"
        passno = 0
    elif fstype == "vfat":
        options += ",shortname=lower,quiet,umask=000"
        if utf8:
            options += ",utf8"
        passno = 0
    elif fstype in NOATIME_TYPES:
        options += ",noatime"

    return options, passno


def mounted_options(entry: MountEntry) -> tuple[str, int, int]:
    """Options, dump flag and pass number of an already mounted filesystem.

    Returns:
        Tuple of (options, dump, pass number)
    """
    options = "defaults,noatime"
    if entry.is_root:
        if entry.fstype in EXT_TYPES:
            options += ",errors=remount-ro"
        return options, 1, 1
    return "auto," + options, 0, 2
