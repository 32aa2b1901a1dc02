"""Domain model for fstab generation.

Typed records built from the text the kernel and the identification helpers
expose, plus the mutable state threaded through a single rebuild pass.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Mapping, Optional

_HEX_ESCAPE = re.compile(r"\\x([0-9A-Fa-f]{2})")
_OCTAL_ESCAPE = re.compile(r"\\([0-7]{3})")
_UNSAFE_LABEL_CHARS = re.compile(r"[^A-Za-z0-9._-]")

# Order matters: the backslash must be escaped before the others.
_FSTAB_ESCAPES = (("\\", "\\134"), (" ", "\\040"), ("\t", "\\011"), ("\n", "\\012"))


def decode_hex_escapes(value: str) -> str:
    r"""Decode the ``\xNN`` escapes used by ``ID_FS_*_ENC`` values."""
    raw = _HEX_ESCAPE.sub(lambda match: chr(int(match.group(1), 16)), value)
    # Multibyte labels arrive as escaped UTF-8 bytes.
    try:
        return raw.encode("latin-1").decode("utf-8")
    except (UnicodeEncodeError, UnicodeDecodeError):
        return raw


def decode_octal_escapes(value: str) -> str:
    r"""Decode the ``\040`` style escapes used by /proc/mounts."""
    return _OCTAL_ESCAPE.sub(lambda match: chr(int(match.group(1), 8)), value)


def fstab_escape(value: str) -> str:
    for char, escaped in _FSTAB_ESCAPES:
        value = value.replace(char, escaped)
    return value


def safe_label(label: str) -> str:
    """Return a form of the label usable as a directory name, or ''."""
    safe = _UNSAFE_LABEL_CHARS.sub("_", label)
    if not safe.strip("_") or safe in (".", ".."):
        return ""
    return safe


# ==============================================================================
# Devices
# ==============================================================================


@dataclass(frozen=True)
class PartitionRecord:
    """Filesystem metadata of one enumerated partition."""

    device: str  # e.g., "/dev/sda1"
    usage: str = ""  # "filesystem", "other", "unknown" or ""
    fstype: str = ""  # e.g., "ext4"
    uuid: str = ""
    uuid_enc: str = ""
    label: str = ""  # raw label, escapes decoded
    label_enc: str = ""  # as found under /dev/disk/by-label
    label_safe: str = ""  # usable as a /media directory name

    @property
    def name(self) -> str:
        """Device basename (e.g., sda1)."""
        return PurePosixPath(self.device).name

    @property
    def has_filesystem(self) -> bool:
        return bool(self.fstype)

    @classmethod
    def from_properties(cls, device: str, properties: Mapping[str, str]) -> PartitionRecord:
        """Build a record from blkid's ``-o udev`` properties.

        Args:
            device: Device path the properties were read from
            properties: Parsed ``ID_FS_*`` key/value pairs

        Returns:
            PartitionRecord with encoded and safe forms filled in
        """
        uuid = properties.get("ID_FS_UUID", "")
        uuid_enc = properties.get("ID_FS_UUID_ENC", "") or uuid

        label_enc = properties.get("ID_FS_LABEL_ENC", "")
        if label_enc:
            label = decode_hex_escapes(label_enc)
        else:
            label = properties.get("ID_FS_LABEL", "")
            label_enc = label
        label_safe = properties.get("ID_FS_LABEL_SAFE", "")
        if not label_safe and label:
            label_safe = safe_label(properties.get("ID_FS_LABEL", "") or label)

        return cls(
            device=device,
            usage=properties.get("ID_FS_USAGE", ""),
            fstype=properties.get("ID_FS_TYPE", ""),
            uuid=uuid,
            uuid_enc=uuid_enc,
            label=label,
            label_enc=label_enc,
            label_safe=label_safe,
        )


@dataclass(frozen=True)
class MountEntry:
    """One line of /proc/mounts."""

    device: str
    mountpoint: str
    fstype: str
    options: str = "defaults"
    dump: int = 0
    passno: int = 0

    @property
    def is_root(self) -> bool:
        return self.mountpoint == "/"

    @classmethod
    def from_line(cls, line: str) -> Optional[MountEntry]:
        """Parse a /proc/mounts line, returning None when it is malformed."""
        fields = line.split()
        if len(fields) < 4:
            return None
        try:
            dump = int(fields[4]) if len(fields) > 4 else 0
            passno = int(fields[5]) if len(fields) > 5 else 0
        except ValueError:
            return None
        return cls(
            device=decode_octal_escapes(fields[0]),
            mountpoint=decode_octal_escapes(fields[1]),
            fstype=fields[2],
            options=fields[3],
            dump=dump,
            passno=passno,
        )


# ==============================================================================
# Table
# ==============================================================================


@dataclass(frozen=True)
class TableRow:
    """One fstab entry and the comment line preceding it."""

    name: str  # device path, UUID=..., LABEL=... or /dev/disk/by-*/...
    mountpoint: str
    fstype: str
    options: str
    dump: int = 0
    passno: int = 0
    comment: str = ""

    def render(self) -> str:
        """Tab-separated six column fstab line."""
        return "\t".join(
            [
                fstab_escape(self.name),
                fstab_escape(self.mountpoint),
                self.fstype,
                self.options,
                str(self.dump),
                str(self.passno),
            ]
        )


@dataclass
class EmitState:
    """Devices, labels and UUIDs already used by emitted rows.

    Each UUID and each label names at most one table entry.
    """

    devices: set[str] = field(default_factory=set)
    labels: set[str] = field(default_factory=set)
    uuids: set[str] = field(default_factory=set)

    def mark_seen(self, device: str) -> None:
        self.devices.add(device)

    def is_seen(self, device: str) -> bool:
        return device in self.devices

    def claim_uuid(self, uuid: str) -> bool:
        """Record a UUID as used; False when an earlier row already used it."""
        if uuid in self.uuids:
            return False
        self.uuids.add(uuid)
        return True

    def claim_label(self, label: str) -> bool:
        """Record a label as used; False when an earlier row already used it."""
        if label in self.labels:
            return False
        self.labels.add(label)
        return True


@dataclass
class OutputBuffer:
    """Append-only lines of the generated table."""

    lines: list[str] = field(default_factory=list)

    def add_text(self, text: str) -> None:
        self.lines.extend(text.splitlines())

    def add_row(self, row: TableRow) -> None:
        if row.comment:
            self.lines.append(row.comment)
        self.lines.append(row.render())
        self.lines.append("")

    def text(self) -> str:
        return "\n".join(self.lines) + "\n"


@dataclass(frozen=True)
class GeneratorOptions:
    """Effective configuration of one rebuild pass (settings + CLI flags)."""

    use_uuid: bool = False
    use_label: bool = False
    auto: bool = False
    skip_swap: bool = False
    make_dirs: bool = False
    utf8: bool = False
    media_root: str = "/media"
    excluded_mount_roots: tuple[str, ...] = ()

    def media_path(self, name: str) -> str:
        return f"{self.media_root.rstrip('/')}/{name}"
