"""Identification helpers behind a small capability interface.

Two external programs describe a device:

- ``blkid -o udev -p <dev>`` prints the ID_FS_* properties of the filesystem
  (type, usage, UUID, label and their encoded forms)
- ``udevadm info --query=property --name=<dev>`` prints the hardware
  properties (ID_VENDOR, ID_MODEL, ID_BUS) used only in table comments

Both speak ``KEY=value`` lines. The generator only talks to the Identifier
and Descriptor protocols, so tests hand in fixtures instead of running the
real programs.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from typing import Iterable, Optional, Protocol

from rebuild_fstab.logging import LoggerFactory
from rebuild_fstab.storage.devices import (
    get_model,
    get_vendor,
    is_block_device,
    run_command,
)
from rebuild_fstab.storage.exceptions import (
    DeviceError,
    DeviceNotFoundError,
    HelperMissingError,
    IdentificationError,
)


log = LoggerFactory.for_devices()


class Identifier(Protocol):
    def identify(self, device: str) -> Optional[dict[str, str]]:
        """Return the device's ID_FS_* properties, or None when unknown."""


class Descriptor(Protocol):
    def describe(self, device: str) -> str:
        """Return a human-readable hardware description, or ''."""


def parse_properties(text: str) -> dict[str, str]:
    """Parse ``KEY=value`` lines; blank lines and lines without '=' are ignored."""
    properties: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or "=" not in line:
            continue
        key, value = line.split("=", 1)
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]
        properties[key.strip()] = value
    return properties


def require_helpers(helpers: Iterable[str]) -> None:
    """Check the helpers are installed and executable.

    Raises:
        HelperMissingError: For the first helper that cannot be run
    """
    for helper in helpers:
        if os.sep in helper:
            if not (os.path.isfile(helper) and os.access(helper, os.X_OK)):
                raise HelperMissingError(helper)
        elif shutil.which(helper) is None:
            raise HelperMissingError(helper)


class BlkidIdentifier:
    """Low-level superblock reader built on blkid."""

    def __init__(self, command: str = "blkid"):
        self.command = command

    def read_superblock(self, device: str) -> dict[str, str]:
        """Run blkid on one device.

        Raises:
            DeviceNotFoundError: If the device node is missing or not a block device
            IdentificationError: If blkid cannot run or finds nothing
        """
        if not is_block_device(device):
            raise DeviceNotFoundError(device)
        try:
            result = run_command(
                [self.command, "-o", "udev", "-p", device],
                check=False,
            )
        except OSError as error:
            raise IdentificationError(device, str(error)) from error
        if result.returncode != 0:
            # 2: nothing detected, 8: ambivalent probing result
            raise IdentificationError(device, f"{self.command} exited with {result.returncode}")
        return parse_properties(result.stdout)

    def identify(self, device: str) -> Optional[dict[str, str]]:
        try:
            return self.read_superblock(device)
        except DeviceError as error:
            log.debug(str(error))
            return None


class UdevDescriptor:
    """Vendor, model and bus of the disk behind a device, for comments."""

    def __init__(self, command: str = "udevadm"):
        self.command = command

    def describe(self, device: str) -> str:
        properties: dict[str, str] = {}
        try:
            result = run_command(
                [self.command, "info", "--query=property", f"--name={device}"],
                check=True,
                log_output=False,
            )
            properties = parse_properties(result.stdout)
        except (OSError, subprocess.CalledProcessError) as error:
            log.debug(f"No udev properties for {device}: {error}")

        vendor = properties.get("ID_VENDOR", "").replace("_", " ").strip()
        model = properties.get("ID_MODEL", "").replace("_", " ").strip()
        if not vendor and not model:
            try:
                vendor = (get_vendor(device) or "").strip()
                model = (get_model(device) or "").strip()
            except OSError as error:
                log.debug(f"No sysfs model for {device}: {error}")
        description = " ".join(part for part in [vendor, model] if part)
        bus = properties.get("ID_BUS", "")
        if description and bus:
            description = f"{description} [{bus}]"
        return description
