"""
Pytest configuration and shared fixtures for rebuild-fstab tests.

No test runs a real helper or touches the real /dev, /proc or /sys: records,
mounts and descriptors are built from the fixtures below, and block-device
checks are patched where a module performs them.
"""

from pathlib import Path
from typing import List

import pytest

from fakes import FakeDescriptor
from rebuild_fstab.config.settings import DEFAULT_EXCLUDED_MOUNT_ROOTS
from rebuild_fstab.domain.models import GeneratorOptions, MountEntry
from rebuild_fstab.logging import logger


# ==============================================================================
# Fixtures
# ==============================================================================


@pytest.fixture
def descriptor() -> FakeDescriptor:
    return FakeDescriptor()


@pytest.fixture
def options() -> GeneratorOptions:
    """Default run: no tag naming, noauto, non-UTF-8 locale."""
    return GeneratorOptions(excluded_mount_roots=tuple(DEFAULT_EXCLUDED_MOUNT_ROOTS))


@pytest.fixture
def no_mkdir():
    """make_dir replacement recording the requested directories."""
    created: List[str] = []

    def make_dir(path: str) -> bool:
        created.append(path)
        return True

    make_dir.created = created
    return make_dir


@pytest.fixture
def root_mount() -> MountEntry:
    return MountEntry("/dev/sda1", "/", "ext4", "rw,relatime", 0, 0)


@pytest.fixture
def proc_partitions(tmp_path) -> Path:
    """A /proc/partitions with a disk, partitions, an extended placeholder and pseudo devices."""
    path = tmp_path / "partitions"
    path.write_text(
        "major minor  #blocks  name\n"
        "\n"
        "   8        0  488386584 sda\n"
        "   8        1     524288 sda1\n"
        "   8        2          1 sda2\n"
        "   8        5  487860224 sda5\n"
        "   7        0     102400 loop0\n"
        "   1        0      65536 ram0\n"
        " 240        0     716800 cloop0\n"
        "  11        0    1048575 sr0\n"
    )
    return path


@pytest.fixture
def proc_mounts(tmp_path) -> Path:
    path = tmp_path / "mounts"
    path.write_text(
        "proc /proc proc rw,nosuid,nodev,noexec,relatime 0 0\n"
        "sysfs /sys sysfs rw,nosuid,nodev,noexec,relatime 0 0\n"
        "/dev/sda1 / ext4 rw,relatime 0 0\n"
        "/dev/sr0 /cdrom iso9660 ro,relatime 0 0\n"
        "/dev/sdb1 /mnt/my\\040data vfat rw,relatime 0 0\n"
        "tmpfs /tmp tmpfs rw,nosuid,nodev 0 0\n"
    )
    return path


@pytest.fixture
def log_records():
    """Collect loguru records emitted during the test."""
    records: List[dict] = []
    handler_id = logger.add(lambda message: records.append(message.record), level="TRACE")
    yield records
    logger.remove(handler_id)
