"""Settings storage for generator defaults."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


SETTINGS_PATH = Path(
    os.environ.get(
        "REBUILD_FSTAB_SETTINGS_PATH",
        "/etc/rebuild-fstab/settings.json",
    )
)

# Default values - use these constants instead of hardcoding values elsewhere
DEFAULT_FSTAB_PATH = "/etc/fstab"
DEFAULT_MEDIA_ROOT = "/media"
DEFAULT_EXCLUDED_MOUNT_ROOTS = [
    "/KNOPPIX",
    "/UNIONFS",
    "/ramdisk",
    "/cdrom",
    "/mnt-system",
    "/run/live",
    "/lib/live",
    "/live",
    "/rofs",
]

DEFAULT_SETTINGS: dict[str, Any] = {
    "fstab_path": DEFAULT_FSTAB_PATH,
    "media_root": DEFAULT_MEDIA_ROOT,
    "excluded_mount_roots": list(DEFAULT_EXCLUDED_MOUNT_ROOTS),
    "blkid_command": "blkid",
    "udevadm_command": "udevadm",
    "findfs_command": "findfs",
    "default_auto": False,
    "charmap": None,
    "log_dir": None,
}


@dataclass
class SettingsStore:
    values: dict[str, Any] = field(default_factory=dict)


settings_store = SettingsStore()


def load_settings() -> None:
    settings_store.values = dict(DEFAULT_SETTINGS)
    if not SETTINGS_PATH.exists():
        return
    try:
        data = json.loads(SETTINGS_PATH.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return
    if isinstance(data, dict):
        settings_store.values.update(data)


def get_setting(key: str, default: Any | None = None) -> Any:
    return settings_store.values.get(key, default)


def get_bool(key: str, default: bool = False) -> bool:
    return bool(get_setting(key, default))


def get_list(key: str, default: list[str] | None = None) -> list[str]:
    value = get_setting(key, default)
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return [str(item) for item in value]


load_settings()
