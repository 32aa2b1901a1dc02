"""Custom exceptions for fstab generation.

Exception Hierarchy:
    FstabError (base)
        ├── PreconditionError
        │   ├── PrivilegeError
        │   └── HelperMissingError
        ├── DeviceError
        │   ├── DeviceNotFoundError
        │   └── IdentificationError
        └── OutputFileError
            ├── BackupFailedError
            └── LockFailedError

Preconditions and output file errors are fatal: they propagate to main(),
which reports them and exits non-zero. Device errors are per-device and are
logged by the caller before the device is skipped.

Usage:
    from rebuild_fstab.storage.exceptions import HelperMissingError

    if shutil.which("blkid") is None:
        raise HelperMissingError("blkid")
"""


class FstabError(Exception):
    """Base exception for all fstab generation errors."""



class PreconditionError(FstabError):
    """Base exception for conditions checked before any work starts."""



class PrivilegeError(PreconditionError):
    """The generator is not running with root privileges."""

    def __init__(self, euid: int):
        self.euid = euid
        super().__init__(f"Must be run as root (effective uid is {euid})")


class HelperMissingError(PreconditionError):
    """A required external helper is not installed or not executable."""

    def __init__(self, helper: str):
        self.helper = helper
        super().__init__(f"Required helper not found or not executable: {helper}")


class DeviceError(FstabError):
    """Base exception for device-related errors."""



class DeviceNotFoundError(DeviceError):
    """Device node does not exist or is not a block-special file."""

    def __init__(self, device_name: str):
        self.device_name = device_name
        super().__init__(f"Device not found: {device_name}")


class IdentificationError(DeviceError):
    """The identification helper failed for a device."""

    def __init__(self, device_name: str, reason: str = ""):
        self.device_name = device_name
        self.reason = reason
        msg = f"Cannot identify {device_name}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class OutputFileError(FstabError):
    """The output file cannot be opened or rewritten."""

    def __init__(self, path: str, reason: str = ""):
        self.path = path
        self.reason = reason
        msg = f"Cannot write {path}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class BackupFailedError(OutputFileError):
    """The previous version of the output file could not be backed up."""

    def __init__(self, path: str, backup_path: str, reason: str = ""):
        self.backup_path = backup_path
        super().__init__(path, f"backup to {backup_path} failed: {reason}".rstrip(": "))


class LockFailedError(OutputFileError):
    """Another writer holds the lock on the output file."""

    def __init__(self, path: str):
        super().__init__(path, "file is locked by another process")
