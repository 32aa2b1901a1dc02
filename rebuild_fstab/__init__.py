"""Generate an fstab from the partitions and mounts of a running Linux system."""

from .__version__ import __version__

__all__ = ["__version__"]
