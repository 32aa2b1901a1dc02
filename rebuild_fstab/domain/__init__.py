"""Domain models for fstab generation."""

from __future__ import annotations

from .models import (
    EmitState,
    GeneratorOptions,
    MountEntry,
    OutputBuffer,
    PartitionRecord,
    TableRow,
)


__all__ = [
    "EmitState",
    "GeneratorOptions",
    "MountEntry",
    "OutputBuffer",
    "PartitionRecord",
    "TableRow",
]
