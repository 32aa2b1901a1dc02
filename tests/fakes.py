"""Fake identification helpers and record builders shared by the tests."""

from typing import Dict, List, Optional

from rebuild_fstab.domain.models import PartitionRecord


class FakeDescriptor:
    """Descriptor returning canned hardware descriptions."""

    def __init__(self, descriptions: Optional[Dict[str, str]] = None):
        self.descriptions = descriptions or {}
        self.calls: List[str] = []

    def describe(self, device: str) -> str:
        self.calls.append(device)
        return self.descriptions.get(device, "")


class FakeIdentifier:
    """Identifier returning canned blkid properties."""

    def __init__(self, properties: Dict[str, Dict[str, str]]):
        self.properties = properties
        self.calls: List[str] = []

    def identify(self, device: str):
        self.calls.append(device)
        return self.properties.get(device)


def make_record(
    device: str,
    fstype: str = "ext4",
    usage: str = "filesystem",
    uuid: str = "",
    label: str = "",
) -> PartitionRecord:
    properties = {"ID_FS_TYPE": fstype, "ID_FS_USAGE": usage}
    if uuid:
        properties["ID_FS_UUID"] = uuid
        properties["ID_FS_UUID_ENC"] = uuid
    if label:
        properties["ID_FS_LABEL"] = label.replace(" ", "_")
        properties["ID_FS_LABEL_ENC"] = label.replace(" ", "\\x20")
    return PartitionRecord.from_properties(device, properties)
