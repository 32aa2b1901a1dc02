"""Tests for the optical and floppy drive rows."""

from dataclasses import replace
from unittest.mock import patch

import pytest

from fakes import FakeDescriptor
from rebuild_fstab.fstab.fixed import emit_floppy, emit_optical


@pytest.fixture
def dev_root(tmp_path):
    """A fake /dev with two optical drive nodes and one floppy node."""
    for name in ("cdrom", "cdrom1", "fd0", "sda"):
        (tmp_path / name).write_text("")
    return tmp_path


@patch("rebuild_fstab.fstab.fixed.is_block_device", return_value=True)
class TestEmitOptical:
    def test_rows(self, mock_is_block, options, dev_root, no_mkdir):
        descriptor = FakeDescriptor({f"{dev_root}/cdrom": "HL-DT-ST DVDRAM GH24NSD1 [ata]"})

        rows = emit_optical(options, descriptor, no_mkdir, str(dev_root))

        assert [row.name for row in rows] == [f"{dev_root}/cdrom", f"{dev_root}/cdrom1"]
        assert rows[0].mountpoint == "/media/cdrom"
        assert rows[0].render().endswith("\t/media/cdrom\tudf,iso9660\tuser,noauto\t0\t0")
        assert rows[0].comment == f"# {dev_root}/cdrom - HL-DT-ST DVDRAM GH24NSD1 [ata]"
        assert rows[1].comment == f"# {dev_root}/cdrom1"

    def test_make_dirs(self, mock_is_block, options, descriptor, dev_root, no_mkdir):
        emit_optical(replace(options, make_dirs=True), descriptor, no_mkdir, str(dev_root))

        assert no_mkdir.created == ["/media/cdrom", "/media/cdrom1"]

    def test_no_drive(self, mock_is_block, options, descriptor, tmp_path, no_mkdir):
        assert emit_optical(options, descriptor, no_mkdir, str(tmp_path)) == []


@patch("rebuild_fstab.fstab.fixed.is_block_device", return_value=True)
class TestEmitFloppy:
    def test_row(self, mock_is_block, options, dev_root, no_mkdir):
        rows = emit_floppy(options, no_mkdir, str(dev_root))

        assert len(rows) == 1
        assert rows[0].render() == f"{dev_root}/fd0\t/media/fd0\tauto\trw,user,noauto\t0\t0"
        assert rows[0].comment == f"# {dev_root}/fd0"

    def test_media_root_setting(self, mock_is_block, options, dev_root, no_mkdir):
        rows = emit_floppy(replace(options, media_root="/mnt/"), no_mkdir, str(dev_root))

        assert rows[0].mountpoint == "/mnt/fd0"


def test_nodes_that_are_not_block_devices_are_ignored(options, descriptor, dev_root, no_mkdir):
    # plain files in the fake /dev
    assert emit_optical(options, descriptor, no_mkdir, str(dev_root)) == []
    assert emit_floppy(options, no_mkdir, str(dev_root)) == []
