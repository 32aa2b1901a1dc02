"""Tests for storage/mount.py - /proc/mounts parsing and device resolution."""

import subprocess
from unittest.mock import Mock, patch

import pytest

from rebuild_fstab.config.settings import DEFAULT_EXCLUDED_MOUNT_ROOTS
from rebuild_fstab.storage import mount


class TestReadMounts:
    def test_reads_all_entries_in_order(self, proc_mounts):
        entries = mount.read_mounts(str(proc_mounts))

        assert [entry.device for entry in entries] == [
            "proc", "sysfs", "/dev/sda1", "/dev/sr0", "/dev/sdb1", "tmpfs",
        ]
        assert entries[4].mountpoint == "/mnt/my data"

    def test_skips_malformed_lines(self, tmp_path):
        path = tmp_path / "mounts"
        path.write_text("/dev/sda1 / ext4 rw 0 0\nbroken\n\n")

        entries = mount.read_mounts(str(path))

        assert len(entries) == 1


class TestIsExcludedMountpoint:
    @pytest.mark.parametrize(
        "mountpoint",
        ["/KNOPPIX", "/KNOPPIX/usr", "/cdrom", "/run/live/medium", "/mnt-system"],
    )
    def test_live_roots(self, mountpoint):
        assert mount.is_excluded_mountpoint(mountpoint, DEFAULT_EXCLUDED_MOUNT_ROOTS)

    @pytest.mark.parametrize("mountpoint", ["/", "/home", "/cdrom2", "/media/KNOPPIX"])
    def test_regular_mounts(self, mountpoint):
        assert not mount.is_excluded_mountpoint(mountpoint, DEFAULT_EXCLUDED_MOUNT_ROOTS)

    def test_trailing_slash_in_root(self):
        assert mount.is_excluded_mountpoint("/live/image", ["/live/"])


class TestFindfs:
    @patch("subprocess.run")
    def test_found(self, mock_run):
        mock_run.return_value = Mock(returncode=0, stdout="/dev/sda2\n", stderr="")

        assert mount.findfs("LABEL=home") == "/dev/sda2"
        assert mock_run.call_args[0][0] == ["findfs", "LABEL=home"]

    @patch("subprocess.run")
    def test_not_found(self, mock_run):
        mock_run.side_effect = subprocess.CalledProcessError(1, ["findfs"], "", "unable to resolve")

        assert mount.findfs("UUID=nope") is None

    @patch("subprocess.run", side_effect=FileNotFoundError("findfs"))
    def test_helper_missing(self, mock_run):
        assert mount.findfs("UUID=nope") is None


class TestResolveDevice:
    @patch("rebuild_fstab.storage.mount.is_block_device", return_value=True)
    def test_plain_dev_path_passes_through(self, mock_is_block):
        assert mount.resolve_device("/dev/sda1") == "/dev/sda1"

    @patch("rebuild_fstab.storage.mount.is_block_device", return_value=True)
    def test_tag_uses_finder(self, mock_is_block):
        finder = Mock(return_value="/dev/sdb1")

        assert mount.resolve_device("UUID=1234-ABCD", finder=finder) == "/dev/sdb1"
        assert mount.resolve_device("LABEL=STICK", finder=finder) == "/dev/sdb1"
        assert finder.call_args_list[0][0] == ("UUID=1234-ABCD",)

    @patch("rebuild_fstab.storage.mount.is_block_device", return_value=True)
    def test_tag_not_found(self, mock_is_block):
        assert mount.resolve_device("LABEL=gone", finder=lambda spec: None) is None

    @patch("rebuild_fstab.storage.mount.is_block_device", return_value=True)
    @patch("os.path.realpath", return_value="/dev/sdc1")
    def test_by_id_symlink(self, mock_realpath, mock_is_block):
        assert mount.resolve_device("/dev/disk/by-uuid/abc") == "/dev/sdc1"
        mock_realpath.assert_called_once_with("/dev/disk/by-uuid/abc")

    @pytest.mark.parametrize("spec", ["proc", "tmpfs", "server:/export", "overlay"])
    def test_non_device_specifiers(self, spec):
        assert mount.resolve_device(spec, finder=lambda s: "/dev/sda1") is None

    @patch("rebuild_fstab.storage.mount.is_block_device", return_value=False)
    def test_result_must_be_block_device(self, mock_is_block):
        assert mount.resolve_device("/dev/sda1") is None
        assert mount.resolve_device("UUID=x", finder=lambda spec: "/dev/sda1") is None


class TestUndecodableMountpoints:
    def test_latin1_mountpoint_is_kept(self, tmp_path):
        path = tmp_path / "mounts"
        path.write_bytes(b"/dev/sdb1 /mnt/caf\xe9 ext4 rw 0 0\n/dev/sda1 / ext4 rw 0 0\n")

        entries = mount.read_mounts(str(path))

        assert [entry.device for entry in entries] == ["/dev/sdb1", "/dev/sda1"]
        assert entries[0].mountpoint == "/mnt/caf\udce9"
        assert entries[0].mountpoint.encode("utf-8", "surrogateescape") == b"/mnt/caf\xe9"
