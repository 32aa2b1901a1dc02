import argparse
import functools
import locale
import os
import sys
from typing import Optional

from rebuild_fstab.__version__ import __version__
from rebuild_fstab.config import settings
from rebuild_fstab.domain.models import GeneratorOptions
from rebuild_fstab.fstab.generator import generate_table
from rebuild_fstab.fstab.naming import SKIPPED_TYPES
from rebuild_fstab.fstab.writer import write_table
from rebuild_fstab.logging import operation_context, setup_logging
from rebuild_fstab.storage.devices import enumerate_partitions
from rebuild_fstab.storage.exceptions import FstabError, PrivilegeError
from rebuild_fstab.storage.identify import BlkidIdentifier, UdevDescriptor, require_helpers
from rebuild_fstab.storage.mount import findfs, read_mounts, resolve_device


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rebuild-fstab",
        description=(
            "Scan partitions and active mounts and generate an fstab for a "
            "live system. Prints the table unless --write is given."
        ),
    )
    parser.add_argument("-r", "--write", action="store_true", help="Write the table to the output file (a .old backup is kept)")
    parser.add_argument("-m", "--make-dirs", action="store_true", help="Create missing mountpoint directories")
    parser.add_argument("-s", "--skip-swap", action="store_true", help="Do not add swap partitions")
    parser.add_argument("-u", "--uuid", action="store_true", help="Name entries by UUID")
    parser.add_argument("-l", "--label", action="store_true", help="Name entries by LABEL and mount them on /media/<label>")
    parser.add_argument("-f", "--file", metavar="PATH", default=None, help="Output file (default: the fstab_path setting, /etc/fstab)")
    auto_group = parser.add_mutually_exclusive_group()
    auto_group.add_argument("--auto", dest="auto", action="store_true", default=None, help="Mount unmounted partitions at boot")
    auto_group.add_argument("--noauto", dest="auto", action="store_false", help="Mount unmounted partitions on demand only (default)")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only report warnings and errors")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Trace decisions (-vv also traces helper output)")
    parser.add_argument("-D", "--list", action="store_true", help="Print 'device fstype' pairs and exit")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def is_utf8_charmap(charmap: Optional[str] = None) -> bool:
    if charmap is None:
        try:
            locale.setlocale(locale.LC_CTYPE, "")
        except locale.Error:
            pass
        charmap = locale.nl_langinfo(locale.CODESET)
    return charmap.upper().replace("-", "").replace("_", "") == "UTF8"


def check_privileges() -> None:
    euid = os.geteuid()
    if euid != 0:
        raise PrivilegeError(euid)


def build_options(args: argparse.Namespace) -> GeneratorOptions:
    auto = args.auto if args.auto is not None else settings.get_bool("default_auto")
    return GeneratorOptions(
        use_uuid=args.uuid,
        use_label=args.label,
        auto=auto,
        skip_swap=args.skip_swap,
        make_dirs=args.make_dirs,
        utf8=is_utf8_charmap(settings.get_setting("charmap")),
        media_root=settings.get_setting("media_root", settings.DEFAULT_MEDIA_ROOT),
        excluded_mount_roots=tuple(settings.get_list("excluded_mount_roots")),
    )


def print_table(text: str) -> None:
    """Write the table to stdout as bytes, keeping undecodable mountpoints intact."""
    sys.stdout.flush()
    sys.stdout.buffer.write(text.encode("utf-8", "surrogateescape"))
    sys.stdout.buffer.flush()


def list_devices(records, out=None) -> None:
    write = out.write if out is not None else print_table
    for device in sorted(records):
        record = records[device]
        if record.fstype and record.fstype not in SKIPPED_TYPES:
            write(f"{device} {record.fstype}\n")


def run(args: argparse.Namespace) -> int:
    check_privileges()
    blkid = settings.get_setting("blkid_command", "blkid")
    udevadm = settings.get_setting("udevadm_command", "udevadm")
    require_helpers([blkid, udevadm])

    with operation_context("rebuild") as log:
        records = enumerate_partitions(BlkidIdentifier(blkid))
        if args.list:
            list_devices(records)
            return 0

        options = build_options(args)
        finder = functools.partial(findfs, command=settings.get_setting("findfs_command", "findfs"))
        buffer = generate_table(
            records,
            read_mounts(),
            options,
            UdevDescriptor(udevadm),
            resolver=functools.partial(resolve_device, finder=finder),
        )

        if args.write:
            path = args.file or settings.get_setting("fstab_path", settings.DEFAULT_FSTAB_PATH)
            write_table(path, buffer.text())
        else:
            print_table(buffer.text())
        log.debug(f"{len(buffer.lines)} lines generated")
    return 0


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    log = setup_logging(
        verbose=args.verbose,
        quiet=args.quiet,
        log_dir=settings.get_setting("log_dir"),
    )

    try:
        return run(args)
    except FstabError as error:
        log.error(str(error))
        return 1
    except OSError as error:
        log.error(f"{type(error).__name__}: {error}")
        return 1
    except KeyboardInterrupt:
        log.warning("Interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
