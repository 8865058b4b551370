"""Command line interface: argument parsing."""

import argparse
from pathlib import Path
from typing import List, Optional

DEFAULT_DEST = Path("/tmp")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fstabgen",
        description=(
            "Generate systemd mount, swap and automount units from /etc/fstab "
            "and the kernel command line."
        ),
    )
    parser.add_argument(
        "dirs",
        nargs="*",
        metavar="DIR",
        help="Output directory followed by the early and late directories (the last two are ignored)",
    )
    parser.add_argument(
        "--root",
        type=Path,
        default=Path("/"),
        help="Read fstab, /proc and detection files below this directory (default: /)",
    )
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = build_parser()
    args = parser.parse_args(argv)
    if len(args.dirs) not in (0, 3):
        parser.error("This program takes three or no arguments.")
    args.dest = Path(args.dirs[0]) if args.dirs else DEFAULT_DEST
    return args
