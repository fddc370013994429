"""Main CLI entry point for bsonkit."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .. import __version__
from ..exceptions import BsonkitError
from .dump import dump_file, hex_file, size_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the bsonkit CLI.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = argparse.ArgumentParser(
        prog="bsonkit",
        description="bsonkit: Binary Document Codec",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  bsonkit --dump documents.bson         Decode and print every document
  bsonkit --size documents.bson         Show encoded size of each element
  bsonkit --hex documents.bson          Hex dump of the raw bytes
  bsonkit --version                     Show version
        """,
    )

    commands = parser.add_mutually_exclusive_group()
    commands.add_argument(
        "--dump",
        metavar="FILE",
        type=str,
        help="Decode documents from FILE and print them",
    )
    commands.add_argument(
        "--size",
        metavar="FILE",
        type=str,
        help="Decode documents from FILE and show per-element sizes",
    )
    commands.add_argument(
        "--hex",
        metavar="FILE",
        type=str,
        help="Print a hex dump of FILE",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"bsonkit {__version__}",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    selected = ((args.dump, dump_file), (args.size, size_file), (args.hex, hex_file))
    for path_arg, command in selected:
        if not path_arg:
            continue

        file_path = Path(path_arg)
        if not file_path.exists():
            print(f"Error: File not found: {file_path}", file=sys.stderr)
            return 1

        try:
            command(file_path)
            return 0
        except (BsonkitError, OSError) as e:
            print(f"Error reading {file_path}: {e}", file=sys.stderr)
            return 1

    # If no command specified, show help
    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
