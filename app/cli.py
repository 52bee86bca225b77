"""Command line interface: ``macresolver``.

Usage:
    macresolver resolve 192.168.1.10
    macresolver reverse aa:bb:cc:dd:ee:ff
    macresolver list --interface eth0
    macresolver --debug --scan resolve 192.168.1.10

Exit status is 0 when an address was found, 1 when it was not, and 2 on
errors.
"""

import sys
from argparse import ArgumentParser
from pathlib import Path
from typing import List, Optional

from app.dependencies import create_resolver
from config import AddressResolutionError, get_logger, setup_logging
from resolver.addresses import interface_id_equals

logger = get_logger(__name__)

EXIT_FOUND = 0
EXIT_NOT_FOUND = 1
EXIT_ERROR = 2


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(prog="macresolver", description="Resolve MAC addresses on the local network")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--scan",
        action="store_true",
        help="Scan the network before reading the neighbor table",
    )
    parser.add_argument(
        "--no-scanner",
        action="store_true",
        help="Only read the neighbor table, never scan",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Directory holding settings.json and the log file",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    resolve = commands.add_parser("resolve", help="Resolve an IP address to a MAC address")
    resolve.add_argument("ip_address")

    reverse = commands.add_parser("reverse", help="Resolve a MAC address to an IP address")
    reverse.add_argument("mac_address")

    listing = commands.add_parser("list", help="List neighbor table entries")
    listing.add_argument("--interface", default=None, help="Only entries on this interface")

    return parser


def run(args) -> int:
    with create_resolver(data_dir=args.data_dir, enable_scanner=not args.no_scanner) as resolver:
        if args.scan:
            if resolver.can_scan:
                resolver.refresh_address_table()
            else:
                logger.warning("--scan ignored: no network scanner available")

        if args.command == "resolve":
            result = resolver.resolve_ip_to_mac(args.ip_address)
        elif args.command == "reverse":
            result = resolver.resolve_mac_to_ip(args.mac_address)
        else:
            predicate = None
            if args.interface:
                predicate = lambda entry: interface_id_equals(entry.interface_id, args.interface)  # noqa: E731
            count = 0
            for entry in resolver.enumerate_entries(predicate):
                print(entry)
                count += 1
            return EXIT_FOUND if count else EXIT_NOT_FOUND

    if result is None:
        print("not found", file=sys.stderr)
        return EXIT_NOT_FOUND
    print(result)
    return EXIT_FOUND


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(
        data_dir=args.data_dir,
        debug=args.debug,
        console_output=True,
        log_to_file=args.data_dir is not None,
    )

    try:
        return run(args)
    except AddressResolutionError as e:
        logger.error(str(e))
        print(f"error: {e.message}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
