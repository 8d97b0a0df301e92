"""Move single artifacts between the local disk and an S3 repository.

Usage:
  wagon-transfer s3://bucket/repo put build/a.jar org/a/1.0/a.jar
  wagon-transfer s3://bucket/repo get org/a/1.0/a.jar /tmp/a.jar
  wagon-transfer s3://bucket/repo list-objects

Credentials come from --access-key/--secret-key, the URL user info, or the
ambient AWS provider chain, in that order.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from wagon.common.config import get_settings
from wagon.common.logging import setup_logging
from wagon.domain.events import DebugEvent, TransferEvent, TransferEventType
from wagon.domain.repository import AuthenticationInfo, Repository
from wagon.transport import S3Wagon, Transport, WagonError, create_transport

logger = logging.getLogger("wagon.cli")


def _log_transfer(event: TransferEvent | DebugEvent) -> None:
    if isinstance(event, DebugEvent):
        logger.debug("%s", event.message)
        return
    if event.type is TransferEventType.PROGRESS:
        return
    logger.info(
        "%s %s %s", event.request_type.value, event.type.value, event.resource.name
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wagon-transfer", description="Transfer artifacts to and from S3"
    )
    parser.add_argument("url", help="Repository URL, e.g. s3://bucket/base")
    parser.add_argument("--access-key", default=None, help="Access key id")
    parser.add_argument("--secret-key", default=None, help="Secret access key")
    parser.add_argument("--session-token", default=None, help="Session token")
    parser.add_argument("--region", default=None, help="Override S3_REGION")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")

    commands = parser.add_subparsers(dest="command", required=True)

    get_cmd = commands.add_parser("get", help="Download one resource")
    get_cmd.add_argument("resource")
    get_cmd.add_argument("destination", type=Path)

    put_cmd = commands.add_parser("put", help="Upload one file")
    put_cmd.add_argument("source", type=Path)
    put_cmd.add_argument("resource")

    ls_cmd = commands.add_parser("ls", help="List a directory below the base dir")
    ls_cmd.add_argument("directory", nargs="?", default=".")

    commands.add_parser("list-objects", help="List every object of the bucket")
    return parser


def run(transport: Transport, args: argparse.Namespace) -> int:
    if args.command == "get":
        transport.get(args.resource, args.destination)
    elif args.command == "put":
        transport.put(args.source, args.resource)
    elif args.command == "ls":
        for name in transport.get_file_list(args.directory):
            print(name)
    elif args.command == "list-objects":
        for key, summary in sorted(transport.list_objects().items()):
            print(f"{summary.size_bytes:>12} {key}")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging("DEBUG" if args.verbose else "INFO")

    try:
        repository = Repository.from_url(args.url)
    except ValueError as exc:
        logger.error("%s", exc)
        return 2

    auth = None
    if args.access_key:
        auth = AuthenticationInfo(
            username=args.access_key,
            password=args.secret_key,
            session_token=args.session_token,
        )

    try:
        transport = create_transport(repository.protocol, settings=get_settings())
        if args.region and isinstance(transport, S3Wagon):
            transport.region = args.region
        transport.add_transfer_listener(_log_transfer)
        transport.connect(repository, auth)
        try:
            return run(transport, args)
        finally:
            transport.disconnect()
    except WagonError as exc:
        logger.error("%s: %s", type(exc).__name__, exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
