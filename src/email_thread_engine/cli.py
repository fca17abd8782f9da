"""Command-line interface for Email Thread Engine.

This module provides the main entry point for the CLI application. It is a
thin collaborator over :class:`EmailService`, useful for inspecting and
editing a local message store by hand.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import pydantic
import structlog

from email_thread_engine import __version__
from email_thread_engine.config import get_settings
from email_thread_engine.emails import EmailService
from email_thread_engine.exceptions import (
    EmailEngineError,
    InvalidOperationError,
    NotFoundError,
    ValidationError,
)
from email_thread_engine.logging_utils import configure_logging
from email_thread_engine.models import Email, EmailDirection, EmailListFilters
from email_thread_engine.query import Folder, filters_for_folder
from email_thread_engine.store import EmailRepository

logger = structlog.get_logger()

EXIT_OK = 0
EXIT_NOT_FOUND = 1
EXIT_INVALID = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="email-thread-engine", description="Threaded email store"
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="Path to the SQLite message store (default: settings db_path)",
    )
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init", help="Create the message store schema")

    list_parser = subparsers.add_parser("list", help="List messages")
    list_parser.add_argument(
        "--folder",
        choices=[f.value for f in Folder],
        default=None,
        help="Sidebar folder; overrides --threaded/--direction/--important/--deleted",
    )
    list_parser.add_argument("--search", default=None, help="Substring to search for")
    list_parser.add_argument("--threaded", action="store_true", help="One row per thread")
    list_parser.add_argument(
        "--direction",
        choices=[d.value for d in EmailDirection],
        default=None,
        help="Only incoming or outgoing messages",
    )
    list_parser.add_argument("--important", action="store_true", help="Only important messages")
    list_parser.add_argument("--deleted", action="store_true", help="Only deleted messages")
    list_parser.add_argument("--cursor", type=int, default=None, help="Id of the last row seen")
    list_parser.add_argument("--limit", type=int, default=None, help="Page size")

    show_parser = subparsers.add_parser("show", help="Show a message and its thread")
    show_parser.add_argument("id", type=int)

    compose_parser = subparsers.add_parser("compose", help="Store a new message")
    compose_parser.add_argument("--from", dest="from_address", required=True)
    compose_parser.add_argument("--to", dest="to_address", required=True)
    compose_parser.add_argument("--subject", required=True)
    compose_parser.add_argument("--content", required=True)
    compose_parser.add_argument("--cc", default=None)
    compose_parser.add_argument("--bcc", default=None)
    compose_parser.add_argument(
        "--reply-to", dest="in_reply_to", type=int, default=None, help="Id of the message replied to"
    )
    compose_parser.add_argument(
        "--direction",
        choices=[d.value for d in EmailDirection],
        default=EmailDirection.OUTGOING.value,
    )

    read_parser = subparsers.add_parser("read", help="Mark a message read")
    read_parser.add_argument("id", type=int)
    read_parser.add_argument("--unread", action="store_true", help="Mark unread instead")
    read_parser.add_argument("--thread", action="store_true", help="Mark the whole thread read")

    important_parser = subparsers.add_parser("important", help="Flag a message important")
    important_parser.add_argument("id", type=int)
    important_group = important_parser.add_mutually_exclusive_group()
    important_group.add_argument("--off", action="store_true", help="Clear the flag")
    important_group.add_argument("--toggle", action="store_true", help="Flip the flag")

    delete_parser = subparsers.add_parser("delete", help="Move a message to the trash")
    delete_parser.add_argument("id", type=int)

    delete_thread_parser = subparsers.add_parser("delete-thread", help="Move a thread to the trash")
    delete_thread_parser.add_argument("thread_id")

    subparsers.add_parser("counts", help="Show unread inbox and important counts")

    return parser


def _format_email(email: Email) -> str:
    flags = "UNREAD" if not email.is_read else "READ"
    if email.is_important:
        flags += ",IMPORTANT"
    if email.is_deleted:
        flags += ",DELETED"
    return (
        f"{email.id}\t{email.thread_id}\t{flags}\t{email.created_at.isoformat()}\t"
        f"{email.from_address}\t{email.subject}"
    )


def _print_email(email: Email, as_json: bool) -> None:
    if as_json:
        print(email.model_dump_json(by_alias=True))
    else:
        print(_format_email(email))


def _cmd_list(service: EmailService, args: argparse.Namespace) -> int:
    if args.folder:
        filters = filters_for_folder(
            Folder(args.folder), search=args.search, cursor=args.cursor, limit=args.limit
        )
    else:
        filters = EmailListFilters(
            search=args.search,
            threaded=args.threaded or None,
            direction=EmailDirection(args.direction) if args.direction else None,
            important=args.important or None,
            deleted=args.deleted or None,
            cursor=args.cursor,
            limit=args.limit,
        )

    page = service.list_emails(filters)
    if args.json:
        print(page.model_dump_json(by_alias=True))
        return EXIT_OK

    for email in page.data:
        print(_format_email(email))
    if page.next_cursor is not None:
        print(f"\nNext page: --cursor {page.next_cursor}")
    return EXIT_OK


def _cmd_show(service: EmailService, args: argparse.Namespace) -> int:
    detail = service.get_email_with_thread(args.id)
    if args.json:
        print(detail.model_dump_json(by_alias=True))
        return EXIT_OK

    email = detail.email
    print(f"From: {email.from_address}")
    print(f"To: {email.to_address}")
    if email.cc:
        print(f"Cc: {email.cc}")
    print(f"Subject: {email.subject}")
    print(f"Date: {email.created_at.isoformat()}")
    print()
    print(email.content or "")
    print(f"\nThread {email.thread_id} ({len(detail.thread)} messages):")
    for item in detail.thread:
        print(_format_email(item))
    return EXIT_OK


def _cmd_compose(service: EmailService, args: argparse.Namespace) -> int:
    email = service.create_email(
        {
            "from": args.from_address,
            "to": args.to_address,
            "subject": args.subject,
            "content": args.content,
            "cc": args.cc,
            "bcc": args.bcc,
            "in_reply_to": args.in_reply_to,
            "direction": args.direction,
        }
    )
    _print_email(email, args.json)
    return EXIT_OK


def _cmd_read(service: EmailService, args: argparse.Namespace) -> int:
    email = service.update_read_status(
        args.id, is_read=not args.unread, mark_thread_as_read=args.thread
    )
    _print_email(email, args.json)
    return EXIT_OK


def _cmd_important(service: EmailService, args: argparse.Namespace) -> int:
    if args.toggle:
        email = service.toggle_importance(args.id)
    else:
        email = service.set_importance(args.id, not args.off)
    _print_email(email, args.json)
    return EXIT_OK


def _cmd_delete(service: EmailService, args: argparse.Namespace) -> int:
    email = service.delete_email(args.id)
    _print_email(email, args.json)
    return EXIT_OK


def _cmd_delete_thread(service: EmailService, args: argparse.Namespace) -> int:
    deleted = service.delete_thread(args.thread_id)
    print(f"Deleted {deleted} messages from thread {args.thread_id}")
    return EXIT_OK


def _cmd_counts(service: EmailService, args: argparse.Namespace) -> int:
    counts = service.get_counts()
    if args.json:
        print(counts.model_dump_json())
        return EXIT_OK
    print(f"Unread inbox: {counts.unread_inbox}")
    print(f"Important: {counts.important}")
    return EXIT_OK


_COMMANDS = {
    "list": _cmd_list,
    "show": _cmd_show,
    "compose": _cmd_compose,
    "read": _cmd_read,
    "important": _cmd_important,
    "delete": _cmd_delete,
    "delete-thread": _cmd_delete_thread,
    "counts": _cmd_counts,
}


def main(args: list[str] | None = None) -> int:
    """Main entry point for the Email Thread Engine CLI.

    Args:
        args: Command-line arguments. If None, uses sys.argv.

    Returns:
        Exit code (0 for success, 1 for a missing message or thread,
        2 for an invalid request).
    """
    if args is None:
        args = sys.argv[1:]

    settings = get_settings()
    configure_logging(settings)

    logger.info("email_thread_engine_started", version=__version__, debug=settings.debug)

    parser = _build_parser()
    parsed = parser.parse_args(args)

    handler = _COMMANDS.get(parsed.command)
    if handler is None and parsed.command != "init":
        logger.error("unknown_command", command=parsed.command)
        return EXIT_INVALID

    db_path: Path = parsed.db or settings.db_path
    try:
        repo = EmailRepository(db_path)
        repo.initialize()

        if parsed.command == "init":
            print(f"Initialized message store at {db_path}")
            return EXIT_OK

        service = EmailService(repository=repo, settings=settings)
        return handler(service, parsed)
    except NotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_NOT_FOUND
    except (InvalidOperationError, ValidationError, pydantic.ValidationError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INVALID
    except EmailEngineError as e:
        logger.error("command_failed", command=parsed.command, error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INVALID


if __name__ == "__main__":
    sys.exit(main())
