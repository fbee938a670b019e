"""Command-line entry point for the inquiry inbox."""

from __future__ import annotations

import argparse
import asyncio
from collections.abc import Sequence
from pathlib import Path

from inquiry_inbox.core import (
    AppSettings,
    InquiryError,
    configure_logging,
    load_app_settings,
)
from inquiry_inbox.core.models import MessageView
from inquiry_inbox.operations import InquiryService
from inquiry_inbox.storage import SqliteMessageRepository


def build_parser() -> argparse.ArgumentParser:
    """Create and configure the CLI argument parser."""
    parser = argparse.ArgumentParser(description="Contact message inbox")
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to a .env file containing configuration overrides.",
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="info",
        choices=["info", "list", "stats", "mark-read", "delete", "purge"],
        help="Operation to execute.",
    )
    parser.add_argument(
        "ids",
        nargs="*",
        type=int,
        help="Message identifiers for mark-read and delete.",
    )
    filters = parser.add_mutually_exclusive_group()
    filters.add_argument(
        "--unread",
        action="store_true",
        help="Only list unread messages.",
    )
    filters.add_argument(
        "--urgent",
        action="store_true",
        help="Only list unread messages past the urgency threshold.",
    )
    parser.add_argument(
        "--older-than",
        dest="older_than",
        type=int,
        default=None,
        help="Age in days for purge (default: retention.max_age_days).",
    )
    return parser


def execute(args: argparse.Namespace, settings: AppSettings) -> int:
    """Execute the requested CLI command and return the exit status."""
    command = args.command
    if command == "info":
        print("Inquiry inbox is ready.")
        print(f"Database path: {settings.storage.db_path}")
        print(f"SMTP host: {settings.smtp.host}")
        print(f"Notifications enabled: {settings.notification.enabled}")
        return 0

    with SqliteMessageRepository(settings.storage) as repository:
        service = InquiryService(repository, settings=settings.classifier)
        try:
            return asyncio.run(_dispatch(service, args, settings))
        except InquiryError as exc:
            print(f"Error: {exc}")
            return 1


async def _dispatch(
    service: InquiryService, args: argparse.Namespace, settings: AppSettings
) -> int:
    command = args.command
    if command == "list":
        if args.unread:
            views = await service.list_unread()
        elif args.urgent:
            views = await service.list_urgent()
        else:
            views = await service.list_messages()
        _print_messages(views)
    elif command == "stats":
        report = await service.get_statistics()
        print(f"Total messages:  {report.total_messages}")
        print(f"Unread:          {report.unread_messages}")
        print(f"Urgent:          {report.urgent_messages}")
        print(
            f"Today/week/month: {report.today_messages}/"
            f"{report.week_messages}/{report.month_messages}"
        )
        print(f"Read percentage: {report.read_percentage:.1f}%")
        for domain in report.top_domains:
            print(f"  {domain.domain:<30} {domain.message_count:>5}")
    elif command == "mark-read":
        if not args.ids:
            print("mark-read requires at least one message id.")
            return 2
        changed = await service.mark_many_read(args.ids)
        print(f"Marked {changed} message(s) as read.")
    elif command == "delete":
        if not args.ids:
            print("delete requires at least one message id.")
            return 2
        result = await service.perform_bulk_action(args.ids, "delete")
        print(f"Deleted {result.affected_count} message(s).")
    elif command == "purge":
        days = (
            args.older_than
            if args.older_than is not None
            else settings.retention.max_age_days
        )
        deleted = await service.purge_older_than(days)
        print(f"Purged {deleted} message(s) older than {days} day(s).")
    return 0


def _print_messages(views: Sequence[MessageView]) -> None:
    if not views:
        print("No messages found.")
        return

    print(f"Showing {len(views)} message(s):")
    header = f"{'ID':>5}  {'Read':<4}  {'P':>1}  {'Received':<14}  {'From':<28}  Subject"
    print(header)
    print("-" * len(header))
    for view in views:
        flag = "yes" if view.is_read else "no"
        print(
            f"{view.id!s:>5}  {flag:<4}  {view.priority:>1}  "
            f"{view.relative_time:<14}  {view.sender_email:<28}  {view.subject}"
        )


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = load_app_settings(env_file=args.env_file)
    configure_logging(settings.logging)
    return execute(args, settings)


if __name__ == "__main__":
    raise SystemExit(main())
