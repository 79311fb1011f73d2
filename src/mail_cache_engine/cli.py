"""Command-line interface for the mail cache engine.

This module provides the main entry point for the CLI application.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import structlog

from mail_cache_engine import __version__
from mail_cache_engine.accounts import AccountDirectory
from mail_cache_engine.cache import MailCacheService
from mail_cache_engine.config import Settings, get_settings
from mail_cache_engine.exceptions import MailCacheError
from mail_cache_engine.gmail import gmail_source_factory
from mail_cache_engine.models import CachedMessage
from mail_cache_engine.ollama import OllamaClient
from mail_cache_engine.store import SqliteDocumentStore

logger = structlog.get_logger()


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--user", required=True, help="User whose cache is used")
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="Path to the SQLite document store (default: settings store_path)",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mail-cache", description="Mail cache and scoring engine")
    subparsers = parser.add_subparsers(dest="command", required=True)

    _add_common(subparsers.add_parser("import", help="Import new messages from every linked account"))
    _add_common(subparsers.add_parser("enrich", help="Enrich queued messages and rebuild the views"))
    _add_common(subparsers.add_parser("refresh", help="Import, then enrich"))
    _add_common(subparsers.add_parser("reset-queue", help="Queue every inbox message for enrichment"))

    rescore_parser = subparsers.add_parser("rescore", help="Re-apply deterministic scoring to the inbox")
    _add_common(rescore_parser)
    rescore_parser.add_argument("--decay", action="store_true", help="Also apply temporal decay")

    inbox_parser = subparsers.add_parser("inbox", help="List the inbox view")
    _add_common(inbox_parser)
    inbox_parser.add_argument(
        "--deletables", action="store_true", help="List the deletables view instead"
    )
    inbox_parser.add_argument("--limit", type=int, default=25, help="Max results")

    search_parser = subparsers.add_parser("search", help="Search cached messages")
    _add_common(search_parser)
    search_parser.add_argument("query", help="Text to look for")
    search_parser.add_argument("--limit", type=int, default=25, help="Max results")

    return parser


async def _build_service(args: argparse.Namespace, settings: Settings) -> MailCacheService:
    store = SqliteDocumentStore(args.db or settings.store_path)
    store.initialize()
    return await MailCacheService.create(
        args.user,
        store,
        AccountDirectory(store, settings.accounts_collection),
        gmail_source_factory(settings),
        OllamaClient(settings),
        settings,
    )


def _format_row(message: CachedMessage) -> str:
    date_part = message.date.isoformat() if message.date else "(no date)"
    label = message.priority_label or "-"
    return (
        f"{message.priority_score:.2f}\t{message.deletable_score:.2f}\t{label}\t"
        f"{date_part}\t{message.sender or '(unknown sender)'}\t{message.title}"
    )


async def _run(args: argparse.Namespace, settings: Settings) -> int:
    service = await _build_service(args, settings)

    if args.command == "import":
        new_ids = await service.import_new_messages()
        print(f"Imported {len(new_ids)} new messages")
    elif args.command == "enrich":
        processed = await service.process_summarization_queue()
        print(f"Enriched {len(processed)} messages")
    elif args.command == "refresh":
        await service.refresh()
    elif args.command == "reset-queue":
        count = await service.reset_summarization_queue()
        print(f"Queued {count} messages for enrichment")
    elif args.command == "rescore":
        await service.rescore(with_decay=args.decay)
    elif args.command == "inbox":
        ids = await (service.get_deletables() if args.deletables else service.get_inbox())
        for id in ids[: args.limit]:
            message = await service.get(id)
            if message is not None:
                print(_format_row(message))
    elif args.command == "search":
        for message in await service.search(args.query, args.limit):
            print(_format_row(message))
    else:
        logger.error("unknown_command", command=args.command)
        return 2

    return 0


def main(args: list[str] | None = None) -> int:
    """Main entry point for the mail cache CLI.

    Args:
        args: Command-line arguments. If None, uses sys.argv.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    if args is None:
        args = sys.argv[1:]

    settings = get_settings()

    # Configure logging; stdout is reserved for command output.
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level.upper(), logging.INFO)
        ),
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
    )

    logger.info("mail_cache_started", version=__version__, debug=settings.debug)

    parser = _build_parser()
    parsed = parser.parse_args(args)

    try:
        return asyncio.run(_run(parsed, settings))
    except MailCacheError as exc:
        logger.error("command_failed", command=parsed.command, error=str(exc))
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
