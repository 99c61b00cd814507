#!/usr/bin/env python3
"""
cleanup_cli.py: operator entry point for vector retention cleanup

Retires vectors that are older than the retention window AND scored below
the performance threshold, for selected users or for every user. Meant to
be run by hand or from a weekly scheduler:

    brand-rag-cleanup --all-users
    brand-rag-cleanup --user-id u1 --user-id u2 --keep-days 30

Exit codes: 0 on success, 1 when a cleanup failed, 2 on bad arguments.
"""

import argparse
import asyncio
import json
from typing import Any, Dict, Optional, Sequence

from brand_rag.core.config import settings
from brand_rag.core.container import ServiceContainer
from brand_rag.core.errors import PersistenceFailure
from brand_rag.core.logging import get_logger, setup_logging

logger = get_logger(__name__)


async def run_cleanup(args: argparse.Namespace, container: Optional[ServiceContainer] = None) -> int:
    owns_container = container is None
    if container is None:
        container = ServiceContainer()
        try:
            await container.initialize(settings)
        except Exception as exc:
            print(f"Failed to initialize services: {exc}")
            return 1

    engine = container.rag_engine
    summary: Dict[str, Any] = {"total_cleaned": 0, "users_processed": 0, "failed_users": []}

    try:
        if args.all_users:
            summary = await engine.cleanup_all_users_vectors(args.keep_days)
        else:
            for user_id in args.user_ids:
                try:
                    summary["total_cleaned"] += await engine.cleanup_old_vectors(user_id, args.keep_days)
                    summary["users_processed"] += 1
                except PersistenceFailure as exc:
                    logger.error(f"Cleanup failed for user {user_id}: {exc.message}")
                    summary["failed_users"].append(user_id)
    except PersistenceFailure as exc:
        print(f"Cleanup failed: {exc.message}")
        return 1
    finally:
        if owns_container:
            await container.shutdown()

    print(json.dumps(summary, indent=2))
    return 1 if summary["failed_users"] else 0


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser("brand-rag-cleanup", formatter_class=argparse.ArgumentDefaultsHelpFormatter)
    target = p.add_mutually_exclusive_group(required=True)
    target.add_argument("--user-id", dest="user_ids", action="append", help="User to clean up (repeatable)")
    target.add_argument("--all-users", action="store_true", help="Clean up every user")
    p.add_argument("--keep-days", type=int, default=None, help="Override the configured retention window")
    p.add_argument("--log-level", default=settings.log_level, help="Log level (DEBUG, INFO, WARNING, ERROR)")

    args = p.parse_args(argv)
    if args.keep_days is not None and args.keep_days < 0:
        p.error("--keep-days must be >= 0")
    return args


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level, settings.log_format, settings.log_file)
    try:
        return asyncio.run(run_cleanup(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
