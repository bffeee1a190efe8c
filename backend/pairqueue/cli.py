"""pairqueue-reap — run the stale-entry reaper once (cron / k8s CronJob entry point).

Usage:
    pairqueue-reap                    # TTL from QUEUE_TTL_SECONDS
    pairqueue-reap --ttl-seconds 600
"""

import argparse
import asyncio
import json

from pairqueue.config import Settings, get_settings
from pairqueue.core.errors import PairQueueError
from pairqueue.db.session import create_session_factory
from pairqueue.infrastructure.observability import setup_logging
from pairqueue.infrastructure.transactions import TransactionRunner
from pairqueue.services.reaper import ReapReport, StaleEntryReaper


async def reap_once(settings: Settings, ttl_seconds: int) -> ReapReport:
    engine, session_factory = create_session_factory(settings.database_url)
    try:
        runner = TransactionRunner(
            session_factory,
            max_attempts=settings.txn_max_attempts,
            base_delay_ms=settings.txn_base_delay_ms,
            max_delay_ms=settings.txn_max_delay_ms,
        )
        reaper = StaleEntryReaper(runner, batch_size=settings.reaper_batch_size)
        return await reaper.reap(ttl_seconds)
    finally:
        await engine.dispose()


def cmd_reap(args: argparse.Namespace) -> None:
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    ttl = args.ttl_seconds or settings.queue_ttl_seconds
    try:
        report = asyncio.run(reap_once(settings, ttl))
    except PairQueueError as exc:
        print(f"Reap failed: {exc.message}")
        raise SystemExit(1)
    print(json.dumps({
        "cutoff": report.cutoff.isoformat(),
        "deleted": report.deleted,
        "batches": report.batches,
    }))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pairqueue-reap",
        description="Delete queue entries older than the TTL",
    )
    parser.add_argument(
        "--ttl-seconds", type=int, default=None,
        help="Override QUEUE_TTL_SECONDS for this run",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.ttl_seconds is not None and args.ttl_seconds <= 0:
        parser.error("--ttl-seconds must be positive")
    cmd_reap(args)


if __name__ == "__main__":
    main()
