"""Eviction sweep entry point, meant for cron or any external scheduler.

Example crontab line (daily at 03:00):

    0 3 * * * schema-cache-prune --max-age-days 30
"""

import argparse

import structlog

from schema_cache.api.dependencies import build_cache_service
from schema_cache.config import settings
from schema_cache.services import CacheService
from schema_cache.utils import configure_logging

logger = structlog.stdlib.get_logger()


def run_prune(cache: CacheService, max_age_days: int) -> int:
    """Run one sweep and log its outcome."""
    removed = cache.prune_old_cache(max_age_days)
    stats = cache.get_stats()
    logger.info(
        "prune.finished",
        removed=removed,
        remaining=stats.total_cached,
        max_age_days=max_age_days,
    )
    return removed


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Delete cache entries unused for too long.")
    parser.add_argument(
        "--max-age-days",
        type=int,
        default=settings.cache_max_age_days,
        help="idle age in days beyond which entries are removed (default: %(default)s)",
    )
    args = parser.parse_args(argv)
    if args.max_age_days < 0:
        parser.error("--max-age-days must not be negative")

    configure_logging(settings.log_level, settings.log_format)
    run_prune(build_cache_service(), args.max_age_days)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
