#!/usr/bin/env python
"""
Create Daily Logs
Materialize the day's medication logs and print the day's adherence summary.
Run on day rollover or from a background refresh timer; re-running is a no-op.

Usage: python scripts/create_daily_logs.py [--date YYYY-MM-DD]
"""

import sys
import os
import asyncio
import logging
import argparse
from datetime import date

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import settings
from database import get_db_context, init_db
from exceptions import PersistenceFailure
from services.daily_log_service import daily_log_service
from services.adherence_service import adherence_service


logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format=settings.LOG_FORMAT
)
logger = logging.getLogger(__name__)


async def run(day: date) -> int:
    init_db()
    with get_db_context() as db:
        try:
            created = await daily_log_service.create_day_logs(day, db=db)
        except PersistenceFailure as e:
            logger.error(f"Daily log creation aborted: {e}")
            return 1

        summary = await adherence_service.get_today_summary(day, db=db)

    print(f"Logs created for {day}: {len(created)}")
    print(
        f"Taken {summary.taken} of {summary.total} "
        f"(skipped {summary.skipped}, pending {summary.pending_count}, "
        f"rate {summary.rate_percent}%)"
    )
    return 0


def main():
    parser = argparse.ArgumentParser(description="Create the day's medication logs")
    parser.add_argument(
        "--date",
        type=date.fromisoformat,
        default=None,
        help="Day to materialize, YYYY-MM-DD (default: today)"
    )
    args = parser.parse_args()

    sys.exit(asyncio.run(run(args.date or date.today())))


if __name__ == "__main__":
    main()
