#!/usr/bin/env python3
"""
Run the preventive alert check once and exit.
Meant for an external cron when the in-process scheduler is disabled.
"""

import argparse
import logging
import sys
from pathlib import Path

# Add backend directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from fleetops.core.config import settings
from fleetops.core.database import init_db
from fleetops.services.scheduler import build_scheduler


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Generate and dispatch preventive maintenance alerts")
    parser.add_argument("--init-db", action="store_true", help="create missing tables before the check")
    args = parser.parse_args(argv)

    logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")

    if args.init_db:
        init_db()

    result = build_scheduler().run_once()
    if result is None:
        print("Another alert check is running, nothing done.")
        return 0

    print(f"Generated {result.generated} alerts, {result.carried_over} carried over (notified: {result.notified})")
    if result.generated == 0 and result.carried_over == 0:
        return 0
    return 0 if result.notified else 1


if __name__ == "__main__":
    sys.exit(main())
