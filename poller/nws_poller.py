#!/usr/bin/env python3
"""
EAS Station - Emergency Alert System
Copyright (c) 2025 Timothy Kramer (KR8MER)

This file is part of EAS Station.

EAS Station is dual-licensed software:
- GNU Affero General Public License v3 (AGPL-3.0) for open-source use
- Commercial License for proprietary use

You should have received a copy of both licenses with this software.
For more information, see LICENSE and LICENSE-COMMERCIAL files.

IMPORTANT: This software cannot be rebranded or have attribution removed.
See NOTICE file for complete terms.

Repository: https://github.com/KR8MER/eas-station
"""

"""
NWS alert poller entry point for schedulers.

Runs one gated poll cycle (cron, systemd timers) or ticks forever with
``--continuous``. The importer's cadence gate decides whether a tick actually
polls, so the tick may be shorter than the configured poll interval.

Database Configuration (via environment variables or --database-url):
  POSTGRES_HOST      - Database host (default: host.docker.internal)
  POSTGRES_PORT      - Database port (default: 5432)
  POSTGRES_DB        - Database name (defaults to POSTGRES_USER)
  POSTGRES_USER      - Database user (default: postgres)
  POSTGRES_PASSWORD  - Database password (optional, recommended)
  DATABASE_URL       - Or provide full connection string to override individual vars
"""

import argparse
import json
import logging
import os
import sys
import time

CURRENT_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, os.pardir))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from app import build_database_url_from_env, create_app  # noqa: E402
from app_utils import format_local_datetime, utc_now  # noqa: E402
from poller.alert_importer import poll_alerts  # noqa: E402

MIN_TICK_SECONDS = 30


def main():
    parser = argparse.ArgumentParser(description='NWS Alert Importer poller')
    parser.add_argument('--database-url',
                        default=build_database_url_from_env(),
                        help='SQLAlchemy DB URL (defaults from env POSTGRES_* or DATABASE_URL)')
    parser.add_argument('--log-level', default=os.getenv('LOG_LEVEL', 'INFO'),
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], help='Logging level')
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument('--once', action='store_true', help='Run a single gated poll cycle (default)')
    mode.add_argument('--continuous', action='store_true', help='Run continuously')
    parser.add_argument('--tick', type=int, default=int(os.getenv('NWS_POLL_TICK_SEC', '60')),
                        help='Seconds between poll attempts in continuous mode (default: 60, minimum: 30)')
    args = parser.parse_args()

    # Logging to stdout (container-friendly)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)]
    )
    logger = logging.getLogger(__name__)

    logger.info("Starting NWS Alert Poller")
    logger.info(f"Startup time: {format_local_datetime(utc_now())}")

    app = create_app({'SQLALCHEMY_DATABASE_URI': args.database_url})

    with app.app_context():
        if not args.continuous:
            print(json.dumps(poll_alerts(), indent=2))
            return

        tick = max(MIN_TICK_SECONDS, args.tick)
        if tick != args.tick:
            logger.warning(f"Tick {args.tick}s is below minimum; using {tick}s")
        logger.info(f"Running continuously with {tick} second ticks")
        while True:
            try:
                result = poll_alerts()
                if result.get('status') != 'skipped':
                    print(json.dumps(result, indent=2))
                time.sleep(tick)
            except KeyboardInterrupt:
                logger.info("Received interrupt signal, shutting down")
                break
            except Exception as e:
                logger.exception(f"Error in continuous polling: {e}")
                logger.info("Sleeping for 60 seconds before retry...")
                time.sleep(60)


if __name__ == '__main__':
    main()
