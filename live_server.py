#!/usr/bin/env python3
"""
FPL Live Server CLI

Polls the Fantasy Premier League API, pushes live team state to WebSocket
viewers and sends Web Push notifications for scoring events.

VAPID credentials come from the environment (or a .env file):
    VAPID_PUBLIC_KEY, VAPID_PRIVATE_KEY, VAPID_EMAIL

Usage:
    python live_server.py
    python live_server.py --port 3001 --log-level DEBUG
    python live_server.py --env-file prod.env --log-dir logs
"""

import argparse
import logging
import sys
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from fpllive.config import ConfigurationError, clear_config_cache, get_config
from fpllive.logging_config import setup_logging
from fpllive.server import create_app


def main():
    parser = argparse.ArgumentParser(description="FPL live scoring and notification server")
    parser.add_argument(
        "--host",
        default=None,
        help="Interface to bind (default: HOST or 0.0.0.0)",
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on (default: PORT or 3001)",
    )
    parser.add_argument(
        "--env-file",
        default=None,
        help="Load environment variables from this file before reading config",
    )
    parser.add_argument(
        "--log-level", "-l",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: FPLLIVE_LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--log-dir",
        default=None,
        help="Also write logs to a timestamped file in this directory",
    )

    args = parser.parse_args()

    if args.env_file:
        if not Path(args.env_file).exists():
            print(f"❌ Env file not found: {args.env_file}")
            sys.exit(1)
        load_dotenv(args.env_file, override=True)
        clear_config_cache()

    try:
        settings = get_config()
    except ConfigurationError as e:
        print(f"❌ {e}")
        sys.exit(1)

    log_level = args.log_level or settings.log_level.upper()
    log_dir = args.log_dir or settings.log_dir
    logger = setup_logging(
        log_dir=Path(log_dir) if log_dir else None,
        level=getattr(logging, log_level, logging.INFO),
        log_to_file=bool(log_dir),
    )

    try:
        app = create_app(settings)
    except ConfigurationError as e:
        logger.error(f"Refusing to start: {e}")
        sys.exit(1)

    host = args.host or settings.host
    port = args.port or settings.port
    logger.info(f"Starting FPL live server on {host}:{port}")
    uvicorn.run(app, host=host, port=port, log_config=None)


if __name__ == "__main__":
    main()
