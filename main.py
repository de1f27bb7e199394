#!/usr/bin/env python3
"""
Boilerplate API -- development launcher.

Usage:
  python main.py
  python main.py --port 8080
  python main.py --host 0.0.0.0 --reload

Environment variables (or .env):
  SECRET_KEY        Required unless DEBUG=true. At least 32 characters.
  DATABASE_URL      SQLAlchemy URL. Defaults to a SQLite file beside this script.
  STATIC_FILES_DIR  Root for uploads; public/ and tmp/ are created on startup.
  LOG_LEVEL         DEBUG, INFO, WARNING, ... (default: INFO)
  LOG_FILE          Log to a rotating file instead of the console.
"""

import argparse
import logging

import uvicorn

from core.config import get_settings
from core.logger import configure_logging
from files.storage import ensure_directories

logger = logging.getLogger("boilerplate.main")


def main() -> None:
    settings = get_settings()

    parser = argparse.ArgumentParser(
        prog="boilerplate",
        description="Run the boilerplate REST API with uvicorn.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py
  python main.py --port 8080
  DEBUG=true python main.py --reload
        """,
    )
    parser.add_argument(
        "--host",
        default=settings.api_host,
        help=f"Interface to bind (default: {settings.api_host})",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=settings.api_port,
        help=f"Port to listen on (default: {settings.api_port})",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Restart the server when source files change (development only)",
    )
    args = parser.parse_args()

    configure_logging(settings.log_level, settings.log_file)
    ensure_directories(settings.static_files_dir)

    logger.info("Serving on %s://%s:%d", settings.api_scheme, args.host, args.port)
    uvicorn.run(
        "asgi:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
