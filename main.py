"""
Main entry point for the Trench API server.

Usage:
    python main.py                         # Serve on API_HOST:API_PORT
    python main.py --port 8080             # Override port
    python main.py --init-db               # Create tables and exit
"""

import argparse
import asyncio
import sys

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from config import settings
from database import Database, init_database


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Trench academic administration API")
    parser.add_argument("--host", default=settings.api_host, help="Bind address")
    parser.add_argument("--port", type=int, default=settings.api_port, help="Bind port")
    parser.add_argument("--reload", action="store_true", default=settings.api_reload,
                        help="Reload on code changes")
    parser.add_argument("--init-db", action="store_true",
                        help="Create database tables and exit")
    return parser.parse_args(argv)


async def _init_db():
    database = Database.from_settings(settings)
    try:
        await init_database(settings, database)
    finally:
        await database.dispose()
    return database.describe()


def main(argv=None):
    args = parse_args(argv)

    if args.init_db:
        target = asyncio.run(_init_db())
        print(f"Tables created on {target}")
        return 0

    issues = settings.validate_production_config()
    for issue in issues:
        print(f"⚠️  {issue}", file=sys.stderr)

    import uvicorn

    uvicorn.run(
        "api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
