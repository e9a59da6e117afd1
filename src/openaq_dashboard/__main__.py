"""Command-line entry point.

Usage:
    python -m openaq_dashboard serve --port 8000
    python -m openaq_dashboard sync-parameters
"""

import argparse
import sys

from openaq_dashboard.config.settings import settings
from openaq_dashboard.core.client import OpenAQClient
from openaq_dashboard.core.errors import OpenAQError
from openaq_dashboard.core.logging import get_logger, setup_logging

logger = get_logger("openaq_dashboard")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="openaq_dashboard")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8000)

    sync = sub.add_parser("sync-parameters", help="Mirror OpenAQ parameters into DuckDB")
    sync.add_argument("--db", default=settings.database.duckdb_path, help="DuckDB file path")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()

    if args.command == "serve":
        import uvicorn

        from openaq_dashboard.api.app import app

        logger.info("Starting OpenAQ Dashboard...")
        uvicorn.run(app, host=args.host, port=args.port)
        return 0

    from openaq_dashboard.storage.parameter_store import ParameterStore
    from openaq_dashboard.sync import sync_parameters

    try:
        client = OpenAQClient.from_settings(settings.openaq)
        store = ParameterStore(args.db)
    except OpenAQError as e:
        logger.error(f"Cannot start sync: {e}")
        return 2
    try:
        synced = sync_parameters(client, store)
    except OpenAQError as e:
        logger.error(f"Parameter sync failed: {e}")
        return 1
    finally:
        store.close()
    print(f"Parameters synced: {synced}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
