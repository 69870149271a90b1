"""Run one query (or list tables) against the configured backend.

Examples:
  python -m query_bridge.tools.run_query "SELECT * FROM sales LIMIT 10"
  python -m query_bridge.tools.run_query --tables
  DB_TYPE=athena python -m query_bridge.tools.run_query --connect
"""
from __future__ import annotations

import argparse
import asyncio
from typing import List, Optional

import pandas as pd

from query_bridge.config.settings import load_settings
from query_bridge.db import get_adapter
from query_bridge.exceptions.errors import QueryBridgeError
from query_bridge.logging.logger import get_logger, init_logging

log = get_logger("tools.run_query")


async def _run(args: argparse.Namespace) -> int:
    settings = load_settings(args.config_dir)
    init_logging(settings.log_level, settings.log_file)
    adapter, conn = get_adapter(settings)

    if args.connect:
        await adapter.connect(conn)
        print(f"✅ Connected ({settings.db_type})")
        return 0

    if args.tables:
        for name in await adapter.list_tables(conn):
            print(name)
        return 0

    if not args.sql:
        print("❌ Nothing to run: pass SQL, --tables or --connect")
        return 1

    result = await adapter.query(args.sql, conn)
    with pd.option_context("display.max_rows", args.max_rows, "display.width", 200):
        print(result.to_frame())
    print(f"({result.row_count} rows)")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Run a query through the configured beeline/athena backend.")
    parser.add_argument("sql", nargs="?", default=None, help="Query text, forwarded verbatim.")
    parser.add_argument("--tables", action="store_true", help="List tables instead of running a query.")
    parser.add_argument("--connect", action="store_true", help="Only check that the backend is reachable.")
    parser.add_argument("--config-dir", dest="config_dir", default="config", help="Directory holding <APP_ENV>.yaml.")
    parser.add_argument("--max-rows", dest="max_rows", type=int, default=50, help="Rows to print.")
    args = parser.parse_args(argv)

    try:
        return asyncio.run(_run(args))
    except QueryBridgeError as e:
        log.error("Query failed", extra={"error_type": type(e).__name__})
        print(f"❌ {type(e).__name__}: {e}")
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
