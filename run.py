#!/usr/bin/env python3
"""
mentalpoker - Server Startup Script

Usage:
    python run.py [--host HOST] [--port PORT] [--reload]
                  [--small-blind N] [--big-blind N] [--min-buy-in N] [--max-buy-in N]
"""

import argparse
import logging
import uvicorn

from mentalpoker.core.rules import TableConfig
from mentalpoker.server.app import create_app


logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="mentalpoker Server")
    parser.add_argument("--host", default="0.0.0.0", help="Host to bind to")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind to")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload (default table settings only)")
    parser.add_argument("--small-blind", type=int, default=1)
    parser.add_argument("--big-blind", type=int, default=2)
    parser.add_argument("--min-bet", type=int, default=1)
    parser.add_argument("--min-buy-in", type=int, default=20)
    parser.add_argument("--max-buy-in", type=int, default=200)
    args = parser.parse_args()

    config = TableConfig(
        small_blind=args.small_blind,
        big_blind=args.big_blind,
        min_bet=args.min_bet,
        min_buy_in=args.min_buy_in,
        max_buy_in=args.max_buy_in,
    )

    if args.reload:
        if config != TableConfig():
            logger.warning("Table settings are ignored with --reload")
        uvicorn.run(
            "mentalpoker.server.app:app",
            host=args.host,
            port=args.port,
            reload=True,
        )
    else:
        uvicorn.run(create_app(config), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
