#!/usr/bin/env python3
"""
Enable running shopgate commands via: python -m shopgate

Usage:
    python -m shopgate check --shop demo.myshopify.com --token shpat_xxx
    python -m shopgate cost query.graphql
"""

import argparse
import asyncio
import json
import os
import sys
from pathlib import Path
from typing import Optional

from shopgate.config import get_gateway_config
from shopgate.cost import estimate_query_cost
from shopgate.gateway import create_admin_api
from shopgate.logging_config import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="shopgate", description="Shopify Admin API gateway tools")
    parser.add_argument("--log-level", default=None, help="Log level (default: SHOPGATE_LOG_LEVEL)")
    sub = parser.add_subparsers(dest="command", required=True)

    check = sub.add_parser("check", help="Test a shop connection and show its call budget")
    check.add_argument("--shop", default=os.environ.get("SHOPIFY_SHOP_DOMAIN"))
    check.add_argument("--token", default=os.environ.get("SHOPIFY_ACCESS_TOKEN"))

    cost = sub.add_parser("cost", help="Estimate the cost score of a GraphQL document")
    cost.add_argument("path", help="GraphQL file, or '-' for stdin")
    return parser


async def run_check(shop: Optional[str], token: Optional[str]) -> int:
    if not shop or not token:
        print("ERROR: --shop and --token (or SHOPIFY_SHOP_DOMAIN/SHOPIFY_ACCESS_TOKEN) are required")
        return 2

    gateway = await create_admin_api("cli", access_token=token, shop_domain=shop)
    if gateway is None:
        print("ERROR: could not configure the gateway")
        return 1

    async with gateway:
        ok = await gateway.test_connection()
        state = gateway.get_rate_limit_info()

    print(f"Shop: {gateway.shop_domain}")
    print(f"API version: {gateway.config.api_version}")
    print(f"Connection: {'OK' if ok else 'FAILED'}")
    if state is not None:
        print(f"Call budget: {state.calls_remaining}/{state.call_limit} remaining")
    return 0 if ok else 1


def run_cost(path: str) -> int:
    query = sys.stdin.read() if path == "-" else Path(path).read_text(encoding="utf-8")
    estimate = estimate_query_cost(query)
    threshold = get_gateway_config().cost_warning_threshold
    print(
        json.dumps(
            {
                "field_count": estimate.field_count,
                "connection_count": estimate.connection_count,
                "score": estimate.score,
                "exceeds_threshold": estimate.score > threshold,
            },
            indent=2,
        )
    )
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(level=args.log_level, json_output=False)

    if args.command == "check":
        return asyncio.run(run_check(args.shop, args.token))
    return run_cost(args.path)


if __name__ == "__main__":
    sys.exit(main())
