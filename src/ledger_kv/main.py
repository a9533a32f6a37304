"""Ledger KV main entry point."""

from __future__ import annotations

import argparse
import os
import sys

import uvicorn

from ledger_kv.service.logging import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ledger-kv",
        description="Ledger KV - key-value access layer over an ordered ledger state store",
    )
    parser.add_argument(
        "--host",
        default="0.0.0.0",
        help="Host to bind to (default: 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.environ.get("LEDGERKV_PORT", "7051")),
        help="Port to listen on (default: 7051)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )
    parser.add_argument(
        "--log-level",
        default="info",
        choices=["debug", "info", "warning", "error", "critical"],
        help="Log level (default: info)",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Force JSON log output (default: auto-detect)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the Ledger KV service."""
    args = build_parser().parse_args(argv)

    configure_logging(
        level=args.log_level.upper(),
        json_output=args.json_logs if args.json_logs else None,
    )

    os.environ["LEDGERKV_PORT"] = str(args.port)

    try:
        uvicorn.run(
            "ledger_kv.service.app:create_app_from_env",
            host=args.host,
            port=args.port,
            reload=args.reload,
            log_level=args.log_level,
            factory=True,
        )
        return 0
    except KeyboardInterrupt:
        print("\nShutting down...")
        return 0


if __name__ == "__main__":
    sys.exit(main())
