"""
Batch settlement CLI.

Commands:
    batchsettle serve [--host H] [--port P]       Run the HTTP gateway
    batchsettle batch-id POOL_ID [--timestamp T]  Derive a batch id for a pool
    batchsettle submit URL REQUEST_FILE           POST a batch request JSON file
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Dict, List, Optional

from batchsettle.protocol.errors import SettlementError
from batchsettle.utils.logging import configure_logging


def _load_json(path: str) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        print(f"Cannot read request file {path}: {e}", file=sys.stderr)
        sys.exit(1)


def cmd_serve(args) -> None:
    import uvicorn

    from batchsettle.core.settings import get_settings
    from batchsettle.gateway.app import create_app_from_settings

    settings = get_settings()
    configure_logging(settings.runtime.log_level)

    try:
        app = create_app_from_settings(settings)
    except SettlementError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    uvicorn.run(
        app,
        host=args.host or settings.gateway.host,
        port=args.port or settings.gateway.port,
        log_level=settings.runtime.log_level.lower(),
    )


def cmd_batch_id(args) -> None:
    from batchsettle.transport.http import generate_batch_id

    try:
        print(generate_batch_id(args.pool_id, args.timestamp))
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def cmd_submit(args) -> None:
    from batchsettle.transport.http import SettlementClient

    configure_logging("WARNING")
    payload = _load_json(args.request_file)
    client = SettlementClient(args.url, api_key=args.api_key, timeout=args.timeout)

    try:
        result = client.submit(payload)
    except SettlementError as e:
        print(f"Settlement failed: {e}", file=sys.stderr)
        sys.exit(1)

    print(json.dumps(result, indent=2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="batchsettle", description="Batch settlement executor")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP gateway")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)
    serve.set_defaults(func=cmd_serve)

    batch_id = sub.add_parser("batch-id", help="Derive a batch id for a pool")
    batch_id.add_argument("pool_id", help="32-byte pool id (0x hex)")
    batch_id.add_argument("--timestamp", type=int, default=None, help="Unix seconds (default: now)")
    batch_id.set_defaults(func=cmd_batch_id)

    submit = sub.add_parser("submit", help="POST a batch request file to an executor")
    submit.add_argument("url", help="Executor base URL")
    submit.add_argument("request_file", help="Path to a batch request JSON file")
    submit.add_argument("--api-key", default=None)
    submit.add_argument("--timeout", type=float, default=10.0)
    submit.set_defaults(func=cmd_submit)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
