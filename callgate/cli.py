"""Command-line interface for callgate."""

import argparse
import json
import logging
import sys

from callgate.config import get_settings
from callgate.core.errors import FunctionCallError


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    settings = get_settings()

    parser = argparse.ArgumentParser(
        prog="callgate",
        description="Invoke remote functions embedded in JSON requests",
    )
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 0.1.0",
    )
    parser.add_argument(
        "--call",
        metavar="EXPR",
        help="Call expression to invoke, e.g. 'isEven(n)'",
    )
    parser.add_argument(
        "--object",
        default="{}",
        help="Current JSON object the arguments are resolved against",
    )
    parser.add_argument(
        "--registry",
        help="JSON file of function registry rows (default: REGISTRY_PATH)",
    )
    parser.add_argument(
        "--method",
        default="GET",
        help="Request method of the caller (default: GET)",
    )
    parser.add_argument("--tag", default=None, help="Tag of the caller")
    parser.add_argument(
        "--api-version",
        type=int,
        default=0,
        help="API version of the caller (default: 0)",
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Start the API server",
    )
    parser.add_argument(
        "--host",
        default=settings.api_host,
        help=f"API server host (default: {settings.api_host}, from API_HOST)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=settings.api_port,
        help=f"API server port (default: {settings.api_port}, from API_PORT)",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.serve:
        try:
            import uvicorn

            from callgate.api.app import app

            uvicorn.run(app, host=args.host, port=args.port)
        except ImportError as e:
            print(f"Error: {e}. Make sure uvicorn is installed.", file=sys.stderr)
            return 1
    elif args.call:
        return _invoke(args)
    else:
        parser.print_help()

    return 0


def _invoke(args: argparse.Namespace) -> int:
    """Invoke one call expression and print its JSON result."""
    from callgate.core.engine import FunctionParser
    from callgate.core.registry import FunctionRegistry, get_registry

    try:
        current_object = json.loads(args.object)
    except json.JSONDecodeError as e:
        print(f"Error: --object is not valid JSON: {e}", file=sys.stderr)
        return 2

    if args.registry:
        registry = FunctionRegistry()
        registry.load_file(args.registry)
    else:
        registry = get_registry()

    function_parser = FunctionParser(
        method=args.method.upper(),
        tag=args.tag,
        version=args.api_version,
        registry=registry,
    )
    try:
        result = function_parser.invoke(args.call, current_object)
    except FunctionCallError as e:
        print(f"{e.kind}: {e.message}", file=sys.stderr)
        return 1

    print(json.dumps(result))
    return 0


if __name__ == "__main__":
    sys.exit(main())
