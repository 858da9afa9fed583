"""CLI entry point for Eventboard."""

import argparse
import asyncio
import json
import logging
import sys
import traceback
from datetime import datetime
from pathlib import Path

from .config import Config, load_config
from .sync import EventTransport, SyncController


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "component": record.name,
            "message": record.getMessage(),
        }

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = "".join(traceback.format_exception(*record.exc_info))

        # Safe JSON serialization
        try:
            return json.dumps(log_data)
        except (TypeError, ValueError):
            log_data["message"] = str(log_data["message"])
            if "exception" in log_data:
                log_data["exception"] = str(log_data["exception"])
            return json.dumps(log_data)


def setup_logging(verbose: bool = False, log_level: str | None = None, json_output: bool = False) -> None:
    """Configure logging.

    Args:
        verbose: Enable debug logging (ignored if log_level is set).
        log_level: Explicit log level (warning, info, debug).
        json_output: Output logs as JSON lines for machine parsing.
    """
    if log_level:
        level_map = {
            "warning": logging.WARNING,
            "info": logging.INFO,
            "debug": logging.DEBUG,
        }
        level = level_map.get(log_level, logging.INFO)
    else:
        level = logging.DEBUG if verbose else logging.INFO

    handler = logging.StreamHandler()
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)

    logging.basicConfig(
        level=level,
        handlers=[handler],
    )


def _build_controller(args: argparse.Namespace) -> tuple[SyncController, Config]:
    config = load_config(args.config)
    transport = EventTransport.from_config(config.remote)
    return SyncController(transport), config


def _parse_fields(pairs: list[str]) -> dict[str, str]:
    """Parse ``key=value`` pairs from the command line."""
    fields = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Expected key=value, got {pair!r}")
        fields[key.strip()] = value
    return fields


async def cmd_serve(args: argparse.Namespace) -> int:
    """Start the web UI."""
    try:
        from .dashboard import create_app

        import uvicorn
    except ImportError as e:
        print(f"Dashboard dependencies not installed: {e}", file=sys.stderr)
        print("Install with: pip install eventboard[dashboard]", file=sys.stderr)
        return 1

    controller, config = _build_controller(args)
    host = args.host or config.dashboard.host
    port = args.port or config.dashboard.port

    print("Starting Eventboard")
    print(f"Remote: {config.remote.base_url}")
    print(f"URL: http://{host}:{port}")

    app = create_app(config, controller)

    try:
        verbose = getattr(args, "verbose", False)
        config_uvicorn = uvicorn.Config(
            app,
            host=host,
            port=port,
            log_level="info" if verbose else "warning",
        )
        server = uvicorn.Server(config_uvicorn)
        await server.serve()
    finally:
        await controller.close()

    return 0


async def cmd_list(args: argparse.Namespace) -> int:
    """Fetch the collection once and print the filtered events."""
    controller, _ = _build_controller(args)

    try:
        view = await controller.get_view(args.query)
    finally:
        await controller.close()

    if args.output_json:
        print(json.dumps(view.to_dict(), indent=2))
        return 1 if view.has_error else 0

    if view.has_error:
        print(view.message, file=sys.stderr)
        return 1

    if not view.events:
        print("No events found.")
        return 0

    for event in view.events:
        extra = ", ".join(
            str(event.get(name)) for name in ("date", "location") if event.get(name)
        )
        line = f"  [{event.id}] {event.title}"
        if extra:
            line += f" ({extra})"
        print(line)

    print(f"\n{len(view.events)} of {view.total} events")
    return 0


async def cmd_add(args: argparse.Namespace) -> int:
    """Submit a new event."""
    try:
        payload = _parse_fields(args.field or [])
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    payload["title"] = args.title

    controller, _ = _build_controller(args)
    try:
        result = await controller.submit_event(payload)
    finally:
        await controller.close()

    if not result.ok:
        print(f"Failed to add event: {result.error.describe()}", file=sys.stderr)
        return 1

    print(f"Added event [{result.value.id}] {result.value.title}")
    return 0


async def cmd_status(args: argparse.Namespace) -> int:
    """Check connectivity to the remote event service."""
    config = load_config(args.config)
    transport = EventTransport.from_config(config.remote)

    try:
        connected = await transport.check_connection()
    finally:
        await transport.close()

    status_data = {
        "timestamp": datetime.now().isoformat(),
        "remote": {
            "base_url": config.remote.base_url,
            "read_path": config.remote.read_path,
            "write_path": config.remote.write_path,
            "timeout_seconds": config.remote.timeout_seconds,
            "connected": connected,
        },
    }

    if args.output_json:
        print(json.dumps(status_data, indent=2))
    else:
        mark = "\033[92m✓ connected\033[0m" if connected else "\033[91m✗ unreachable\033[0m"
        print(f"Remote: {config.remote.base_url}  {mark}")

    return 0 if connected else 1


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="eventboard",
        description="Browse, filter and add events from a remote event service",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to config file (YAML)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["warning", "info", "debug"],
        default=None,
        help="Set log level explicitly (overrides -v/--verbose)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output logs as JSON for machine parsing",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Start the web UI")
    serve_parser.add_argument(
        "-p", "--port",
        type=int,
        default=None,
        help="Port to bind (default: from config, 8080)",
    )
    serve_parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Host to bind (default: from config, 127.0.0.1)",
    )
    serve_parser.set_defaults(func=cmd_serve)

    # List command
    list_parser = subparsers.add_parser("list", help="List events")
    list_parser.add_argument(
        "-q", "--query",
        type=str,
        default="",
        help="Only show events matching this text",
    )
    list_parser.add_argument(
        "--json",
        dest="output_json",
        action="store_true",
        help="Output the view as JSON",
    )
    list_parser.set_defaults(func=cmd_list)

    # Add command
    add_parser = subparsers.add_parser("add", help="Add an event")
    add_parser.add_argument(
        "-t", "--title",
        required=True,
        help="Event title",
    )
    add_parser.add_argument(
        "-f", "--field",
        action="append",
        metavar="KEY=VALUE",
        help="Extra event field, may be repeated (e.g. -f location=Hall)",
    )
    add_parser.set_defaults(func=cmd_add)

    # Status command
    status_parser = subparsers.add_parser("status", help="Check connectivity status")
    status_parser.add_argument(
        "--json",
        dest="output_json",
        action="store_true",
        help="Output status as JSON",
    )
    status_parser.set_defaults(func=cmd_status)

    args = parser.parse_args()

    setup_logging(args.verbose, args.log_level, args.json)

    if not args.command:
        parser.print_help()
        return 1

    return asyncio.run(args.func(args))


if __name__ == "__main__":
    sys.exit(main())
