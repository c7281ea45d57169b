"""Command-line interface for feed_navigator."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Callable, Dict, List, Optional, Sequence
from urllib.parse import urlparse

from pydantic import ValidationError

from . import __version__, config, log_setup, service
from .exceptions import FeedConfigError, FeedFetchError, NavigationError
from .fetcher import FetchOrchestrator
from .models import Item
from .navigation import NavigationStack

_LOGGER = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FETCH_FAILED = 1
EXIT_INVALID_ARGS = 2

FOLDER_MARKER = "[DIR]"
LEAF_MARKER = "[>] "

BROWSE_HELP = "number = open folder, b = back, r = reset, t N = jump to breadcrumb N, q = quit"


def _validate_feed_url(value: Optional[str], errors: List[str], label: str = "URL") -> None:
    if not value:
        return
    parsed_obj = urlparse(value)
    if parsed_obj.scheme not in ("http", "https"):
        errors.append(f"{label} must be http or https: {value}")
    if not parsed_obj.netloc:
        errors.append(f"{label} must have a valid hostname: {value}")


def validate_args(args: argparse.Namespace) -> None:
    """Validate parsed CLI arguments and raise ValueError when invalid."""
    errors: List[str] = []

    if args.command in ("fetch", "items") and not (args.url or "").strip():
        errors.append("URL is required")
    _validate_feed_url(getattr(args, "url", None), errors)
    _validate_feed_url(getattr(args, "referer", None), errors, label="--referer")

    if args.timeout is not None and args.timeout <= 0:
        errors.append(f"--timeout must be positive, got: {args.timeout}")

    port = getattr(args, "port", None)
    if port is not None and not 0 < port < 65536:
        errors.append(f"--port must be between 1 and 65535, got: {port}")

    if errors:
        raise ValueError("Invalid input parameters:\n  " + "\n  ".join(errors))


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", help="Path to a JSON or YAML configuration file")
    parser.add_argument("--log-level", default=None, help="Logging level (default: INFO)")
    parser.add_argument("--log-file", default=None, help="Also write logs to this file")
    parser.add_argument(
        "--timeout", type=int, default=None, help="Per-attempt request timeout in seconds"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="feed-navigator",
        description="Browse nested RSS/Atom feeds as a folder tree.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    fetch_parser = subparsers.add_parser("fetch", help="Fetch a feed and print its XML")
    fetch_parser.add_argument("url", help="Feed URL")
    fetch_parser.add_argument("--referer", default=None, help="Referer hint")
    _add_common_arguments(fetch_parser)

    items_parser = subparsers.add_parser("items", help="List the classified items of a feed")
    items_parser.add_argument("url", help="Feed URL")
    items_parser.add_argument("--referer", default=None, help="Referer hint")
    items_parser.add_argument("--json", action="store_true", help="Print items as JSON")
    _add_common_arguments(items_parser)

    browse_parser = subparsers.add_parser("browse", help="Browse a feed tree interactively")
    browse_parser.add_argument("url", nargs="?", default=None, help="Root feed URL")
    browse_parser.add_argument("--title", default=None, help="Root breadcrumb title")
    _add_common_arguments(browse_parser)

    serve_parser = subparsers.add_parser("serve", help="Run the feed acquisition endpoint")
    serve_parser.add_argument("--host", default=None, help="Bind address")
    serve_parser.add_argument("--port", type=int, default=None, help="Port")
    _add_common_arguments(serve_parser)

    return parser


def _build_config(args: argparse.Namespace) -> config.Config:
    """Merge the config file (if any) with CLI overrides."""
    data: Dict[str, Any] = {}
    if args.config:
        try:
            data.update(config.load_config_file(args.config))
        except ValueError as exc:
            raise FeedConfigError(
                str(exc),
                config_key="config",
                suggestion="Pass an existing .json, .yaml or .yml file with --config",
            ) from exc

    overrides = {
        "log_level": args.log_level,
        "log_file": args.log_file,
        "timeout": args.timeout,
        "host": getattr(args, "host", None),
        "port": getattr(args, "port", None),
    }
    data.update({key: value for key, value in overrides.items() if value is not None})
    try:
        return config.Config(**data)
    except ValidationError as exc:
        raise FeedConfigError(f"Invalid configuration: {exc}") from exc


def format_item(index: int, item: Item) -> str:
    marker = FOLDER_MARKER if item.is_folder else LEAF_MARKER
    return f"{index:>3}. {marker} {item.title}  <{item.url}>"


def _print_level(stack: NavigationStack, out: Callable[[str], None]) -> None:
    out(" > ".join(stack.breadcrumbs()))
    level = stack.current
    if level.is_empty:
        out("Folder is empty.")
    for index, item in enumerate(level.items, start=1):
        out(format_item(index, item))


def browse(
    cfg: config.Config,
    url: Optional[str] = None,
    title: Optional[str] = None,
    *,
    orchestrator: Optional[FetchOrchestrator] = None,
    input_fn: Callable[[str], str] = input,
    out: Callable[[str], None] = print,
) -> int:
    """Interactive drill-down loop over a feed tree."""
    orchestrator = orchestrator or FetchOrchestrator(cfg)
    root_url = url or cfg.root_feed_url
    root_title = title or cfg.root_title
    try:
        stack = service.load_root(url=root_url, title=root_title, orchestrator=orchestrator)
    except FeedFetchError as exc:
        out(f"ERROR: {exc}")
        return EXIT_FETCH_FAILED

    out(BROWSE_HELP)
    while True:
        _print_level(stack, out)
        try:
            command = input_fn("> ").strip().lower()
        except EOFError:
            return EXIT_OK

        try:
            if command in ("q", "quit"):
                return EXIT_OK
            if command == "b":
                stack = stack.pop()
            elif command == "r":
                stack = stack.reset(stack.root)
            elif command.startswith("t "):
                stack = stack.truncate_to(int(command[2:].strip()))
            elif command.isdigit():
                items = stack.current.items
                position = int(command)
                if not 1 <= position <= len(items):
                    out(f"No item {position}")
                    continue
                item = items[position - 1]
                if not item.is_folder:
                    out(f"Playable item: {item.title} <{item.url}>")
                    continue
                stack = service.open_item(stack, item, orchestrator=orchestrator)
            else:
                out(BROWSE_HELP)
        except FeedFetchError as exc:
            out(f"ERROR: {exc}")
        except (NavigationError, IndexError, ValueError) as exc:
            out(str(exc))


def _run_fetch(args: argparse.Namespace, cfg: config.Config) -> int:
    try:
        text = service.fetch_rss(args.url, args.referer, cfg)
    except FeedFetchError as exc:
        _LOGGER.error("Fetch failed: %s", exc)
        return EXIT_FETCH_FAILED
    print(text)
    return EXIT_OK


def _run_items(args: argparse.Namespace, cfg: config.Config) -> int:
    result = service.list_items(args.url, args.referer, cfg)
    if not result.success:
        _LOGGER.error("Fetch failed: %s", result.error)
        return EXIT_FETCH_FAILED
    if args.json:
        payload = {
            "url": result.url,
            "title": result.title,
            "degraded": result.degraded,
            "parseError": result.parse_error,
            "items": [item.to_dict() for item in result.items],
        }
        print(json.dumps(payload, indent=2, ensure_ascii=False))
        return EXIT_OK
    if result.title:
        print(result.title)
    if not result.items:
        print("Folder is empty.")
    for index, item in enumerate(result.items, start=1):
        print(format_item(index, item))
    return EXIT_OK


def _run_serve(cfg: config.Config) -> int:
    import uvicorn

    from .server import create_app

    uvicorn.run(create_app(cfg), host=cfg.host, port=cfg.port, log_level=cfg.log_level.lower())
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        validate_args(args)
        cfg = _build_config(args)
    except (ValueError, FeedConfigError) as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_INVALID_ARGS

    log_setup.configure_logging(cfg)

    if args.command == "fetch":
        return _run_fetch(args, cfg)
    if args.command == "items":
        return _run_items(args, cfg)
    if args.command == "browse":
        return browse(cfg, args.url, args.title)
    return _run_serve(cfg)


if __name__ == "__main__":
    raise SystemExit(main())
