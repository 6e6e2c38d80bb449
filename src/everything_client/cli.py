"""CLI entry point for everything-client."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

from everything_client.adapters.base.exceptions import EverythingError
from everything_client.client.client import EverythingClient, create_client
from everything_client.config.settings import ClientSettings
from everything_client.models.query import SearchOptions
from everything_client.models.result import FileChange, SearchResult


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    settings = _load_settings(args)

    from everything_client.observability.logging import setup_logging

    setup_logging(settings.observability)

    try:
        client = create_client(settings)
        exit_code = asyncio.run(_dispatch(client, args))
    except EverythingError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        exit_code = 130

    sys.exit(exit_code)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="everything",
        description="everything-client — Query the Everything search engine over CLI, IPC or HTTP",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to YAML configuration file",
    )
    parser.add_argument(
        "--adapter",
        "-a",
        choices=["cli", "ipc", "http", "auto"],
        default=None,
        help="Transport to use (overrides config)",
    )
    parser.add_argument("--server-url", type=str, default=None, help="Everything HTTP server URL")
    parser.add_argument("--username", type=str, default=None, help="HTTP basic-auth username")
    parser.add_argument("--password", type=str, default=None, help="HTTP basic-auth password")
    parser.add_argument("--cli-path", type=str, default=None, help="Path to es.exe")
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["debug", "info", "warning", "error"],
        default=None,
        help="Log level (overrides config)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"everything-client {_get_version()}",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    search = commands.add_parser("search", help="Search for files and directories")
    search.add_argument("query", help="Search query in Everything syntax")
    search.add_argument("--max-results", "-n", type=int, default=None, help="Maximum number of results")
    search.add_argument("--offset", "-o", type=int, default=None, help="Offset of the first result")
    search.add_argument(
        "--sort-by",
        choices=["name", "path", "size", "date", "run-count"],
        default=None,
        help="Sort field",
    )
    search.add_argument("--sort-order", choices=["asc", "desc"], default="asc", help="Sort direction")
    search.add_argument("--case", action="store_true", help="Match case")
    search.add_argument("--whole-word", action="store_true", help="Match whole words")
    search.add_argument("--regex", action="store_true", help="Treat the query as a regular expression")
    search.add_argument("--match-path", action="store_true", help="Match against full paths")
    search.add_argument("--json", action="store_true", help="Print results as JSON lines")

    commands.add_parser("version", help="Print the Everything engine version")
    commands.add_parser("status", help="Print index status")
    commands.add_parser("rebuild", help="Ask Everything to rebuild its index")

    monitor = commands.add_parser("monitor", help="Print file changes as they are detected")
    monitor.add_argument(
        "--duration",
        "-d",
        type=float,
        default=None,
        help="Stop after this many seconds (default: run until interrupted)",
    )

    return parser


def _load_settings(args: argparse.Namespace) -> ClientSettings:
    if args.config:
        config_path = Path(args.config)
        if not config_path.exists():
            print(f"Error: Config file not found: {config_path}", file=sys.stderr)
            sys.exit(1)
        settings = ClientSettings.from_yaml(config_path)
    else:
        settings = ClientSettings()

    # Apply CLI overrides
    if args.adapter:
        settings.adapter = args.adapter
    if args.server_url:
        settings.http.server_url = args.server_url
    if args.username:
        settings.http.username = args.username
    if args.password:
        settings.http.password = args.password
    if args.cli_path:
        settings.cli.cli_path = args.cli_path
    if args.log_level:
        settings.observability.log_level = args.log_level

    return settings


async def _dispatch(client: EverythingClient, args: argparse.Namespace) -> int:
    async with client:
        if args.command == "search":
            options = SearchOptions(
                match_case=args.case,
                match_whole_word=args.whole_word,
                regex=args.regex,
                match_path=args.match_path,
                max_results=args.max_results,
                offset=args.offset,
                sort_by=args.sort_by,
                sort_order=args.sort_order,
            )
            results = await client.search(args.query, options)
            for result in results:
                print(_format_result(result, as_json=args.json))
        elif args.command == "version":
            print(await client.get_version())
        elif args.command == "status":
            status = await client.get_search_status()
            print(f"Total results: {status.total_results}")
            print(f"Indexing complete: {'Yes' if status.indexing_complete else 'No'}")
            print(f"Completion percentage: {status.percent_complete}%")
        elif args.command == "rebuild":
            await client.rebuild_index()
            print("Index rebuild requested")
        elif args.command == "monitor":
            await _monitor(client, args.duration)
    return 0


async def _monitor(client: EverythingClient, duration: float | None) -> None:
    await client.connect()

    def _print_changes(changes: list[FileChange]) -> None:
        for change in changes:
            print(f"{change.type.value}: {change.path}", flush=True)

    monitor = client.monitor_file_changes(_print_changes)
    try:
        if duration is None:
            await monitor.wait_closed()
        else:
            await asyncio.sleep(duration)
    finally:
        monitor.stop()
        await monitor.wait_closed()


def _format_result(result: SearchResult, *, as_json: bool = False) -> str:
    if as_json:
        payload: dict[str, Any] = result.model_dump(mode="json")
        return json.dumps(payload, ensure_ascii=False)
    kind = "DIR " if result.is_directory else "FILE"
    return f"{kind} {result.size:>12} {result.date_modified:%Y-%m-%d %H:%M} {result.full_path}"


def _get_version() -> str:
    """Get the package version."""
    try:
        from everything_client import __version__

        return __version__
    except ImportError:
        return "unknown"


if __name__ == "__main__":
    main()
