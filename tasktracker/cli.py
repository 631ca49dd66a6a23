"""CLI interface for tasktracker."""

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path

import uvicorn

from tasktracker.api.app import create_app
from tasktracker.core.config import Config, load_config
from tasktracker.core.errors import MalformedRecordError
from tasktracker.core.logging import setup_logging
from tasktracker.stores.file_backed import FileBackedTaskStore
from tasktracker.stores.snapshot import read_snapshot
from tasktracker.stores.task import TaskStore

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config.yaml")


def resolve_config(path: Path | None) -> Config:
    """Load the config file, falling back to defaults when the default path is absent.

    An explicitly given path that does not exist is an error.
    """
    if path is None:
        if not DEFAULT_CONFIG_PATH.exists():
            return Config()
        path = DEFAULT_CONFIG_PATH
    return load_config(path)


def build_store(config: Config) -> TaskStore:
    """Create the store described by ``config``.

    Returns:
        FileBackedTaskStore loaded from the snapshot when a snapshot path is
        configured, otherwise an in-memory TaskStore.

    Raises:
        MalformedRecordError: If the snapshot file is malformed.
    """
    snapshot_path = config.storage.snapshot_path
    if snapshot_path is None:
        logger.info("No snapshot configured, keeping tasks in memory only")
        return TaskStore(history_limit=config.history.limit)

    return FileBackedTaskStore.load(
        snapshot_path,
        history_limit=config.history.limit,
        autosave=config.storage.autosave,
    )


async def run_api_server(config: Config, store: TaskStore, verbose: bool = False) -> None:
    """Serve the API with uvicorn until SIGINT or SIGTERM."""
    app = create_app({"store": store, "cors_origins": config.api.cors_origins})

    uvicorn_config = uvicorn.Config(
        app,
        host=config.api.host,
        port=config.api.port,
        log_level="info" if not verbose else "debug",
    )
    server = uvicorn.Server(uvicorn_config)

    # Setup signal handlers for graceful shutdown
    stop_event = asyncio.Event()

    def signal_handler() -> None:
        stop_event.set()

    loop = asyncio.get_running_loop()
    loop.add_signal_handler(signal.SIGINT, signal_handler)
    loop.add_signal_handler(signal.SIGTERM, signal_handler)

    server_task = asyncio.create_task(server.serve())
    logger.info(f"Serving tasktracker API on http://{config.api.host}:{config.api.port}/api/v1")

    try:
        await stop_event.wait()
        logger.info("Shutdown signal received, stopping...")
    finally:
        server.should_exit = True
        await server_task


def run_validate(path: Path) -> int:
    """Parse a snapshot file and report what it contains.

    Returns:
        Process exit code: 0 when the snapshot is valid, 1 when it is
        missing or malformed.
    """
    if not path.is_file():
        logger.error(f"{path}: no such snapshot file")
        return 1

    try:
        entities = read_snapshot(path)
    except MalformedRecordError as e:
        logger.error(f"{path}: {e}")
        return 1

    counts: dict[str, int] = {}
    for entity in entities:
        counts[entity.type.value] = counts.get(entity.type.value, 0) + 1
    summary = ", ".join(f"{count} {kind.lower()}(s)" for kind, count in sorted(counts.items())) or "empty"
    logger.info(f"{path}: valid snapshot ({summary})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="tasktracker - tasks, epics and subtasks over HTTP")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    validate_parser = subparsers.add_parser(
        "validate",
        help="Check a snapshot file without serving it",
    )
    validate_parser.add_argument("path", type=Path, help="Snapshot file to check")

    # Main command arguments (when no subcommand)
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help=f"Path to configuration file (default: {DEFAULT_CONFIG_PATH} if present)",
    )
    parser.add_argument(
        "--snapshot",
        type=Path,
        help="Snapshot file (overrides storage.snapshot_path)",
    )
    parser.add_argument(
        "--memory",
        action="store_true",
        help="Keep tasks in memory only, ignoring any configured snapshot",
    )
    parser.add_argument(
        "--host",
        type=str,
        help="API server host (overrides api.host)",
    )
    parser.add_argument(
        "--port",
        type=int,
        help="API server port (overrides api.port)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser


async def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    config = resolve_config(args.config)
    if args.snapshot is not None:
        config.storage.snapshot_path = args.snapshot
    if args.memory:
        config.storage.snapshot_path = None
    if args.host:
        config.api.host = args.host
    if args.port:
        config.api.port = args.port

    setup_logging(
        level="DEBUG" if args.verbose else config.logging.level,
        directory=config.logging.directory,
        max_size_mb=config.logging.max_size_mb,
        backup_count=config.logging.backup_count,
    )

    if args.command == "validate":
        return run_validate(args.path)

    try:
        store = build_store(config)
    except MalformedRecordError as e:
        logger.error(f"Could not load snapshot {config.storage.snapshot_path}: {e}")
        return 1

    await run_api_server(config, store, verbose=args.verbose)
    return 0


def run() -> None:
    """Entry point for the console script."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
