"""Composition root for logsift.

This module is the ONLY location that imports both core domain logic
and concrete adapter implementations. All wiring of dependencies
happens here, creating a clear entry point for the application.

Module Structure:
- Configuration loading via config module
- Adapter instantiation
- Core service initialization
- Dependency injection
- Entry point selection (scan or CLI)
"""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from logsift.adapters.cli.commands import CLICommandHandler
from logsift.adapters.report.html_report import HtmlReportAdapter
from logsift.adapters.report.json_report import JsonReportAdapter
from logsift.adapters.report.markdown import MarkdownReportAdapter
from logsift.adapters.report.stdout import StdoutReportAdapter
from logsift.adapters.store.sqlite import SQLiteLogStore
from logsift.adapters.store.supabase import SupabaseLogStore
from logsift.config import Settings, load_settings
from logsift.core.clustering import ClusterEngine
from logsift.core.context import CodeContextResolver
from logsift.core.fingerprint import Fingerprinter
from logsift.core.frames import FrameClassifier
from logsift.core.merger import ClusterMerger
from logsift.core.parser import TraceParser
from logsift.core.ports import LogStorePort, ReportPort
from logsift.core.scan_service import ScanService

JSON_REPORT_FILE = "clusters.json"


async def _run_cli_interactive(cli_handler: CLICommandHandler) -> None:
    """Run interactive CLI loop.

    Provides a REPL-like interface for cluster inspection commands.

    Args:
        cli_handler: CLICommandHandler instance for executing commands.
    """
    logger = logging.getLogger(__name__)
    logger.info("Starting interactive CLI. Type 'help' for available commands or 'exit' to quit.")

    loop = asyncio.get_running_loop()

    while True:
        try:
            # Read command from stdin in a thread to avoid blocking
            command_line = await loop.run_in_executor(None, input, "logsift> ")
            command_line = command_line.strip()

            if not command_line:
                continue

            if command_line.lower() == "exit":
                logger.info("Exiting CLI")
                break

            if command_line.lower() == "help":
                _print_cli_help()
                continue

            parts = command_line.split(maxsplit=1)
            command = parts[0].lower()
            args_str = parts[1] if len(parts) > 1 else ""

            try:
                args = json.loads(args_str) if args_str else {}
            except json.JSONDecodeError:
                logger.error("Invalid JSON arguments. Use 'help' for command syntax.")
                continue

            try:
                result = await _execute_cli_command(cli_handler, command, args)
                _print_result(result)
            except Exception as e:
                logger.error(f"Command execution error: {e}", exc_info=True)
                print(json.dumps({"status": "error", "message": str(e)}, indent=2))

        except EOFError:
            logger.info("EOF received, exiting CLI")
            break
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
            continue


async def _execute_cli_command(
    cli_handler: CLICommandHandler,
    command: str,
    args: dict[str, Any],
) -> dict[str, Any]:
    """Execute a CLI command.

    Args:
        cli_handler: CLICommandHandler instance.
        command: Command name.
        args: Command arguments.

    Returns:
        Command result dictionary.

    Raises:
        ValueError: If command is not recognized or a parameter is missing.
    """
    if command == "scan":
        return await cli_handler.scan(last=args.get("last"))

    elif command == "clusters":
        return await cli_handler.list_clusters(
            limit=args.get("limit", 10),
            output_format=args.get("format", "table"),
        )

    elif command == "details":
        if "cluster_id" not in args:
            raise ValueError("Missing required parameter: cluster_id")
        return await cli_handler.get_cluster_details(
            cluster_id=args["cluster_id"],
            verbose=args.get("verbose", False),
        )

    elif command == "context":
        if "cluster_id" not in args:
            raise ValueError("Missing required parameter: cluster_id")
        return await cli_handler.get_code_context(cluster_id=args["cluster_id"])

    else:
        raise ValueError(f"Unknown command: {command}. Use 'help' for available commands.")


def _print_result(result: dict[str, Any]) -> None:
    """Print text payloads as-is and everything else as JSON."""
    data = result.get("data")
    if result.get("status") == "success" and isinstance(data, str):
        print(data)
    else:
        print(json.dumps(result, indent=2, default=str))


def _print_cli_help() -> None:
    """Print CLI help message."""
    help_text = """
Available Commands (JSON format):

  scan
    Scan recent logs and rebuild the cluster list.
    Optional: last (e.g. "30m", "24h", "7d")

    Example: scan {"last": "24h"}

  clusters
    List clusters from the last scan, most frequent first.
    Optional: limit, format ("table" or "json")

    Example: clusters {"limit": 5, "format": "json"}

  details
    Show one cluster.
    Required: cluster_id
    Optional: verbose (include sample records)

    Example: details {"cluster_id": "ERR-1A2B3C4D", "verbose": true}

  context
    Show the source code around a cluster's location.
    Required: cluster_id

    Example: context {"cluster_id": "ERR-1A2B3C4D"}

  help
    Show this help message.

  exit
    Exit the CLI.

Note: All commands accept arguments as a single JSON object.
Provide the JSON after the command name on the same line.
    """
    print(help_text)


def configure_logging(log_level: str, log_format: str) -> None:
    """Configure application logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Log format (json, text).
    """
    level = getattr(logging, log_level, logging.INFO)

    if log_format == "json":
        format_str = (
            '{"time": "%(asctime)s", "level": "%(levelname)s", '
            '"logger": "%(name)s", "message": "%(message)s"}'
        )
    else:
        format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
        force=True,
    )


def build_store(settings: Settings) -> LogStorePort:
    """Instantiate the configured log store."""
    if settings.store_backend == "sqlite":
        return SQLiteLogStore(db_path=settings.store_sqlite_path)
    if settings.store_backend == "supabase":
        return SupabaseLogStore(
            url=settings.supabase_url,
            api_key=settings.supabase_key,
            app_id=settings.app_id,
        )
    raise ValueError(f"Unknown store backend: {settings.store_backend}")


def build_report(settings: Settings) -> ReportPort:
    """Instantiate the configured report adapter."""
    if settings.report_backend == "stdout":
        return StdoutReportAdapter(verbose=settings.debug)
    if settings.report_backend == "markdown":
        return MarkdownReportAdapter(report_dir=settings.report_output_dir)
    if settings.report_backend == "json":
        return JsonReportAdapter(
            output_path=str(Path(settings.report_output_dir) / JSON_REPORT_FILE)
        )
    if settings.report_backend == "html":
        return HtmlReportAdapter(report_dir=settings.report_output_dir)
    raise ValueError(f"Unknown report backend: {settings.report_backend}")


def build_scan_service(
    settings: Settings, store: LogStorePort, report: ReportPort | None
) -> ScanService:
    """Wire the core pipeline from settings."""
    fingerprinter = Fingerprinter(
        parser=TraceParser(max_cause_depth=settings.max_cause_depth),
        classifier=FrameClassifier(settings.framework_prefixes),
        frame_count=settings.fingerprint_frame_count,
    )
    engine = ClusterEngine(fingerprinter)
    merger = None
    if settings.merge_similar:
        merger = ClusterMerger(engine, similarity_threshold=settings.similarity_threshold)
    resolver = CodeContextResolver(
        settings.source_paths,
        context_lines=settings.context_lines,
        source_extensions=settings.source_extensions,
    )
    return ScanService(
        store=store,
        engine=engine,
        merger=merger,
        resolver=resolver,
        report=report,
        lookback_minutes=settings.lookback_minutes,
        query_limit=settings.query_limit,
    )


async def bootstrap(env_file: str | None = None) -> None:
    """Load configuration, wire adapters, and start the application.

    This is the composition root: the single place where all components
    are instantiated and wired together.

    Steps:
    1. Load configuration from environment
    2. Configure logging
    3. Instantiate adapters with configuration
    4. Initialize core services
    5. Select and start run mode
    """
    settings = load_settings(env_file)

    configure_logging("DEBUG" if settings.debug else settings.log_level, settings.log_format)
    logger = logging.getLogger(__name__)
    logger.info("Loading logsift...")

    logger.info("Initializing adapters...")
    store = build_store(settings)
    logger.info(f"Log store: {settings.store_backend}")

    try:
        report = build_report(settings)
        logger.info(f"Report adapter: {settings.report_backend}")

        logger.info("Initializing core services...")
        scan_service = build_scan_service(settings, store, report)

        logger.info(f"Starting in {settings.run_mode} mode...")
        if settings.run_mode == "scan":
            result = await scan_service.execute_scan()
            logger.info(
                f"Scan complete: {result.logs_scanned} records, "
                f"{result.errors_found} errors, "
                f"{result.clusters_created - result.clusters_merged} clusters"
            )
        elif settings.run_mode == "cli":
            # The interactive loop does not re-print reports after each scan
            scan_service.report = None
            await _run_cli_interactive(CLICommandHandler(scan_service))
        else:
            raise ValueError(f"Unknown run mode: {settings.run_mode}")

    finally:
        await store.close()


def main() -> None:
    """Application entry point.

    Exit codes:
        0: Successful shutdown
        1: Fatal bootstrap or runtime error
        130: Interrupted by user (SIGINT/KeyboardInterrupt)
    """
    logger = logging.getLogger(__name__)
    try:
        asyncio.run(bootstrap())
    except KeyboardInterrupt:
        logger.warning("Shutdown requested by user (SIGINT)")
        sys.exit(130)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
