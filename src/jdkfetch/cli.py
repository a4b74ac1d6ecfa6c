# src/jdkfetch/cli.py

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)

from jdkfetch import log_utils
from jdkfetch.config import Config, load_config
from jdkfetch.constants import ALL_SOURCES
from jdkfetch.download.interfaces import DownloadOptions, ProgressCallback
from jdkfetch.download.orchestrator import CatalogOrchestrator, options_from_config
from jdkfetch.exceptions import (
    AllSourcesFailedError,
    DownloadCancelledError,
    JdkFetchError,
    describe_failures,
)
from jdkfetch.utils import normalize_checksum

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jdkfetch",
        description="jdkfetch - resolve and download Eclipse Temurin JDK archives",
    )
    parser.add_argument(
        "--config", help="Path to a jdkfetch.yaml file (default: user config dir)"
    )
    parser.add_argument(
        "--source",
        action="append",
        choices=list(ALL_SOURCES),
        help="Source to consult, in priority order (can be passed multiple times)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Console log level (overrides JDKFETCH_LOG_LEVEL and the config file)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    resolve_parser = subparsers.add_parser(
        "resolve", help="Show which release a version request resolves to"
    )
    resolve_parser.add_argument("spec", help="e.g. 21, 17.0.8, 11-17, 17+, latest, lts")

    subparsers.add_parser("list", help="List the releases each source knows about")

    download_parser = subparsers.add_parser(
        "download", help="Resolve a version request and download its archive"
    )
    download_parser.add_argument("spec", help="e.g. 21, 17.0.8, 11-17, 17+, latest, lts")
    download_parser.add_argument(
        "--platform", help="Target platform key such as linux-x64 (default: this machine)"
    )
    download_parser.add_argument(
        "--dest", help="Destination file (default: the downloads directory)"
    )
    download_parser.add_argument(
        "--checksum", help="Expected SHA-256 of the archive"
    )

    cache_parser = subparsers.add_parser("cache", help="Manage the catalog cache")
    cache_subparsers = cache_parser.add_subparsers(dest="cache_command", required=True)
    cache_subparsers.add_parser("clean", help="Remove expired catalog entries")
    cache_subparsers.add_parser("clear", help="Remove every catalog entry")

    return parser


def _configure_logging(args: argparse.Namespace, config: Config) -> None:
    level = args.log_level or config.log_level
    if level:
        log_utils.set_log_level(level)
    if config.log_dir:
        log_utils.add_file_logging(
            Path(config.log_dir).expanduser(), level or "INFO"
        )


def _report_failures(error: AllSourcesFailedError) -> None:
    print(f"Error: {error.message}", file=sys.stderr)
    if error.failures:
        print(describe_failures(dict(error.failures)), file=sys.stderr)


def run_resolve(orchestrator: CatalogOrchestrator, args: argparse.Namespace) -> int:
    resolved = orchestrator.resolve(args.spec, args.source)
    version = resolved.version
    lts = " LTS" if version.is_lts else ""
    print(f"{version.version}{lts} ({version.tag_name}) from {resolved.source}")
    for key in version.platforms():
        print(f"  {key}")
    return EXIT_OK


def run_list(orchestrator: CatalogOrchestrator, args: argparse.Namespace) -> int:
    listing = orchestrator.list_all_sources(args.source)
    for name, versions in listing.versions.items():
        print(f"{name}: {len(versions)} release(s)")
        for version in versions:
            lts = " LTS" if version.is_lts else ""
            print(f"  {version.version:<12}{lts:<5} {version.tag_name}")
    if listing.failures:
        print("Unavailable sources:", file=sys.stderr)
        print(describe_failures(listing.failures), file=sys.stderr)
    return EXIT_OK if listing.versions else EXIT_FAILURE


def run_download(
    orchestrator: CatalogOrchestrator, args: argparse.Namespace
) -> int:
    options: DownloadOptions = options_from_config(
        orchestrator.config.download, normalize_checksum(args.checksum)
    )
    progress = Progress(
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        DownloadColumn(),
        TransferSpeedColumn(),
        TimeRemainingColumn(),
    )
    task_id = progress.add_task("Downloading", total=None)

    def on_progress(downloaded: int, total: Optional[int]) -> None:
        progress.update(task_id, completed=downloaded, total=total)

    callback: ProgressCallback = on_progress
    with progress:
        result = orchestrator.fetch(
            args.spec,
            platform_key=args.platform,
            options=options,
            progress=callback,
            destination=args.dest,
            source_priority=args.source,
        )

    artifact = result.artifact
    state = "Reused" if artifact.reused else "Downloaded"
    print(
        f"{state} {result.resolved.version.version} from {result.resolved.source}: "
        f"{artifact.path}"
    )
    if artifact.sha256:
        print(f"  sha256 {artifact.sha256}")
    return EXIT_OK


def run_cache(orchestrator: CatalogOrchestrator, args: argparse.Namespace) -> int:
    if args.cache_command == "clean":
        removed = orchestrator.cleanup_cache()
        print(f"Removed {removed} expired catalog entr{'y' if removed == 1 else 'ies'}")
    else:
        removed = orchestrator.clear_cache()
        print(f"Removed {removed} catalog entr{'y' if removed == 1 else 'ies'}")
    return EXIT_OK


COMMANDS = {
    "resolve": run_resolve,
    "list": run_list,
    "download": run_download,
    "cache": run_cache,
}


def main(argv: Optional[List[str]] = None) -> int:
    """
    Entry point for the jdkfetch command-line interface.

    Returns:
        int: Process exit code; 0 on success, 1 on any jdkfetch error and 130
        when interrupted.
    """
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
        _configure_logging(args, config)
        with CatalogOrchestrator(config) as orchestrator:
            return COMMANDS[args.command](orchestrator, args)
    except AllSourcesFailedError as e:
        _report_failures(e)
        return EXIT_FAILURE
    except (DownloadCancelledError, KeyboardInterrupt):
        print("Interrupted", file=sys.stderr)
        return EXIT_INTERRUPTED
    except JdkFetchError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
