"""imagepipe CLI entry points.

This module exposes commands to run, check, and inspect task chains.
It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
from typing import Any, Sequence

from cli.run_command import add_run_command, run_run_command
from core.config import PipelineConfig, parse_source_entry
from core.errors import ImagePipeError
from core.sources_file import load_sources_file
from pipeline.client import ImagePipeClient
from sources.base import Source
from sources.registry import SourceRegistry


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="imagepipe", description="imagepipe task-chain CLI")
    parser.add_argument(
        "--source",
        action="append",
        default=[],
        metavar="NAME=URI",
        help="Register a source for this command; repeatable",
    )
    parser.add_argument("--sources-file", help="YAML file declaring sources")
    subparsers = parser.add_subparsers(dest="command", required=True)
    add_run_command(subparsers)
    _add_check_command(subparsers)
    _add_sources_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the imagepipe CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    client: ImagePipeClient | None = None
    try:
        client = ImagePipeClient(PipelineConfig.from_env(), registry=SourceRegistry())
        _register_sources(client, args)
        if args.command == "run":
            return run_run_command(client, args)
        if args.command == "check":
            return _run_check_command(client, args)
        if args.command == "sources":
            return _run_sources_command(client)
    except ImagePipeError as error:
        print(f"error={error}")
        return 1
    finally:
        if client is not None:
            client.close()
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _register_sources(client: ImagePipeClient, args: argparse.Namespace) -> None:
    """Register sources from env, sources file, then ``--source`` flags.

    Later declarations of the same name win.
    """
    client.add_sources_from_config()
    if args.sources_file:
        client.add_sources(load_sources_file(args.sources_file))
    client.add_sources(tuple(parse_source_entry(entry) for entry in args.source))


def _run_check_command(client: ImagePipeClient, args: argparse.Namespace) -> int:
    """Handle check command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    for job in client.parse(args.tasks, args.accept):
        print(job.describe())
    return 0


def _run_sources_command(client: ImagePipeClient) -> int:
    """Handle sources command."""
    rows: list[str] = []

    def collect(name: str, source: Source) -> None:
        rows.append(f"{name}\t{source.kind}")

    client.registry.range(collect)
    for row in sorted(rows):
        print(row)
    return 0


def _add_check_command(subparsers: Any) -> None:
    """Register check subcommand."""
    parser = subparsers.add_parser("check", help="Parse a task chain without running it")
    parser.add_argument("tasks", help="Task chain, e.g. local/a.png|fitResize/400/300")
    parser.add_argument("--accept", default="", help="Accept header used by autoOptimize")


def _add_sources_command(subparsers: Any) -> None:
    """Register sources subcommand."""
    subparsers.add_parser("sources", help="List configured sources")
