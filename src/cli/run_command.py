"""Run command wiring for imagepipe CLI.

This module isolates run command parser and execution logic.
It keeps the top-level CLI module focused on dispatch.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

from core.errors import ImagePipeBackendError
from core.image import Image
from pipeline.client import ImagePipeClient


def add_run_command(subparsers: Any) -> None:
    """Register run subcommand."""
    parser = subparsers.add_parser("run", help="Run a task chain and write the result")
    parser.add_argument("tasks", help="Task chain, e.g. local/a.png|fitResize/400/300")
    parser.add_argument("--output", required=True, help="File to write the encoded result to")
    parser.add_argument("--input", help="Optional local image used as the initial image")
    parser.add_argument("--accept", default="", help="Accept header used by autoOptimize")
    parser.add_argument("--timeout", type=float, help="Overall deadline in seconds")


def run_run_command(client: ImagePipeClient, args: argparse.Namespace) -> int:
    """Handle run command invocation."""
    initial_image = _load_input(args.input) if args.input else None
    result = client.run(args.tasks, args.accept, image=initial_image, timeout=args.timeout)
    data, image_format = result.bytes()
    output_path = Path(args.output).expanduser()
    try:
        output_path.write_bytes(data)
    except OSError as error:
        raise ImagePipeBackendError(f"Failed to write output to {output_path}: {error}") from error
    print(f"format={image_format}")
    print(f"size={len(data)}")
    print(f"width={result.width}")
    print(f"height={result.height}")
    return 0


def _load_input(input_path: str) -> Image:
    path = Path(input_path).expanduser()
    try:
        data = path.read_bytes()
    except OSError as error:
        raise ImagePipeBackendError(f"Failed to read input image {path}: {error}") from error
    return Image.from_bytes(data)
