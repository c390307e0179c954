#!/usr/bin/env python3
"""
Render Job Script.

Render a job document to per-tool G-code files.

Usage:
    python -m shoptools.scripts.render_job --job cabinet.yaml
    python -m shoptools.scripts.render_job --job cabinet.yaml --output out/ --base Cabinet
    python -m shoptools.scripts.render_job --config shop.yaml --job cabinet.yaml --dry-run

Without ``--config`` the profile shipped with the package is used.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from shoptools.configs.loader import ConfigError, load_config
from shoptools.gcode.renderer import GCodeError, GCodeRenderer
from shoptools.jobs.schema import JobError, load_job
from shoptools.utils.fs import write_gcode_files
from shoptools.utils.logging_config import (
    install_excepthook,
    push_context,
    setup_logging,
    shutdown,
)

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Render a job to G-code files, one per tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        help="Configuration profile path (default: bundled profile.yaml)",
    )
    parser.add_argument(
        "--job",
        "-j",
        type=str,
        required=True,
        help="Job file to render (YAML or JSON)",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=str,
        default=".",
        help="Output directory for G-code files",
    )
    parser.add_argument(
        "--base",
        type=str,
        help="Filename base (default: ShopTools-<timestamp>)",
    )
    parser.add_argument(
        "--ext",
        type=str,
        help="Filename extension (default: .gcode)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print G-code instead of writing files",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        help="Also log to this file",
    )
    return parser


def _run(args: argparse.Namespace) -> int:
    try:
        profile = load_config(args.config)
        workpiece = load_job(args.job, profile)
        files = GCodeRenderer(profile).render_files(workpiece, args.base, args.ext)
    except (ConfigError, JobError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except GCodeError as e:
        logger.exception("Rendering failed")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        logger.exception("Job failed")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not files:
        print("Job has no cuts; no G-code written.")
        return 0

    if args.dry_run:
        for item in files:
            print(f"\n--- {item.filename} ---")
            print(item.content, end="")
            print(f"--- End {item.filename} ---")
        return 0

    try:
        written = write_gcode_files(files, args.output)
    except RuntimeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    for path in written:
        print(f"G-code written to: {path}")
    return 0


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    setup_logging(
        args.log_level,
        args.log_file,
        color=sys.stderr.isatty(),
        context={"app": "render_job"},
        quiet_libs=["yaml"],
    )
    install_excepthook()
    push_context(job=Path(args.job).name)

    try:
        code = _run(args)
    finally:
        shutdown()
    if code:
        sys.exit(code)


if __name__ == "__main__":
    main()
