#!/usr/bin/env python3
import argparse
import logging
import os
import sys
from typing import List

from treegen_lib import Reporter, TreegenError, generate_from_specs, parse_mode


def _mode_arg(text: str) -> int:
    try:
        return parse_mode(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="treegen",
        description=(
            "Generate file/folder trees from Markdown/YAML/JSON/TOML/JSON5 specifications."
        ),
    )
    parser.add_argument(
        "specs",
        nargs="+",
        metavar="SPEC",
        help="One or more spec files (.md, .yaml/.yml, .json, .toml, .json5), processed in order",
    )
    parser.add_argument(
        "-o",
        "--out",
        default=os.getcwd(),
        help="Output root directory (default: current directory)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only show what would be created; do not touch the filesystem",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Print one line per directory/file action",
    )
    parser.add_argument(
        "--clean",
        action="store_true",
        help="Remove anything already at a target path before creating it (destructive)",
    )
    parser.add_argument(
        "--mode",
        type=_mode_arg,
        default=None,
        help="Permission bits for created files, octal like 0o644 (POSIX only)",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Diagnostic log level (default: WARNING)",
    )
    return parser


def main(argv: List[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")

    reporter = Reporter(verbose=args.verbose)
    try:
        generate_from_specs(
            args.specs,
            args.out,
            reporter=reporter,
            dry_run=args.dry_run,
            clean=args.clean,
            mode=args.mode,
        )
    except TreegenError as e:
        print(f"Generation failed: {e}", file=sys.stderr)
        return 1

    reporter.summary(args.out, dry_run=args.dry_run)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
