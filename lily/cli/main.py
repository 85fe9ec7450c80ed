"""Lily CLI - Command-line interface for annotation-driven patching.

This module provides the main CLI entrypoint for Lily, allowing users
to patch a source tree or a single file from the command line.
"""

import argparse
import logging
import sys
from pathlib import Path

from lily.core.config import load_patcher_options
from lily.core.errors import LilyError, TaskApplicationError
from lily.core.patcher import Patcher

logger = logging.getLogger(__name__)


def main(argv=None):
    """Main CLI entrypoint for Lily."""
    parser = argparse.ArgumentParser(
        prog="lily",
        description="Lily - annotation-driven source patcher",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Patch src/ into build/ with two patch files
  lily run patches/rename.php patches/strip-debug.php --input src/ --out build/

  # Use every patch found under patches/
  lily run --scan patches/ --input src/ --out build/

  # Keep the existing output directory
  lily run patches/rename.php --input src/ --out build/ --no-clean

  # Apply patches to a single file and print the result
  lily apply patches/rename.php --file src/api.php

  # List registered tasks
  lily tasks

Note:
  Defaults for --input, --out and auto clean are read from the "lily"
  section of config.json (or LILY_INPUT_DIR, LILY_OUTPUT_DIR, LILY_AUTO_CLEAN).
"""
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Run command
    run_parser = subparsers.add_parser(
        "run",
        help="Patch an input tree into an output tree"
    )
    run_parser.add_argument(
        "patches",
        nargs="*",
        help="Patch files to apply, in order"
    )
    run_parser.add_argument(
        "--scan",
        action="append",
        default=[],
        help="Directory to search for patch files (repeatable)"
    )
    run_parser.add_argument(
        "--input",
        help="Input directory (default: from config.json or current directory)"
    )
    run_parser.add_argument(
        "--out",
        help="Output directory (default: from config.json or current directory)"
    )
    run_parser.add_argument(
        "--no-clean",
        action="store_true",
        help="Do not remove the output directory before running"
    )
    run_parser.add_argument(
        "--config",
        default="config.json",
        help="Path to config file (default: config.json)"
    )
    run_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output"
    )

    # Apply command
    apply_parser = subparsers.add_parser(
        "apply",
        help="Apply patches to one file (or stdin) and print the result"
    )
    apply_parser.add_argument(
        "patches",
        nargs="+",
        help="Patch files to apply, in order"
    )
    apply_parser.add_argument(
        "--file",
        help="File to patch (default: read stdin)"
    )
    apply_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output"
    )

    # Tasks command
    subparsers.add_parser(
        "tasks",
        help="List registered tasks and their parameters"
    )

    args = parser.parse_args(argv)

    # Setup logging
    if hasattr(args, 'verbose') and args.verbose:
        logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
    else:
        logging.basicConfig(level=logging.WARNING, format='%(levelname)s: %(message)s')

    # Handle commands
    if args.command == "run":
        return cmd_run(args)
    elif args.command == "apply":
        return cmd_apply(args)
    elif args.command == "tasks":
        return cmd_tasks(args)
    else:
        parser.print_help()
        return 1


def cmd_run(args):
    """Handle run command."""
    # Load patcher options from config.json with CLI args as overrides
    options = load_patcher_options(args.config)
    if args.input:
        options["input_dir"] = args.input
    if args.out:
        options["output_dir"] = args.out
    if args.no_clean:
        options["auto_clean"] = False

    try:
        patcher = Patcher(options)

        for source in args.patches:
            patcher.add_patch(Path(source), required=True)
        for directory in args.scan:
            patcher.discover_patches(directory)

        if not patcher.patches:
            print("Error: No patches given", file=sys.stderr)
            return 1

        print(f"Patching: {patcher.input_dir} -> {patcher.output_dir}")
        print(f"Patches: {', '.join(p.name for p in patcher.patches)}")

        succeeded = patcher.run()
        results = patcher.generate_results()

        print(f"\nSucceeded: {len(results.succeeded)}")
        print(f"Failed: {len(results.failed)}")
        print(f"Not executed: {len(results.not_executed)}")

        if succeeded:
            print(f"\n✅ Patched tree written to: {patcher.output_dir}")
            return 0

        print("\n❌ Patching failed, nothing was written")
        if patcher.failed_task is not None:
            cause = patcher.last_failure.cause if patcher.last_failure else None
            print(f"   Task: {patcher.failed_task.get_name()}" + (f" ({cause})" if cause else ""))
        return 1

    except LilyError as e:
        print(f"Error: {e}", file=sys.stderr)
        logger.exception("Run failed")
        return 1


def cmd_apply(args):
    """Handle apply command."""
    try:
        patcher = Patcher()
        for source in args.patches:
            patcher.add_patch(Path(source), required=True)

        if args.file:
            content = Path(args.file).read_text(encoding="utf-8")
        else:
            content = sys.stdin.read()

        result = patcher.apply(content)
        if result is None:
            raise TaskApplicationError(patcher.failed_task.get_name(), patcher.last_failure)

        sys.stdout.write(result)
        return 0

    except TaskApplicationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (LilyError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        logger.exception("Apply failed")
        return 1


def cmd_tasks(args):
    """Handle tasks command."""
    patcher = Patcher()
    for name, task_class in sorted(patcher.registry.items()):
        required = ", ".join(task_class.REQUIRED_PARAMS) or "-"
        optional = ", ".join(task_class.OPTIONAL_PARAMS) or "-"
        print(f"{name}")
        print(f"  required: {required}")
        print(f"  optional: {optional}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
