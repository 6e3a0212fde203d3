# SPDX-License-Identifier: MIT
"""Command-line interface for clangfind."""

from __future__ import annotations

import argparse
import logging
import os
import sys

from clangfind.configure.overrides import ENVIRONMENT_NAMES
from clangfind.core.errors import ClangFindError
from clangfind.finder import LibclangFinder
from clangfind.link.emit import FORMATS, format_plan

# Set up logging
logger = logging.getLogger("clangfind")

COMMANDS = ("link", "candidates", "include")


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """Configure logging based on verbosity level."""
    if debug:
        level = logging.DEBUG
        fmt = "%(levelname)s: %(name)s: %(message)s"
    elif verbose:
        level = logging.INFO
        fmt = "%(levelname)s: %(message)s"
    else:
        level = logging.WARNING
        fmt = "%(levelname)s: %(message)s"

    logging.basicConfig(level=level, format=fmt)


def parse_variables(args: list[str]) -> tuple[dict[str, str], list[str]]:
    """Parse KEY=value arguments from a list.

    Args:
        args: List of arguments.

    Returns:
        Tuple of (variables dict, remaining args).
    """
    variables: dict[str, str] = {}
    remaining: list[str] = []

    for arg in args:
        if "=" in arg and not arg.startswith("-"):
            key, _, value = arg.partition("=")
            if key:  # Valid KEY=value
                variables[key] = value
            else:
                remaining.append(arg)
        else:
            remaining.append(arg)

    return variables, remaining


def make_finder(args: argparse.Namespace) -> LibclangFinder | None:
    """Create a finder from the environment plus KEY=value arguments."""
    variables, remaining = parse_variables(getattr(args, "extra", []))
    if remaining:
        logger.error("Unexpected arguments: %s", " ".join(remaining))
        return None
    for key in variables:
        if key not in ENVIRONMENT_NAMES:
            logger.warning("Ignoring unknown variable %s", key)
    environ = dict(os.environ)
    environ.update(variables)
    return LibclangFinder(environ=environ)


def cmd_link(args: argparse.Namespace) -> int:
    """Print the directives for linking against libclang."""
    setup_logging(args.verbose, args.debug)

    finder = make_finder(args)
    if finder is None:
        return 1

    try:
        plan = finder.link(static=args.static, group_archives=args.archive_groups)
    except ClangFindError as e:
        logger.error("%s", e.message)
        return 1

    print(format_plan(plan, args.format, include=args.include))
    return 0


def cmd_candidates(args: argparse.Namespace) -> int:
    """List search directories and every candidate found in them."""
    setup_logging(args.verbose, args.debug)

    finder = make_finder(args)
    if finder is None:
        return 1

    try:
        discovery = finder.discover()
    except ClangFindError as e:
        logger.error("%s", e.message)
        return 1

    print("Search directories:")
    for directory in discovery.directories:
        print(f"  {directory}")
    print()
    print("Candidates:")
    chosen = discovery.selection.candidate
    for candidate in discovery.selection.considered:
        marker = "*" if candidate == chosen else " "
        print(
            f"  {marker} {candidate.path} "
            f"[{candidate.form}, {candidate.version_label}]"
        )
    if discovery.probe.rejected:
        print()
        print("Rejected:")
        for path, reason in discovery.probe.rejected:
            print(f"    {path}: {reason}")
    return 0


def cmd_include(args: argparse.Namespace) -> int:
    """Print the Clang include directory."""
    setup_logging(args.verbose, args.debug)

    finder = make_finder(args)
    if finder is None:
        return 1

    include = finder.oracle.includedir()
    if include is None:
        logger.error("llvm-config did not report an include directory")
        logger.info("Set LLVM_CONFIG_PATH to a working llvm-config")
        return 1
    print(include)
    return 0


def add_common_args(parser: argparse.ArgumentParser) -> None:
    """Add common arguments to a parser."""
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument("--debug", action="store_true", help="Debug output")
    parser.add_argument(
        "extra",
        nargs="*",
        help="Overrides (LLVM_CONFIG_PATH=..., LIBCLANG_PATH=..., "
        "LIBCLANG_STATIC_PATH=...)",
    )


def add_link_args(parser: argparse.ArgumentParser) -> None:
    """Add arguments for link plan output."""
    parser.add_argument(
        "--static", action="store_true", help="Link the static Clang/LLVM archives"
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=FORMATS,
        default="gnu",
        help="Output format (default: gnu)",
    )
    parser.add_argument(
        "--archive-groups",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Whether the linker supports --start-group (default: by platform)",
    )
    parser.add_argument(
        "-I", "--include", action="store_true", help="Also print the include flag"
    )


def command_first(argv: list[str]) -> list[str]:
    """Move the subcommand to the front of the arguments.

    Only the first positional argument can name the subcommand, so options
    and KEY=value overrides may come before it ('clangfind -v include').
    Without a subcommand the arguments belong to 'link'.
    """
    for i, arg in enumerate(argv):
        if arg in ("-h", "--help", "--version"):
            return argv
        if arg.startswith("-") or "=" in arg:
            continue
        if arg in COMMANDS:
            return [arg, *argv[:i], *argv[i + 1 :]]
        break
    return ["link", *argv]


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the clangfind CLI."""
    parser = argparse.ArgumentParser(
        prog="clangfind",
        description="Find libclang and print the directives to link against it.",
        epilog="Run 'clangfind <command> --help' for command-specific help.",
    )
    from clangfind import __version__

    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # clangfind link
    link_parser = subparsers.add_parser("link", help="Print link directives")
    add_common_args(link_parser)
    add_link_args(link_parser)
    link_parser.set_defaults(func=cmd_link)

    # clangfind candidates
    cand_parser = subparsers.add_parser(
        "candidates", help="List search directories and candidate libraries"
    )
    add_common_args(cand_parser)
    cand_parser.set_defaults(func=cmd_candidates)

    # clangfind include
    inc_parser = subparsers.add_parser(
        "include", help="Print the Clang include directory"
    )
    add_common_args(inc_parser)
    inc_parser.set_defaults(func=cmd_include)

    argv = command_first(sys.argv[1:] if argv is None else list(argv))

    args = parser.parse_args(argv)

    result: int = args.func(args)
    return result


if __name__ == "__main__":
    sys.exit(main())
