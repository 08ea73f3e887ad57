"""Command-line interface for envlens."""

import argparse
import json
import logging
import sys
from typing import Any, Dict

from rich.console import Console
from rich.table import Table

from .core import EnvSession
from .config_loader import load_config
from .display import format_peek, mask_value, source_name
from ._types import ConfigError

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_NOT_FOUND = 3
EXIT_CONFIG = 4
EXIT_INTERRUPTED = 130

def setup_logging(verbose: bool = False, quiet: bool = False):
    """Setup logging configuration."""
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

def build_session(args) -> EnvSession:
    """
    Create a session from a config file and command-line overrides.

    Raises:
        ConfigError: If the config file cannot be loaded
    """
    options: Dict[str, Any] = {}
    if getattr(args, 'config', None):
        options.update(load_config(args.config))
    if getattr(args, 'path', None):
        options['path'] = args.path
    if getattr(args, 'env', None):
        options['preferred_environment'] = args.env
    if getattr(args, 'no_types', False):
        options['types'] = False
    return EnvSession(load=False, **options)

def print_table(rows: list, columns: list, title: str):
    """Print rows in a table format."""
    console = Console()
    table = Table(title=title)
    for i, column in enumerate(columns):
        table.add_column(column, style="cyan" if i == 0 else None, no_wrap=(i == 0))
    for row in rows:
        table.add_row(*[str(cell) for cell in row])
    console.print(table)

def print_json(data):
    """Print data in JSON format."""
    print(json.dumps(data, indent=2, default=str))

def print_env(data: dict):
    """Print data in environment file format."""
    for key, value in data.items():
        if '"' in value or '\n' in value:
            value = f"'{value}'"
        else:
            value = f'"{value}"'
        print(f"{key}={value}")

def _hide_values(args, session: EnvSession) -> bool:
    """Command-line override, else the session's hide_values option."""
    if args.hide_values is None:
        return session.options.hide_values
    return args.hide_values

def add_value_visibility_arguments(parser: argparse.ArgumentParser):
    """Add --show-values / --hide-values to a subcommand parser."""
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--show-values",
        dest="hide_values",
        action="store_const",
        const=False,
        help="Show values even if the config hides them"
    )
    group.add_argument(
        "--hide-values",
        dest="hide_values",
        action="store_const",
        const=True,
        help="Mask values even if the config shows them"
    )
    parser.set_defaults(hide_values=None)

def cmd_files(args):
    """Handle the files subcommand."""
    session = build_session(args)
    files = session.find_env_files()

    if not files:
        print("No environment files found")
        return EXIT_OK

    for priority, file_path in enumerate(files, 1):
        print(f"{priority}. {file_path}")
    return EXIT_OK

def cmd_list(args):
    """Handle the list subcommand."""
    session = build_session(args)
    env_vars = session.load()
    hide = _hide_values(args, session)

    rows = []
    for name, entry in sorted(env_vars.items()):
        if args.classify:
            type_name, _ = session.detect_type(entry.value)
        else:
            type_name = entry.type
        value = mask_value(entry.value) if hide else entry.value
        rows.append((name, type_name, value, entry.source))

    if args.format == "table":
        print_table(
            [(name, type_name, value, source_name(source)) for name, type_name, value, source in rows],
            ["Name", "Type", "Value", "Source"],
            "Environment Variables",
        )
    elif args.format == "json":
        print_json({
            name: {"value": value, "type": type_name, "source": source}
            for name, type_name, value, source in rows
        })
    else:  # env format
        print_env({name: value for name, _, value, _ in rows})

    return EXIT_OK

def cmd_type(args):
    """Handle the type subcommand."""
    session = build_session(args)
    type_name = session.check_env_type(args.name)

    if type_name is None:
        print(f"✗ Environment variable '{args.name}' does not exist")
        return EXIT_NOT_FOUND

    entry = session.store.get(args.name)
    print(f"{args.name}: {type_name} (from {source_name(entry.source)})")
    return EXIT_OK

def cmd_peek(args):
    """Handle the peek subcommand."""
    session = build_session(args)
    info = session.peek(args.name)

    if info is None:
        print(f"✗ Environment variable '{args.name}' does not exist")
        return EXIT_NOT_FOUND

    print(format_peek(info, hide_value=_hide_values(args, session)))
    return EXIT_OK

def cmd_detect(args):
    """Handle the detect subcommand."""
    session = build_session(args)
    rows = [(value,) + session.detect_type(value) for value in args.values]

    if args.format == "json":
        print_json([
            {"value": value, "type": type_name, "normalized": normalized}
            for value, type_name, normalized in rows
        ])
    else:
        print_table(rows, ["Value", "Type", "Normalized"], "Detected Types")
    return EXIT_OK

COMMANDS = {
    "files": cmd_files,
    "list": cmd_list,
    "type": cmd_type,
    "peek": cmd_peek,
    "detect": cmd_detect,
}

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="envlens",
        description="Inspect .env files and the types of their values",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  envlens files --env production
  envlens list --classify --show-values
  envlens peek DATABASE_URL
  envlens detect "#fff" 2024-02-29 postgres://db.example.com/app
        """
    )

    # Global options
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress all output except errors"
    )
    parser.add_argument(
        "--path", "-p",
        help="Directory holding the .env files (defaults to the current directory)"
    )
    parser.add_argument(
        "--env", "-e",
        help="Preferred environment: .env.<ENV> takes top priority"
    )
    parser.add_argument(
        "--config", "-c",
        help="Config file (YAML or JSON) with types and custom_types"
    )
    parser.add_argument(
        "--no-types",
        action="store_true",
        help="Only distinguish numbers from strings"
    )

    # Subcommands
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser(
        "files",
        help="List environment files in priority order"
    )

    list_parser = subparsers.add_parser(
        "list",
        help="List loaded environment variables"
    )
    list_parser.add_argument(
        "--format",
        choices=["table", "json", "env"],
        default="table",
        help="Output format (default: table)"
    )
    list_parser.add_argument(
        "--classify",
        action="store_true",
        help="Show the full detected type instead of number/string"
    )
    add_value_visibility_arguments(list_parser)

    type_parser = subparsers.add_parser(
        "type",
        help="Show the stored type of a variable"
    )
    type_parser.add_argument("name", help="Variable name")

    peek_parser = subparsers.add_parser(
        "peek",
        help="Show a variable's value, detected type and source"
    )
    peek_parser.add_argument("name", help="Variable name")
    add_value_visibility_arguments(peek_parser)

    detect_parser = subparsers.add_parser(
        "detect",
        help="Detect the type of ad-hoc values"
    )
    detect_parser.add_argument("values", nargs="+", help="Values to classify")
    detect_parser.add_argument(
        "--format",
        choices=["table", "json"],
        default="table",
        help="Output format (default: table)"
    )

    return parser

def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose, args.quiet)

    if not args.command:
        parser.print_help()
        return EXIT_ERROR

    try:
        return COMMANDS[args.command](args)
    except ConfigError as e:
        print(f"✗ Config error: {e}")
        return EXIT_CONFIG
    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        return EXIT_INTERRUPTED
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        print(f"✗ Unexpected error: {e}")
        return EXIT_ERROR

if __name__ == "__main__":
    sys.exit(main())
