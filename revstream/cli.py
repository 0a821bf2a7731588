"""
CLI -- Command interface

Quiet by default: the listing goes to stdout, diagnostics go to stderr
through logging. -v shows progress (checkpoints, timings).

Commands:
  revstream log [REV...]            Walk history in topological order
  revstream log --left-right A B    Compare two lines of history
  revstream config [--set K=V]      View or change settings
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from .config import ConfigManager
from .presentation.symbols import get_symbols
from .services.git import GitIntegration
from .commands.log_cmd import LogCommand
from .commands.config_cmd import ConfigCommand
from . import __version__


LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


class RevstreamCLI:
    """Command-line interface for revstream."""

    def __init__(self, project_dir: Path):
        self.project_dir = Path(project_dir)

        self.config_manager = ConfigManager(self.project_dir)
        self.config = self.config_manager.load()
        self.symbols = get_symbols(self.config.display.symbols)
        self.git = GitIntegration(self.project_dir, executable=self.config.walk.git_executable)

        # Command handlers
        self._log_cmd = LogCommand(self)
        self._config_cmd = ConfigCommand(self)


def configure_logging(verbose: bool = False) -> None:
    """Send log records to stderr; INFO with --verbose, WARNING otherwise."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="revstream",
        description="revstream -- Streaming git revision walker",
        epilog="Reads git log output incrementally. Survives malformed records."
    )

    parser.add_argument(
        '--project', '-p',
        default=os.environ.get("REVSTREAM_PROJECT_PATH", "."),
        help='Repository directory (default: REVSTREAM_PROJECT_PATH or current)'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Show progress and diagnostics on stderr'
    )

    parser.add_argument(
        '--version', '-V',
        action='version',
        version=f'revstream {__version__}'
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for revstream CLI.

    Uses command registry pattern for modular command handling.
    Parser definitions and dispatch logic are in individual command modules.
    """
    parser = build_parser()
    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # Register all commands from command modules (self-registration pattern)
    from .commands import register_all, dispatch
    register_all(subparsers)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    configure_logging(args.verbose)

    cli = RevstreamCLI(Path(args.project))

    try:
        result = dispatch(args.command, cli, args)
    except KeyError as e:
        print(f"Error: {e}")
        parser.print_help()
        return 1

    return result if isinstance(result, int) else 0


if __name__ == '__main__':
    sys.exit(main())
