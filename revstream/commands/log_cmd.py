"""
LogCommand -- Walk history and print the final snapshot

Handles:
- Walking one or more revisions (default HEAD)
- Dual-branch comparison (--left-right A B)
- Listing or JSON output, optional snapshot export
- --strict: non-zero exit when the walk hit anomalies
"""

import logging
from pathlib import Path
from typing import List, Optional

from ..commands.base import BaseCommand
from ..core.records import RevisionSnapshot
from ..output import VALID_FORMATS, render, snapshot_spec
from ..presentation.symbols import safe_print
from ..services.diagnostics import LoggingSink
from ..services.git import GitUnavailableError, RevisionSpecifier, NO_LIMIT
from ..services.walker import RevisionWalker


logger = logging.getLogger(__name__)

# Exit codes
EXIT_OK = 0
EXIT_ANOMALIES = 1
EXIT_GIT_ERROR = 2


class LogCommand(BaseCommand):
    """Command for streaming revision history."""

    def _on_snapshot(self, snapshot: RevisionSnapshot) -> None:
        if not snapshot.final:
            logger.info("Generation %d: %d revisions so far",
                        snapshot.generation, len(snapshot))

    def build_specifier(self, revisions: Optional[List[str]] = None,
                        left_right: Optional[List[str]] = None) -> RevisionSpecifier:
        """Turn command-line revisions into a RevisionSpecifier."""
        if left_right:
            left, right = left_right
            return RevisionSpecifier.left_right(left, right, working_directory=self.project_dir)
        return RevisionSpecifier(parameters=list(revisions or []),
                                 working_directory=self.project_dir)

    def log(self, revisions: Optional[List[str]] = None, max_results: Optional[int] = None,
            left_right: Optional[List[str]] = None, output_format: Optional[str] = None,
            export: Optional[str] = None, strict: bool = False, full: bool = False) -> int:
        """
        Walk revisions and print them.

        Returns:
            Process exit code
        """
        symbols = self.symbols

        if not self.git.is_git_repo:
            print(f"{symbols.check_fail} Not a git repository: {self.project_dir}")
            return EXIT_GIT_ERROR

        if max_results is None:
            max_results = self.config.walk.max_results
        if max_results <= 0:
            max_results = NO_LIMIT

        walker = RevisionWalker(
            git=self.git,
            config=self.config.walk,
            diagnostics=LoggingSink(logging.getLogger("revstream.walk")),
            listener=self._on_snapshot,
        )
        specifier = self.build_specifier(revisions, left_right)

        try:
            result = walker.walk(specifier, max_results)
        except GitUnavailableError as e:
            print(f"{symbols.check_fail} {e}")
            return EXIT_GIT_ERROR

        if export:
            path = Path(export)
            path.write_bytes(result.snapshot.to_json(indent=True))
            logger.info("Exported %d revisions to %s", result.record_count, path)

        fmt = output_format or self.config.display.format
        output = render(snapshot_spec(result), format=fmt, symbols=symbols, full=full)
        safe_print(output)

        if strict and not result.ok:
            return EXIT_ANOMALIES
        return EXIT_OK


# =============================================================================
# Command Registration (Self-Registration Pattern)
# =============================================================================

def register_parser(subparsers):
    """Register log command parser."""
    p = subparsers.add_parser('log', help='Stream revision history')
    p.add_argument('revisions', nargs='*',
                   help='Revisions to walk (default: HEAD)')
    p.add_argument('-n', '--max', dest='max_results', type=int,
                   help='Maximum number of revisions (default: walk.max_results)')
    p.add_argument('--left-right', nargs=2, metavar=('LEFT', 'RIGHT'),
                   help='Compare two lines of history (LEFT...RIGHT) with side markers')
    p.add_argument('--format', '-f', choices=VALID_FORMATS,
                   help='Output format (overrides config)')
    p.add_argument('--export', metavar='FILE',
                   help='Write the final snapshot as JSON')
    p.add_argument('--strict', action='store_true',
                   help='Exit with status 1 if malformed records were seen')
    p.add_argument('--full', action='store_true',
                   help='Do not truncate subjects')
    return p


def handle(cli, args):
    """Handle log command dispatch."""
    return cli._log_cmd.log(
        revisions=args.revisions,
        max_results=args.max_results,
        left_right=args.left_right,
        output_format=getattr(args, 'format', None),
        export=args.export,
        strict=args.strict,
        full=args.full,
    )
