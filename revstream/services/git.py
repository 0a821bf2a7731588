"""
Git Integration -- Spawning `git log` for a revision walk

Builds the argument list for a streamed, incremental log:
- `-z` separates records with NUL
- `--early-output` lets git show a partial result first, followed by a
  "Final output" marker and the corrected list
- `--topo-order --children` keeps parents after children

The pretty format emits one record per commit:

    %H 01 %e 01 %an 01 %s 01 %b 01 %P 01 %at [01 %m]

Returns the process as a LogProcess; decoding is the walker's job.
"""

import subprocess
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, List, Optional


# Maximum number of results: no limit
NO_LIMIT = -1

DEFAULT_REVISION = "HEAD"

# Placeholders in field order; %m (left/right sign) only for dual-branch walks
LOG_FIELDS = ["%H", "%e", "%an", "%s", "%b", "%P", "%at"]
SIGN_FIELD = "%m"

# %x01 makes git emit the 0x01 field separator
FIELD_SEPARATOR_PLACEHOLDER = "%x01"

BASE_LOG_ARGUMENTS = ["log", "-z", "--early-output", "--topo-order", "--children"]


class GitUnavailableError(RuntimeError):
    """The git executable could not be started."""


@dataclass
class RevisionSpecifier:
    """
    Which revisions to walk, and where.

    Attributes:
        parameters: Revision arguments passed to git log (e.g. ["main"])
        working_directory: Explicit repository directory, overrides the
            integration's repository path
        dual_branch: Request left/right sign markers per record
    """
    parameters: List[str] = field(default_factory=list)
    working_directory: Optional[Path] = None
    dual_branch: bool = False

    @classmethod
    def for_ref(cls, ref: str = DEFAULT_REVISION,
                working_directory: Optional[Path] = None) -> 'RevisionSpecifier':
        return cls(parameters=[ref], working_directory=working_directory)

    @classmethod
    def left_right(cls, left: str, right: str,
                   working_directory: Optional[Path] = None) -> 'RevisionSpecifier':
        """Compare two divergent lines of history (symmetric difference)."""
        return cls(
            parameters=["--left-right", f"{left}...{right}"],
            working_directory=working_directory,
            dual_branch=True,
        )

    @property
    def description(self) -> str:
        return " ".join(self.parameters) if self.parameters else DEFAULT_REVISION


def pretty_format(dual_branch: bool = False) -> str:
    """Build the --pretty argument for the requested field list."""
    fields = list(LOG_FIELDS)
    if dual_branch:
        fields.append(SIGN_FIELD)
    return "--pretty=format:" + FIELD_SEPARATOR_PLACEHOLDER.join(fields)


def build_log_arguments(specifier: Optional[RevisionSpecifier] = None,
                        max_results: int = NO_LIMIT) -> List[str]:
    """
    Build the git argument list for a walk (without the executable).

    Args:
        specifier: Revisions to walk; None walks HEAD
        max_results: Record limit passed to git as -N; NO_LIMIT or any
            value <= 0 means unlimited
    """
    dual_branch = specifier.dual_branch if specifier else False

    arguments = list(BASE_LOG_ARGUMENTS)
    if max_results > 0:
        arguments.append(f"-{max_results}")  # only last N revs
    arguments.append(pretty_format(dual_branch))

    if specifier is None or not specifier.parameters:
        arguments.append(DEFAULT_REVISION)
    else:
        arguments.extend(specifier.parameters)

    return arguments


class LogProcess:
    """
    A running `git log`.

    stderr goes to a temporary file so a chatty git can never block on a
    full stderr pipe while stdout is being consumed.
    """

    def __init__(self, process: subprocess.Popen, stderr_file):
        self._process = process
        self._stderr_file = stderr_file
        self._stderr_text: Optional[str] = None

    @property
    def stdout(self) -> BinaryIO:
        return self._process.stdout

    @property
    def pid(self) -> int:
        return self._process.pid

    def wait(self) -> int:
        """
        Close stdout and wait for git to exit.

        Closing first matters when the walk stopped before the end of the
        stream: git then gets EPIPE instead of blocking on a full pipe.
        """
        if self._process.stdout and not self._process.stdout.closed:
            self._process.stdout.close()
        return self._process.wait()

    def stderr_text(self) -> str:
        """Whatever git wrote to stderr (available after wait())."""
        if self._stderr_text is None:
            self._stderr_file.seek(0)
            self._stderr_text = self._stderr_file.read().decode("utf-8", errors="replace")
        return self._stderr_text

    def close(self) -> None:
        if self._process.poll() is None:
            self._process.kill()
        self.wait()
        self.stderr_text()
        self._stderr_file.close()

    def __enter__(self) -> 'LogProcess':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class GitIntegration:
    """Git repository integration (process side of a walk)."""

    def __init__(self, repo_path: Optional[Path] = None, executable: str = "git"):
        """
        Initialize git integration.

        Args:
            repo_path: Path to git repository. If None, uses current directory.
            executable: Git binary to run
        """
        self.repo_path = Path(repo_path) if repo_path else Path.cwd()
        self.executable = executable
        self.git_dir = self.repo_path / ".git"

    @property
    def is_git_repo(self) -> bool:
        """Check if the repository path is a git working tree (.git dir or worktree file)."""
        return self.git_dir.exists()

    @property
    def working_directory(self) -> Path:
        return self.repo_path

    def open_log(self, directory: Optional[Path], arguments: List[str]) -> LogProcess:
        """
        Start git with the given arguments and stream its stdout.

        Raises:
            GitUnavailableError: If the executable cannot be started
        """
        cwd = Path(directory) if directory else self.repo_path
        stderr_file = tempfile.TemporaryFile()
        try:
            process = subprocess.Popen(
                [self.executable] + list(arguments),
                cwd=cwd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=stderr_file,
            )
        except (FileNotFoundError, PermissionError, NotADirectoryError) as e:
            stderr_file.close()
            raise GitUnavailableError(f"Could not run {self.executable} in {cwd}: {e}") from e

        return LogProcess(process, stderr_file)
