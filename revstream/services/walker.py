"""
RevisionWalker -- Drives a revision walk from git stdout to snapshots

Control flow per walk:
1. Build the git log arguments and start git (GitIntegration)
2. Pull records from the RecordDecoder until the stream ends
3. On a "Final output" marker: publish what we have, start a new
   generation, resume with the id carried by the marker
4. Checkpoint every `publish_every` records of a generation
5. Publish the final snapshot exactly once, then wait for git

Nothing in the stream makes walk() raise. Problems are reported to the
diagnostic sink and collected in WalkResult.anomalies, next to whatever
history could be decoded.
"""

import time
from dataclasses import dataclass, field
from typing import List, Optional, TYPE_CHECKING

from ..core.anomalies import Anomaly, AnomalyKind
from ..core.decoder import RecordDecoder, DecodeStatus, marker_resume_id
from ..core.publisher import BatchPublisher, SnapshotListener
from ..core.records import RevisionSnapshot, EMPTY_SNAPSHOT
from ..core.source import ByteSource, StreamSource
from ..core.tokenizer import Tokenizer
from .diagnostics import DiagnosticSink, LoggingSink
from .git import GitIntegration, RevisionSpecifier, NO_LIMIT, build_log_arguments

if TYPE_CHECKING:
    from ..config import WalkConfig


@dataclass
class WalkResult:
    """
    Outcome of a walk: the final snapshot plus everything that went wrong.

    Attributes:
        snapshot: Final snapshot (last generation)
        anomalies: Recoverable problems, in the order they were found
        decoded_count: Records decoded across all generations
        generations: Number of generations (1 + resync markers seen)
        duration_ms: Wall-clock time spent decoding
        exit_code: git exit status (None for walks over a plain byte source)
        arguments: git arguments used (empty for plain byte sources)
    """
    snapshot: RevisionSnapshot = EMPTY_SNAPSHOT
    anomalies: List[Anomaly] = field(default_factory=list)
    decoded_count: int = 0
    generations: int = 1
    duration_ms: float = 0.0
    exit_code: Optional[int] = None
    arguments: List[str] = field(default_factory=list)

    @property
    def records(self):
        return self.snapshot.records

    @property
    def record_count(self) -> int:
        return len(self.snapshot)

    @property
    def ok(self) -> bool:
        return not self.anomalies

    @property
    def dropped(self) -> int:
        """Records lost to malformed or truncated input."""
        return sum(1 for a in self.anomalies if a.kind.drops_record)

    def by_kind(self, kind: AnomalyKind) -> List[Anomaly]:
        return [a for a in self.anomalies if a.kind == kind]

    def raise_for_anomalies(self) -> None:
        """Raise WalkError if anything went wrong (opt-in strictness)."""
        if self.anomalies:
            raise WalkError(self)

    def to_dict(self) -> dict:
        return {
            "records": self.record_count,
            "decoded": self.decoded_count,
            "generations": self.generations,
            "duration_ms": round(self.duration_ms, 2),
            "exit_code": self.exit_code,
            "anomalies": [a.to_dict() for a in self.anomalies],
        }


class WalkError(Exception):
    """Raised by WalkResult.raise_for_anomalies(); carries the partial result."""

    def __init__(self, result: WalkResult):
        self.result = result
        kinds = sorted({a.kind.value for a in result.anomalies})
        super().__init__(
            f"{len(result.anomalies)} anomalies during walk ({', '.join(kinds)}); "
            f"{result.record_count} records decoded"
        )


class RevisionWalker:
    """
    Walks revisions and publishes progressively updated snapshots.

    Usage:
        walker = RevisionWalker(GitIntegration(repo), listener=view.refresh)
        result = walker.walk(RevisionSpecifier.for_ref("main"), max_results=500)
        for record in result.snapshot:
            ...
    """

    def __init__(
        self,
        git: Optional[GitIntegration] = None,
        config: Optional["WalkConfig"] = None,
        diagnostics: Optional[DiagnosticSink] = None,
        listener: Optional[SnapshotListener] = None,
    ):
        """
        Args:
            git: Process collaborator; anything with `working_directory` and
                `open_log(directory, arguments)`. Defaults to the current
                directory with the configured git executable.
            config: Walk settings (defaults from WalkConfig)
            diagnostics: Sink for progress and anomaly messages
            listener: Receives every published snapshot

        Raises:
            ValueError: If the walk settings do not validate
        """
        if config is None:
            from ..config import WalkConfig
            config = WalkConfig()

        error = config.validate()
        if error:
            raise ValueError(f"Invalid walk config: {error}")

        self.config = config
        self.git = git or GitIntegration(executable=config.git_executable)
        self.diagnostics = diagnostics or LoggingSink()
        self.listener = listener
        self._publisher: Optional[BatchPublisher] = None
        self._drained = False

    @property
    def commits(self) -> RevisionSnapshot:
        """Latest published snapshot of the current (or last) walk."""
        if self._publisher is None:
            return EMPTY_SNAPSHOT
        return self._publisher.latest

    def walk(self, specifier: Optional[RevisionSpecifier] = None,
             max_results: int = NO_LIMIT) -> WalkResult:
        """
        Walk revisions in git's topological order.

        Args:
            specifier: Revisions and working directory; None walks HEAD
            max_results: Passed to git as -N; NO_LIMIT for everything

        Raises:
            GitUnavailableError: If git cannot be started at all
        """
        arguments = build_log_arguments(specifier, max_results)
        dual_branch = specifier.dual_branch if specifier else False
        if specifier is not None and specifier.working_directory is not None:
            directory = specifier.working_directory
        else:
            directory = self.git.working_directory

        with self.git.open_log(directory, arguments) as process:
            result = self.walk_source(StreamSource(process.stdout), dual_branch)
            result.arguments = arguments
            result.exit_code = process.wait()

            # An early stop (short final-output marker, abort) closes the pipe
            # under git, so only a fully drained stream gets its exit code checked
            if result.exit_code != 0 and self._drained:
                stderr = process.stderr_text().strip()
                self._report(result.anomalies, Anomaly(
                    AnomalyKind.SUBPROCESS_FAILURE,
                    f"git exited with status {result.exit_code}"
                    + (f": {stderr.splitlines()[-1]}" if stderr else ""),
                ))

        return result

    def walk_source(self, source: ByteSource, dual_branch: bool = False) -> WalkResult:
        """Decode a complete walk from any byte source."""
        start = time.monotonic()

        publisher = BatchPublisher(listener=self.listener)
        self._publisher = publisher
        self._drained = False

        decoder = RecordDecoder(
            Tokenizer(source, self.config.default_encoding),
            dual_branch=dual_branch,
            timestamp_offset_ms=self.config.timestamp_offset_ms,
        )

        anomalies: List[Anomaly] = []
        decoded = 0
        in_generation = 0
        resume_id: Optional[str] = None

        try:
            while True:
                outcome = decoder.decode(resume_id)
                resume_id = None
                for anomaly in outcome.anomalies:
                    self._report(anomalies, anomaly)

                if outcome.status is DecodeStatus.END:
                    self._drained = True
                    break

                if outcome.status is DecodeStatus.RESYNC:
                    # The partial output is superseded: seal it, start over
                    publisher.publish()
                    publisher.start_generation()
                    in_generation = 0

                    resume_id = marker_resume_id(outcome.marker)
                    if resume_id is None:
                        # Final output holds no commits
                        break
                    continue

                if outcome.status is DecodeStatus.RECORD:
                    publisher.append(outcome.record)
                    decoded += 1
                    in_generation += 1
                    if in_generation % self.config.publish_every == 0:
                        publisher.publish()

                if outcome.end_of_stream:
                    self._drained = True
                    break

        except Exception as e:
            self.diagnostics.error(f"Error loading commits: {e}", exc_info=e)
            anomalies.append(Anomaly(
                AnomalyKind.UNHANDLED_FAILURE,
                f"{type(e).__name__}: {e}",
                ordinal=decoder.ordinal - 1 if decoder.ordinal else None,
            ))

        # Make sure the commits are stored before returning
        snapshot = publisher.publish(trim=True)

        duration_ms = (time.monotonic() - start) * 1000
        self.diagnostics.info(f"Loaded {len(snapshot)} commits in {duration_ms:.0f} ms")

        return WalkResult(
            snapshot=snapshot,
            anomalies=anomalies,
            decoded_count=decoded,
            generations=publisher.generation + 1,
            duration_ms=duration_ms,
        )

    def _report(self, anomalies: List[Anomaly], anomaly: Anomaly) -> None:
        anomalies.append(anomaly)
        self.diagnostics.error(str(anomaly))
