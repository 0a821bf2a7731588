"""
Services -- Process and orchestration layer

- Git: argument construction and the `git log` process
- Walker: the revision walk loop and its result
- Diagnostics: injectable message sinks
"""

from .diagnostics import DiagnosticSink, LoggingSink, NullSink, RecordingSink
from .git import (
    GitIntegration, GitUnavailableError, LogProcess, RevisionSpecifier,
    NO_LIMIT, build_log_arguments, pretty_format,
)
from .walker import RevisionWalker, WalkResult, WalkError

__all__ = [
    # Diagnostics
    "DiagnosticSink", "LoggingSink", "NullSink", "RecordingSink",
    # Git
    "GitIntegration", "GitUnavailableError", "LogProcess", "RevisionSpecifier",
    "NO_LIMIT", "build_log_arguments", "pretty_format",
    # Walker
    "RevisionWalker", "WalkResult", "WalkError",
]
