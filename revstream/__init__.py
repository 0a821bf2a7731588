"""
revstream -- Streaming git revision walker

Runs `git log` and decodes its NUL/SOH-delimited output one record at a
time, publishing immutable snapshots while the walk is in progress.

- Incremental: checkpoints every N records
- Resilient: malformed records are dropped and reported, not fatal
- Restartable: git's "Final output" marker starts a fresh generation

Usage:
    revstream log
    revstream log main -n 500
    revstream log --left-right main feature
    revstream log --format json --export history.json
    revstream config --set walk.publish_every=200

Library:
    from revstream import RevisionWalker, RevisionSpecifier
    result = RevisionWalker().walk(RevisionSpecifier.for_ref("main"))
"""

__version__ = "0.1.0"

# Core layer (decoding)
from .core.source import ByteSource, BytesSource, StreamSource
from .core.tokenizer import Tokenizer
from .core.records import RevisionRecord, RevisionSnapshot, EMPTY_SNAPSHOT
from .core.anomalies import Anomaly, AnomalyKind
from .core.decoder import RecordDecoder, DecodeStatus
from .core.publisher import BatchPublisher

# Services layer
from .services.diagnostics import DiagnosticSink, LoggingSink, NullSink, RecordingSink
from .services.git import GitIntegration, GitUnavailableError, RevisionSpecifier, NO_LIMIT
from .services.walker import RevisionWalker, WalkResult, WalkError

# Presentation layer
from .presentation.symbols import get_symbols, SymbolSet, UNICODE, ASCII

# Config (stays at root)
from .config import Config, ConfigManager, WalkConfig, DisplayConfig, get_config

__all__ = [
    # Core
    'ByteSource', 'BytesSource', 'StreamSource', 'Tokenizer',
    'RevisionRecord', 'RevisionSnapshot', 'EMPTY_SNAPSHOT',
    'Anomaly', 'AnomalyKind', 'RecordDecoder', 'DecodeStatus', 'BatchPublisher',
    # Services
    'DiagnosticSink', 'LoggingSink', 'NullSink', 'RecordingSink',
    'GitIntegration', 'GitUnavailableError', 'RevisionSpecifier', 'NO_LIMIT',
    'RevisionWalker', 'WalkResult', 'WalkError',
    # Presentation
    'get_symbols', 'SymbolSet', 'UNICODE', 'ASCII',
    # Config
    'Config', 'ConfigManager', 'WalkConfig', 'DisplayConfig', 'get_config',
]
