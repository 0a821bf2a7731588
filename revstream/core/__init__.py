"""
Core -- Stream decoding layer

Byte sources, tokenizer, record decoder and batch publisher. Nothing here
spawns processes or reads configuration.
"""

from .source import ByteSource, BytesSource, StreamSource
from .tokenizer import Tokenizer, FIELD_SEPARATOR, RECORD_TERMINATOR, DEFAULT_ENCODING
from .records import (
    RevisionRecord, RevisionSnapshot, EMPTY_SNAPSHOT,
    ID_LENGTH, SIGN_MARKERS, LEGACY_TIMESTAMP_OFFSET_MS,
)
from .anomalies import Anomaly, AnomalyKind
from .decoder import RecordDecoder, DecoderState, DecodeStatus, DecodeResult
from .publisher import BatchPublisher

__all__ = [
    'ByteSource', 'BytesSource', 'StreamSource',
    'Tokenizer', 'FIELD_SEPARATOR', 'RECORD_TERMINATOR', 'DEFAULT_ENCODING',
    'RevisionRecord', 'RevisionSnapshot', 'EMPTY_SNAPSHOT',
    'ID_LENGTH', 'SIGN_MARKERS', 'LEGACY_TIMESTAMP_OFFSET_MS',
    'Anomaly', 'AnomalyKind',
    'RecordDecoder', 'DecoderState', 'DecodeStatus', 'DecodeResult',
    'BatchPublisher',
]
