"""SQL-style backup codec for statements"""

from .decoder import BackupDecoder, decode_statement
from .encoder import BackupEncoder, encode_statement
from .exceptions import (
    BackupFormatError,
    CodecError,
    MalformedMetadataError,
    MissingMetadataBlockError,
)
from .literals import SqlValue, ValueKind, escape_literal, extract_values, format_number
from .scanner import BlockScanner, MetadataLocator, ScanResult

__all__ = [
    'BackupDecoder',
    'BackupEncoder',
    'BackupFormatError',
    'BlockScanner',
    'CodecError',
    'MalformedMetadataError',
    'MetadataLocator',
    'MissingMetadataBlockError',
    'ScanResult',
    'SqlValue',
    'ValueKind',
    'decode_statement',
    'encode_statement',
    'escape_literal',
    'extract_values',
    'format_number',
]
