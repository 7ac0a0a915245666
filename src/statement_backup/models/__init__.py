"""Data models and structures"""

from .core import (
    BackupConfig,
    DecodeResult,
    StatementRecord,
    StatementSummary,
    TransactionRecord,
    TransactionType,
)

__all__ = [
    'BackupConfig',
    'DecodeResult',
    'StatementRecord',
    'StatementSummary',
    'TransactionRecord',
    'TransactionType',
]
