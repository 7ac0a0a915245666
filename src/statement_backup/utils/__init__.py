"""Utility functions and helpers"""

from .backup_writer import BackupWriter
from .config_manager import ConfigManager
from .error_handler import (
    ErrorCategory,
    ErrorHandler,
    ErrorSeverity,
    handle_backup_format_error,
    handle_file_access_error,
    report_decode_warnings,
)

__all__ = [
    'BackupWriter',
    'ConfigManager',
    'ErrorHandler',
    'ErrorCategory',
    'ErrorSeverity',
    'handle_backup_format_error',
    'handle_file_access_error',
    'report_decode_warnings',
]
