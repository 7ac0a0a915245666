"""Error tracking and structured logging for backup operations."""

import json
import logging
import sys
import traceback
from dataclasses import dataclass, asdict
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Any

from ..models.core import DecodeResult


class ErrorSeverity(Enum):
    """Error severity levels"""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories for classification"""
    FILE_ACCESS = "file_access"
    BACKUP_FORMAT = "backup_format"
    DATA_PARSING = "data_parsing"
    SYSTEM = "system"


# Error type -> code
ERROR_CODES = {
    # File access
    "FILE_NOT_FOUND": "F001",
    "FILE_PERMISSION_DENIED": "F002",
    "FILE_WRITE_ERROR": "F003",
    "ENCODING_ERROR": "F004",

    # Backup format
    "CORRUPT_BACKUP": "B001",
    "ROWS_DROPPED": "B002",
    "MULTIPLE_STATEMENT_HEADERS": "B003",

    # CSV import
    "CSV_ROW_INVALID": "D001",
    "MISSING_REQUIRED_COLUMNS": "D002",

    "UNEXPECTED_ERROR": "S999",
}


@dataclass
class ErrorDetail:
    """Detailed error information"""
    timestamp: str
    severity: str
    category: str
    error_code: str
    message: str
    file_path: Optional[str] = None
    line_number: Optional[int] = None
    stack_trace: Optional[str] = None
    context: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return asdict(self)


class JSONFormatter(logging.Formatter):
    """One JSON object per log record"""

    def format(self, record):
        log_entry = {
            'timestamp': datetime.fromtimestamp(record.created).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        for key in ('error_code', 'file_path', 'category', 'context'):
            if hasattr(record, key):
                log_entry[key] = getattr(record, key)

        return json.dumps(log_entry, default=str)


class ErrorHandler:
    """Collects errors and warnings and writes them to JSON-lines logs"""

    def __init__(self, log_directory: str = "logs", enable_console: bool = True):
        self.log_directory = Path(log_directory)
        self.log_directory.mkdir(parents=True, exist_ok=True)

        self.errors: List[ErrorDetail] = []
        self.warnings: List[ErrorDetail] = []

        self._setup_logging(enable_console)

    def _setup_logging(self, enable_console: bool):
        """Set up structured JSON logging"""
        self.logger = logging.getLogger('statement_backup.errors')
        self.logger.setLevel(logging.DEBUG)
        self.logger.propagate = False

        for handler in list(self.logger.handlers):
            handler.close()
        self.logger.handlers.clear()

        log_file = self.log_directory / f"backup_{datetime.now().strftime('%Y%m%d')}.jsonl"
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JSONFormatter())
        self.logger.addHandler(file_handler)

        if enable_console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(logging.WARNING)
            console_handler.setFormatter(logging.Formatter('%(asctime)s - %(levelname)s - %(message)s'))
            self.logger.addHandler(console_handler)

    def close(self):
        """Release log file handles"""
        for handler in list(self.logger.handlers):
            handler.close()
            self.logger.removeHandler(handler)

    def log_error(self,
                  message: str,
                  error_type: str,
                  category: ErrorCategory = ErrorCategory.SYSTEM,
                  file_path: Optional[str] = None,
                  line_number: Optional[int] = None,
                  exception: Optional[BaseException] = None,
                  context: Optional[Dict[str, Any]] = None) -> ErrorDetail:
        """Log an error with detailed information"""
        error_code = ERROR_CODES.get(error_type, "S999")
        stack_trace = None

        if exception:
            stack_trace = ''.join(traceback.format_exception(
                type(exception), exception, exception.__traceback__
            ))

        error_detail = ErrorDetail(
            timestamp=datetime.now().isoformat(),
            severity=ErrorSeverity.ERROR.value,
            category=category.value,
            error_code=error_code,
            message=message,
            file_path=file_path,
            line_number=line_number,
            stack_trace=stack_trace,
            context=context or {}
        )
        self.errors.append(error_detail)

        self.logger.error(
            message,
            extra={
                'error_code': error_code,
                'category': category.value,
                'file_path': file_path,
                'context': context or {}
            }
        )
        return error_detail

    def log_warning(self,
                    message: str,
                    warning_type: str,
                    category: ErrorCategory = ErrorCategory.SYSTEM,
                    file_path: Optional[str] = None,
                    context: Optional[Dict[str, Any]] = None) -> ErrorDetail:
        """Log a warning with detailed information"""
        warning_code = ERROR_CODES.get(warning_type, "W999")

        warning_detail = ErrorDetail(
            timestamp=datetime.now().isoformat(),
            severity=ErrorSeverity.WARNING.value,
            category=category.value,
            error_code=warning_code,
            message=message,
            file_path=file_path,
            context=context or {}
        )
        self.warnings.append(warning_detail)

        self.logger.warning(
            message,
            extra={
                'error_code': warning_code,
                'category': category.value,
                'file_path': file_path,
                'context': context or {}
            }
        )
        return warning_detail

    def get_error_summary(self) -> Dict[str, Any]:
        """Counts of errors and warnings by category"""
        errors_by_category: Dict[str, int] = {}
        warnings_by_category: Dict[str, int] = {}

        for error in self.errors:
            errors_by_category[error.category] = errors_by_category.get(error.category, 0) + 1
        for warning in self.warnings:
            warnings_by_category[warning.category] = warnings_by_category.get(warning.category, 0) + 1

        return {
            'total_errors': len(self.errors),
            'total_warnings': len(self.warnings),
            'errors_by_category': errors_by_category,
            'warnings_by_category': warnings_by_category,
            'files_with_errors': len(set(e.file_path for e in self.errors if e.file_path)),
        }

    def has_errors(self) -> bool:
        """Check if any errors have been logged"""
        return len(self.errors) > 0

    def has_warnings(self) -> bool:
        """Check if any warnings have been logged"""
        return len(self.warnings) > 0


# Convenience functions for common error scenarios
def handle_file_access_error(error_handler: ErrorHandler,
                             file_path: str,
                             exception: Exception) -> ErrorDetail:
    """Handle common file access errors"""
    if isinstance(exception, FileNotFoundError):
        return error_handler.log_error(
            f"File not found: {file_path}",
            "FILE_NOT_FOUND",
            ErrorCategory.FILE_ACCESS,
            file_path=file_path,
            exception=exception
        )
    elif isinstance(exception, PermissionError):
        return error_handler.log_error(
            f"Permission denied accessing file: {file_path}",
            "FILE_PERMISSION_DENIED",
            ErrorCategory.FILE_ACCESS,
            file_path=file_path,
            exception=exception
        )
    elif isinstance(exception, UnicodeDecodeError):
        return error_handler.log_error(
            f"File is not valid UTF-8 text: {file_path}",
            "ENCODING_ERROR",
            ErrorCategory.FILE_ACCESS,
            file_path=file_path,
            exception=exception
        )
    else:
        return error_handler.log_error(
            f"File access error: {str(exception)}",
            "UNEXPECTED_ERROR",
            ErrorCategory.FILE_ACCESS,
            file_path=file_path,
            exception=exception
        )


def handle_backup_format_error(error_handler: ErrorHandler,
                               file_path: str,
                               exception: Exception) -> ErrorDetail:
    """Record a backup that could not be decoded.

    The message stays generic; the underlying reason goes into the context.
    """
    cause = exception.__cause__
    return error_handler.log_error(
        str(exception),
        "CORRUPT_BACKUP",
        ErrorCategory.BACKUP_FORMAT,
        file_path=file_path,
        exception=exception,
        context={'reason': str(cause) if cause else None}
    )


def report_decode_warnings(error_handler: ErrorHandler,
                           file_path: str,
                           result: DecodeResult) -> List[ErrorDetail]:
    """Log warnings for rows skipped and extra headers ignored while decoding"""
    details = []

    if result.dropped_rows:
        details.append(error_handler.log_warning(
            f"Skipped {result.dropped_rows} incomplete transaction rows",
            "ROWS_DROPPED",
            ErrorCategory.BACKUP_FORMAT,
            file_path=file_path,
            context={'dropped_rows': result.dropped_rows}
        ))

    if result.metadata_blocks > 1:
        details.append(error_handler.log_warning(
            f"Found {result.metadata_blocks} statement headers, used the first",
            "MULTIPLE_STATEMENT_HEADERS",
            ErrorCategory.BACKUP_FORMAT,
            file_path=file_path,
            context={'metadata_blocks': result.metadata_blocks}
        ))

    return details
