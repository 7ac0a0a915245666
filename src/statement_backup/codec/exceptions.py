"""Exceptions raised by the backup codec."""

CORRUPT_BACKUP_MESSAGE = "Backup file is corrupt or in the wrong format"


class CodecError(Exception):
    """Base exception for backup encoding and decoding."""


class BackupFormatError(CodecError):
    """Raised to callers when a backup document cannot be decoded.

    The specific reason is available through ``__cause__``.
    """

    def __init__(self, message: str = CORRUPT_BACKUP_MESSAGE):
        super().__init__(message)


class MissingMetadataBlockError(CodecError):
    """No statement header insert was found in the document."""


class MalformedMetadataError(CodecError):
    """The statement header insert has fewer values than columns."""
