"""Rebuild a statement from backup text."""

import logging
import time
from decimal import Decimal
from typing import Callable, List, Optional

from ..models.core import DecodeResult, StatementRecord, TransactionRecord, TransactionType
from .exceptions import (
    BackupFormatError,
    MalformedMetadataError,
    MissingMetadataBlockError,
)
from .literals import SqlValue
from .scanner import BlockScanner, MetadataLocator
from .schema import STATEMENT_COLUMNS, TRANSACTION_COLUMNS


logger = logging.getLogger(__name__)

DEFAULT_RECOVERED_FILE_NAME = "Recovered_Statement"


class BackupDecoder:
    """Decodes backup documents produced by ``BackupEncoder`` or by hand.

    Decoding is lenient below the statement level: a transaction tuple with
    too few values is skipped and a value that is not a valid literal is
    left out of its tuple. Only a missing or short statement header fails
    the whole document.
    """

    def __init__(self, recovered_file_name: str = DEFAULT_RECOVERED_FILE_NAME,
                 clock: Optional[Callable[[], float]] = None):
        self.recovered_file_name = recovered_file_name
        self.clock = clock or time.time
        self.metadata_locator = MetadataLocator()
        self.block_scanner = BlockScanner(min_columns=len(TRANSACTION_COLUMNS))

    def decode(self, text: str) -> StatementRecord:
        """Decode a document into a statement.

        Raises:
            BackupFormatError: If the document has no usable statement header
        """
        return self.decode_with_report(text).statement

    def decode_with_report(self, text: str) -> DecodeResult:
        """Decode a document and report what was skipped along the way"""
        try:
            return self._decode(text)
        except (MissingMetadataBlockError, MalformedMetadataError) as e:
            logger.error(f"Backup decode failed: {e}")
            raise BackupFormatError() from e

    def _decode(self, text: str) -> DecodeResult:
        metadata, metadata_blocks = self.metadata_locator.locate(text)
        if len(metadata) < len(STATEMENT_COLUMNS):
            raise MalformedMetadataError(
                f"Statement header has {len(metadata)} values, "
                f"expected {len(STATEMENT_COLUMNS)}"
            )

        scan = self.block_scanner.scan(text)
        statement = self._to_statement(metadata)
        statement.transactions = [self._to_transaction(row) for row in scan.rows]

        if scan.dropped:
            logger.warning(f"Skipped {scan.dropped} transaction rows with missing columns")
        logger.debug(
            f"Decoded {len(statement.transactions)} transactions "
            f"from {scan.blocks} insert blocks"
        )

        return DecodeResult(
            statement=statement,
            dropped_rows=scan.dropped,
            transaction_blocks=scan.blocks,
            metadata_blocks=metadata_blocks,
        )

    def _to_statement(self, values: List[SqlValue]) -> StatementRecord:
        saved_at = values[5].as_int()
        if not saved_at:
            saved_at = int(self.clock() * 1000)

        return StatementRecord(
            id=values[0].as_text(),
            file_name=values[1].as_text(self.recovered_file_name),
            bank_name=values[2].as_text(),
            account_holder=values[3].as_text(),
            period=values[4].as_text(),
            saved_at=saved_at,
        )

    def _to_transaction(self, values: List[SqlValue]) -> TransactionRecord:
        # values[0] is the owning statement id, which the header already carries
        return TransactionRecord(
            date=values[1].as_text(),
            amount=values[2].as_decimal(Decimal("0")),
            description=values[3].as_text(),
            transaction_code=values[4].as_text(),
            partner_name=values[5].as_text(),
            partner_account=values[6].as_text(),
            type=TransactionType.CREDIT if values[7].matches("CREDIT") else TransactionType.DEBIT,
            category=values[8].as_text(),
        )


def decode_statement(text: str) -> StatementRecord:
    """Decode ``text`` with default settings"""
    return BackupDecoder().decode(text)
