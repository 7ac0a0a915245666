"""Backup file output, naming and CSV interchange for statements."""

import csv
import logging
import os
import re
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import List, Dict, Optional, Tuple

from ..codec.decoder import BackupDecoder
from ..codec.encoder import BackupEncoder
from ..codec.exceptions import BackupFormatError
from ..codec.literals import format_number
from ..models.core import (
    BackupConfig,
    DecodeResult,
    StatementRecord,
    TransactionRecord,
    TransactionType,
)


logger = logging.getLogger(__name__)


class BackupWriter:
    """Reads and writes backup files and exchanges transactions as CSV"""

    # CSV column headers for transaction export/import
    STANDARD_HEADERS = [
        'date',
        'amount',
        'description',
        'transaction_code',
        'partner_name',
        'partner_account',
        'type',
        'category'
    ]

    REQUIRED_HEADERS = ['date', 'amount']

    def __init__(self, config: BackupConfig,
                 encoder: Optional[BackupEncoder] = None,
                 decoder: Optional[BackupDecoder] = None):
        self.config = config
        self.encoder = encoder or BackupEncoder()
        self.decoder = decoder or BackupDecoder(recovered_file_name=config.recovered_file_name)

    def write_backup(self, statement: StatementRecord, output_path: str) -> bool:
        """
        Write a statement to a backup file

        Args:
            statement: Statement to back up
            output_path: Path where the backup should be written

        Returns:
            True if successful, False otherwise
        """
        try:
            output_dir = os.path.dirname(output_path)
            if output_dir:
                os.makedirs(output_dir, exist_ok=True)

            with open(output_path, 'w', encoding='utf-8', newline='\n') as backup_file:
                for chunk in self.encoder.iter_encode(statement):
                    backup_file.write(chunk)

            logger.info(f"Wrote {len(statement.transactions)} transactions to {output_path}")
            return True

        except OSError as e:
            logger.error(f"Failed to write backup {output_path}: {e}")
            return False

    def read_backup(self, backup_path: str) -> DecodeResult:
        """
        Read and decode a backup file

        Args:
            backup_path: Path to the backup file

        Returns:
            DecodeResult with the restored statement

        Raises:
            OSError: If the file cannot be read
            BackupFormatError: If the file is not a valid backup
        """
        try:
            with open(backup_path, 'r', encoding='utf-8-sig') as backup_file:
                content = backup_file.read()
        except UnicodeDecodeError as e:
            raise BackupFormatError() from e

        return self.decoder.decode_with_report(content)

    def merge_backups(self, backup_paths: List[str]) -> DecodeResult:
        """
        Combine several backups into one statement

        The documents are concatenated in order; the first statement header
        wins and the transactions of every file follow each other.

        Raises:
            OSError: If a file cannot be read
            BackupFormatError: If the combined text has no statement header
        """
        documents = []
        for path in backup_paths:
            with open(path, 'r', encoding='utf-8-sig') as backup_file:
                documents.append(backup_file.read())

        return self.decoder.decode_with_report("\n".join(documents))

    def generate_output_path(self, statement: StatementRecord) -> str:
        """
        Generate backup path from the statement's original file name

        Args:
            statement: Statement being backed up

        Returns:
            Path inside the backup directory, e.g. ``backups/march_backup.sql``
        """
        clean_name = re.sub(r'\.[^/.]+$', '', statement.file_name or '') or 'backup'
        clean_name = clean_name.replace(os.sep, '_').replace('/', '_')
        return os.path.join(self.config.backup_directory, f"{clean_name}{self.config.backup_suffix}")

    def create_unique_filename(self, base_path: str) -> str:
        """
        Create unique filename if file already exists

        Args:
            base_path: Base file path

        Returns:
            Unique file path (may have suffix added)
        """
        if not os.path.exists(base_path):
            return base_path

        path_without_ext, ext = os.path.splitext(base_path)

        counter = 1
        while counter <= 999:
            new_path = f"{path_without_ext}_{counter:03d}{ext}"
            if not os.path.exists(new_path):
                return new_path
            counter += 1

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return f"{path_without_ext}_{timestamp}{ext}"

    def validate_backup_output(self, backup_path: str, expected_transactions: int) -> List[str]:
        """
        Re-read a written backup and check it decodes completely

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if not os.path.exists(backup_path):
            errors.append(f"Backup file does not exist: {backup_path}")
            return errors

        try:
            result = self.read_backup(backup_path)
        except BackupFormatError as e:
            errors.append(f"Backup file does not decode: {e}")
            return errors

        if result.dropped_rows:
            errors.append(f"Backup contains {result.dropped_rows} incomplete rows")

        restored = len(result.statement.transactions)
        if restored != expected_transactions:
            errors.append(f"Expected {expected_transactions} transactions, found {restored}")

        return errors

    def write_transactions_csv(self, transactions: List[TransactionRecord], output_path: str) -> bool:
        """
        Write transactions to CSV file with standardized headers

        Returns:
            True if successful, False otherwise
        """
        try:
            output_dir = os.path.dirname(output_path)
            if output_dir:
                os.makedirs(output_dir, exist_ok=True)

            with open(output_path, 'w', newline='', encoding='utf-8') as csvfile:
                writer = csv.DictWriter(csvfile, fieldnames=self.STANDARD_HEADERS)
                writer.writeheader()
                for transaction in transactions:
                    writer.writerow(self._transaction_to_dict(transaction))

            return True

        except (OSError, csv.Error) as e:
            logger.error(f"Failed to write CSV {output_path}: {e}")
            return False

    def read_transactions_csv(self, csv_path: str) -> Tuple[List[TransactionRecord], List[str]]:
        """
        Read transactions from a CSV file with the standard headers

        Rows that cannot be parsed are skipped and reported.

        Returns:
            Parsed transactions and a list of per-row errors

        Raises:
            OSError: If the file cannot be read
            ValueError: If required columns are missing
        """
        transactions = []
        errors = []

        with open(csv_path, 'r', newline='', encoding='utf-8-sig') as csvfile:
            reader = csv.DictReader(csvfile)
            headers = [h.strip().lower() for h in (reader.fieldnames or [])]

            missing = [h for h in self.REQUIRED_HEADERS if h not in headers]
            if missing:
                raise ValueError(f"CSV file is missing required columns: {', '.join(missing)}")

            for row_num, row in enumerate(reader, start=2):  # Start at 2 (after header)
                normalized = {
                    (key or '').strip().lower(): (value or '').strip()
                    for key, value in row.items()
                    if key is not None
                }
                try:
                    transactions.append(self._dict_to_transaction(normalized))
                except ValueError as e:
                    errors.append(f"Row {row_num}: {e}")

        return transactions, errors

    def _transaction_to_dict(self, transaction: TransactionRecord) -> Dict[str, str]:
        """Convert TransactionRecord to dictionary for CSV writing"""
        return {
            'date': transaction.date or '',
            'amount': format_number(transaction.amount),
            'description': transaction.description or '',
            'transaction_code': transaction.transaction_code or '',
            'partner_name': transaction.partner_name or '',
            'partner_account': transaction.partner_account or '',
            'type': TransactionType(transaction.type).value,
            'category': transaction.category or ''
        }

    def _dict_to_transaction(self, row: Dict[str, str]) -> TransactionRecord:
        """Build a TransactionRecord from a normalized CSV row"""
        if not row.get('date'):
            raise ValueError("Missing date")

        raw_amount = row.get('amount', '')
        try:
            amount = Decimal(raw_amount.replace(',', ''))
        except InvalidOperation:
            raise ValueError(f"Invalid amount format: {raw_amount!r}")
        if not amount.is_finite():
            raise ValueError(f"Invalid amount format: {raw_amount!r}")

        raw_type = row.get('type', '').upper()
        if raw_type in ('CREDIT', 'DEBIT'):
            transaction_type = TransactionType(raw_type)
        elif raw_type:
            raise ValueError(f"Unknown transaction type: {row.get('type')!r}")
        else:
            # Money in is positive
            transaction_type = TransactionType.CREDIT if amount > 0 else TransactionType.DEBIT

        return TransactionRecord(
            date=row['date'],
            amount=amount,
            description=row.get('description', ''),
            transaction_code=row.get('transaction_code', ''),
            partner_name=row.get('partner_name', ''),
            partner_account=row.get('partner_account', ''),
            type=transaction_type,
            category=row.get('category', ''),
        )
